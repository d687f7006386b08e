"""Data types for raw matrix declarations, extracted skill metadata and the resolved matrix."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from matrixkit.errors import MatrixInvariantError

# --- Raw declarations -------------------------------------------------------


@dataclass(frozen=True)
class CategoryDefinition:
    id: str
    name: str
    description: str = ""
    parent: str | None = None
    exclusive: bool = True
    required: bool = False
    order: int = 0
    icon: str | None = None


@dataclass(frozen=True)
class ConflictRule:
    skills: tuple[str, ...]
    reason: str


@dataclass(frozen=True)
class DiscourageRule:
    skills: tuple[str, ...]
    reason: str


@dataclass(frozen=True)
class RecommendRule:
    when: str
    suggest: tuple[str, ...]
    reason: str


@dataclass(frozen=True)
class RequireRule:
    skill: str
    needs: tuple[str, ...]
    reason: str
    needs_any: bool = False


@dataclass(frozen=True)
class AlternativeGroup:
    purpose: str
    skills: tuple[str, ...]


@dataclass(frozen=True)
class RelationshipDefinitions:
    conflicts: tuple[ConflictRule, ...] = ()
    discourages: tuple[DiscourageRule, ...] = ()
    recommends: tuple[RecommendRule, ...] = ()
    requires: tuple[RequireRule, ...] = ()
    alternatives: tuple[AlternativeGroup, ...] = ()


@dataclass(frozen=True)
class SuggestedStack:
    id: str
    name: str
    description: str = ""
    audience: tuple[str, ...] = ()
    # {category: {subcategory: alias_or_id}}, declaration order preserved.
    skills: dict[str, dict[str, str]] = field(default_factory=dict)
    philosophy: str = ""


@dataclass(frozen=True)
class MatrixConfig:
    version: str
    categories: dict[str, CategoryDefinition]
    relationships: RelationshipDefinitions
    suggested_stacks: tuple[SuggestedStack, ...] = ()
    skill_aliases: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RawSkill:
    """Metadata extracted from one skill's own definition (before merging)."""

    id: str
    name: str
    description: str
    category: str
    author: str = ""
    tags: tuple[str, ...] = ()
    compatible_with: tuple[str, ...] = ()
    conflicts_with: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()
    requires_setup: tuple[str, ...] = ()
    provides_setup_for: tuple[str, ...] = ()
    path: str = ""
    usage_guidance: str | None = None
    local: bool = False
    local_path: str | None = None


# --- Resolved matrix --------------------------------------------------------


@dataclass(frozen=True)
class SkillRelation:
    skill_id: str
    reason: str


@dataclass(frozen=True)
class SkillRequirement:
    skill_ids: tuple[str, ...]
    reason: str
    needs_any: bool = False


@dataclass(frozen=True)
class SkillAlternative:
    skill_id: str
    purpose: str


@dataclass(frozen=True)
class ResolvedSkill:
    id: str
    name: str
    description: str
    category: str
    alias: str | None = None
    author: str = ""
    tags: tuple[str, ...] = ()
    usage_guidance: str | None = None

    conflicts_with: tuple[SkillRelation, ...] = ()
    recommends: tuple[SkillRelation, ...] = ()
    recommended_by: tuple[SkillRelation, ...] = ()
    requires: tuple[SkillRequirement, ...] = ()
    required_by: tuple[SkillRelation, ...] = ()
    discourages: tuple[SkillRelation, ...] = ()
    alternatives: tuple[SkillAlternative, ...] = ()

    requires_setup: tuple[str, ...] = ()
    provides_setup_for: tuple[str, ...] = ()

    path: str = ""
    local: bool = False
    local_path: str | None = None

    def relation_ids(self) -> dict[str, tuple[str, ...]]:
        """Target ids per relation kind (used for invariant checks and comparisons)."""

        return {
            "conflicts_with": tuple(r.skill_id for r in self.conflicts_with),
            "recommends": tuple(r.skill_id for r in self.recommends),
            "recommended_by": tuple(r.skill_id for r in self.recommended_by),
            "requires": tuple(sid for req in self.requires for sid in req.skill_ids),
            "required_by": tuple(r.skill_id for r in self.required_by),
            "discourages": tuple(r.skill_id for r in self.discourages),
            "alternatives": tuple(a.skill_id for a in self.alternatives),
        }


@dataclass(frozen=True)
class ResolvedStack:
    id: str
    name: str
    description: str
    audience: tuple[str, ...]
    skills: dict[str, dict[str, str]]
    all_skill_ids: tuple[str, ...]
    philosophy: str = ""


@dataclass(frozen=True)
class Matrix:
    """Merged, query-ready skills matrix. Treated as immutable once built."""

    version: str
    categories: dict[str, CategoryDefinition]
    skills: dict[str, ResolvedSkill]
    suggested_stacks: tuple[ResolvedStack, ...]
    aliases: dict[str, str]
    aliases_reverse: dict[str, str]

    def skill(self, skill_id: str) -> ResolvedSkill | None:
        return self.skills.get(skill_id)

    def category(self, category_id: str) -> CategoryDefinition | None:
        return self.categories.get(category_id)

    def stack(self, stack_id: str) -> ResolvedStack | None:
        for stack in self.suggested_stacks:
            if stack.id == stack_id:
                return stack
        return None

    def _ordered(self, category_ids: list[str]) -> list[str]:
        position = {cid: idx for idx, cid in enumerate(self.categories)}
        return sorted(category_ids, key=lambda cid: (self.categories[cid].order, position[cid]))

    def top_level_categories(self) -> tuple[str, ...]:
        return tuple(self._ordered([cid for cid, cat in self.categories.items() if not cat.parent]))

    def subcategories(self, parent_id: str) -> tuple[str, ...]:
        return tuple(
            self._ordered([cid for cid, cat in self.categories.items() if cat.parent == parent_id])
        )

    def category_descendants(self, category_id: str) -> tuple[str, ...]:
        """The category itself followed by all nested subcategories, depth first."""

        out: list[str] = []
        pending = [category_id]
        while pending:
            current = pending.pop()
            if current in out:
                continue
            out.append(current)
            pending.extend(reversed(self.subcategories(current)))
        return tuple(out)

    def ordered_categories(self) -> tuple[str, ...]:
        """Every category in wizard order: parents before their subcategories."""

        out: list[str] = []
        for top in self.top_level_categories():
            out.extend(self.category_descendants(top))
        return tuple(out)

    def skills_in_category(
        self, category_id: str, *, include_subcategories: bool = True
    ) -> tuple[ResolvedSkill, ...]:
        if include_subcategories:
            wanted = set(self.category_descendants(category_id))
        else:
            wanted = {category_id}
        return tuple(skill for skill in self.skills.values() if skill.category in wanted)

    def display_name(self, skill_id: str) -> str:
        skill = self.skills.get(skill_id)
        return skill.name if skill is not None else skill_id

    def check_invariants(self) -> None:
        """Raise MatrixInvariantError when a relation or stack entry is dangling."""

        problems: list[str] = []
        for skill in self.skills.values():
            for kind, targets in skill.relation_ids().items():
                for target in targets:
                    if target not in self.skills:
                        problems.append(f"{skill.id}.{kind} references unknown skill {target!r}")
                if len(set(targets)) != len(targets) and kind != "requires":
                    problems.append(f"{skill.id}.{kind} contains duplicate entries")
        for stack in self.suggested_stacks:
            for skill_id in stack.all_skill_ids:
                if skill_id not in self.skills:
                    problems.append(f"stack {stack.id} references unknown skill {skill_id!r}")
        if problems:
            raise MatrixInvariantError("; ".join(problems))

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "categories": {cid: asdict(cat) for cid, cat in self.categories.items()},
            "skills": {sid: asdict(skill) for sid, skill in self.skills.items()},
            "suggested_stacks": [asdict(stack) for stack in self.suggested_stacks],
            "aliases": dict(self.aliases),
            "aliases_reverse": dict(self.aliases_reverse),
        }
