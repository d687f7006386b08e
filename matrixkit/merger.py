"""Merge raw relationship declarations with extracted skill metadata.

The merge is a pure function of its inputs: the same `MatrixConfig` and skill
lists always produce an equal `Matrix`. Data problems never raise here; they
are collected into `MergeResult.issues` so a caller sees all of them at once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

from matrixkit.aliases import AliasResolver
from matrixkit.errors import ConfigIssue, MatrixConfigError
from matrixkit.model import (
    CategoryDefinition,
    Matrix,
    MatrixConfig,
    RawSkill,
    ResolvedSkill,
    ResolvedStack,
    SkillAlternative,
    SkillRelation,
    SkillRequirement,
)

logger = logging.getLogger(__name__)

METADATA_CONFLICT_REASON = "Declared in skill metadata"
METADATA_REQUIRE_REASON = "Declared in skill metadata"
METADATA_COMPATIBLE_REASON = "Compatible with this skill"

LOCAL_CATEGORY_TOP = CategoryDefinition(
    id="local",
    name="Local Skills",
    description="Project-specific skills",
    exclusive=False,
    required=False,
    order=0,
)
LOCAL_CATEGORY_CUSTOM = CategoryDefinition(
    id="local/custom",
    name="Custom",
    description="Your project-specific skills",
    parent="local",
    exclusive=False,
    required=False,
    order=0,
)
LOCAL_AUTHOR = "@local"


@dataclass(frozen=True)
class MergeResult:
    matrix: Matrix
    issues: tuple[ConfigIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.issues

    def raise_for_errors(self) -> Matrix:
        if self.issues:
            raise MatrixConfigError(self.issues)
        return self.matrix


@dataclass
class _Relations:
    # Insertion-ordered maps: the first reason recorded for a target wins.
    conflicts_with: dict[str, str] = field(default_factory=dict)
    recommends: dict[str, str] = field(default_factory=dict)
    recommended_by: dict[str, str] = field(default_factory=dict)
    required_by: dict[str, str] = field(default_factory=dict)
    discourages: dict[str, str] = field(default_factory=dict)
    alternatives: dict[str, str] = field(default_factory=dict)
    requires: dict[tuple[tuple[str, ...], bool], str] = field(default_factory=dict)


class _Merger:
    def __init__(
        self,
        config: MatrixConfig,
        skills: Sequence[RawSkill],
        local_skills: Sequence[RawSkill],
    ) -> None:
        self.config = config
        self.issues: list[ConfigIssue] = []
        self.categories: dict[str, CategoryDefinition] = dict(config.categories)
        self.skills: dict[str, RawSkill] = {}
        self._collect_skills(skills, local_skills)
        self.aliases = AliasResolver.from_mapping(config.skill_aliases)
        self.relations: dict[str, _Relations] = {sid: _Relations() for sid in self.skills}

    def add_issue(self, kind, message: str, path: str = "") -> None:
        issue = ConfigIssue(kind, message, path)
        logger.warning("Skills matrix configuration issue: %s", issue)
        self.issues.append(issue)

    def _collect_skills(self, skills: Sequence[RawSkill], local_skills: Sequence[RawSkill]) -> None:
        for skill in skills:
            if skill.id in self.skills:
                self.add_issue(
                    "duplicate_skill",
                    f"skill id {skill.id!r} is declared more than once (kept {self.skills[skill.id].path or 'first'})",
                    skill.path,
                )
                continue
            self.skills[skill.id] = skill

        if not local_skills:
            return
        self.categories.setdefault(LOCAL_CATEGORY_TOP.id, LOCAL_CATEGORY_TOP)
        self.categories.setdefault(LOCAL_CATEGORY_CUSTOM.id, LOCAL_CATEGORY_CUSTOM)
        for skill in local_skills:
            if skill.id in self.skills:
                logger.warning("Local skill %s replaces the repository skill with the same id", skill.id)
            # Local skills carry no relationships and live in their own category.
            self.skills[skill.id] = replace(
                skill,
                category=LOCAL_CATEGORY_CUSTOM.id,
                author=skill.author or LOCAL_AUTHOR,
                compatible_with=(),
                conflicts_with=(),
                requires=(),
                requires_setup=(),
                provides_setup_for=(),
                local=True,
            )

    def _ref(self, raw: str, *, path: str) -> str | None:
        resolved = self.aliases.resolve(raw)
        if resolved in self.skills:
            return resolved
        hint = self.aliases.suggest(raw, self.skills.keys())
        suffix = f" (did you mean: {', '.join(hint)})" if hint else ""
        self.add_issue("dangling_reference", f"unknown skill {raw!r}{suffix}", path)
        return None

    def _refs(self, raws: Iterable[str], *, path: str) -> list[str]:
        out: list[str] = []
        for idx, raw in enumerate(raws):
            resolved = self._ref(raw, path=f"{path}[{idx}]")
            if resolved is not None and resolved not in out:
                out.append(resolved)
        return out

    def check_categories(self) -> None:
        for category_id, category in self.categories.items():
            if category.parent and category.parent not in self.categories:
                self.add_issue(
                    "missing_parent",
                    f"parent category {category.parent!r} does not exist",
                    f"categories.{category_id}",
                )

        reported: set[str] = set()
        for category_id in self.categories:
            chain: list[str] = []
            current: str | None = category_id
            while current is not None and current in self.categories:
                if current in chain:
                    cycle = chain[chain.index(current):] + [current]
                    key = min(cycle)
                    if key not in reported:
                        reported.add(key)
                        self.add_issue(
                            "category_cycle",
                            f"category parents form a cycle: {' -> '.join(cycle)}",
                            f"categories.{category_id}",
                        )
                    break
                chain.append(current)
                current = self.categories[current].parent

        for skill in self.skills.values():
            if skill.category not in self.categories:
                self.add_issue(
                    "unknown_category",
                    f"skill {skill.id!r} uses undeclared category {skill.category!r}",
                    skill.path,
                )

    def seed_from_metadata(self) -> None:
        for skill in self.skills.values():
            rel = self.relations[skill.id]
            base = skill.path or skill.id

            for target in self._refs(skill.conflicts_with, path=f"{base}:conflicts_with"):
                self._link_conflict(skill.id, target, METADATA_CONFLICT_REASON)

            for target in self._refs(skill.compatible_with, path=f"{base}:compatible_with"):
                if target != skill.id:
                    rel.recommends.setdefault(target, METADATA_COMPATIBLE_REASON)

            needs = self._refs(skill.requires, path=f"{base}:requires")
            needs = [target for target in needs if target != skill.id]
            if needs:
                rel.requires.setdefault((tuple(needs), False), METADATA_REQUIRE_REASON)

    def _link_conflict(self, a: str, b: str, reason: str) -> None:
        if a == b:
            return
        self.relations[a].conflicts_with.setdefault(b, reason)
        self.relations[b].conflicts_with.setdefault(a, reason)

    def fold_rules(self) -> None:
        rels = self.config.relationships

        for idx, rule in enumerate(rels.conflicts):
            members = self._refs(rule.skills, path=f"relationships.conflicts[{idx}].skills")
            for a in members:
                for b in members:
                    if a != b:
                        self.relations[a].conflicts_with.setdefault(b, rule.reason)

        for idx, rule in enumerate(rels.discourages):
            members = self._refs(rule.skills, path=f"relationships.discourages[{idx}].skills")
            for a in members:
                for b in members:
                    if a != b:
                        self.relations[a].discourages.setdefault(b, rule.reason)

        for idx, rule in enumerate(rels.recommends):
            trigger = self._ref(rule.when, path=f"relationships.recommends[{idx}].when")
            suggested = self._refs(rule.suggest, path=f"relationships.recommends[{idx}].suggest")
            if trigger is None:
                continue
            for target in suggested:
                if target != trigger:
                    self.relations[trigger].recommends.setdefault(target, rule.reason)

        for idx, rule in enumerate(rels.requires):
            dependent = self._ref(rule.skill, path=f"relationships.requires[{idx}].skill")
            needs = self._refs(rule.needs, path=f"relationships.requires[{idx}].needs")
            if dependent is None:
                continue
            needs = [target for target in needs if target != dependent]
            if needs:
                self.relations[dependent].requires.setdefault((tuple(needs), rule.needs_any), rule.reason)

        for idx, group in enumerate(rels.alternatives):
            members = self._refs(group.skills, path=f"relationships.alternatives[{idx}].skills")
            for a in members:
                for b in members:
                    if a != b:
                        self.relations[a].alternatives.setdefault(b, group.purpose)

    def build_inverse(self) -> None:
        for skill_id, rel in self.relations.items():
            for target, reason in rel.recommends.items():
                self.relations[target].recommended_by.setdefault(skill_id, reason)
            for (needs, _needs_any), reason in rel.requires.items():
                for target in needs:
                    self.relations[target].required_by.setdefault(skill_id, reason)

    def resolve_stacks(self) -> tuple[ResolvedStack, ...]:
        stacks: list[ResolvedStack] = []
        for idx, stack in enumerate(self.config.suggested_stacks):
            nested: dict[str, dict[str, str]] = {}
            all_ids: list[str] = []
            for category, subcategories in stack.skills.items():
                nested[category] = {}
                for subcategory, alias in subcategories.items():
                    resolved = self._ref(
                        alias, path=f"suggested_stacks[{idx}].skills.{category}.{subcategory}"
                    )
                    if resolved is None:
                        continue
                    nested[category][subcategory] = resolved
                    if resolved not in all_ids:
                        all_ids.append(resolved)
            stacks.append(
                ResolvedStack(
                    id=stack.id,
                    name=stack.name,
                    description=stack.description,
                    audience=tuple(stack.audience),
                    skills=nested,
                    all_skill_ids=tuple(all_ids),
                    philosophy=stack.philosophy,
                )
            )
        return tuple(stacks)

    def build_skills(self) -> dict[str, ResolvedSkill]:
        resolved: dict[str, ResolvedSkill] = {}
        for skill in self.skills.values():
            rel = self.relations[skill.id]
            base = skill.path or skill.id
            resolved[skill.id] = ResolvedSkill(
                id=skill.id,
                name=skill.name,
                description=skill.description,
                category=skill.category,
                alias=self.aliases.reverse_alias(skill.id),
                author=skill.author,
                tags=tuple(skill.tags),
                usage_guidance=skill.usage_guidance,
                conflicts_with=_relations(rel.conflicts_with),
                recommends=_relations(rel.recommends),
                recommended_by=_relations(rel.recommended_by),
                requires=tuple(
                    SkillRequirement(skill_ids=needs, reason=reason, needs_any=needs_any)
                    for (needs, needs_any), reason in rel.requires.items()
                ),
                required_by=_relations(rel.required_by),
                discourages=_relations(rel.discourages),
                alternatives=tuple(
                    SkillAlternative(skill_id=target, purpose=purpose)
                    for target, purpose in rel.alternatives.items()
                ),
                requires_setup=tuple(self._refs(skill.requires_setup, path=f"{base}:requires_setup")),
                provides_setup_for=tuple(
                    self._refs(skill.provides_setup_for, path=f"{base}:provides_setup_for")
                ),
                path=skill.path,
                local=skill.local,
                local_path=skill.local_path,
            )
        return resolved


def _relations(entries: dict[str, str]) -> tuple[SkillRelation, ...]:
    return tuple(SkillRelation(skill_id=target, reason=reason) for target, reason in entries.items())


def merge_matrix(
    config: MatrixConfig,
    skills: Sequence[RawSkill],
    *,
    local_skills: Sequence[RawSkill] = (),
) -> MergeResult:
    """Combine declarations and skill metadata into a bidirectionally indexed Matrix."""

    merger = _Merger(config, skills, local_skills)
    merger.check_categories()
    for issue in merger.aliases.issues(merger.skills.keys()):
        merger.add_issue(issue.kind, issue.message, issue.path)

    merger.seed_from_metadata()
    merger.fold_rules()
    merger.build_inverse()
    stacks = merger.resolve_stacks()
    resolved_skills = merger.build_skills()

    matrix = Matrix(
        version=config.version,
        categories=merger.categories,
        skills=resolved_skills,
        suggested_stacks=stacks,
        aliases=merger.aliases.forward,
        aliases_reverse=merger.aliases.reverse,
    )
    matrix.check_invariants()

    logger.info(
        "Merged skills matrix: version=%s skills=%d categories=%d stacks=%d issues=%d",
        config.version,
        len(resolved_skills),
        len(merger.categories),
        len(stacks),
        len(merger.issues),
    )
    return MergeResult(matrix=matrix, issues=tuple(merger.issues))
