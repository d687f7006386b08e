from __future__ import annotations

import functools
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

from matrixkit.aliases import AliasResolver
from matrixkit.model import Matrix, ResolvedSkill


@dataclass(frozen=True)
class SkillOption:
    """One candidate skill as the interactive surface should draw it."""

    id: str
    name: str
    description: str
    category: str
    alias: str | None = None
    disabled: bool = False
    disabled_reason: str | None = None
    discouraged: bool = False
    discouraged_reason: str | None = None
    recommended: bool = False
    recommended_reason: str | None = None
    selected: bool = False
    alternatives: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RelationshipQuery:
    """Point-in-time questions against a matrix and a candidate selection.

    Every answer is a pure function of (matrix, selection, candidate). Answers are
    memoized per (candidate, selection) in a bounded cache; the matrix is never
    mutated so cached answers cannot go stale.
    """

    def __init__(self, matrix: Matrix, *, cache_size: int = 1024) -> None:
        self.matrix = matrix
        self.aliases = AliasResolver.from_mapping(matrix.aliases)
        self._disabled = functools.lru_cache(maxsize=cache_size)(self._compute_disabled)
        self._discouraged = functools.lru_cache(maxsize=cache_size)(self._compute_discouraged)
        self._recommended = functools.lru_cache(maxsize=cache_size)(self._compute_recommended)

    def normalize_selection(self, selection: Iterable[str]) -> tuple[str, ...]:
        """Resolve aliases and drop repeats, keeping first-seen order."""

        out: list[str] = []
        for raw in selection:
            resolved = self.aliases.resolve(raw)
            if resolved and resolved not in out:
                out.append(resolved)
        return tuple(out)

    def _skill(self, candidate: str) -> ResolvedSkill | None:
        return self.matrix.skill(self.aliases.resolve(candidate))

    # --- disabled ---------------------------------------------------------

    def _compute_disabled(self, candidate: str, selection: tuple[str, ...]) -> str | None:
        skill = self.matrix.skill(candidate)
        if skill is None:
            return None
        chosen = set(selection)

        for relation in skill.conflicts_with:
            if relation.skill_id in chosen:
                other = self.matrix.display_name(relation.skill_id)
                return f"{relation.reason} (conflicts with {other})"

        category = self.matrix.category(skill.category)
        if category is not None and category.exclusive:
            for selected_id in selection:
                if selected_id == skill.id:
                    continue
                other = self.matrix.skill(selected_id)
                if other is not None and other.category == skill.category:
                    return f"Only one {category.name} can be selected ({other.name} already selected)"
        return None

    def disabled_reason(self, candidate: str, selection: Iterable[str]) -> str | None:
        return self._disabled(self.aliases.resolve(candidate), self.normalize_selection(selection))

    def is_disabled(self, candidate: str, selection: Iterable[str]) -> bool:
        return self.disabled_reason(candidate, selection) is not None

    # --- discouraged ------------------------------------------------------

    def _compute_discouraged(self, candidate: str, selection: tuple[str, ...]) -> str | None:
        skill = self.matrix.skill(candidate)
        if skill is None:
            return None
        chosen = set(selection)
        for relation in skill.discourages:
            if relation.skill_id in chosen:
                return f"{relation.reason} (with {self.matrix.display_name(relation.skill_id)})"
        return None

    def discouraged_reason(self, candidate: str, selection: Iterable[str]) -> str | None:
        return self._discouraged(self.aliases.resolve(candidate), self.normalize_selection(selection))

    def is_discouraged(self, candidate: str, selection: Iterable[str]) -> bool:
        return self.discouraged_reason(candidate, selection) is not None

    # --- recommended ------------------------------------------------------

    def _compute_recommended(self, candidate: str, selection: tuple[str, ...]) -> str | None:
        skill = self.matrix.skill(candidate)
        if skill is None:
            return None
        chosen = set(selection)
        for relation in skill.recommended_by:
            if relation.skill_id in chosen:
                return f"{relation.reason} (recommended by {self.matrix.display_name(relation.skill_id)})"
        return None

    def recommended_reason(self, candidate: str, selection: Iterable[str]) -> str | None:
        return self._recommended(self.aliases.resolve(candidate), self.normalize_selection(selection))

    def is_recommended(self, candidate: str, selection: Iterable[str]) -> bool:
        return self.recommended_reason(candidate, selection) is not None

    # --- category views ---------------------------------------------------

    def _require_category(self, category_id: str) -> None:
        if self.matrix.category(category_id) is None:
            available = ", ".join(self.matrix.categories) or "<none>"
            raise ValueError(f"Unknown category id: {category_id} (available: {available})")

    def editable_selection(
        self,
        category_id: str,
        selection: Iterable[str],
        *,
        include_subcategories: bool = True,
    ) -> tuple[str, ...]:
        """Selection with the category's own picks removed when picking replaces them."""

        resolved = self.normalize_selection(selection)
        scope = self.matrix.category_descendants(category_id) if include_subcategories else (category_id,)
        replaceable = {
            cid
            for cid in scope
            if self.matrix.categories[cid].exclusive
        }
        out: list[str] = []
        for skill_id in resolved:
            skill = self.matrix.skill(skill_id)
            if skill is not None and skill.category in replaceable:
                continue
            out.append(skill_id)
        return tuple(out)

    def options_for_category(
        self,
        category_id: str,
        selection: Iterable[str],
        *,
        editing: bool = False,
        include_subcategories: bool = True,
    ) -> tuple[SkillOption, ...]:
        """Every skill of the category (and its subcategories) with its live state.

        With `editing=True`, exclusive categories are evaluated as if their current
        pick were not there, since choosing a new skill replaces it.
        """

        self._require_category(category_id)
        resolved = self.normalize_selection(selection)
        basis = (
            self.editable_selection(category_id, resolved, include_subcategories=include_subcategories)
            if editing
            else resolved
        )
        chosen = set(resolved)

        options: list[SkillOption] = []
        skills = self.matrix.skills_in_category(
            category_id, include_subcategories=include_subcategories
        )
        for skill in skills:
            disabled = self._disabled(skill.id, basis)
            discouraged = None if disabled else self._discouraged(skill.id, basis)
            recommended = None if disabled or discouraged else self._recommended(skill.id, basis)
            options.append(
                SkillOption(
                    id=skill.id,
                    name=skill.name,
                    description=skill.description,
                    category=skill.category,
                    alias=skill.alias,
                    disabled=disabled is not None,
                    disabled_reason=disabled,
                    discouraged=discouraged is not None,
                    discouraged_reason=discouraged,
                    recommended=recommended is not None,
                    recommended_reason=recommended,
                    selected=skill.id in chosen,
                    alternatives=tuple(alt.skill_id for alt in skill.alternatives),
                )
            )
        return tuple(options)

    def category_all_disabled(
        self,
        category_id: str,
        selection: Iterable[str],
        *,
        editing: bool = False,
        include_subcategories: bool = True,
    ) -> str | None:
        """Short common reason when every option of a non-empty category is disabled."""

        options = self.options_for_category(
            category_id, selection, editing=editing, include_subcategories=include_subcategories
        )
        if not options or any(not option.disabled for option in options):
            return None
        first = options[0].disabled_reason or ""
        return first.split(" (", 1)[0] or "requirements not met"
