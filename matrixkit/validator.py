from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Literal

from matrixkit.model import Matrix
from matrixkit.query import RelationshipQuery

ErrorType = Literal[
    "unknown_skill",
    "conflict",
    "category_exclusive",
    "missing_category",
    "missing_requirement",
]
WarningType = Literal["discouraged", "missing_recommendation", "unused_setup", "missing_setup"]


@dataclass(frozen=True)
class ValidationIssue:
    type: str
    message: str
    skills: tuple[str, ...] = ()
    category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "skills": list(self.skills),
            "category": self.category,
        }


@dataclass(frozen=True)
class SelectionReport:
    selection: tuple[str, ...]
    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "selection": list(self.selection),
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }


def _names(matrix: Matrix, skill_ids: Iterable[str], sep: str = ", ") -> str:
    return sep.join(matrix.display_name(skill_id) for skill_id in skill_ids)


def validate_selection(
    matrix: Matrix,
    selection: Iterable[str],
    *,
    query: RelationshipQuery | None = None,
) -> SelectionReport:
    """Check a finished selection against every declared rule.

    Runs over the selection and each selected skill's pre-resolved relations;
    the rest of the matrix is never scanned except for the required-category
    check, which walks the category table.
    """

    query = query or RelationshipQuery(matrix)
    resolved = query.normalize_selection(selection)
    chosen = set(resolved)
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    known: list[str] = []
    for skill_id in resolved:
        if matrix.skill(skill_id) is None:
            hint = query.aliases.suggest(skill_id, matrix.skills.keys())
            suffix = f" (did you mean: {', '.join(hint)})" if hint else ""
            errors.append(
                ValidationIssue("unknown_skill", f"Unknown skill: {skill_id}{suffix}", (skill_id,))
            )
        else:
            known.append(skill_id)

    position = {skill_id: idx for idx, skill_id in enumerate(known)}
    by_category: dict[str, list[str]] = {}

    for skill_id in known:
        skill = matrix.skills[skill_id]
        by_category.setdefault(skill.category, []).append(skill_id)

        for relation in skill.conflicts_with:
            other = relation.skill_id
            if other in position and position[other] > position[skill_id]:
                errors.append(
                    ValidationIssue(
                        "conflict",
                        f"{skill.name} conflicts with {matrix.display_name(other)}: {relation.reason}",
                        (skill_id, other),
                        skill.category,
                    )
                )

        for requirement in skill.requires:
            if requirement.needs_any:
                if not any(need in chosen for need in requirement.skill_ids):
                    errors.append(
                        ValidationIssue(
                            "missing_requirement",
                            f"{skill.name} requires one of: {_names(matrix, requirement.skill_ids)}"
                            f" ({requirement.reason})",
                            (skill_id, *requirement.skill_ids),
                            skill.category,
                        )
                    )
            else:
                missing = tuple(need for need in requirement.skill_ids if need not in chosen)
                if missing:
                    errors.append(
                        ValidationIssue(
                            "missing_requirement",
                            f"{skill.name} requires: {_names(matrix, missing)} ({requirement.reason})",
                            (skill_id, *missing),
                            skill.category,
                        )
                    )

        for relation in skill.discourages:
            other = relation.skill_id
            if other in position and position[other] > position[skill_id]:
                warnings.append(
                    ValidationIssue(
                        "discouraged",
                        f"{skill.name} is not recommended with {matrix.display_name(other)}: {relation.reason}",
                        (skill_id, other),
                        skill.category,
                    )
                )

        for relation in skill.recommends:
            target = relation.skill_id
            if target in chosen or any(rel.skill_id in chosen for rel in matrix.skills[target].conflicts_with):
                continue
            warnings.append(
                ValidationIssue(
                    "missing_recommendation",
                    f"{skill.name} recommends {matrix.display_name(target)}: {relation.reason}",
                    (skill_id, target),
                    matrix.skills[target].category,
                )
            )

        if skill.provides_setup_for and not any(usage in chosen for usage in skill.provides_setup_for):
            warnings.append(
                ValidationIssue(
                    "unused_setup",
                    f'Setup skill "{skill.name}" selected but no corresponding usage skills: '
                    f"{_names(matrix, skill.provides_setup_for)}",
                    (skill_id, *skill.provides_setup_for),
                    skill.category,
                )
            )

        if skill.requires_setup and not any(setup in chosen for setup in skill.requires_setup):
            warnings.append(
                ValidationIssue(
                    "missing_setup",
                    f"{skill.name} expects a setup skill: {_names(matrix, skill.requires_setup, ' or ')}",
                    (skill_id, *skill.requires_setup),
                    matrix.skills[skill.requires_setup[0]].category,
                )
            )

    for category_id, members in by_category.items():
        category = matrix.category(category_id)
        if category is not None and category.exclusive and len(members) > 1:
            errors.append(
                ValidationIssue(
                    "category_exclusive",
                    f'Category "{category.name}" only allows one selection, but multiple selected: '
                    f"{_names(matrix, members)}",
                    tuple(members),
                    category_id,
                )
            )

    for category_id in matrix.ordered_categories():
        category = matrix.categories[category_id]
        if not category.required:
            continue
        if not any(cid in by_category for cid in matrix.category_descendants(category_id)):
            errors.append(
                ValidationIssue(
                    "missing_category",
                    f'Category "{category.name}" requires at least one selection',
                    (),
                    category_id,
                )
            )

    return SelectionReport(selection=resolved, errors=tuple(errors), warnings=tuple(warnings))
