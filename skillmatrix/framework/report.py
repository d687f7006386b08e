"""Tabular views of a merged matrix for listing and CSV export."""

from __future__ import annotations

import os

import pandas as pd

from matrixkit import Matrix

SKILL_COLUMNS = [
    "id",
    "name",
    "alias",
    "category",
    "author",
    "local",
    "conflicts",
    "recommends",
    "requires",
    "discourages",
    "alternatives",
]
RELATION_COLUMNS = ["skill_id", "kind", "target", "reason"]


def skills_frame(matrix: Matrix) -> pd.DataFrame:
    """One row per skill, in wizard category order, with relation counts."""

    rows = []
    for category_id in matrix.ordered_categories():
        for skill in matrix.skills_in_category(category_id, include_subcategories=False):
            rows.append(
                {
                    "id": skill.id,
                    "name": skill.name,
                    "alias": skill.alias or "",
                    "category": skill.category,
                    "author": skill.author,
                    "local": skill.local,
                    "conflicts": len(skill.conflicts_with),
                    "recommends": len(skill.recommends),
                    "requires": len(skill.requires),
                    "discourages": len(skill.discourages),
                    "alternatives": len(skill.alternatives),
                }
            )
    return pd.DataFrame(rows, columns=SKILL_COLUMNS)


def relations_frame(matrix: Matrix) -> pd.DataFrame:
    """Long-form edge list: one row per (skill, relation kind, target)."""

    rows = []
    for skill in matrix.skills.values():
        for kind, relations in (
            ("conflicts_with", skill.conflicts_with),
            ("recommends", skill.recommends),
            ("recommended_by", skill.recommended_by),
            ("required_by", skill.required_by),
            ("discourages", skill.discourages),
        ):
            for relation in relations:
                rows.append(
                    {"skill_id": skill.id, "kind": kind, "target": relation.skill_id, "reason": relation.reason}
                )
        for requirement in skill.requires:
            kind = "requires_any" if requirement.needs_any else "requires"
            for target in requirement.skill_ids:
                rows.append({"skill_id": skill.id, "kind": kind, "target": target, "reason": requirement.reason})
        for alternative in skill.alternatives:
            rows.append(
                {
                    "skill_id": skill.id,
                    "kind": "alternatives",
                    "target": alternative.skill_id,
                    "reason": alternative.purpose,
                }
            )
    return pd.DataFrame(rows, columns=RELATION_COLUMNS)


def write_csv(df: pd.DataFrame, path: str) -> str:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    df.to_csv(path, index=False, encoding="utf-8")
    return path
