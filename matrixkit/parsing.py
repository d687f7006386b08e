"""Strict conversion of already-loaded documents (plain mappings) into model types.

File reading and YAML decoding belong to the caller; these functions only see
Python mappings and raise `ValueError`/`TypeError` naming the offending path.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from matrixkit.config_namespace import ConfigNamespace
from matrixkit.model import (
    AlternativeGroup,
    CategoryDefinition,
    ConflictRule,
    DiscourageRule,
    MatrixConfig,
    RawSkill,
    RecommendRule,
    RelationshipDefinitions,
    RequireRule,
    SuggestedStack,
)

REQUIRED_TOP_LEVEL = ("version", "categories", "relationships", "suggested_stacks", "skill_aliases")
REQUIRED_RELATIONSHIPS = ("conflicts", "recommends", "requires", "alternatives")


def _parse_category(category_id: str, ns: ConfigNamespace) -> CategoryDefinition:
    declared_id = ns.get_str("id", default=category_id)
    if declared_id != category_id:
        raise ValueError(f"{ns.path}.id must match its key (got {declared_id!r})")
    category = CategoryDefinition(
        id=category_id,
        name=ns.get_str("name") or category_id,
        description=ns.get_str("description", default="", allow_empty=True) or "",
        parent=ns.get_str("parent", default=None),
        exclusive=ns.get_bool("exclusive", default=True),
        required=ns.get_bool("required", default=False),
        order=ns.get_int("order", default=0),
        icon=ns.get_str("icon", default=None, allow_empty=True) or None,
    )
    ns.assert_consumed()
    return category


def _parse_relationships(ns: ConfigNamespace) -> RelationshipDefinitions:
    missing = [name for name in REQUIRED_RELATIONSHIPS if not ns.has(name)]
    if missing:
        raise ValueError(f"{ns.path} is missing required fields: {', '.join(missing)}")

    conflicts = []
    for item in ns.get_list_mapping("conflicts"):
        conflicts.append(
            ConflictRule(
                skills=tuple(item.get_list_str("skills", allow_empty=False)),
                reason=item.get_str("reason") or "",
            )
        )

    discourages = []
    for item in ns.get_list_mapping("discourages", default=()):
        discourages.append(
            DiscourageRule(
                skills=tuple(item.get_list_str("skills", allow_empty=False)),
                reason=item.get_str("reason") or "",
            )
        )

    recommends = []
    for item in ns.get_list_mapping("recommends"):
        recommends.append(
            RecommendRule(
                when=item.get_str("when") or "",
                suggest=tuple(item.get_list_str("suggest", allow_empty=False)),
                reason=item.get_str("reason") or "",
            )
        )

    requires = []
    for item in ns.get_list_mapping("requires"):
        requires.append(
            RequireRule(
                skill=item.get_str("skill") or "",
                needs=tuple(item.get_list_str("needs", allow_empty=False)),
                needs_any=item.get_bool("needs_any", default=False),
                reason=item.get_str("reason") or "",
            )
        )

    alternatives = []
    for item in ns.get_list_mapping("alternatives"):
        alternatives.append(
            AlternativeGroup(
                purpose=item.get_str("purpose") or "",
                skills=tuple(item.get_list_str("skills", allow_empty=False)),
            )
        )

    ns.assert_consumed()
    return RelationshipDefinitions(
        conflicts=tuple(conflicts),
        discourages=tuple(discourages),
        recommends=tuple(recommends),
        requires=tuple(requires),
        alternatives=tuple(alternatives),
    )


def _parse_stack(ns: ConfigNamespace) -> SuggestedStack:
    skills_ns = ns.namespace("skills")
    skills: dict[str, dict[str, str]] = {}
    for category in list(skills_ns.data.keys()):
        skills[str(category)] = skills_ns.get_str_mapping(str(category))
    stack = SuggestedStack(
        id=ns.get_str("id") or "",
        name=ns.get_str("name") or "",
        description=ns.get_str("description", default="", allow_empty=True) or "",
        audience=tuple(ns.get_list_str("audience", default=())),
        skills=skills,
        philosophy=ns.get_str("philosophy", default="", allow_empty=True) or "",
    )
    ns.assert_consumed()
    return stack


def parse_matrix_config(raw: Mapping[str, Any], *, source: str = "") -> MatrixConfig:
    """Parse a relationship-declaration document into a MatrixConfig."""

    if not isinstance(raw, Mapping):
        raise TypeError(f"Skills matrix {source or '<document>'} must be a mapping")
    missing = [name for name in REQUIRED_TOP_LEVEL if name not in raw]
    if missing:
        where = f" at {source}" if source else ""
        raise ValueError(f"Skills matrix{where} is missing required fields: {', '.join(missing)}")

    root = ConfigNamespace(dict(raw), path="")
    version = root.get_value("version")
    categories_ns = root.namespace("categories")
    categories: dict[str, CategoryDefinition] = {}
    for category_id in list(categories_ns.data.keys()):
        key = str(category_id).strip()
        if not key:
            raise ValueError("categories keys must be non-empty strings")
        categories[key] = _parse_category(key, categories_ns.namespace(str(category_id)))

    relationships = _parse_relationships(root.namespace("relationships"))

    stacks = tuple(_parse_stack(item) for item in root.get_list_mapping("suggested_stacks"))
    seen_stacks: set[str] = set()
    for stack in stacks:
        if stack.id in seen_stacks:
            raise ValueError(f"Duplicate suggested stack id: {stack.id}")
        seen_stacks.add(stack.id)

    aliases = root.get_str_mapping("skill_aliases")
    root.assert_consumed()

    return MatrixConfig(
        version=str(version),
        categories=categories,
        relationships=relationships,
        suggested_stacks=stacks,
        skill_aliases=aliases,
    )


def parse_skill_metadata(
    metadata: Mapping[str, Any],
    *,
    skill_id: str,
    description: str,
    name: str,
    path: str,
) -> RawSkill:
    """Parse one skill's `metadata.yaml` mapping.

    `skill_id` and `description` come from the skill's frontmatter; `name` is the
    fallback display name used when `cli_name` is absent.
    """

    ns = ConfigNamespace.from_value(metadata, path=path or skill_id)
    author = ns.get_str("author", default="", allow_empty=True) or ""
    cli_name = ns.get_str("cli_name", default=None)
    ns.get_str("version", default=None, allow_empty=True)
    ns.get_bool("category_exclusive", default=True)

    skill = RawSkill(
        id=skill_id,
        name=f"{cli_name} {author}".strip() if cli_name else name,
        description=ns.get_str("cli_description", default=None) or description,
        category=ns.get_str("category") or "",
        author=author,
        tags=tuple(ns.get_list_str("tags", default=())),
        compatible_with=tuple(ns.get_list_str("compatible_with", default=())),
        conflicts_with=tuple(ns.get_list_str("conflicts_with", default=())),
        requires=tuple(ns.get_list_str("requires", default=())),
        requires_setup=tuple(ns.get_list_str("requires_setup", default=())),
        provides_setup_for=tuple(ns.get_list_str("provides_setup_for", default=())),
        path=path,
        usage_guidance=ns.get_str("usage_guidance", default=None, allow_empty=True) or None,
    )
    ns.assert_consumed()
    return skill
