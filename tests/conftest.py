import logging

import pytest

from matrixkit import (
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
    merge_matrix,
)


def _category(category_id, order, *, exclusive=True, required=False, parent=None):
    return CategoryDefinition(
        id=category_id,
        name=category_id.title(),
        parent=parent,
        exclusive=exclusive,
        required=required,
        order=order,
    )


def _skill(skill_id, category, **kwargs):
    return RawSkill(
        id=skill_id,
        name=kwargs.pop("name", skill_id.replace("-", " ").title()),
        description=kwargs.pop("description", f"{skill_id} skill"),
        category=category,
        **kwargs,
    )


@pytest.fixture
def web_config() -> MatrixConfig:
    categories = {
        "framework": _category("framework", 1, required=True),
        "styling": _category("styling", 2),
        "state": _category("state", 3),
        "testing": _category("testing", 4, exclusive=False),
        "tooling": _category("tooling", 5, exclusive=False),
    }
    relationships = RelationshipDefinitions(
        conflicts=(
            ConflictRule(skills=("react", "vue"), reason="Pick one UI framework"),
            ConflictRule(skills=("sass", "css-modules"), reason="Competing stylesheet pipelines"),
        ),
        discourages=(
            DiscourageRule(skills=("tailwind", "sass"), reason="Utility classes make a preprocessor redundant"),
        ),
        recommends=(
            RecommendRule(when="react", suggest=("zustand", "vitest"), reason="Lightweight defaults for React"),
        ),
        requires=(
            RequireRule(skill="zustand", needs=("react",), reason="Zustand hooks are React-specific"),
            RequireRule(skill="pinia", needs=("vue",), reason="Pinia stores need Vue"),
            RequireRule(
                skill="testing-library",
                needs=("react", "vue"),
                needs_any=True,
                reason="Needs a framework adapter",
            ),
        ),
        alternatives=(AlternativeGroup(purpose="Styling", skills=("tailwind", "sass", "css-modules")),),
    )
    stacks = (
        SuggestedStack(
            id="react-tailwind",
            name="React + Tailwind",
            description="Modern React",
            skills={"frontend": {"framework": "rx", "styling": "tw"}, "state": {"store": "zustand"}},
        ),
    )
    return MatrixConfig(
        version="1.0.0",
        categories=categories,
        relationships=relationships,
        suggested_stacks=stacks,
        skill_aliases={"rx": "react", "tw": "tailwind"},
    )


@pytest.fixture
def web_skills() -> list[RawSkill]:
    return [
        _skill("react", "framework"),
        _skill("vue", "framework"),
        _skill("tailwind", "styling"),
        _skill("sass", "styling"),
        _skill("css-modules", "styling", name="CSS Modules"),
        _skill("zustand", "state"),
        _skill("pinia", "state"),
        _skill("vitest", "testing", provides_setup_for=("testing-library",)),
        _skill("testing-library", "testing", requires_setup=("vitest",)),
        _skill("eslint", "tooling"),
        _skill("prettier", "tooling"),
    ]


@pytest.fixture
def web_matrix(web_config, web_skills):
    result = merge_matrix(web_config, web_skills)
    assert result.issues == ()
    return result.matrix


@pytest.fixture
def make_skill():
    return _skill


@pytest.fixture
def make_category():
    return _category


@pytest.fixture(autouse=True)
def _reset_app_loggers():
    yield
    for name in ("skillmatrix", "matrixkit"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
