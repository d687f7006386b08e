import pytest

from matrixkit import RelationshipQuery


@pytest.fixture
def query(web_matrix):
    return RelationshipQuery(web_matrix)


def _by_id(options):
    return {option.id: option for option in options}


def test_conflict_set_disables_other_members_with_reason(query):
    options = _by_id(query.options_for_category("styling", ["sass"]))

    assert options["css-modules"].disabled is True
    assert "Competing stylesheet pipelines" in options["css-modules"].disabled_reason
    assert "conflicts with Sass" in options["css-modules"].disabled_reason
    assert options["sass"].selected is True
    assert options["sass"].disabled is False


def test_conflict_reason_takes_priority_over_exclusivity(query):
    # vue conflicts with react and shares its exclusive category.
    reason = query.disabled_reason("vue", ["react"])

    assert reason == "Pick one UI framework (conflicts with React)"


def test_exclusive_category_disables_other_options(query):
    reason = query.disabled_reason("tailwind", ["css-modules"])

    assert reason == "Only one Styling can be selected (CSS Modules already selected)"
    assert query.is_disabled("tailwind", ["eslint"]) is False


def test_non_exclusive_category_never_disables_siblings(query):
    assert query.is_disabled("prettier", ["eslint"]) is False


def test_unknown_candidate_is_never_disabled(query):
    assert query.disabled_reason("angular", ["react"]) is None
    assert query.is_recommended("angular", ["react"]) is False


def test_aliases_resolve_on_input(query):
    assert query.is_disabled("vue", ["rx"]) is True
    assert query.is_discouraged("sass", ["tw"]) is True
    assert query.normalize_selection(["rx", "react", " tw "]) == ("react", "tailwind")


def test_discouraged_and_recommended_reasons(query):
    assert query.discouraged_reason("sass", ["tailwind"]) == (
        "Utility classes make a preprocessor redundant (with Tailwind)"
    )
    assert query.recommended_reason("zustand", ["react"]) == (
        "Lightweight defaults for React (recommended by React)"
    )
    assert query.is_recommended("zustand", []) is False


def test_discouraged_only_for_enabled_and_recommended_only_for_plain(query):
    options = _by_id(query.options_for_category("styling", ["tailwind", "css-modules"]))

    # sass is both conflicting with css-modules and discouraged with tailwind.
    assert options["sass"].disabled is True
    assert options["sass"].discouraged is False
    assert options["sass"].discouraged_reason is None


def test_options_are_a_pure_projection(query):
    first = query.options_for_category("state", ["react"])
    second = query.options_for_category("state", ["react"])

    assert first == second
    states = _by_id(first)
    assert states["zustand"].recommended is True
    assert states["pinia"].recommended is False
    assert [option.id for option in first] == ["zustand", "pinia"]


def test_editing_ignores_current_pick_of_exclusive_category(query):
    plain = _by_id(query.options_for_category("styling", ["react", "tailwind"]))
    editing = _by_id(query.options_for_category("styling", ["react", "tailwind"], editing=True))

    assert plain["sass"].disabled is True
    assert editing["sass"].disabled is False
    assert editing["sass"].discouraged is False
    assert editing["tailwind"].selected is True


def test_options_report_alias_and_alternatives(query):
    options = _by_id(query.options_for_category("styling", []))

    assert options["tailwind"].alias == "tw"
    assert options["tailwind"].alternatives == ("sass", "css-modules")
    assert options["tailwind"].to_dict()["alias"] == "tw"


def test_category_all_disabled_returns_short_reason(query):
    assert query.category_all_disabled("framework", ["react"]) is None
    assert query.category_all_disabled("state", []) is None


def test_category_all_disabled_when_every_option_conflicts(web_config, web_skills, make_skill):
    from dataclasses import replace

    from matrixkit import ConflictRule, merge_matrix

    config = replace(
        web_config,
        relationships=replace(
            web_config.relationships,
            conflicts=(
                ConflictRule(skills=("eslint", "biome"), reason="Overlapping linters"),
                ConflictRule(skills=("prettier", "biome"), reason="Overlapping formatters"),
            ),
        ),
    )
    matrix = merge_matrix(config, [*web_skills, make_skill("biome", "framework")]).matrix
    query = RelationshipQuery(matrix)

    assert query.category_all_disabled("tooling", ["biome"]) == "Overlapping linters"


def test_unknown_category_raises(query):
    with pytest.raises(ValueError, match=r"Unknown category id: backend"):
        query.options_for_category("backend", [])
