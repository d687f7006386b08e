from dataclasses import replace

import pytest

from matrixkit import (
    Advance,
    Back,
    Cancel,
    Cancelled,
    Completed,
    ConflictRule,
    Invalid,
    Skip,
    WizardEngine,
    WizardStep,
    finalize_selection,
    merge_matrix,
    run_wizard,
)


def _engine_with_conflicts(web_config, web_skills, *rules):
    config = replace(
        web_config,
        relationships=replace(web_config.relationships, conflicts=web_config.relationships.conflicts + rules),
    )
    return WizardEngine(merge_matrix(config, web_skills).matrix)


def _custom(engine):
    transition = engine.send(Advance("custom"))
    assert transition.kind == "advanced"
    return transition


def test_categories_follow_tree_order(web_matrix):
    engine = WizardEngine(web_matrix)

    assert engine.categories == ("framework", "styling", "state", "testing", "tooling")


def test_back_twice_from_third_category_returns_to_first_with_selection(web_matrix):
    engine = WizardEngine(web_matrix)
    _custom(engine)
    engine.send(Advance("react"))
    engine.send(Advance("tailwind"))
    assert engine.prompt().category.id == "state"
    assert engine.prompt().position == (3, 5)

    assert engine.send(Back()).kind == "back"
    assert engine.send(Back()).kind == "back"

    prompt = engine.prompt()
    assert prompt.step is WizardStep.ITERATING_CATEGORIES
    assert prompt.category.id == "framework"
    assert engine.state.selection == ["react", "tailwind"]
    assert {o.id for o in prompt.options if o.selected} == {"react"}


def test_exclusive_category_replaces_prior_pick(web_matrix):
    engine = WizardEngine(web_matrix)
    _custom(engine)
    engine.send(Advance("react"))
    engine.send(Back())

    # react is the current pick, so vue stays selectable while editing.
    vue = next(o for o in engine.prompt().options if o.id == "vue")
    assert vue.disabled is False

    engine.send(Advance("vue"))
    assert engine.state.selection == ["vue"]


def test_non_exclusive_category_toggles(web_matrix):
    engine = WizardEngine(web_matrix)
    _custom(engine)
    engine.send(Advance("react"))
    for _ in range(3):
        engine.send(Skip())
    assert engine.prompt().category.id == "tooling"

    engine.send(Advance("eslint"))
    engine.send(Back())
    engine.send(Advance("prettier"))
    assert engine.state.selection == ["react", "eslint", "prettier"]

    engine.send(Back())
    engine.send(Advance("eslint"))
    assert engine.state.selection == ["react", "prettier"]


def test_advance_with_list_sets_category_picks(web_matrix):
    engine = WizardEngine(web_matrix)
    _custom(engine)
    engine.send(Advance("react"))
    engine.send(Skip())
    engine.send(Skip())

    engine.send(Advance(["vitest", "testing-library"]))
    assert engine.state.selection == ["react", "vitest", "testing-library"]

    engine.send(Back())
    engine.send(Advance(["vitest"]))
    assert engine.state.selection == ["react", "vitest"]


def test_exclusive_category_rejects_multiple_picks(web_matrix):
    engine = WizardEngine(web_matrix)
    _custom(engine)

    transition = engine.send(Advance(["react", "vue"]))

    assert transition.kind == "rejected"
    assert "only allows one selection" in transition.message
    assert engine.state.selection == []


def test_disabled_and_unknown_choices_are_rejected(web_config, web_skills):
    engine = _engine_with_conflicts(
        web_config, web_skills, ConflictRule(skills=("react", "pinia"), reason="Pinia targets Vue")
    )
    _custom(engine)
    engine.send(Advance("rx"))
    engine.send(Skip())

    disabled = engine.send(Advance("pinia"))
    unknown = engine.send(Advance("redux"))
    foreign = engine.send(Advance("vitest"))

    assert disabled.kind == "rejected"
    assert "Pinia targets Vue (conflicts with React)" in disabled.message
    assert unknown.kind == "rejected"
    assert "redux is not an option in State" in unknown.message
    assert foreign.kind == "rejected"
    assert engine.prompt().category.id == "state"
    assert engine.state.selection == ["react"]


def test_skip_rules(web_matrix):
    engine = WizardEngine(web_matrix)

    assert engine.send(Skip()).kind == "rejected"
    _custom(engine)
    assert engine.prompt().can_skip is False
    required = engine.send(Skip())
    assert required.kind == "rejected"
    assert "requires at least one selection" in required.message
    assert engine.send(Advance([])).kind == "rejected"

    engine.send(Advance("react"))
    skipped = engine.send(Skip())
    assert skipped.kind == "skipped"
    assert engine.prompt().category.id == "state"
    assert engine.state.selection == ["react"]


def test_back_at_first_step_is_rejected(web_matrix):
    engine = WizardEngine(web_matrix)

    transition = engine.send(Back())

    assert transition.kind == "rejected"
    assert engine.state.step is WizardStep.CHOOSING_APPROACH


def test_cancel_discards_state(web_matrix):
    engine = WizardEngine(web_matrix)
    _custom(engine)
    engine.send(Advance("react"))

    transition = engine.send(Cancel())

    assert transition.kind == "cancelled"
    assert engine.outcome == Cancelled()
    assert engine.state is None
    with pytest.raises(RuntimeError, match="already finished"):
        engine.prompt()
    with pytest.raises(RuntimeError, match="already finished"):
        engine.send(Back())


def test_preset_path_completes_with_report(web_matrix):
    engine = WizardEngine(web_matrix)
    assert [value for value, _label in engine.prompt().choices] == ["preset", "custom"]

    engine.send(Advance("preset"))
    assert engine.send(Advance("nope")).kind == "rejected"
    engine.send(Advance("react-tailwind"))

    prompt = engine.prompt()
    assert prompt.step is WizardStep.CONFIRMING
    assert prompt.report.valid is True

    transition = engine.send(Advance("confirm"))
    assert transition.kind == "completed"
    assert isinstance(engine.outcome, Completed)
    assert engine.outcome.selection == ("react", "tailwind", "zustand")
    assert engine.outcome.preset == "react-tailwind"
    assert [w.type for w in engine.outcome.report.warnings] == ["missing_recommendation"]


def test_preset_choice_hidden_without_stacks(web_config, web_skills):
    matrix = merge_matrix(replace(web_config, suggested_stacks=()), web_skills).matrix
    engine = WizardEngine(matrix)

    assert [value for value, _label in engine.prompt().choices] == ["custom"]
    assert engine.send(Advance("preset")).kind == "rejected"


def test_confirm_with_errors_returns_to_owning_category(web_matrix):
    engine = WizardEngine(web_matrix)
    _custom(engine)
    engine.send(Advance("vue"))
    engine.send(Skip())
    engine.send(Advance("zustand"))
    engine.send(Skip())
    engine.send(Skip())
    assert engine.prompt().step is WizardStep.CONFIRMING

    transition = engine.send(Advance())

    assert transition.kind == "returned"
    assert transition.report.errors[0].type == "missing_requirement"
    assert engine.outcome is None
    assert engine.prompt().category.id == "framework"
    assert engine.state.selection == ["vue", "zustand"]
    assert engine.state.history == [(WizardStep.CHOOSING_APPROACH, 0)]

    engine.send(Advance("react"))
    assert engine.state.selection == ["zustand", "react"]


def test_preset_with_errors_returns_to_preset_step(web_config, web_skills):
    config = replace(
        web_config,
        suggested_stacks=(
            replace(web_config.suggested_stacks[0], id="broken", skills={"x": {"state": "zustand"}}),
        ),
    )
    engine = WizardEngine(merge_matrix(config, web_skills).matrix)
    engine.send(Advance("preset"))
    engine.send(Advance("broken"))

    transition = engine.send(Advance())

    assert transition.kind == "returned"
    assert transition.step is WizardStep.CHOOSING_PRESET
    assert engine.state.selection == ["zustand"]


def test_category_without_eligible_options_is_skipped_implicitly(web_config, web_skills):
    engine = _engine_with_conflicts(
        web_config,
        web_skills,
        ConflictRule(skills=("react", "eslint"), reason="Bundled linter"),
        ConflictRule(skills=("react", "prettier"), reason="Bundled formatter"),
    )
    _custom(engine)
    engine.send(Advance("react"))
    engine.send(Skip())
    engine.send(Skip())

    transition = engine.send(Skip())

    assert transition.skipped == ("tooling",)
    assert transition.skip_reasons == ("Bundled linter",)
    assert engine.prompt().step is WizardStep.CONFIRMING

    # The auto-skipped category was never pushed onto history.
    engine.send(Back())
    assert engine.prompt().category.id == "testing"


def test_transitions_are_logged_at_debug(web_matrix, caplog):
    engine = WizardEngine(web_matrix)

    with caplog.at_level("DEBUG", logger="matrixkit.wizard"):
        engine.send(Advance("custom"))

    assert "Wizard transition: kind=advanced step=iterating-categories" in caplog.text


def test_run_wizard_drives_engine_to_completion(web_matrix):
    answers = iter([Advance("custom"), Advance("react"), Skip(), Skip(), Skip(), Skip(), Advance()])
    seen = []

    outcome = run_wizard(WizardEngine(web_matrix), lambda prompt: next(answers), on_transition=seen.append)

    assert isinstance(outcome, Completed)
    assert outcome.selection == ("react",)
    assert [t.kind for t in seen][-1] == "completed"


def test_run_wizard_turns_keyboard_interrupt_into_cancel(web_matrix):
    def ask(prompt):
        raise KeyboardInterrupt

    assert run_wizard(WizardEngine(web_matrix), ask) == Cancelled()


def test_finalize_selection(web_matrix):
    assert isinstance(finalize_selection(web_matrix, ["react"]), Completed)
    invalid = finalize_selection(web_matrix, ["react", "vue"])
    assert isinstance(invalid, Invalid)
    assert not invalid.report.valid


def _abandon_preset_for_custom(engine):
    engine.send(Advance("preset"))
    engine.send(Advance("react-tailwind"))
    engine.send(Back())
    engine.send(Back())
    assert engine.prompt().step is WizardStep.CHOOSING_APPROACH
    _custom(engine)
    assert engine.state.preset is None


def test_custom_after_abandoned_preset_completes_without_preset(web_matrix):
    engine = WizardEngine(web_matrix)
    _abandon_preset_for_custom(engine)

    engine.send(Advance("react"))
    for _ in range(4):
        engine.send(Skip())
    transition = engine.send(Advance())

    assert transition.kind == "completed"
    assert engine.outcome.preset is None
    assert engine.outcome.selection == ("react", "tailwind", "zustand")


def test_custom_after_abandoned_preset_returns_to_category_on_errors(web_matrix):
    engine = WizardEngine(web_matrix)
    _abandon_preset_for_custom(engine)

    engine.send(Advance("vue"))
    for _ in range(4):
        engine.send(Skip())
    assert engine.prompt().step is WizardStep.CONFIRMING

    transition = engine.send(Advance())

    assert transition.kind == "returned"
    assert transition.step is WizardStep.ITERATING_CATEGORIES
    assert engine.prompt().category.id == "framework"
