"""Interactive selection state machine.

The engine never reads input or prints anything. A driver asks it for the
current `StepPrompt`, collects one response from the user and feeds it back
through `send`, which returns a `Transition` describing what happened.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from matrixkit.model import CategoryDefinition, Matrix
from matrixkit.query import RelationshipQuery, SkillOption
from matrixkit.validator import SelectionReport, ValidationIssue, validate_selection

logger = logging.getLogger(__name__)

APPROACH_PRESET = "preset"
APPROACH_CUSTOM = "custom"
CONFIRM = "confirm"


class WizardStep(str, Enum):
    CHOOSING_APPROACH = "choosing-approach"
    CHOOSING_PRESET = "choosing-preset"
    ITERATING_CATEGORIES = "iterating-categories"
    CONFIRMING = "confirming"


# --- Responses --------------------------------------------------------------


@dataclass(frozen=True)
class Advance:
    value: str | Sequence[str] | None = None


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class Skip:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


Response = Union[Advance, Back, Skip, Cancel]


# --- Outcomes ---------------------------------------------------------------


@dataclass(frozen=True)
class Completed:
    selection: tuple[str, ...]
    report: SelectionReport
    preset: str | None = None


@dataclass(frozen=True)
class Cancelled:
    pass


@dataclass(frozen=True)
class Invalid:
    report: SelectionReport


Outcome = Union[Completed, Cancelled, Invalid]


# --- State and views --------------------------------------------------------


@dataclass
class WizardState:
    step: WizardStep = WizardStep.CHOOSING_APPROACH
    selection: list[str] = field(default_factory=list)
    preset: str | None = None
    cursor: int = 0
    history: list[tuple[WizardStep, int]] = field(default_factory=list)


@dataclass(frozen=True)
class StepPrompt:
    """Everything a prompt surface needs to draw one step."""

    step: WizardStep
    selection: tuple[str, ...]
    category: CategoryDefinition | None = None
    options: tuple[SkillOption, ...] = ()
    # (value, label) pairs for the approach, preset and confirm steps.
    choices: tuple[tuple[str, str], ...] = ()
    report: SelectionReport | None = None
    can_skip: bool = False
    can_go_back: bool = False
    position: tuple[int, int] | None = None


@dataclass(frozen=True)
class Transition:
    kind: str
    step: WizardStep
    message: str = ""
    outcome: Outcome | None = None
    report: SelectionReport | None = None
    skipped: tuple[str, ...] = ()
    # Why each implicitly skipped category had nothing selectable, parallel to `skipped`.
    skip_reasons: tuple[str, ...] = ()


class WizardEngine:
    def __init__(self, matrix: Matrix, *, query: RelationshipQuery | None = None) -> None:
        self.matrix = matrix
        self.query = query or RelationshipQuery(matrix)
        self.categories: tuple[str, ...] = tuple(
            cid
            for cid in matrix.ordered_categories()
            if matrix.skills_in_category(cid, include_subcategories=False)
        )
        self.state: WizardState | None = WizardState()
        self.outcome: Outcome | None = None

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    def _live_state(self) -> WizardState:
        if self.state is None or self.outcome is not None:
            raise RuntimeError("Wizard has already finished")
        return self.state

    # --- prompts ----------------------------------------------------------

    def _options(self, category_id: str, selection: Sequence[str]) -> tuple[SkillOption, ...]:
        return self.query.options_for_category(
            category_id, selection, editing=True, include_subcategories=False
        )

    def _all_disabled(self, category_id: str, selection: Sequence[str]) -> str | None:
        return self.query.category_all_disabled(
            category_id, selection, editing=True, include_subcategories=False
        )

    def _eligible(self, category_id: str, selection: Sequence[str]) -> bool:
        return self._all_disabled(category_id, selection) is None

    def prompt(self) -> StepPrompt:
        state = self._live_state()
        selection = tuple(state.selection)
        can_go_back = bool(state.history)

        if state.step is WizardStep.CHOOSING_APPROACH:
            choices = []
            if self.matrix.suggested_stacks:
                choices.append((APPROACH_PRESET, "Start from a suggested stack"))
            choices.append((APPROACH_CUSTOM, "Pick skills category by category"))
            return StepPrompt(state.step, selection, choices=tuple(choices), can_go_back=can_go_back)

        if state.step is WizardStep.CHOOSING_PRESET:
            choices = tuple(
                (stack.id, f"{stack.name} - {stack.description}" if stack.description else stack.name)
                for stack in self.matrix.suggested_stacks
            )
            return StepPrompt(state.step, selection, choices=choices, can_go_back=can_go_back)

        if state.step is WizardStep.ITERATING_CATEGORIES:
            category_id = self.categories[state.cursor]
            category = self.matrix.categories[category_id]
            return StepPrompt(
                state.step,
                selection,
                category=category,
                options=self._options(category_id, selection),
                can_skip=not category.required,
                can_go_back=can_go_back,
                position=(state.cursor + 1, len(self.categories)),
            )

        report = validate_selection(self.matrix, selection, query=self.query)
        return StepPrompt(
            state.step,
            selection,
            choices=((CONFIRM, "Confirm selection"),),
            report=report,
            can_go_back=can_go_back,
        )

    # --- transitions ------------------------------------------------------

    def send(self, response: Response) -> Transition:
        state = self._live_state()
        if isinstance(response, Cancel):
            transition = self._finish(Cancelled(), "cancelled", "Selection cancelled")
            self.state = None
        elif isinstance(response, Back):
            transition = self._back(state)
        elif isinstance(response, Skip):
            transition = self._skip(state)
        elif isinstance(response, Advance):
            transition = self._advance(state, response.value)
        else:
            raise TypeError(f"Unsupported wizard response: {response!r}")

        logger.debug(
            "Wizard transition: kind=%s step=%s message=%s",
            transition.kind,
            transition.step.value,
            transition.message,
        )
        return transition

    def _finish(self, outcome: Outcome, kind: str, message: str, report: SelectionReport | None = None) -> Transition:
        step = self.state.step if self.state is not None else WizardStep.CHOOSING_APPROACH
        self.outcome = outcome
        return Transition(kind, step, message, outcome=outcome, report=report)

    def _reject(self, state: WizardState, message: str) -> Transition:
        return Transition("rejected", state.step, message)

    def _move(self, state: WizardState, step: WizardStep, cursor: int = 0) -> tuple[tuple[str, str], ...]:
        state.history.append((state.step, state.cursor))
        state.step = step
        state.cursor = cursor
        if step is WizardStep.ITERATING_CATEGORIES:
            return self._settle(state)
        return ()

    def _settle(self, state: WizardState) -> tuple[tuple[str, str], ...]:
        """Step past categories where nothing can be chosen, returning (id, reason) pairs."""

        skipped: list[tuple[str, str]] = []
        while state.cursor < len(self.categories):
            category_id = self.categories[state.cursor]
            reason = self._all_disabled(category_id, state.selection)
            if reason is None:
                return tuple(skipped)
            skipped.append((category_id, reason))
            state.cursor += 1
        state.step = WizardStep.CONFIRMING
        return tuple(skipped)

    def _back(self, state: WizardState) -> Transition:
        if not state.history:
            return self._reject(state, "Already at the first step")
        state.step, state.cursor = state.history.pop()
        return Transition("back", state.step)

    def _skip(self, state: WizardState) -> Transition:
        if state.step is not WizardStep.ITERATING_CATEGORIES:
            return self._reject(state, "Only category steps can be skipped")
        category = self.matrix.categories[self.categories[state.cursor]]
        if category.required:
            return self._reject(state, f'Category "{category.name}" requires at least one selection')
        skipped = self._move(state, WizardStep.ITERATING_CATEGORIES, state.cursor + 1)
        return _moved("skipped", state.step, f"Skipped {category.name}", skipped)

    def _advance(self, state: WizardState, value: str | Sequence[str] | None) -> Transition:
        if state.step is WizardStep.CHOOSING_APPROACH:
            return self._choose_approach(state, value)
        if state.step is WizardStep.CHOOSING_PRESET:
            return self._choose_preset(state, value)
        if state.step is WizardStep.ITERATING_CATEGORIES:
            return self._choose_skills(state, value)
        return self._confirm(state)

    def _choose_approach(self, state: WizardState, value: object) -> Transition:
        if value == APPROACH_PRESET and self.matrix.suggested_stacks:
            self._move(state, WizardStep.CHOOSING_PRESET)
            return Transition("advanced", state.step)
        if value == APPROACH_CUSTOM:
            state.preset = None
            skipped = self._move(state, WizardStep.ITERATING_CATEGORIES)
            return _moved("advanced", state.step, "", skipped)
        return self._reject(state, f"Unknown approach: {value!r}")

    def _choose_preset(self, state: WizardState, value: object) -> Transition:
        stack = self.matrix.stack(value) if isinstance(value, str) else None
        if stack is None:
            known = ", ".join(s.id for s in self.matrix.suggested_stacks)
            return self._reject(state, f"Unknown stack: {value!r} (available: {known})")
        state.selection = list(stack.all_skill_ids)
        state.preset = stack.id
        self._move(state, WizardStep.CONFIRMING)
        return Transition("advanced", state.step, f"Loaded stack {stack.name}")

    def _choose_skills(self, state: WizardState, value: str | Sequence[str] | None) -> Transition:
        category_id = self.categories[state.cursor]
        category = self.matrix.categories[category_id]
        own = {skill.id for skill in self.matrix.skills_in_category(category_id, include_subcategories=False)}

        if isinstance(value, str):
            skill_id = self.query.aliases.resolve(value)
            if skill_id not in own:
                return self._reject(state, self._not_an_option(value, category, own))
            option = next(opt for opt in self._options(category_id, state.selection) if opt.id == skill_id)
            if option.disabled:
                return self._reject(state, f"{option.name} is disabled: {option.disabled_reason}")
            if category.exclusive:
                if skill_id not in state.selection:
                    state.selection = [sid for sid in state.selection if sid not in own]
                    state.selection.append(skill_id)
            elif skill_id in state.selection:
                state.selection.remove(skill_id)
            else:
                state.selection.append(skill_id)
        else:
            picks = self.query.normalize_selection(value or ())
            if category.exclusive and len(picks) > 1:
                return self._reject(state, f'Category "{category.name}" only allows one selection')
            if category.required and not picks:
                return self._reject(state, f'Category "{category.name}" requires at least one selection')
            basis = [sid for sid in state.selection if sid not in own]
            for skill_id in picks:
                if skill_id not in own:
                    return self._reject(state, self._not_an_option(skill_id, category, own))
                reason = self.query.disabled_reason(skill_id, basis)
                if reason is not None:
                    return self._reject(state, f"{self.matrix.display_name(skill_id)} is disabled: {reason}")
                basis.append(skill_id)
            state.selection = basis

        skipped = self._move(state, WizardStep.ITERATING_CATEGORIES, state.cursor + 1)
        return _moved("advanced", state.step, "", skipped)

    def _not_an_option(self, value: str, category: CategoryDefinition, own: set[str]) -> str:
        hint = self.query.aliases.suggest(value, sorted(own))
        suffix = f" (did you mean: {', '.join(hint)})" if hint else ""
        return f"{value} is not an option in {category.name}{suffix}"

    def _confirm(self, state: WizardState) -> Transition:
        report = validate_selection(self.matrix, state.selection, query=self.query)
        if report.valid:
            return self._finish(
                Completed(report.selection, report, state.preset),
                "completed",
                f"Selected {len(report.selection)} skills",
                report,
            )

        first = report.errors[0]
        if state.preset is not None:
            state.step = WizardStep.CHOOSING_PRESET
            state.cursor = 0
            state.history = [(WizardStep.CHOOSING_APPROACH, 0)]
        elif self.categories:
            target = self._owning_category(first)
            state.step = WizardStep.ITERATING_CATEGORIES
            state.cursor = target
            state.history = [(WizardStep.CHOOSING_APPROACH, 0)] + [
                (WizardStep.ITERATING_CATEGORIES, idx)
                for idx in range(target)
                if self._eligible(self.categories[idx], state.selection)
            ]
        else:
            return Transition("rejected", state.step, first.message, report=report)
        return Transition("returned", state.step, first.message, report=report)

    def _owning_category(self, issue: ValidationIssue) -> int:
        category_id: str | None = issue.category
        if issue.type in ("missing_requirement", "conflict") and len(issue.skills) > 1:
            skill = self.matrix.skill(issue.skills[1])
            category_id = skill.category if skill is not None else category_id
        if category_id is not None and category_id in self.matrix.categories:
            scope = self.matrix.category_descendants(category_id)
            for idx, cid in enumerate(self.categories):
                if cid in scope:
                    return idx
        return len(self.categories) - 1


def _moved(kind: str, step: WizardStep, message: str, skipped: tuple[tuple[str, str], ...]) -> Transition:
    return Transition(
        kind,
        step,
        message,
        skipped=tuple(category_id for category_id, _reason in skipped),
        skip_reasons=tuple(reason for _category_id, reason in skipped),
    )


def run_wizard(
    engine: WizardEngine,
    ask: Callable[[StepPrompt], Response],
    *,
    on_transition: Callable[[Transition], None] | None = None,
) -> Outcome:
    """Drive `engine` to an outcome, one response per prompt."""

    while engine.outcome is None:
        prompt = engine.prompt()
        try:
            response = ask(prompt)
        except KeyboardInterrupt:
            response = Cancel()
        transition = engine.send(response)
        if on_transition is not None:
            on_transition(transition)
    return engine.outcome


def finalize_selection(
    matrix: Matrix,
    selection: Sequence[str],
    *,
    query: RelationshipQuery | None = None,
    preset: str | None = None,
) -> Completed | Invalid:
    report = validate_selection(matrix, selection, query=query)
    if report.valid:
        return Completed(report.selection, report, preset)
    return Invalid(report)
