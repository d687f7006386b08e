"""Terminal surface for the selection wizard.

Rendering only: option state (disabled, discouraged, recommended) always comes
from the `StepPrompt` the engine built.
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from matrixkit import Advance, Back, Cancel, Skip, StepPrompt, Transition, WizardStep
from matrixkit.validator import SelectionReport
from matrixkit.wizard import CONFIRM, Response

BACK_KEYS = {"b", "back"}
SKIP_KEYS = {"s", "skip"}
CANCEL_KEYS = {"q", "quit", "cancel"}
CONFIRM_KEYS = {"", "y", "yes"}

STEP_TITLES = {
    WizardStep.CHOOSING_APPROACH: "How do you want to start?",
    WizardStep.CHOOSING_PRESET: "Choose a suggested stack",
    WizardStep.CONFIRMING: "Review your selection",
}


def parse_answer(prompt: StepPrompt, answer: str) -> Response:
    """Turn one typed answer into a wizard response.

    Raises:
        ValueError: when the answer cannot be understood for this step.
    """

    text = (answer or "").strip()
    lowered = text.lower()
    if lowered in CANCEL_KEYS:
        return Cancel()
    if lowered in BACK_KEYS:
        return Back()
    if lowered in SKIP_KEYS:
        return Skip()

    if prompt.step is WizardStep.CONFIRMING:
        if lowered in CONFIRM_KEYS or lowered == CONFIRM:
            return Advance(CONFIRM)
        raise ValueError(f"Unrecognized answer: {text!r} (press Enter to confirm, b to go back)")

    if prompt.step is WizardStep.ITERATING_CATEGORIES:
        if not text:
            kept = [option.id for option in prompt.options if option.selected]
            return Advance(kept) if kept else Skip()
        tokens = [token.strip() for token in text.split(",") if token.strip()]
        if all(token.isdigit() for token in tokens):
            picks = [_pick(prompt.options, token).id for token in tokens]
            return Advance(picks[0]) if len(picks) == 1 else Advance(picks)
        return Advance(tokens[0]) if len(tokens) == 1 else Advance(tokens)

    if text.isdigit():
        return Advance(_pick(prompt.choices, text)[0])
    return Advance(text)


def _pick(items, token: str):
    index = int(token)
    if not 1 <= index <= len(items):
        raise ValueError(f"Choice out of range: {token} (1-{len(items)})")
    return items[index - 1]


class TerminalPrompter:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def ask(self, prompt: StepPrompt) -> Response:
        self.render(prompt)
        while True:
            answer = self.console.input("[bold]> [/bold]")
            try:
                return parse_answer(prompt, answer)
            except ValueError as exc:
                self.console.print(Text(str(exc), style="red"))

    def notify(self, transition: Transition) -> None:
        if transition.kind == "rejected":
            self.console.print(Text(transition.message, style="red"))
        elif transition.kind == "returned":
            self.console.print(Text(f"Selection has errors: {transition.message}", style="red"))
        elif transition.message and transition.kind in ("advanced", "skipped"):
            self.console.print(Text(transition.message, style="dim"))
        for category_id, reason in zip(transition.skipped, transition.skip_reasons):
            self.console.print(Text(f"Nothing selectable in {category_id}: {reason}", style="dim"))

    def render(self, prompt: StepPrompt) -> None:
        console = self.console
        console.print()
        if prompt.step is WizardStep.ITERATING_CATEGORIES and prompt.category is not None:
            title = prompt.category.name
            if prompt.position is not None:
                title = f"[{prompt.position[0]}/{prompt.position[1]}] {title}"
            if prompt.category.required:
                title += " (required)"
            console.print(Text(title, style="bold"))
            if prompt.category.description:
                console.print(Text(prompt.category.description, style="dim"))
        else:
            console.print(Text(STEP_TITLES.get(prompt.step, prompt.step.value), style="bold"))

        if prompt.selection:
            console.print(Text(f"Selected: {', '.join(prompt.selection)}", style="green"))

        if prompt.step is WizardStep.ITERATING_CATEGORIES:
            console.print(self.options_table(prompt))
        elif prompt.step is not WizardStep.CONFIRMING:
            table = Table.grid(padding=(0, 1))
            for idx, (value, label) in enumerate(prompt.choices, start=1):
                table.add_row(Text(f"{idx}.", style="bold"), Text(label), Text(value, style="dim"))
            console.print(table)

        if prompt.report is not None:
            self.render_report(prompt.report)

        keys = []
        if prompt.can_go_back:
            keys.append("b back")
        if prompt.can_skip:
            keys.append("s skip")
        keys.append("q cancel")
        if prompt.step is WizardStep.CONFIRMING:
            keys.insert(0, "Enter confirm")
        console.print(Text("  ".join(keys), style="dim"))

    def options_table(self, prompt: StepPrompt) -> Table:
        table = Table.grid(padding=(0, 1))
        for idx, option in enumerate(prompt.options, start=1):
            label = Text(option.name, style="dim" if option.disabled else "")
            if option.alias:
                label.append(f" ({option.alias})", style="dim")
            if option.selected:
                label.append("  [selected]", style="green")
            if option.disabled:
                note = Text(f"disabled: {option.disabled_reason}", style="dim red")
            elif option.discouraged:
                note = Text(f"not recommended: {option.discouraged_reason}", style="yellow")
            elif option.recommended:
                note = Text(f"recommended: {option.recommended_reason}", style="cyan")
            else:
                note = Text(option.description, style="dim")
            table.add_row(Text(f"{idx}.", style="bold"), label, note)
        return table

    def render_report(self, report: SelectionReport) -> None:
        for issue in report.errors:
            self.console.print(Text(f"error: {issue.message}", style="red"))
        for issue in report.warnings:
            self.console.print(Text(f"warning: {issue.message}", style="yellow"))
        if report.valid and not report.warnings:
            self.console.print(Text("No problems found.", style="green"))
