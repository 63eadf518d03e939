from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from ..schemas import ProposedChange, ReviewDecision
from .diff_presenter import DisplayBlock

CHOICES = {
    "yes": ReviewDecision.APPLY,
    "no": ReviewDecision.SKIP,
    "all": ReviewDecision.APPLY_ALL_REMAINING,
    "abort": ReviewDecision.ABORT,
}


class DecisionCollector:
    """Asks the user what to do with each proposed change."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def collect(
        self,
        change: ProposedChange,
        block: DisplayBlock,
        auto_apply: bool,
        display_path: Optional[str] = None,
    ) -> ReviewDecision:
        """Return the decision for one change; prompts unless auto_apply is set."""
        if auto_apply:
            self.console.print("Auto-confirming this change.")
            return ReviewDecision.APPLY

        self.console.print(
            "[dim]yes = apply this change, no = skip it, "
            "all = apply this and all subsequent changes, abort = stop entirely[/dim]"
        )
        answer = Prompt.ask(
            f"Apply this change to {escape(display_path or change.target_path)}?",
            choices=list(CHOICES),
            default="yes",
            console=self.console,
        )
        return CHOICES[answer]

    def confirm_branching(self) -> bool:
        return Confirm.ask(
            "Proceed with Git operations (create new branch, stage changes)? Recommended.",
            default=True,
            console=self.console,
        )

    def choose_branch_name(self, default: str) -> str:
        name = Prompt.ask(
            f"Enter new branch name (default: {default})",
            default=default,
            show_default=False,
            console=self.console,
        )
        return name.strip() or default
