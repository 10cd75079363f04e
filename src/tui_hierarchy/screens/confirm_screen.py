"""Confirmation dialog screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static

MAX_DETAILS = 8


class ConfirmScreen(ModalScreen[bool]):
    """A yes/no confirmation modal; Escape answers no."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    DEFAULT_CSS = """
    ConfirmScreen {
        align: center middle;
    }
    #confirm-container {
        width: 50;
        height: auto;
        background: $surface;
        border: thick $error;
        padding: 1 2;
    }
    #confirm-message {
        margin-bottom: 1;
    }
    #confirm-details {
        color: $text-muted;
        margin-bottom: 1;
    }
    #confirm-buttons {
        align: center middle;
        height: 3;
    }
    #confirm-buttons Button {
        margin: 0 1;
    }
    """

    def __init__(
        self,
        message: str,
        yes_label: str = "Yes",
        no_label: str = "No",
        details: list[str] | None = None,
    ) -> None:
        super().__init__()
        self.message = message
        self.details = details or []
        self.yes_label = yes_label
        self.no_label = no_label

    def compose(self) -> ComposeResult:
        with Static(id="confirm-container"):
            yield Static(self.message, id="confirm-message", markup=False)
            if self.details:
                yield Static(self._details_text(), id="confirm-details", markup=False)
            with Horizontal(id="confirm-buttons"):
                yield Button(self.yes_label, variant="error", id="yes-btn")
                yield Button(self.no_label, variant="primary", id="no-btn")

    def _details_text(self) -> str:
        shown = self.details[:MAX_DETAILS]
        lines = [f"  • {d}" for d in shown]
        hidden = len(self.details) - len(shown)
        if hidden:
            lines.append(f"  … and {hidden} more")
        return "\n".join(lines)

    def on_mount(self) -> None:
        # Destructive answer is never the default.
        self.query_one("#no-btn", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes-btn")

    def action_cancel(self) -> None:
        self.dismiss(False)
