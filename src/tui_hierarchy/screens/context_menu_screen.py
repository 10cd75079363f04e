"""Context menu anchored at the pointer."""

from __future__ import annotations

from textual import events
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option

DELETE = "delete"
OUTSIDE = "outside"


class ContextMenuScreen(ModalScreen[str | None]):
    """Small menu for the clicked rows.

    Dismisses with ``DELETE`` when "Delete" is picked, ``OUTSIDE`` when the
    user clicks anywhere off the menu, and None on Escape or "Cancel".
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    DEFAULT_CSS = """
    ContextMenuScreen {
        align: left top;
        background: $background 20%;
    }
    #context-menu {
        width: 28;
        height: auto;
        background: $surface;
        border: round $accent;
        padding: 0 1;
    }
    #context-menu-label {
        text-style: bold;
        color: $text-muted;
    }
    #context-menu-options {
        height: auto;
        border: none;
    }
    """

    def __init__(self, x: int, y: int, label: str) -> None:
        super().__init__()
        self._x = x
        self._y = y
        self._label = label

    def compose(self) -> ComposeResult:
        with Vertical(id="context-menu"):
            yield Static(self._label, id="context-menu-label", markup=False)
            yield OptionList(
                Option("Delete", id=DELETE),
                Option("Cancel", id="cancel"),
                id="context-menu-options",
            )

    def on_mount(self) -> None:
        menu = self.query_one("#context-menu", Vertical)
        menu.styles.offset = (max(0, self._x), max(0, self._y))
        self.query_one("#context-menu-options", OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.dismiss(DELETE if event.option.id == DELETE else None)

    def on_click(self, event: events.Click) -> None:
        if event.widget is self:
            self.dismiss(OUTSIDE)

    def action_cancel(self) -> None:
        self.dismiss(None)
