"""Record picker using a filterable OptionList."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option


class SelectScreen(ModalScreen[str | None]):
    """Modal for picking one record, narrowed by typing into the filter."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    DEFAULT_CSS = """
    SelectScreen {
        align: center middle;
    }
    #select-container {
        width: 60;
        height: auto;
        max-height: 70%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #select-label {
        text-style: bold;
        margin-bottom: 1;
    }
    #select-filter {
        margin-bottom: 1;
    }
    #select-list {
        height: auto;
        max-height: 20;
    }
    """

    def __init__(
        self,
        label: str,
        options: list[tuple[str, str]],
        marked: set[str] | None = None,
    ) -> None:
        """Create a picker.

        Args:
            label: Title displayed above the list.
            options: List of (value, display_text) tuples.
            marked: Values shown with a check mark, e.g. current parents.
        """
        super().__init__()
        self._label = label
        self._options = options
        self._marked = marked or set()

    def compose(self) -> ComposeResult:
        with Vertical(id="select-container"):
            yield Static(self._label, id="select-label", markup=False)
            yield Input(placeholder="Filter...", id="select-filter")
            yield OptionList(*self._make_options(""), id="select-list")

    def _make_options(self, query: str) -> list[Option]:
        query = query.strip().lower()
        result = []
        for value, display in self._options:
            if query and query not in display.lower() and query not in value.lower():
                continue
            mark = "✓ " if value in self._marked else "  "
            result.append(Option(f"{mark}{display}", id=value))
        return result

    def on_mount(self) -> None:
        self.query_one("#select-filter", Input).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        ol = self.query_one("#select-list", OptionList)
        ol.clear_options()
        ol.add_options(self._make_options(event.value))
        if ol.option_count:
            ol.highlighted = 0

    def on_input_submitted(self, event: Input.Submitted) -> None:
        ol = self.query_one("#select-list", OptionList)
        if ol.highlighted is not None and ol.option_count:
            self.dismiss(ol.get_option_at_index(ol.highlighted).id)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_cancel(self) -> None:
        self.dismiss(None)
