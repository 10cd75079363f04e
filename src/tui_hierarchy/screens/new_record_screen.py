"""Form for creating a record."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Select, Static

NONE = ""


class NewRecordScreen(ModalScreen[dict | None]):
    """Modal form asking for a title, a type and an optional parent.

    Dismisses with ``{"title", "type_id", "parent_id"}`` where the last two
    are None when left at "(none)", or with None on cancel.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    DEFAULT_CSS = """
    NewRecordScreen {
        align: center middle;
    }
    #new-record-container {
        width: 70;
        height: auto;
        max-height: 85%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #new-record-title {
        text-style: bold;
        margin-bottom: 1;
    }
    .field-label {
        margin-top: 1;
        color: $text-muted;
    }
    #new-record-buttons {
        align: center middle;
        height: 3;
        margin-top: 1;
    }
    #new-record-buttons Button {
        margin: 0 1;
    }
    """

    def __init__(
        self,
        heading: str,
        types: list[tuple[str, str]],
        parents: list[tuple[str, str]],
        default_parent: str | None = None,
    ) -> None:
        """Create the form.

        Args:
            heading: Title displayed above the form.
            types: (type id, type title) pairs from the type catalog.
            parents: (record id, label) pairs the new record may hang under.
            default_parent: Parent preselected in the form, usually the
                record under the cursor.
        """
        super().__init__()
        self._heading = heading
        self._types = types
        self._parents = parents
        known = {value for value, _ in parents}
        self._default_parent = default_parent if default_parent in known else NONE

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="new-record-container"):
            yield Static(self._heading, id="new-record-title", markup=False)

            yield Static("Title", classes="field-label")
            yield Input(placeholder="Title", id="field-title")

            yield Static("Type", classes="field-label")
            yield Select(
                [("(none)", NONE)] + [(title, type_id) for type_id, title in self._types],
                value=NONE,
                allow_blank=False,
                id="field-type",
            )

            yield Static("Parent", classes="field-label")
            yield Select(
                [("(none)", NONE)] + [(label, record_id) for record_id, label in self._parents],
                value=self._default_parent,
                allow_blank=False,
                id="field-parent",
            )

            with Horizontal(id="new-record-buttons"):
                yield Button("Create", variant="primary", id="create-btn")
                yield Button("Cancel", variant="default", id="cancel-btn")

    def on_mount(self) -> None:
        self.query_one("#field-title", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "create-btn":
            self._submit()
        else:
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit()

    def _submit(self) -> None:
        title = self.query_one("#field-title", Input).value.strip()
        if not title:
            self.notify("Title cannot be empty", severity="error")
            return
        type_id = self.query_one("#field-type", Select).value
        parent_id = self.query_one("#field-parent", Select).value
        self.dismiss(
            {
                "title": title,
                "type_id": type_id or None,
                "parent_id": parent_id or None,
            }
        )

    def action_cancel(self) -> None:
        self.dismiss(None)
