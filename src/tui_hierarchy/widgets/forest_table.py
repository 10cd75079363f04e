"""Forest view widget based on DataTable."""

from __future__ import annotations

from textual import events
from textual.app import ComposeResult
from textual.containers import Container
from textual.message import Message
from textual.widgets import DataTable

from rich.text import Text

from tui_hierarchy.models import (
    MULTI_PARENT_ICON,
    SUBTYPE_ICON,
    TYPE_ICON,
    FlatRow,
    NodeKind,
    Relation,
)
from tui_hierarchy.selection import NO_MODIFIERS, ClickModifiers

RIGHT_BUTTON = 3

SELECTED_MARKER = "●"
SELECTED_STYLE = "bold reverse"

COLUMNS: list[tuple[str, str, int | None]] = [
    ("mark", "", 2),
    ("title", "Title", 40),
    ("kind", "Kind", 14),
    ("parents", "Parents", 24),
]

KIND_LABELS = {
    Relation.ROOT: "root",
    Relation.SUBTYPE: "sub-type",
    Relation.CHILD: "child",
}


class ForestDataTable(DataTable):
    """DataTable that reports clicks with their modifier keys."""

    def action_select_cursor(self) -> None:
        # Enter acts like a plain click on the cursor row.
        if self.row_count:
            self.post_message(ForestTable.NodeClicked(self.cursor_row, NO_MODIFIERS))

    def on_click(self, event: events.Click) -> None:
        if event.button == RIGHT_BUTTON:
            return
        meta = event.style.meta
        row = meta.get("row")
        if row is None:
            self.post_message(ForestTable.CanvasClicked())
            return
        if row < 0:
            return  # header
        modifiers = ClickModifiers(ctrl=event.ctrl, meta=event.meta, shift=event.shift)
        self.post_message(ForestTable.NodeClicked(row, modifiers))

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button != RIGHT_BUTTON:
            return
        row = event.style.meta.get("row")
        if row is None or row < 0:
            return
        event.stop()
        self.post_message(
            ForestTable.ContextMenuRequested(row, int(event.screen_x), int(event.screen_y))
        )


class ForestTable(Container):
    """Table view of a flattened forest with tree indentation."""

    DEFAULT_CSS = """
    ForestTable {
        width: 1fr;
        height: 1fr;
    }
    ForestTable ForestDataTable {
        height: 1fr;
    }
    """

    class NodeClicked(Message):
        """Emitted when a row is clicked or selected with the keyboard."""

        def __init__(self, index: int, modifiers: ClickModifiers) -> None:
            super().__init__()
            self.index = index
            self.modifiers = modifiers

    class CanvasClicked(Message):
        """Emitted when empty space below the rows is clicked."""

    class ContextMenuRequested(Message):
        """Emitted on a right click over a row."""

        def __init__(self, index: int, x: int, y: int) -> None:
            super().__init__()
            self.index = index
            self.x = x
            self.y = y

    def __init__(self) -> None:
        super().__init__()
        self._rows: list[FlatRow] = []
        self._selected: frozenset[str] = frozenset()
        self._collapsed: frozenset[str] = frozenset()

    def compose(self) -> ComposeResult:
        yield ForestDataTable(id="forest-data-table", cursor_type="row")

    def on_mount(self) -> None:
        try:
            table = self.query_one("#forest-data-table", ForestDataTable)
            table.zebra_stripes = True
        except Exception:
            pass
        self._rebuild_table()

    def _rebuild_table(self) -> None:
        """Rebuild the DataTable from the current rows."""
        try:
            table = self.query_one("#forest-data-table", ForestDataTable)
        except Exception:
            return

        saved_row = table.cursor_row
        table.clear(columns=True)
        for key, label, width in COLUMNS:
            table.add_column(label, key=key, width=width)
        for index, row in enumerate(self._rows):
            table.add_row(*self._make_row(row), key=str(index))
        if self._rows:
            table.move_cursor(row=min(saved_row, len(self._rows) - 1), animate=False)

    def _make_row(self, row: FlatRow) -> list[Text | str]:
        node = row.node
        selected = not node.is_pseudo and node.id in self._selected

        if node.has_descendants:
            fold_icon = "▶ " if node.key in self._collapsed else "▼ "
        else:
            fold_icon = "  "
        title = Text("  " * row.depth + fold_icon)
        if node.is_pseudo:
            title.append(f"{TYPE_ICON} ")
        elif row.relation is Relation.SUBTYPE:
            title.append(f"{SUBTYPE_ICON} ", style="dim")
        title.append(node.title or node.id, style="bold" if node.is_pseudo else "")
        if node.has_multiple_parents:
            title.append(f" {MULTI_PARENT_ICON}")
        if selected:
            title.stylize(SELECTED_STYLE)

        if node.kind is NodeKind.ITEM:
            kind = KIND_LABELS[row.relation]
        else:
            kind = node.kind.value
        parents = ", ".join(node.parent_ids)
        if node.subtype_of_id:
            parents = f"{SUBTYPE_ICON} {node.subtype_of_id}" + (f"; {parents}" if parents else "")
        return [SELECTED_MARKER if selected else "", title, kind, parents]

    def update_data(
        self,
        rows: list[FlatRow],
        selected: frozenset[str],
        collapsed: frozenset[str] = frozenset(),
    ) -> None:
        self._rows = list(rows)
        self._selected = selected
        self._collapsed = collapsed
        self._rebuild_table()

    @property
    def cursor_row(self) -> int | None:
        try:
            table = self.query_one("#forest-data-table", ForestDataTable)
        except Exception:
            return None
        if not self._rows or table.cursor_row is None:
            return None
        if 0 <= table.cursor_row < len(self._rows):
            return table.cursor_row
        return None

    def cursor_screen_offset(self) -> tuple[int, int]:
        """Screen position just right of the cursor row's title."""
        try:
            table = self.query_one("#forest-data-table", ForestDataTable)
        except Exception:
            return (0, 0)
        row = table.cursor_row or 0
        header = 1 if table.show_header else 0
        x = table.region.x + 4
        y = table.region.y + header + row - int(table.scroll_y) + 1
        return (x, y)
