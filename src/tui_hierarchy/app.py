"""Main Textual App for TUI Hierarchy."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Static

from tui_hierarchy.builder import build_grouped_tree, build_tree
from tui_hierarchy.config import load_config, save_config
from tui_hierarchy.cycle import CycleError
from tui_hierarchy.deletion import DeleteOutcome
from tui_hierarchy.models import FlatRow, Forest, ProjectConfig, Record
from tui_hierarchy.screens.confirm_screen import ConfirmScreen
from tui_hierarchy.screens.context_menu_screen import DELETE, OUTSIDE, ContextMenuScreen
from tui_hierarchy.screens.new_record_screen import NewRecordScreen
from tui_hierarchy.screens.select_screen import SelectScreen
from tui_hierarchy.screens.warning_screen import WarningScreen
from tui_hierarchy.selection import ClickModifiers
from tui_hierarchy.store import RecordStore, sample_records
from tui_hierarchy.view import HierarchyView
from tui_hierarchy.widgets.forest_table import ForestTable

logger = logging.getLogger(__name__)

NO_SUBTYPE = "__none__"


class HierarchyApp(App):
    """TUI Hierarchy Application."""

    TITLE = "TUI Hierarchy"
    CSS = """
    #main-content {
        height: 1fr;
        border: round $surface-lighten-2;
    }
    #main-content:focus-within {
        border: round $accent;
    }
    #status-bar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $primary-background;
        color: $text;
    }
    """

    BINDINGS = [
        Binding("q", "quit_app", "Quit"),
        Binding("exclamation_mark", "warnings", "Warnings", show=False),
        # Selection
        Binding("space", "toggle_select", "Toggle", show=False),
        Binding("v", "extend_select", "Extend", show=False),
        Binding("escape", "clear_selection", "Clear", show=False),
        # Deletion
        Binding("d", "context_menu", "Delete"),
        Binding("delete", "context_menu", "Delete", show=False),
        # Records
        Binding("n", "new_record", "New"),
        # Edges
        Binding("p", "add_parent", "Add parent"),
        Binding("x", "remove_parent", "Remove parent", show=False),
        Binding("u", "set_subtype", "Sub-type of", show=False),
        # View
        Binding("g", "toggle_grouped", "Group by type"),
        Binding("c", "toggle_collapse", "Fold/Unfold", show=False),
        Binding("r", "reload", "Reload", show=False),
    ]

    def __init__(self, project_dir: Path, no_color: bool = False) -> None:
        if no_color:
            os.environ["NO_COLOR"] = "1"
        super().__init__()
        self.project_dir = project_dir
        self.no_color = no_color
        self.config: ProjectConfig = ProjectConfig()
        self.store: RecordStore | None = None
        self.grouped: bool = False
        self.view = HierarchyView(
            self._delete_record,
            on_delete_confirmed=self._on_records_deleted,
        )

    def on_mount(self) -> None:
        self.set_timer(0.01, self._load_project)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-content"):
            yield ForestTable()
        yield Static("", id="status-bar")
        yield Footer()

    # ── Loading ──

    def _load_project(self) -> None:
        self.config = load_config(self.project_dir)
        self.grouped = self.config.grouped
        self.view.deletion.item_noun = self.config.item_noun
        self.store = RecordStore.load(
            self.project_dir,
            self.config.data_file,
            max_cycle_depth=self.config.max_cycle_depth,
        )
        if not self.store.path.exists():
            self.push_screen(
                ConfirmScreen(f"No {self.config.data_file} found. Create a sample file?"),
                callback=self._on_sample_confirmed,
            )
            return
        self._finish_load()

    def _on_sample_confirmed(self, confirmed: bool) -> None:
        if confirmed and self.store is not None:
            types, items = sample_records()
            self.store.types = types
            self.store.items = items
            self.store.save()
            save_config(self.project_dir, self.config)
        self._finish_load()

    def _finish_load(self) -> None:
        project_name = self.config.name or self.project_dir.name
        self.title = f"TUI Hierarchy - {project_name}"
        self._rebuild(reset=True)
        if self.store and self.store.warnings:
            self.notify(
                f"{len(self.store.warnings)} load warning(s), press ! to view",
                severity="warning",
            )

    # ── Forest ──

    def _build_forest(self) -> Forest:
        if self.store is None:
            return Forest()
        if self.grouped:
            return build_grouped_tree(
                self.store.items,
                self.store.types,
                uncategorized_title=self.config.uncategorized_title,
            )
        return build_tree(self.store.items)

    def _rebuild(self, reset: bool = False) -> None:
        forest = self._build_forest()
        if reset:
            self.view.reset(forest)
        else:
            self.view.set_forest(forest)
        self._refresh_ui()

    def _refresh_ui(self) -> None:
        try:
            table = self.query_one(ForestTable)
        except Exception:
            return
        table.update_data(self.view.rows, self.view.selected_ids, self.view.collapsed)
        self._update_status_bar()

    def _update_status_bar(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except Exception:
            return
        rows = self.view.rows
        parts = [f"{len(rows)} rows", f"{len(self.view.selected_ids)} selected"]
        if self.grouped:
            parts.append("grouped by type")
        if self.store and self.store.warnings:
            parts.append(f"{len(self.store.warnings)} warnings")
        bar.update(" | ".join(parts))

    def _row_at(self, index: int | None) -> FlatRow | None:
        rows = self.view.rows
        if index is None or not 0 <= index < len(rows):
            return None
        return rows[index]

    def _cursor_index(self) -> int | None:
        try:
            return self.query_one(ForestTable).cursor_row
        except Exception:
            return None

    def _cursor_record_id(self) -> str | None:
        row = self._row_at(self._cursor_index())
        if row is None or row.node.is_pseudo:
            return None
        return row.node.id

    # ── Selection ──

    def _handle_click(self, index: int, modifiers: ClickModifiers) -> None:
        row = self._row_at(index)
        if row is None:
            return
        self.view.on_node_click(row.node, index, modifiers)
        self._refresh_ui()

    def on_forest_table_node_clicked(self, event: ForestTable.NodeClicked) -> None:
        self._handle_click(event.index, event.modifiers)

    def on_forest_table_canvas_clicked(self, event: ForestTable.CanvasClicked) -> None:
        self.view.on_canvas_click()
        self._refresh_ui()

    def on_forest_table_context_menu_requested(self, event: ForestTable.ContextMenuRequested) -> None:
        self._open_context_menu(event.index, event.x, event.y)

    def action_toggle_select(self) -> None:
        index = self._cursor_index()
        if index is not None:
            self._handle_click(index, ClickModifiers(ctrl=True))

    def action_extend_select(self) -> None:
        index = self._cursor_index()
        if index is not None:
            self._handle_click(index, ClickModifiers(shift=True))

    def action_clear_selection(self) -> None:
        self.view.on_canvas_click()
        self._refresh_ui()

    # ── Deletion ──

    def _delete_record(self, record_id: str) -> DeleteOutcome:
        if self.store is None:
            return DeleteOutcome(record_id, ok=False, message="no project loaded")
        return self.store.delete_by_id(record_id)

    def _on_records_deleted(self, ids: list[str]) -> None:
        if self.store is not None and self.store.modified:
            self.store.save()
        self._rebuild()

    def _open_context_menu(self, index: int, x: int, y: int) -> None:
        row = self._row_at(index)
        if row is None:
            return
        menu = self.view.on_node_context_menu(row.node, x, y)
        if menu is None:
            if row.node.is_pseudo:
                self.notify("Type groups cannot be deleted", severity="warning")
            return
        self._refresh_ui()
        count = len(menu.pending)
        label = f"{count} {self.config.item_noun}s" if count > 1 else menu.title
        self.push_screen(
            ContextMenuScreen(menu.x, menu.y, label),
            callback=self._on_menu_choice,
        )

    def action_context_menu(self) -> None:
        index = self._cursor_index()
        if index is None:
            return
        x, y = self.query_one(ForestTable).cursor_screen_offset()
        self._open_context_menu(index, x, y)

    def _on_menu_choice(self, choice: str | None) -> None:
        if choice == DELETE:
            prompt = self.view.on_choose_delete()
            if prompt is None:
                return
            pending = sorted(self.view.pending_delete_set)
            details = None
            if len(pending) > 1:
                details = [self.store.title_of(node_id) for node_id in pending]
            self.push_screen(
                ConfirmScreen(prompt, yes_label="Delete", no_label="Cancel", details=details),
                callback=self._on_delete_answer,
            )
            return
        if choice == OUTSIDE:
            self.view.on_outside_click()
        else:
            self.view.on_cancel_delete()
        self._refresh_ui()

    def _on_delete_answer(self, confirmed: bool) -> None:
        if not confirmed:
            self.view.on_cancel_delete()
            self._refresh_ui()
            return
        report = self.view.on_confirm_delete()
        if report is None:
            return
        for outcome in report.failed:
            self.notify(
                f"Could not delete '{outcome.id}': {outcome.message}",
                severity="error",
            )
        if report.succeeded:
            self.notify(f"Deleted {len(report.succeeded)} {self.config.item_noun}(s)")

    # ── Records ──

    def action_new_record(self) -> None:
        if self.store is None:
            return
        parents = [(r.id, f"{r.title} ({r.id})") for r in self.store.items]
        types = [(t.id, t.title or t.id) for t in self.store.types]
        self.push_screen(
            NewRecordScreen(
                f"New {self.config.item_noun}",
                types,
                parents,
                default_parent=self._cursor_record_id(),
            ),
            callback=self._on_new_record,
        )

    def _on_new_record(self, result: dict | None) -> None:
        if not result or self.store is None:
            return
        parent_id = result["parent_id"]
        record = Record(
            id=self.store.new_id(result["title"]),
            title=result["title"],
            parent_ids=(parent_id,) if parent_id else (),
            type_id=result["type_id"],
        )
        self.store.add(record)
        self.store.save()
        self._rebuild()
        self.notify(f"Created '{record.title}'")

    # ── Edge editing ──

    def _record_options(self, exclude: str) -> list[tuple[str, str]]:
        if self.store is None:
            return []
        return [(r.id, f"{r.title} ({r.id})") for r in self.store.items if r.id != exclude]

    def _commit_edit(self, edit, *args) -> None:
        try:
            edit(*args)
        except CycleError as e:
            self.notify(str(e), severity="error")
            return
        except KeyError as e:
            self.notify(f"Unknown record {e}", severity="error")
            return
        if self.store is not None and self.store.modified:
            self.store.save()
        self._rebuild()

    def action_add_parent(self) -> None:
        record_id = self._cursor_record_id()
        if record_id is None or self.store is None:
            return
        record = self.store.get(record_id)
        current = set(record.parent_ids) if record else set()
        self.push_screen(
            SelectScreen(
                f"Add parent to '{self.store.title_of(record_id)}'",
                self._record_options(record_id),
                marked=current,
            ),
            callback=lambda parent_id: (
                self._commit_edit(self.store.add_parent, record_id, parent_id)
                if parent_id and self.store
                else None
            ),
        )

    def action_remove_parent(self) -> None:
        record_id = self._cursor_record_id()
        if record_id is None or self.store is None:
            return
        record = self.store.get(record_id)
        if record is None or not record.parent_ids:
            self.notify("No parents to remove")
            return
        options = [(p, f"{self.store.title_of(p)} ({p})") for p in record.parent_ids]
        self.push_screen(
            SelectScreen(f"Remove parent from '{record.title}'", options),
            callback=lambda parent_id: (
                self._commit_edit(self.store.remove_parent, record_id, parent_id)
                if parent_id and self.store
                else None
            ),
        )

    def action_set_subtype(self) -> None:
        record_id = self._cursor_record_id()
        if record_id is None or self.store is None:
            return
        record = self.store.get(record_id)
        current = {record.subtype_of_id} if record and record.subtype_of_id else set()
        options = [(NO_SUBTYPE, "(not a sub-type)")] + self._record_options(record_id)
        self.push_screen(
            SelectScreen(
                f"Make '{self.store.title_of(record_id)}' a sub-type of",
                options,
                marked=current,
            ),
            callback=lambda target: self._on_subtype_chosen(record_id, target),
        )

    def _on_subtype_chosen(self, record_id: str, target: str | None) -> None:
        if target is None or self.store is None:
            return
        self._commit_edit(
            self.store.set_subtype,
            record_id,
            None if target == NO_SUBTYPE else target,
        )

    # ── View ──

    def action_toggle_grouped(self) -> None:
        self.grouped = not self.grouped
        self._rebuild(reset=True)

    def action_toggle_collapse(self) -> None:
        row = self._row_at(self._cursor_index())
        if row is None or not row.node.has_descendants:
            return
        self.view.toggle_collapse(row.node.key)
        self._refresh_ui()

    def action_reload(self) -> None:
        self._load_project()

    def action_warnings(self) -> None:
        warnings = self.store.warnings if self.store else []
        self.push_screen(WarningScreen(warnings))

    def action_quit_app(self) -> None:
        if self.store is not None and self.store.modified:
            self.push_screen(
                ConfirmScreen("Unsaved changes. Quit anyway?"),
                callback=self._on_quit_confirmed,
            )
        else:
            self.exit()

    def _on_quit_confirmed(self, confirmed: bool) -> None:
        if confirmed:
            self.exit()
