"""Per-forest event handlers for selection and deletion."""

from __future__ import annotations

from collections.abc import Callable

from tui_hierarchy.deletion import (
    ContextMenu,
    DeleteById,
    DeletionCoordinator,
    DeletionReport,
    MenuPhase,
)
from tui_hierarchy.models import FlatRow, Forest, Node
from tui_hierarchy.selection import NO_MODIFIERS, ClickModifiers, SelectionController


class HierarchyView:
    """One rendered forest with its own selection and delete menu.

    Build a separate view for every forest on screen so selections never
    leak between them.
    """

    def __init__(
        self,
        delete_by_id: DeleteById,
        on_delete_confirmed: Callable[[list[str]], None] | None = None,
        forest: Forest | None = None,
        item_noun: str = "item",
    ) -> None:
        self._forest = forest or Forest()
        self._collapsed: set[str] = set()
        self.selection = SelectionController(self._forest.flatten())
        self.deletion = DeletionCoordinator(
            self.selection,
            delete_by_id,
            on_delete_confirmed=on_delete_confirmed,
            item_noun=item_noun,
        )

    @property
    def forest(self) -> Forest:
        return self._forest

    @property
    def rows(self) -> list[FlatRow]:
        return self.selection.rows

    @property
    def selected_ids(self) -> frozenset[str]:
        return self.selection.selected_ids

    @property
    def pending_delete_set(self) -> frozenset[str]:
        return self.deletion.pending_delete_set

    @property
    def menu(self) -> ContextMenu | None:
        return self.deletion.menu

    @property
    def phase(self) -> MenuPhase:
        return self.deletion.phase

    def set_forest(self, forest: Forest) -> None:
        """Show a rebuilt forest of the same project; selection is kept."""
        self._forest = forest
        self.selection.set_rows(forest.flatten(self._collapsed))

    def reset(self, forest: Forest) -> None:
        """Show a different forest; selection and menu start over."""
        self._forest = forest
        self._collapsed.clear()
        self.deletion.reset()
        self.selection.reset(forest.flatten())

    def toggle_collapse(self, key: str) -> None:
        if key in self._collapsed:
            self._collapsed.discard(key)
        else:
            self._collapsed.add(key)
        self.selection.set_rows(self._forest.flatten(self._collapsed))

    @property
    def collapsed(self) -> frozenset[str]:
        return frozenset(self._collapsed)

    # ── Event handlers ──

    def on_node_click(self, node: Node | None, index: int, modifiers: ClickModifiers = NO_MODIFIERS) -> None:
        if self.deletion.phase is MenuPhase.MENU_OPEN:
            # The click only closes the menu.
            self.deletion.dismiss_menu()
            return
        if self.deletion.phase is MenuPhase.CONFIRM_PENDING:
            return
        self.selection.click(index, modifiers)

    def on_canvas_click(self) -> None:
        if self.deletion.phase is MenuPhase.MENU_OPEN:
            self.deletion.dismiss_menu()
            return
        if self.deletion.phase is MenuPhase.CONFIRM_PENDING:
            return
        self.selection.clear()

    def on_node_context_menu(self, node: Node, x: int, y: int) -> ContextMenu | None:
        return self.deletion.open_menu(node, x, y)

    def on_choose_delete(self) -> str | None:
        return self.deletion.choose_delete()

    def on_confirm_delete(self) -> DeletionReport | None:
        return self.deletion.confirm()

    def on_cancel_delete(self) -> bool:
        return self.deletion.cancel()

    def on_outside_click(self) -> bool:
        return self.deletion.dismiss_menu()
