"""Context-menu driven bulk deletion."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from tui_hierarchy.models import Node
from tui_hierarchy.selection import SelectionController

logger = logging.getLogger(__name__)


class MenuPhase(Enum):
    IDLE = "idle"
    MENU_OPEN = "menu_open"
    CONFIRM_PENDING = "confirm_pending"


class MenuEvent(Enum):
    OPEN = "open"
    CHOOSE_DELETE = "choose_delete"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    OUTSIDE_CLICK = "outside_click"


TRANSITIONS: dict[tuple[MenuPhase, MenuEvent], MenuPhase] = {
    (MenuPhase.IDLE, MenuEvent.OPEN): MenuPhase.MENU_OPEN,
    (MenuPhase.MENU_OPEN, MenuEvent.OPEN): MenuPhase.MENU_OPEN,
    (MenuPhase.MENU_OPEN, MenuEvent.CHOOSE_DELETE): MenuPhase.CONFIRM_PENDING,
    (MenuPhase.MENU_OPEN, MenuEvent.CANCEL): MenuPhase.IDLE,
    (MenuPhase.MENU_OPEN, MenuEvent.OUTSIDE_CLICK): MenuPhase.IDLE,
    (MenuPhase.CONFIRM_PENDING, MenuEvent.CONFIRM): MenuPhase.IDLE,
    (MenuPhase.CONFIRM_PENDING, MenuEvent.CANCEL): MenuPhase.IDLE,
}


@dataclass(frozen=True)
class ContextMenu:
    """An open context menu and the ids it would delete."""

    node_id: str
    title: str
    x: int
    y: int
    pending: frozenset[str]


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of one delete request."""

    id: str
    ok: bool = True
    message: str = ""


@dataclass
class DeletionReport:
    outcomes: dict[str, DeleteOutcome] = field(default_factory=dict)

    @property
    def succeeded(self) -> list[str]:
        return [i for i, o in self.outcomes.items() if o.ok]

    @property
    def failed(self) -> list[DeleteOutcome]:
        return [o for o in self.outcomes.values() if not o.ok]


DeleteById = Callable[[str], DeleteOutcome | bool | None]


def _to_outcome(node_id: str, result: DeleteOutcome | bool | None) -> DeleteOutcome:
    if isinstance(result, DeleteOutcome):
        return result
    if result is False:
        return DeleteOutcome(node_id, ok=False, message="delete rejected")
    return DeleteOutcome(node_id)


class DeletionCoordinator:
    """Turns right-click, menu choice and confirmation into delete requests.

    The coordinator never touches the forest. It asks ``delete_by_id`` once
    per pending id and leaves it to the data store to hand back a smaller
    record list.
    """

    def __init__(
        self,
        selection: SelectionController,
        delete_by_id: DeleteById,
        on_delete_confirmed: Callable[[list[str]], None] | None = None,
        item_noun: str = "item",
    ) -> None:
        self._selection = selection
        self._delete_by_id = delete_by_id
        self._on_delete_confirmed = on_delete_confirmed
        self.item_noun = item_noun
        self._phase = MenuPhase.IDLE
        self._menu: ContextMenu | None = None

    @property
    def phase(self) -> MenuPhase:
        return self._phase

    @property
    def menu(self) -> ContextMenu | None:
        return self._menu

    @property
    def pending_delete_set(self) -> frozenset[str]:
        return self._menu.pending if self._menu else frozenset()

    def _advance(self, event: MenuEvent) -> bool:
        target = TRANSITIONS.get((self._phase, event))
        if target is None:
            logger.debug("ignoring %s while %s", event.value, self._phase.value)
            return False
        self._phase = target
        return True

    def open_menu(self, node: Node, x: int, y: int) -> ContextMenu | None:
        """Right-click on *node* at screen position (x, y)."""
        if node.is_pseudo:
            return None
        if (self._phase, MenuEvent.OPEN) not in TRANSITIONS:
            logger.debug("context menu ignored while %s", self._phase.value)
            return None
        if self._selection.is_selected(node.id):
            pending = self._selection.selected_ids
        else:
            self._selection.select_only(node.id)
            pending = frozenset({node.id})
        self._advance(MenuEvent.OPEN)
        self._menu = ContextMenu(node.id, node.title, x, y, pending)
        return self._menu

    def prompt(self) -> str:
        count = len(self.pending_delete_set)
        if count > 1:
            return f"Delete {count} {self.item_noun}s?"
        title = self._menu.title if self._menu else ""
        return f"Delete '{title}'?"

    def choose_delete(self) -> str | None:
        """Pick "Delete" from the open menu; returns the confirmation prompt."""
        if not self._advance(MenuEvent.CHOOSE_DELETE):
            return None
        return self.prompt()

    def confirm(self) -> DeletionReport | None:
        """Send one delete request per pending id."""
        if self._phase is not MenuPhase.CONFIRM_PENDING:
            logger.debug("confirm ignored while %s", self._phase.value)
            return None
        ids = sorted(self.pending_delete_set)
        report = DeletionReport()
        for node_id in ids:
            try:
                outcome = _to_outcome(node_id, self._delete_by_id(node_id))
            except Exception as exc:
                logger.warning("delete of %s failed: %s", node_id, exc)
                outcome = DeleteOutcome(node_id, ok=False, message=str(exc))
            report.outcomes[node_id] = outcome
        self._advance(MenuEvent.CONFIRM)
        self._menu = None
        self._selection.clear()
        if self._on_delete_confirmed is not None:
            self._on_delete_confirmed(ids)
        return report

    def cancel(self) -> bool:
        if not self._advance(MenuEvent.CANCEL):
            return False
        self._menu = None
        return True

    def dismiss_menu(self) -> bool:
        """Click outside the open menu."""
        if not self._advance(MenuEvent.OUTSIDE_CLICK):
            return False
        self._menu = None
        return True

    def reset(self) -> None:
        self._phase = MenuPhase.IDLE
        self._menu = None
