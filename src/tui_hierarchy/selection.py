"""Multi-selection over a flattened forest.

Selection is a small state machine. Each click kind has one pure transition
function in ``TRANSITIONS``; ``SelectionController`` only holds the current
state and the rows the indices refer to.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from tui_hierarchy.models import FlatRow

logger = logging.getLogger(__name__)


class SelectionPhase(Enum):
    IDLE = "idle"
    SINGLE_SELECTED = "single_selected"
    RANGE_ANCHORED = "range_anchored"


class ClickKind(Enum):
    PLAIN = "plain"
    TOGGLE = "toggle"
    RANGE = "range"


@dataclass(frozen=True)
class ClickModifiers:
    """Modifier keys held during a click."""

    ctrl: bool = False
    meta: bool = False
    shift: bool = False

    @property
    def kind(self) -> ClickKind:
        if self.ctrl or self.meta:
            return ClickKind.TOGGLE
        if self.shift:
            return ClickKind.RANGE
        return ClickKind.PLAIN


NO_MODIFIERS = ClickModifiers()


@dataclass(frozen=True)
class SelectionState:
    selected: frozenset[str] = frozenset()
    anchor: int | None = None

    @property
    def phase(self) -> SelectionPhase:
        if len(self.selected) > 1:
            return SelectionPhase.RANGE_ANCHORED
        if self.selected:
            return SelectionPhase.SINGLE_SELECTED
        return SelectionPhase.IDLE


EMPTY_SELECTION = SelectionState()


def selectable_id(row: FlatRow) -> str | None:
    """Record id behind a row, or None for a grouping pseudo-root."""
    return None if row.node.is_pseudo else row.node.id


def _plain(state: SelectionState, index: int, rows: Sequence[FlatRow]) -> SelectionState:
    node_id = selectable_id(rows[index])
    if node_id is None:
        return EMPTY_SELECTION
    return SelectionState(frozenset({node_id}), index)


def _toggle(state: SelectionState, index: int, rows: Sequence[FlatRow]) -> SelectionState:
    node_id = selectable_id(rows[index])
    if node_id is None:
        return state
    if node_id in state.selected:
        return SelectionState(state.selected - {node_id}, index)
    return SelectionState(state.selected | {node_id}, index)


def _range(state: SelectionState, index: int, rows: Sequence[FlatRow]) -> SelectionState:
    anchor = state.anchor
    if anchor is None or not 0 <= anchor < len(rows):
        return _plain(state, index, rows)
    low, high = min(anchor, index), max(anchor, index)
    span = {selectable_id(rows[k]) for k in range(low, high + 1)}
    span.discard(None)
    # The anchor stays put so further shift-clicks measure from it.
    return replace(state, selected=state.selected | frozenset(span))


Transition = Callable[[SelectionState, int, Sequence[FlatRow]], SelectionState]

TRANSITIONS: dict[ClickKind, Transition] = {
    ClickKind.PLAIN: _plain,
    ClickKind.TOGGLE: _toggle,
    ClickKind.RANGE: _range,
}


class SelectionController:
    """Selected ids and the last-clicked row of one rendered forest.

    Create one controller per view; the rows passed in must be the
    pre-order flattening that is on screen.
    """

    def __init__(self, rows: Sequence[FlatRow] = ()) -> None:
        self._rows: list[FlatRow] = list(rows)
        self._state: SelectionState = EMPTY_SELECTION

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def selected_ids(self) -> frozenset[str]:
        return self._state.selected

    @property
    def last_clicked_index(self) -> int | None:
        return self._state.anchor

    @property
    def phase(self) -> SelectionPhase:
        return self._state.phase

    @property
    def rows(self) -> list[FlatRow]:
        return list(self._rows)

    def is_selected(self, node_id: str) -> bool:
        return node_id in self._state.selected

    def set_rows(self, rows: Sequence[FlatRow]) -> None:
        """Swap in a new flattening; the selection itself is untouched."""
        self._rows = list(rows)

    def click(self, index: int, modifiers: ClickModifiers = NO_MODIFIERS) -> SelectionState:
        if not 0 <= index < len(self._rows):
            logger.debug("click on index %d outside %d rows ignored", index, len(self._rows))
            return self._state
        self._state = TRANSITIONS[modifiers.kind](self._state, index, self._rows)
        return self._state

    def clear(self) -> None:
        """Click on empty canvas."""
        self._state = EMPTY_SELECTION

    def select_only(self, node_id: str) -> None:
        """Narrow the selection to one id, keeping the anchor."""
        self._state = replace(self._state, selected=frozenset({node_id}))

    def reset(self, rows: Sequence[FlatRow] = ()) -> None:
        """Start over for a different forest."""
        self._rows = list(rows)
        self._state = EMPTY_SELECTION
