"""Tests for multi-selection."""

from tui_hierarchy.builder import build_grouped_tree
from tui_hierarchy.models import FlatRow, Node, NodeKind, Record, TypeRecord
from tui_hierarchy.selection import (
    NO_MODIFIERS,
    ClickKind,
    ClickModifiers,
    SelectionController,
    SelectionPhase,
)

CTRL = ClickModifiers(ctrl=True)
META = ClickModifiers(meta=True)
SHIFT = ClickModifiers(shift=True)


def _rows(*ids):
    return [FlatRow(Node(i, i, i.upper()), 0) for i in ids]


ROWS = _rows("n0", "n1", "n2", "n3", "n4", "n5", "n6")


class TestClickModifiers:
    def test_kinds(self):
        assert NO_MODIFIERS.kind is ClickKind.PLAIN
        assert CTRL.kind is ClickKind.TOGGLE
        assert META.kind is ClickKind.TOGGLE
        assert SHIFT.kind is ClickKind.RANGE

    def test_toggle_wins_over_range(self):
        assert ClickModifiers(ctrl=True, shift=True).kind is ClickKind.TOGGLE


class TestPlainClick:
    def test_selects_only_clicked(self):
        sel = SelectionController(ROWS)
        sel.click(1)
        sel.click(3)
        assert sel.selected_ids == {"n3"}
        assert sel.last_clicked_index == 3
        assert sel.phase is SelectionPhase.SINGLE_SELECTED

    def test_out_of_range_ignored(self):
        sel = SelectionController(ROWS)
        sel.click(2)
        sel.click(99)
        sel.click(-1)
        assert sel.selected_ids == {"n2"}


class TestToggleClick:
    def test_adds_and_removes(self):
        sel = SelectionController(ROWS)
        sel.click(0)
        sel.click(2, CTRL)
        assert sel.selected_ids == {"n0", "n2"}
        assert sel.phase is SelectionPhase.RANGE_ANCHORED
        sel.click(2, META)
        assert sel.selected_ids == {"n0"}

    def test_twice_restores_membership(self):
        sel = SelectionController(ROWS)
        sel.click(1)
        before = sel.selected_ids
        sel.click(4, CTRL)
        sel.click(4, CTRL)
        assert sel.selected_ids == before

    def test_moves_anchor(self):
        sel = SelectionController(ROWS)
        sel.click(1)
        sel.click(4, CTRL)
        assert sel.last_clicked_index == 4


class TestRangeClick:
    def test_forward_and_backward_match(self):
        forward = SelectionController(ROWS)
        forward.click(2)
        forward.click(5, SHIFT)
        backward = SelectionController(ROWS)
        backward.click(5)
        backward.click(2, SHIFT)
        assert forward.selected_ids == {"n2", "n3", "n4", "n5"}
        assert backward.selected_ids == forward.selected_ids

    def test_unions_with_existing(self):
        sel = SelectionController(ROWS)
        sel.click(0)
        sel.click(5, CTRL)
        sel.click(6, SHIFT)
        assert sel.selected_ids == {"n0", "n5", "n6"}

    def test_anchor_is_kept(self):
        sel = SelectionController(ROWS)
        sel.click(2)
        sel.click(4, SHIFT)
        assert sel.last_clicked_index == 2
        sel.click(0, SHIFT)
        assert sel.selected_ids == {"n0", "n1", "n2", "n3", "n4"}

    def test_without_anchor_acts_as_plain(self):
        sel = SelectionController(ROWS)
        sel.click(3, SHIFT)
        assert sel.selected_ids == {"n3"}
        assert sel.last_clicked_index == 3


class TestCanvasAndReset:
    def test_clear(self):
        sel = SelectionController(ROWS)
        sel.click(1)
        sel.click(3, SHIFT)
        sel.clear()
        assert sel.selected_ids == frozenset()
        assert sel.last_clicked_index is None
        assert sel.phase is SelectionPhase.IDLE

    def test_select_only_keeps_anchor(self):
        sel = SelectionController(ROWS)
        sel.click(1)
        sel.click(3, CTRL)
        sel.select_only("n5")
        assert sel.selected_ids == {"n5"}
        assert sel.last_clicked_index == 3

    def test_set_rows_keeps_selection(self):
        sel = SelectionController(ROWS)
        sel.click(1)
        sel.set_rows(_rows("x", "n1"))
        assert sel.selected_ids == {"n1"}

    def test_reset(self):
        sel = SelectionController(ROWS)
        sel.click(1)
        sel.reset(_rows("x"))
        assert sel.selected_ids == frozenset()
        assert len(sel.rows) == 1


class TestSharedAndPseudoRows:
    def test_shared_node_selected_once(self):
        rows = _rows("a", "shared", "b", "shared")
        sel = SelectionController(rows)
        sel.click(0)
        sel.click(3, SHIFT)
        assert sel.selected_ids == {"a", "shared", "b"}

    def test_pseudo_rows_are_not_selectable(self):
        forest = build_grouped_tree(
            [Record("pump", "Pump", type_id="eq"), Record("valve", "Valve", type_id="eq")],
            [TypeRecord("eq", "Equipment")],
        )
        rows = forest.flatten()
        assert rows[0].node.kind is NodeKind.TYPE
        sel = SelectionController(rows)
        sel.click(1)
        sel.click(0, CTRL)
        assert sel.selected_ids == {"pump"}
        sel.click(0)
        assert sel.selected_ids == frozenset()

    def test_range_skips_pseudo_rows(self):
        forest = build_grouped_tree(
            [Record("pump", "Pump", type_id="eq"), Record("loose", "Loose")],
            [TypeRecord("eq", "Equipment")],
        )
        rows = forest.flatten()
        sel = SelectionController(rows)
        sel.click(1)
        sel.click(3, SHIFT)
        assert sel.selected_ids == {"pump", "loose"}
