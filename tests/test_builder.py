"""Tests for forest building."""

import logging

from tui_hierarchy.builder import build_grouped_tree, build_tree
from tui_hierarchy.models import (
    UNCATEGORIZED_KEY,
    NodeKind,
    Record,
    TypeRecord,
    type_key,
)


def _keys(forest):
    return [row.node.key for row in forest.flatten()]


class TestBuildTree:
    def test_basic_scenario(self):
        records = [
            {"id": "A", "title": "A"},
            {"id": "B", "title": "B", "parent_ids": ["A"]},
            {"id": "C", "title": "C", "subtype_of_id": "A"},
            {"id": "D", "title": "D", "parent_ids": ["X"]},
        ]
        forest = build_tree(records)
        assert forest.roots == ("A", "D")
        a = forest.get("A")
        assert a.children == ("B",)
        assert a.sub_types == ("C",)
        assert forest.get("D").children == ()

    def test_none_and_empty(self):
        assert build_tree(None).is_empty
        assert build_tree([]).is_empty

    def test_malformed_records_give_empty_forest(self, caplog):
        with caplog.at_level(logging.ERROR, logger="tui_hierarchy.builder"):
            forest = build_tree([{"id": "a"}, {"title": "no id"}])
        assert forest.is_empty
        assert "failed to build" in caplog.text

    def test_multi_parent_node_is_shared(self):
        records = [
            Record("hq", "HQ"),
            Record("wh", "Warehouse"),
            Record("gen", "Generator", ("hq", "wh")),
        ]
        forest = build_tree(records)
        assert forest.roots == ("hq", "wh")
        assert forest.get("hq").children == ("gen",)
        assert forest.get("wh").children == ("gen",)
        assert len(forest) == 3
        assert _keys(forest) == ["hq", "gen", "wh", "gen"]

    def test_self_parent_becomes_root(self):
        forest = build_tree([Record("a", "A", ("a",))])
        assert forest.roots == ("a",)
        assert forest.get("a").children == ()

    def test_self_subtype_becomes_root(self):
        forest = build_tree([Record("a", "A", subtype_of_id="a")])
        assert forest.roots == ("a",)
        assert forest.get("a").sub_types == ()

    def test_dangling_subtype_becomes_root(self):
        forest = build_tree([Record("a", "A", subtype_of_id="gone")])
        assert forest.roots == ("a",)

    def test_one_valid_parent_is_enough(self):
        forest = build_tree([Record("p", "P"), Record("c", "C", ("gone", "p"))])
        assert forest.roots == ("p",)
        assert forest.get("p").children == ("c",)

    def test_subtype_takes_precedence_over_parents(self):
        records = [
            Record("p", "P"),
            Record("s", "S"),
            Record("c", "C", ("p",), subtype_of_id="s"),
        ]
        forest = build_tree(records)
        assert forest.get("s").sub_types == ("c",)
        assert forest.get("p").children == ()

    def test_duplicate_parent_ids_attach_once(self):
        forest = build_tree([Record("p", "P"), Record("c", "C", ("p", "p"))])
        assert forest.get("p").children == ("c",)

    def test_duplicate_record_ids_keep_first(self):
        forest = build_tree([Record("a", "First"), Record("a", "Second")])
        assert forest.get("a").title == "First"
        assert forest.roots == ("a",)

    def test_roots_follow_record_order(self):
        records = [Record("b", "B", ("gone",)), Record("a", "A"), Record("c", "C")]
        assert build_tree(records).roots == ("b", "a", "c")

    def test_stored_parent_cycle_is_detached(self, caplog):
        records = [Record("a", "A", ("b",)), Record("b", "B", ("a",)), Record("r", "R")]
        with caplog.at_level(logging.WARNING, logger="tui_hierarchy.builder"):
            forest = build_tree(records)
        assert forest.roots == ("r",)
        assert "unreachable" in caplog.text

    def test_children_follow_record_order(self):
        records = [
            Record("p", "P"),
            Record("z", "Z", ("p",)),
            Record("y", "Y", ("p",)),
        ]
        assert build_tree(records).get("p").children == ("z", "y")


TYPES = [
    TypeRecord("infra", "Infrastructure"),
    TypeRecord("building", "Building", ("infra",)),
    TypeRecord("equipment", "Equipment"),
    TypeRecord("vehicle", "Vehicle"),
]


class TestBuildGroupedTree:
    def test_items_hang_under_their_type(self):
        items = [
            Record("hq", "HQ", type_id="building"),
            Record("pump", "Pump", type_id="equipment"),
        ]
        forest = build_grouped_tree(items, TYPES)
        assert forest.roots == (type_key("infra"), type_key("equipment"))
        infra = forest.get(type_key("infra"))
        assert infra.kind is NodeKind.TYPE
        assert infra.children == (type_key("building"),)
        assert forest.get(type_key("building")).children == ("hq",)
        assert _keys(forest) == [
            type_key("infra"),
            type_key("building"),
            "hq",
            type_key("equipment"),
            "pump",
        ]

    def test_empty_types_are_pruned(self):
        forest = build_grouped_tree([Record("pump", "Pump", type_id="equipment")], TYPES)
        assert forest.roots == (type_key("equipment"),)
        assert forest.get(type_key("vehicle")) is None
        assert forest.get(type_key("infra")) is None

    def test_uncategorized_collects_untyped_items(self):
        items = [
            Record("pump", "Pump", type_id="equipment"),
            Record("loose", "Loose"),
            Record("odd", "Odd", type_id="not-a-type"),
        ]
        forest = build_grouped_tree(items, TYPES, uncategorized_title="Other")
        assert forest.roots[-1] == UNCATEGORIZED_KEY
        other = forest.get(UNCATEGORIZED_KEY)
        assert other.kind is NodeKind.UNCATEGORIZED
        assert other.title == "Other"
        assert other.children == ("loose", "odd")

    def test_only_root_items_are_grouped(self):
        items = [
            Record("hq", "HQ", type_id="building"),
            Record("gen", "Generator", ("hq",), type_id="equipment"),
        ]
        forest = build_grouped_tree(items, TYPES)
        assert forest.get(type_key("equipment")) is None
        assert forest.get("hq").children == ("gen",)

    def test_child_types_come_before_items(self):
        items = [
            Record("site", "Site", type_id="infra"),
            Record("hq", "HQ", type_id="building"),
        ]
        forest = build_grouped_tree(items, TYPES)
        assert forest.get(type_key("infra")).children == (type_key("building"), "site")

    def test_type_cycle_terminates(self):
        types = [TypeRecord("a", "A", ("b",)), TypeRecord("b", "B", ("a",))]
        forest = build_grouped_tree([Record("x", "X", type_id="a")], types)
        assert forest.roots == (type_key("a"),)
        assert _keys(forest) == [type_key("a"), type_key("b"), "x"]

    def test_no_types(self):
        forest = build_grouped_tree([Record("x", "X")], None)
        assert forest.roots == (UNCATEGORIZED_KEY,)

    def test_no_items(self):
        assert build_grouped_tree(None, TYPES).is_empty

    def test_malformed_input_gives_empty_forest(self):
        assert build_grouped_tree([{"id": "a"}], [{"title": "no id"}]).is_empty

    def test_deep_type_chain(self):
        depth = 3000
        types = [TypeRecord("t0", "T0")] + [
            TypeRecord(f"t{i}", f"T{i}", (f"t{i - 1}",)) for i in range(1, depth)
        ]
        forest = build_grouped_tree([Record("x", "X", type_id=f"t{depth - 1}")], types)
        assert forest.roots == (type_key("t0"),)
        assert forest.get(type_key(f"t{depth - 1}")).children == ("x",)
        rows = forest.flatten()
        assert len(rows) == depth + 1
        assert rows[-1].node.key == "x"
        assert rows[-1].depth == depth
