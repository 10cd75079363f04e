"""Tests for the YAML record store."""

import pytest
import yaml

from tui_hierarchy.builder import build_tree
from tui_hierarchy.cycle import CycleError
from tui_hierarchy.models import Record
from tui_hierarchy.store import RecordStore, sample_records


@pytest.fixture
def store(tmp_path):
    types, items = sample_records()
    s = RecordStore(tmp_path / "hierarchy.yaml", items=items, types=types)
    s.save()
    return s


class TestLoad:
    def test_missing_file(self, tmp_path):
        s = RecordStore.load(tmp_path)
        assert s.items == []
        assert s.warnings == []
        assert not s.path.exists()

    def test_round_trip(self, store, tmp_path):
        loaded = RecordStore.load(tmp_path)
        assert loaded.items == store.items
        assert loaded.types == store.types
        assert loaded.warnings == []

    def test_custom_data_file(self, tmp_path):
        (tmp_path / "assets.yaml").write_text("items:\n  - id: a\n    title: A\n", encoding="utf-8")
        s = RecordStore.load(tmp_path, "assets.yaml")
        assert [r.id for r in s.items] == ["a"]

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "hierarchy.yaml").write_text("items: [unclosed\n", encoding="utf-8")
        s = RecordStore.load(tmp_path)
        assert s.items == []
        assert len(s.warnings) == 1
        assert s.warnings[0].section == "file"

    def test_bad_entries_warn(self, tmp_path):
        (tmp_path / "hierarchy.yaml").write_text(
            "items:\n"
            "  - id: a\n"
            "    title: A\n"
            "  - title: no id\n"
            "  - just a string\n"
            "  - id: a\n"
            "    title: Again\n"
            "  - id: b\n",
            encoding="utf-8",
        )
        s = RecordStore.load(tmp_path)
        assert [r.id for r in s.items] == ["a", "b"]
        messages = " ".join(w.message for w in s.warnings)
        assert "missing id" in messages
        assert "not a mapping" in messages
        assert "duplicate id 'a'" in messages
        assert "missing title" in messages
        assert {w.section for w in s.warnings} == {"items"}

    def test_non_list_section(self, tmp_path):
        (tmp_path / "hierarchy.yaml").write_text("items: {a: 1}\n", encoding="utf-8")
        s = RecordStore.load(tmp_path)
        assert s.items == []
        assert "must be a list" in s.warnings[0].message

    def test_warning_sections(self, tmp_path):
        (tmp_path / "hierarchy.yaml").write_text(
            "types:\n  - title: no id\nitems:\n  - id: a\n", encoding="utf-8"
        )
        s = RecordStore.load(tmp_path)
        assert [(w.section, w.message) for w in s.warnings] == [
            ("types", "types[1]: missing id, skipped"),
            ("items", "items[1] (a): missing title"),
        ]


class TestSave:
    def test_writes_plain_yaml(self, store):
        data = yaml.safe_load(store.path.read_text(encoding="utf-8"))
        assert data["items"][0] == {"id": "site", "title": "Main Site", "type_id": "infrastructure"}
        assert [t["id"] for t in data["types"]] == ["infrastructure", "building", "equipment"]
        assert store.modified is False


class TestDelete:
    def test_delete_replaces_list(self, store):
        before = store.items
        outcome = store.delete_by_id("pump")
        assert outcome.ok
        assert store.items is not before
        assert store.get("pump") is None
        assert store.modified

    def test_delete_unknown_is_idempotent(self, store):
        store.delete_by_id("pump")
        outcome = store.delete_by_id("pump")
        assert outcome.ok
        assert outcome.message == "already deleted"

    def test_dangling_references_are_kept(self, store):
        store.delete_by_id("pump")
        assert store.get("booster-pump").subtype_of_id == "pump"


class TestEdges:
    def test_add_parent(self, store):
        store.add_parent("spare-parts", "warehouse")
        assert store.get("spare-parts").parent_ids == ("warehouse",)
        assert store.modified

    def test_add_parent_twice_is_noop(self, store):
        store.add_parent("spare-parts", "warehouse")
        items = store.items
        store.add_parent("spare-parts", "warehouse")
        assert store.items is items

    def test_add_parent_rejects_cycle(self, store):
        with pytest.raises(CycleError):
            store.add_parent("site", "generator")
        assert store.get("site").parent_ids == ()

    def test_add_parent_rejects_self(self, store):
        with pytest.raises(CycleError):
            store.add_parent("site", "site")

    def test_add_parent_unknown(self, store):
        with pytest.raises(KeyError):
            store.add_parent("ghost", "site")
        with pytest.raises(KeyError):
            store.add_parent("site", "ghost")

    def test_remove_parent(self, store):
        store.remove_parent("generator", "hq")
        assert store.get("generator").parent_ids == ("warehouse",)

    def test_set_subtype(self, store):
        store.set_subtype("spare-parts", "pump")
        assert store.get("spare-parts").subtype_of_id == "pump"
        store.set_subtype("spare-parts", None)
        assert store.get("spare-parts").subtype_of_id is None

    def test_set_subtype_rejects_cycle(self, store):
        with pytest.raises(CycleError):
            store.set_subtype("pump", "booster-pump")
        assert store.get("pump").subtype_of_id is None

    def test_subtype_rejects_loop_through_parent_edge(self, tmp_path):
        s = RecordStore(tmp_path / "h.yaml", items=[Record("a", "A", ("b",)), Record("b", "B")])
        with pytest.raises(CycleError):
            s.set_subtype("b", "a")
        assert s.get("b").subtype_of_id is None
        assert build_tree(s.items).roots == ("b",)

    def test_parent_rejects_loop_through_subtype_edge(self, tmp_path):
        s = RecordStore(
            tmp_path / "h.yaml", items=[Record("a", "A"), Record("b", "B", subtype_of_id="a")]
        )
        with pytest.raises(CycleError):
            s.add_parent("a", "b")
        assert s.get("a").parent_ids == ()
        assert [row.node.id for row in build_tree(s.items).flatten()] == ["a", "b"]

    def test_add(self, store):
        store.add(Record("new", "New"))
        assert store.get("new").title == "New"
        with pytest.raises(ValueError):
            store.add(Record("new", "Again"))

    def test_title_of(self, store):
        assert store.title_of("hq") == "Headquarters"
        assert store.title_of("ghost") == "ghost"

    def test_new_id(self, store):
        assert store.new_id("Backup Generator") == "backup-generator"
        assert store.new_id("Pump") == "pump-2"
        assert store.new_id("  ***  ") == "item"
        store.add(Record("pump-2", "Pump"))
        assert store.new_id("Pump") == "pump-3"
