"""YAML-backed record store for a hierarchy project."""

from __future__ import annotations

import re
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from tui_hierarchy.cycle import CycleError, EdgeKind, would_create_cycle
from tui_hierarchy.deletion import DeleteOutcome
from tui_hierarchy.models import (
    MAX_ANCESTOR_DEPTH,
    LoadWarning,
    Record,
    TypeRecord,
)

DEFAULT_DATA_FILE = "hierarchy.yaml"


def _load_entries(
    raw: Any, section: str, factory, file_path: str, warnings: list[LoadWarning]
) -> list:
    if raw is None:
        return []
    if not isinstance(raw, list):
        warnings.append(LoadWarning(file_path, f"'{section}' must be a list, ignoring it", section))
        return []
    result = []
    seen: set[str] = set()
    for pos, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            warnings.append(LoadWarning(file_path, f"{section}[{pos}]: not a mapping, skipped", section))
            continue
        try:
            record = factory(entry)
        except ValueError:
            warnings.append(LoadWarning(file_path, f"{section}[{pos}]: missing id, skipped", section))
            continue
        if not record.title:
            message = f"{section}[{pos}] ({record.id}): missing title"
            warnings.append(LoadWarning(file_path, message, section))
        if record.id in seen:
            message = f"{section}[{pos}]: duplicate id '{record.id}', skipped"
            warnings.append(LoadWarning(file_path, message, section))
            continue
        seen.add(record.id)
        result.append(record)
    return result


class RecordStore:
    """Owns the items and types of one project file.

    Every mutation replaces ``items`` with a new list, so callers can tell a
    changed store apart by identity and rebuild their forest.
    """

    def __init__(
        self,
        path: Path,
        items: list[Record] | None = None,
        types: list[TypeRecord] | None = None,
        max_cycle_depth: int = MAX_ANCESTOR_DEPTH,
    ) -> None:
        self.path = path
        self.items: list[Record] = list(items or [])
        self.types: list[TypeRecord] = list(types or [])
        self.warnings: list[LoadWarning] = []
        self.modified = False
        self.max_cycle_depth = max_cycle_depth

    @classmethod
    def load(
        cls,
        project_dir: Path,
        data_file: str = DEFAULT_DATA_FILE,
        max_cycle_depth: int = MAX_ANCESTOR_DEPTH,
    ) -> RecordStore:
        """Load the store; a missing or unreadable file gives an empty store."""
        path = project_dir / data_file
        store = cls(path, max_cycle_depth=max_cycle_depth)
        if not path.exists():
            return store
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            store.warnings.append(LoadWarning(str(path), f"could not read file: {e}"))
            return store
        if data is None:
            return store
        if not isinstance(data, dict):
            store.warnings.append(LoadWarning(str(path), "top level must be a mapping"))
            return store
        file_path = str(path)
        store.types = _load_entries(data.get("types"), "types", TypeRecord.from_mapping, file_path, store.warnings)
        store.items = _load_entries(data.get("items"), "items", Record.from_mapping, file_path, store.warnings)
        return store

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "types": [t.to_dict() for t in self.types],
            "items": [r.to_dict() for r in self.items],
        }
        self.path.write_text(
            yaml.safe_dump(data, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        self.modified = False

    def get(self, record_id: str) -> Record | None:
        for record in self.items:
            if record.id == record_id:
                return record
        return None

    def title_of(self, record_id: str) -> str:
        record = self.get(record_id)
        return record.title if record else record_id

    def _replace_record(self, updated: Record) -> None:
        self.items = [updated if r.id == updated.id else r for r in self.items]
        self.modified = True

    def _require(self, record_id: str) -> Record:
        record = self.get(record_id)
        if record is None:
            raise KeyError(record_id)
        return record

    # ── Mutations ──

    def new_id(self, title: str) -> str:
        """Slug of *title* that no record uses yet."""
        slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-") or "item"
        candidate = slug
        n = 2
        while self.get(candidate) is not None:
            candidate = f"{slug}-{n}"
            n += 1
        return candidate

    def add(self, record: Record) -> None:
        if self.get(record.id) is not None:
            raise ValueError(f"duplicate id '{record.id}'")
        self.items = [*self.items, record]
        self.modified = True

    def delete_by_id(self, record_id: str) -> DeleteOutcome:
        """Remove a record. Deleting an unknown id succeeds.

        References to the deleted id from other records are left as they
        are; the tree builder promotes such orphans to roots.
        """
        if self.get(record_id) is None:
            return DeleteOutcome(record_id, ok=True, message="already deleted")
        self.items = [r for r in self.items if r.id != record_id]
        self.modified = True
        return DeleteOutcome(record_id)

    def add_parent(self, record_id: str, parent_id: str) -> None:
        """Add a parent edge, rejecting it if it would close a loop."""
        record = self._require(record_id)
        if parent_id in record.parent_ids:
            return
        self._require(parent_id)
        if would_create_cycle(
            parent_id, record_id, self.items, edge=EdgeKind.ANY, max_depth=self.max_cycle_depth
        ):
            raise CycleError(record_id, parent_id)
        self._replace_record(replace(record, parent_ids=(*record.parent_ids, parent_id)))

    def remove_parent(self, record_id: str, parent_id: str) -> None:
        record = self._require(record_id)
        if parent_id not in record.parent_ids:
            return
        self._replace_record(
            replace(record, parent_ids=tuple(p for p in record.parent_ids if p != parent_id))
        )

    def set_subtype(self, record_id: str, subtype_of_id: str | None) -> None:
        """Point the record's subtype edge at *subtype_of_id* (None clears it)."""
        record = self._require(record_id)
        if subtype_of_id == record.subtype_of_id:
            return
        if subtype_of_id is not None:
            self._require(subtype_of_id)
        if subtype_of_id is not None and would_create_cycle(
            subtype_of_id,
            record_id,
            self.items,
            edge=EdgeKind.ANY,
            max_depth=self.max_cycle_depth,
        ):
            raise CycleError(record_id, subtype_of_id, EdgeKind.SUBTYPE)
        self._replace_record(replace(record, subtype_of_id=subtype_of_id))


def sample_records() -> tuple[list[TypeRecord], list[Record]]:
    """A small asset catalog used by ``init`` and the empty-project prompt."""
    types = [
        TypeRecord("infrastructure", "Infrastructure"),
        TypeRecord("building", "Building", ("infrastructure",)),
        TypeRecord("equipment", "Equipment"),
    ]
    items = [
        Record("site", "Main Site", type_id="infrastructure"),
        Record("hq", "Headquarters", ("site",), type_id="building"),
        Record("warehouse", "Warehouse", ("site",), type_id="building"),
        Record("pump", "Pump", type_id="equipment"),
        Record("booster-pump", "Booster Pump", subtype_of_id="pump", type_id="equipment"),
        Record("generator", "Generator", ("hq", "warehouse"), type_id="equipment"),
        Record("spare-parts", "Spare Parts"),
    ]
    return types, items
