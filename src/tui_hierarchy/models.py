"""Data models for TUI Hierarchy."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class NodeKind(Enum):
    """What an arena entry stands for."""

    ITEM = "item"
    TYPE = "type"
    UNCATEGORIZED = "uncategorized"


class Relation(Enum):
    """How a flattened row hangs off the row above it."""

    ROOT = "root"
    SUBTYPE = "subtype"
    CHILD = "child"


SUBTYPE_ICON = "↳"
MULTI_PARENT_ICON = "🔗"
TYPE_ICON = "▣"

TYPE_KEY_PREFIX = "type:"
UNCATEGORIZED_ID = "__uncategorized__"
UNCATEGORIZED_KEY = TYPE_KEY_PREFIX + UNCATEGORIZED_ID

MAX_ANCESTOR_DEPTH = 10_000


def type_key(type_id: str) -> str:
    """Arena key of the pseudo-root for a type id."""
    return f"{TYPE_KEY_PREFIX}{type_id}"


def _coerce_ids(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, int)):
        value = [value]
    return tuple(str(v) for v in value if v is not None and str(v) != "")


def _coerce_optional_id(value: Any) -> str | None:
    if value is None or str(value) == "":
        return None
    return str(value)


@dataclass(frozen=True)
class Record:
    """A flat record as handed over by the data store."""

    id: str
    title: str
    parent_ids: tuple[str, ...] = ()
    subtype_of_id: str | None = None
    type_id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Record:
        """Build a record from a loosely shaped mapping.

        Raises ValueError when the mapping has no usable id.
        """
        raw_id = data.get("id")
        if raw_id is None or str(raw_id) == "":
            raise ValueError(f"record without id: {dict(data)!r}")
        return cls(
            id=str(raw_id),
            title=str(data.get("title") or ""),
            parent_ids=_coerce_ids(data.get("parent_ids")),
            subtype_of_id=_coerce_optional_id(data.get("subtype_of_id")),
            type_id=_coerce_optional_id(data.get("type_id")),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.parent_ids:
            result["parent_ids"] = list(self.parent_ids)
        if self.subtype_of_id is not None:
            result["subtype_of_id"] = self.subtype_of_id
        if self.type_id is not None:
            result["type_id"] = self.type_id
        return result


@dataclass(frozen=True)
class TypeRecord:
    """A type catalog entry used to group items."""

    id: str
    title: str
    parent_ids: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TypeRecord:
        raw_id = data.get("id")
        if raw_id is None or str(raw_id) == "":
            raise ValueError(f"type record without id: {dict(data)!r}")
        return cls(
            id=str(raw_id),
            title=str(data.get("title") or ""),
            parent_ids=_coerce_ids(data.get("parent_ids")),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.parent_ids:
            result["parent_ids"] = list(self.parent_ids)
        return result


def coerce_record(value: Record | Mapping[str, Any]) -> Record:
    if isinstance(value, Record):
        return value
    if isinstance(value, Mapping):
        return Record.from_mapping(value)
    raise TypeError(f"cannot use {type(value).__name__} as a record")


def coerce_type_record(value: TypeRecord | Mapping[str, Any]) -> TypeRecord:
    if isinstance(value, TypeRecord):
        return value
    if isinstance(value, Mapping):
        return TypeRecord.from_mapping(value)
    raise TypeError(f"cannot use {type(value).__name__} as a type record")


@dataclass(frozen=True)
class Node:
    """One arena entry of a forest. Edges are arena keys, not node objects."""

    key: str
    id: str
    title: str
    kind: NodeKind = NodeKind.ITEM
    parent_ids: tuple[str, ...] = ()
    subtype_of_id: str | None = None
    type_id: str | None = None
    children: tuple[str, ...] = ()
    sub_types: tuple[str, ...] = ()

    @classmethod
    def from_record(
        cls,
        record: Record,
        children: tuple[str, ...] = (),
        sub_types: tuple[str, ...] = (),
    ) -> Node:
        return cls(
            key=record.id,
            id=record.id,
            title=record.title,
            parent_ids=record.parent_ids,
            subtype_of_id=record.subtype_of_id,
            type_id=record.type_id,
            children=children,
            sub_types=sub_types,
        )

    @property
    def is_pseudo(self) -> bool:
        """True for the synthetic grouping nodes of the grouped view."""
        return self.kind is not NodeKind.ITEM

    @property
    def has_multiple_parents(self) -> bool:
        return len(self.parent_ids) > 1

    @property
    def has_descendants(self) -> bool:
        return bool(self.children or self.sub_types)


@dataclass(frozen=True)
class FlatRow:
    """A visible row of a flattened forest."""

    node: Node
    depth: int
    relation: Relation = Relation.ROOT


@dataclass(frozen=True)
class Forest:
    """Roots plus an arena of nodes keyed by arena key.

    A node that belongs to several parents is stored once and referenced
    from each parent's adjacency list.
    """

    nodes: Mapping[str, Node] = field(default_factory=dict)
    roots: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def is_empty(self) -> bool:
        return not self.roots

    def get(self, key: str) -> Node | None:
        return self.nodes.get(key)

    def root_nodes(self) -> list[Node]:
        return [self.nodes[k] for k in self.roots if k in self.nodes]

    def children_of(self, key: str) -> list[Node]:
        node = self.nodes.get(key)
        if node is None:
            return []
        return [self.nodes[k] for k in node.children if k in self.nodes]

    def sub_types_of(self, key: str) -> list[Node]:
        node = self.nodes.get(key)
        if node is None:
            return []
        return [self.nodes[k] for k in node.sub_types if k in self.nodes]

    def flatten(self, collapsed: frozenset[str] | set[str] = frozenset()) -> list[FlatRow]:
        """Pre-order rows: subtypes, then children, then the next sibling.

        A key already on the path from its root is not revisited, so an
        arena that still carries a parent cycle flattens to a finite list.
        Collapsed keys are emitted without their descendants.
        """
        rows: list[FlatRow] = []
        stack: list[tuple[str, int, Relation, tuple[str, ...]]] = [
            (key, 0, Relation.ROOT, ()) for key in reversed(self.roots)
        ]
        while stack:
            key, depth, relation, path = stack.pop()
            node = self.nodes.get(key)
            if node is None or key in path:
                continue
            rows.append(FlatRow(node, depth, relation))
            if key in collapsed:
                continue
            path = (*path, key)
            pending = [(k, depth + 1, Relation.SUBTYPE, path) for k in node.sub_types]
            pending += [(k, depth + 1, Relation.CHILD, path) for k in node.children]
            stack.extend(reversed(pending))
        return rows


@dataclass
class LoadWarning:
    """A warning generated while loading project data."""

    file_path: str
    message: str
    section: str = "file"

    def __str__(self) -> str:
        return f"{self.file_path}: {self.message}"


@dataclass
class ProjectConfig:
    """Project-level configuration stored in .tui-hierarchy/config.toml."""

    name: str = ""
    data_file: str = "hierarchy.yaml"
    grouped: bool = False
    item_noun: str = "item"
    uncategorized_title: str = "Uncategorized"
    max_cycle_depth: int = MAX_ANCESTOR_DEPTH
