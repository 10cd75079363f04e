"""Build forests from flat record lists.

Two variants are provided:

* ``build_tree`` nests records by their subtype and parent edges.
* ``build_grouped_tree`` additionally hangs every root item under a
  pseudo-root for its type, with one "uncategorized" pseudo-root for items
  without a known type.

Neither function raises on malformed data. Dangling or self references are
resolved by promoting the record to a root, and anything unexpected yields
an empty forest.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from tui_hierarchy.models import (
    UNCATEGORIZED_ID,
    UNCATEGORIZED_KEY,
    Forest,
    Node,
    NodeKind,
    Record,
    TypeRecord,
    coerce_record,
    coerce_type_record,
    type_key,
)

logger = logging.getLogger(__name__)

RecordLike = Record | Mapping[str, Any]
TypeRecordLike = TypeRecord | Mapping[str, Any]


def _dedupe(records: list[Record]) -> list[Record]:
    seen: set[str] = set()
    result: list[Record] = []
    for record in records:
        if record.id in seen:
            logger.warning("duplicate record id %s; keeping the first occurrence", record.id)
            continue
        seen.add(record.id)
        result.append(record)
    return result


def _link(records: list[Record]) -> tuple[dict[str, list[str]], dict[str, list[str]], list[str]]:
    """Run the subtype pass, then the parent pass.

    Returns (children, sub_types, roots) keyed by record id, with roots in
    record order.
    """
    ids = {r.id for r in records}
    children: dict[str, list[str]] = {r.id: [] for r in records}
    sub_types: dict[str, list[str]] = {r.id: [] for r in records}
    processed: set[str] = set()
    root_ids: set[str] = set()

    # Subtype edges take precedence over parent edges.
    for record in records:
        target = record.subtype_of_id
        if target is None:
            continue
        if target in ids and target != record.id:
            sub_types[target].append(record.id)
        else:
            logger.debug("subtype target %s of %s not usable; promoting to root", target, record.id)
            root_ids.add(record.id)
        processed.add(record.id)

    for record in records:
        if record.id in processed:
            continue
        if not record.parent_ids:
            root_ids.add(record.id)
            continue
        attached = False
        for parent_id in dict.fromkeys(record.parent_ids):
            if parent_id in ids and parent_id != record.id:
                children[parent_id].append(record.id)
                attached = True
            else:
                logger.debug("parent %s of %s not usable", parent_id, record.id)
        if attached:
            processed.add(record.id)
        else:
            root_ids.add(record.id)

    roots = [r.id for r in records if r.id in root_ids]
    return children, sub_types, roots


def _reachable(roots: Iterable[str], *adjacency: dict[str, list[str]]) -> set[str]:
    seen: set[str] = set()
    stack = list(roots)
    while stack:
        key = stack.pop()
        if key in seen:
            continue
        seen.add(key)
        for edges in adjacency:
            stack.extend(edges.get(key, ()))
    return seen


def _build_item_forest(raw_records: Iterable[RecordLike]) -> Forest:
    records = _dedupe([coerce_record(r) for r in raw_records])
    children, sub_types, roots = _link(records)

    detached = {r.id for r in records} - _reachable(roots, children, sub_types)
    if detached:
        logger.warning(
            "records unreachable from any root (parent cycle in stored data): %s",
            ", ".join(sorted(detached)),
        )

    nodes = {
        r.id: Node.from_record(r, tuple(children[r.id]), tuple(sub_types[r.id]))
        for r in records
    }
    return Forest(nodes=nodes, roots=tuple(roots))


def build_tree(records: Iterable[RecordLike] | None) -> Forest:
    """Build the forest of *records*; never raises."""
    if records is None:
        return Forest()
    try:
        return _build_item_forest(records)
    except Exception:
        logger.exception("failed to build hierarchy tree; rendering an empty forest")
        return Forest()


def _build_type_skeleton(
    types: list[TypeRecord],
) -> tuple[dict[str, list[str]], list[str]]:
    """Nest type pseudo-roots by the types' own parent edges.

    Returns (child type keys per type key, top-level type keys).
    """
    ids = {t.id for t in types}
    child_types: dict[str, list[str]] = {type_key(t.id): [] for t in types}
    top_level: list[str] = []
    for t in types:
        attached = False
        for parent_id in dict.fromkeys(t.parent_ids):
            if parent_id in ids and parent_id != t.id:
                child_types[type_key(parent_id)].append(type_key(t.id))
                attached = True
        if not attached:
            top_level.append(type_key(t.id))

    # Types caught in a parent cycle would never be shown; lift the first
    # unreachable type of each loop to the top level.
    reachable = _reachable(top_level, child_types)
    for t in types:
        key = type_key(t.id)
        if key not in reachable:
            logger.warning("type %s is part of a parent cycle; showing it at the top level", t.id)
            top_level.append(key)
            reachable |= _reachable([key], child_types)
    return child_types, top_level


def _prune(
    child_types: dict[str, list[str]],
    attached_items: dict[str, list[str]],
) -> set[str]:
    """Return the pseudo-root keys that still lead to at least one item.

    Walks upward from every pseudo-root with attached items, so a key is kept
    iff some item hangs below it.
    """
    parents_of: dict[str, list[str]] = {}
    for parent, children in child_types.items():
        for child in children:
            parents_of.setdefault(child, []).append(parent)
    seeds = [key for key, items in attached_items.items() if items]
    return _reachable(seeds, parents_of)


def build_grouped_tree(
    items: Iterable[RecordLike] | None,
    types: Iterable[TypeRecordLike] | None,
    *,
    uncategorized_title: str = "Uncategorized",
) -> Forest:
    """Build the item forest grouped under type pseudo-roots; never raises.

    Root items hang under the pseudo-root of their ``type_id`` (or the
    uncategorized pseudo-root). Pseudo-roots without item descendants are
    pruned, together with ancestor types that become empty.
    """
    try:
        item_forest = _build_item_forest(items or [])
        type_records: list[TypeRecord] = []
        seen_types: set[str] = set()
        for raw in types or []:
            t = coerce_type_record(raw)
            if t.id in seen_types:
                logger.warning("duplicate type id %s; keeping the first occurrence", t.id)
                continue
            seen_types.add(t.id)
            type_records.append(t)

        child_types, top_level = _build_type_skeleton(type_records)

        attached_items: dict[str, list[str]] = {}
        for root in item_forest.root_nodes():
            key = type_key(root.type_id) if root.type_id in seen_types else UNCATEGORIZED_KEY
            attached_items.setdefault(key, []).append(root.key)

        kept = _prune(child_types, attached_items)

        nodes: dict[str, Node] = dict(item_forest.nodes)
        for t in type_records:
            key = type_key(t.id)
            if key not in kept:
                continue
            nodes[key] = Node(
                key=key,
                id=t.id,
                title=t.title,
                kind=NodeKind.TYPE,
                parent_ids=t.parent_ids,
                children=tuple(
                    [k for k in child_types[key] if k in kept]
                    + attached_items.get(key, [])
                ),
            )
        roots = [k for k in top_level if k in kept]
        if UNCATEGORIZED_KEY in kept:
            nodes[UNCATEGORIZED_KEY] = Node(
                key=UNCATEGORIZED_KEY,
                id=UNCATEGORIZED_ID,
                title=uncategorized_title,
                kind=NodeKind.UNCATEGORIZED,
                children=tuple(attached_items[UNCATEGORIZED_KEY]),
            )
            roots.append(UNCATEGORIZED_KEY)
        return Forest(nodes=nodes, roots=tuple(roots))
    except Exception:
        logger.exception("failed to build grouped hierarchy tree; rendering an empty forest")
        return Forest()
