"""Cycle prevention for parent and subtype edits."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from tui_hierarchy.models import MAX_ANCESTOR_DEPTH, Record, coerce_record

logger = logging.getLogger(__name__)


class EdgeKind(Enum):
    """Which upward edges the ancestor walk follows."""

    PARENT = "parent"
    SUBTYPE = "subtype"
    ANY = "any"


class CycleError(ValueError):
    """Raised when an edit would make a record its own ancestor."""

    def __init__(self, node_id: str, candidate_parent_id: str, edge: EdgeKind = EdgeKind.PARENT) -> None:
        self.node_id = node_id
        self.candidate_parent_id = candidate_parent_id
        self.edge = edge
        relation = "sub-type of" if edge is EdgeKind.SUBTYPE else "child of"
        super().__init__(
            f"Cannot make '{node_id}' a {relation} '{candidate_parent_id}': "
            "it would create a circular reference"
        )


def _index_records(records: Iterable[Record | Mapping[str, Any]]) -> dict[str, Record]:
    index: dict[str, Record] = {}
    for raw in records:
        try:
            record = coerce_record(raw)
        except (TypeError, ValueError):
            logger.debug("skipping malformed record in cycle check: %r", raw)
            continue
        index.setdefault(record.id, record)
    return index


def _upward(record: Record, edge: EdgeKind) -> tuple[str, ...]:
    if edge is EdgeKind.PARENT:
        return record.parent_ids
    if edge is EdgeKind.SUBTYPE:
        return (record.subtype_of_id,) if record.subtype_of_id else ()
    ups = record.parent_ids
    if record.subtype_of_id:
        ups = (*ups, record.subtype_of_id)
    return ups


def would_create_cycle(
    candidate_parent_id: str | None,
    node_id: str | None,
    records: Iterable[Record | Mapping[str, Any]],
    *,
    edge: EdgeKind = EdgeKind.PARENT,
    max_depth: int = MAX_ANCESTOR_DEPTH,
) -> bool:
    """Return True if making *candidate_parent_id* a parent of *node_id* closes a loop.

    Walks upward from the candidate one ancestor level at a time. Every id is
    expanded at most once, so data that already contains a cycle still
    terminates. Walks longer than *max_depth* levels are treated as cycles.
    """
    if not candidate_parent_id or not node_id:
        return True
    candidate_parent_id = str(candidate_parent_id)
    node_id = str(node_id)
    if candidate_parent_id == node_id:
        return True

    index = _index_records(records)
    visited: set[str] = set()
    frontier = [candidate_parent_id]
    depth = 0
    while frontier:
        if depth > max_depth:
            logger.warning(
                "ancestor walk from %s exceeded %d levels; rejecting edit",
                candidate_parent_id,
                max_depth,
            )
            return True
        next_frontier: list[str] = []
        for current in frontier:
            if current == node_id:
                return True
            if current in visited:
                continue
            visited.add(current)
            record = index.get(current)
            if record is None:
                continue
            next_frontier.extend(p for p in _upward(record, edge) if p not in visited)
        frontier = next_frontier
        depth += 1
    return False
