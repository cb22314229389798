"""Materialized query results handed to renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import neo4j

COUNTER_NAMES = (
    "nodes_created",
    "nodes_deleted",
    "relationships_created",
    "relationships_deleted",
    "properties_set",
    "labels_added",
    "labels_removed",
    "indexes_added",
    "indexes_removed",
    "constraints_added",
    "constraints_removed",
    "system_updates",
)


@dataclass(slots=True)
class QueryResult:
    """Column names, rows in server order, and non-zero update counters."""

    keys: tuple[str, ...]
    rows: list[tuple[Any, ...]] = field(default_factory=list)
    counters: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_driver(cls, result: neo4j.Result) -> QueryResult:
        keys = tuple(result.keys())
        rows = [tuple(record.values()) for record in result]
        summary = result.consume()
        counters = {
            name: value
            for name in COUNTER_NAMES
            if (value := getattr(summary.counters, name, 0))
        }
        return cls(keys=keys, rows=rows, counters=counters)
