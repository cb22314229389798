"""Result renderers: rich tables for the prompt, CSV for batch and file output."""

from __future__ import annotations

import csv
import json
from collections.abc import Callable, Mapping
from enum import Flag, auto
from typing import Any, TextIO

from neo4j.graph import Node, Path, Relationship
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from neo4j_client.client.results import QueryResult


class RenderFlag(Flag):
    """Renderer switches."""

    NONE = 0
    SHOW_NULLS = auto()
    ASCII = auto()


Renderer = Callable[[QueryResult, TextIO, RenderFlag], None]


def format_value(value: Any, *, flags: RenderFlag = RenderFlag.NONE, quote: bool = True) -> str:
    """Cypher-literal text for one value; top-level strings are optionally unquoted."""

    if value is None:
        return "null" if RenderFlag.SHOW_NULLS in flags else ""
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False) if quote else value
    return _literal(value)


def render_table(result: QueryResult, out: TextIO, flags: RenderFlag) -> None:
    console = Console(file=out, highlight=False, emoji=False, soft_wrap=False)
    if result.keys:
        table = Table(box=box.ASCII if RenderFlag.ASCII in flags else box.SQUARE)
        for key in result.keys:
            table.add_column(Text(key), overflow="fold")
        for row in result.rows:
            table.add_row(*(Text(format_value(value, flags=flags)) for value in row))
        console.print(table)
    for line in summary_lines(result):
        console.print(Text(line))


def render_csv(result: QueryResult, out: TextIO, flags: RenderFlag) -> None:
    if not result.keys:
        return
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(result.keys)
    for row in result.rows:
        writer.writerow([format_value(value, flags=flags, quote=False) for value in row])
    out.flush()


RENDERERS: dict[str, Renderer] = {
    "table": render_table,
    "csv": render_csv,
}


def summary_lines(result: QueryResult) -> list[str]:
    return [
        f"{name.replace('_', ' ').capitalize()}: {count}"
        for name, count in result.counters.items()
    ]


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, Node):
        labels = "".join(f":{_identifier(label)}" for label in sorted(value.labels))
        return f"({labels}{_properties(dict(value.items()))})"
    if isinstance(value, Relationship):
        return f"[:{_identifier(value.type)}{_properties(dict(value.items()))}]"
    if isinstance(value, Path):
        return _path(value)
    if isinstance(value, Mapping):
        return "{" + ", ".join(f"{_identifier(k)}: {_literal(v)}" for k, v in value.items()) + "}"
    if isinstance(value, list | tuple):
        return "[" + ", ".join(_literal(item) for item in value) + "]"
    return str(value)


def _properties(properties: dict[str, Any]) -> str:
    if not properties:
        return ""
    return " " + _literal(properties)


def _path(path: Path) -> str:
    nodes = path.nodes
    parts = [_literal(nodes[0])]
    for index, relationship in enumerate(path.relationships):
        start = relationship.start_node
        forward = start is not None and start.element_id == nodes[index].element_id
        text = _literal(relationship)
        parts.append(f"-{text}->" if forward else f"<-{text}-")
        parts.append(_literal(nodes[index + 1]))
    return "".join(parts)


def _identifier(name: str) -> str:
    if name and (name[0].isalpha() or name[0] == "_") and all(
        ch.isalnum() or ch == "_" for ch in name
    ):
        return name
    return "`" + name.replace("`", "``") + "`"
