from __future__ import annotations

import io

import allure

from neo4j_client.client.results import QueryResult
from neo4j_client.shell.render import (
    RenderFlag,
    format_value,
    render_csv,
    render_table,
    summary_lines,
)

pytestmark = [
    allure.epic("Shell Output"),
    allure.feature("Rendering"),
]


def test_csv_writes_header_and_rows() -> None:
    out = io.StringIO()
    result = QueryResult(keys=("name", "age", "nick"), rows=[("Ann, Jr.", 41, None)])

    render_csv(result, out, RenderFlag.NONE)

    assert out.getvalue() == 'name,age,nick\n"Ann, Jr.",41,\n'


def test_csv_shows_nulls_when_requested() -> None:
    out = io.StringIO()

    render_csv(QueryResult(keys=("x",), rows=[(None,)]), out, RenderFlag.SHOW_NULLS)

    assert out.getvalue() == "x\nnull\n"


def test_csv_skips_results_without_columns() -> None:
    out = io.StringIO()

    render_csv(QueryResult(keys=(), counters={"nodes_created": 1}), out, RenderFlag.NONE)

    assert out.getvalue() == ""


def test_table_includes_headers_values_and_statistics() -> None:
    out = io.StringIO()
    result = QueryResult(
        keys=("n",),
        rows=[(1,), (None,)],
        counters={"nodes_created": 2},
    )

    render_table(result, out, RenderFlag.SHOW_NULLS | RenderFlag.ASCII)

    text = out.getvalue()
    assert "| n" in text
    assert "null" in text
    assert "Nodes created: 2" in text


def test_format_value_uses_cypher_literals() -> None:
    value = {"list": [1, True, None], "text": "a\"b", "odd key": 2.5}

    assert format_value(value) == '{list: [1, true, null], text: "a\\"b", `odd key`: 2.5}'
    assert format_value("plain", quote=False) == "plain"
    assert format_value("plain") == '"plain"'


def test_summary_lines_name_each_counter() -> None:
    result = QueryResult(keys=(), counters={"relationships_created": 3, "properties_set": 1})

    assert summary_lines(result) == ["Relationships created: 3", "Properties set: 1"]
