from __future__ import annotations

import allure

from neo4j_client.shell.directives import DirectiveKind, DirectiveSplitter, iter_directives

pytestmark = [
    allure.epic("Shell Input"),
    allure.feature("Directive Splitting"),
]


def test_queries_and_commands_are_split_with_start_lines() -> None:
    lines = [
        "MATCH (n)\n",
        "RETURN n;\n",
        ":status\n",
        "\n",
        "RETURN 1; RETURN 2;\n",
    ]

    directives = list(iter_directives(lines))

    assert [(d.kind, d.text, d.line) for d in directives] == [
        (DirectiveKind.QUERY, "MATCH (n)\nRETURN n", 1),
        (DirectiveKind.COMMAND, ":status", 3),
        (DirectiveKind.QUERY, "RETURN 1", 5),
        (DirectiveKind.QUERY, "RETURN 2", 5),
    ]


def test_semicolons_inside_quotes_and_comments_do_not_terminate() -> None:
    text = (
        "RETURN 'a;b', \"c;d\", `e;f` // trailing; comment\n"
        "/* block; comment */ AS x;\n"
    )

    directives = list(iter_directives([text]))

    assert len(directives) == 1
    assert directives[0].text.startswith("RETURN 'a;b'")
    assert directives[0].text.endswith("AS x")


def test_escaped_quote_stays_inside_string() -> None:
    directives = list(iter_directives(["RETURN 'it\\'s; fine';\n"]))

    assert [d.text for d in directives] == ["RETURN 'it\\'s; fine'"]


def test_unterminated_query_is_flushed_at_end() -> None:
    directives = list(iter_directives(["RETURN 1\n"]))

    assert [(d.kind, d.text) for d in directives] == [(DirectiveKind.QUERY, "RETURN 1")]


def test_incremental_feed_reports_pending_until_terminated() -> None:
    splitter = DirectiveSplitter()

    assert splitter.feed("MATCH (n)\n") == []
    assert splitter.pending is True
    finished = splitter.feed("RETURN n;\n")

    assert [d.text for d in finished] == ["MATCH (n)\nRETURN n"]
    assert splitter.pending is False


def test_discard_drops_partial_input() -> None:
    splitter = DirectiveSplitter()
    splitter.feed("MATCH (n) 'open\n")

    splitter.discard()

    assert splitter.pending is False
    assert [d.text for d in splitter.feed("RETURN 2;\n")] == ["RETURN 2"]


def test_trailing_comment_is_not_emitted_as_query() -> None:
    directives = list(iter_directives(["RETURN 1;\n", "// end of script\n"]))

    assert [(d.kind, d.text) for d in directives] == [(DirectiveKind.QUERY, "RETURN 1")]


def test_comment_only_statements_are_skipped() -> None:
    directives = list(iter_directives(["/* only a comment */;\n", "// note\n;\n", "RETURN '//';\n"]))

    assert [d.text for d in directives] == ["RETURN '//'"]
