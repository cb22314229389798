from __future__ import annotations

import allure
from conftest import FakePrompt

from neo4j_client.shell.evaluate import Outcome
from neo4j_client.shell.interactive import CONTINUATION_PROMPT, PROMPT, interact

pytestmark = [
    allure.epic("Shell Input"),
    allure.feature("Interactive Prompt"),
]


def test_interactive_loop_evaluates_until_eof(make_state) -> None:
    state = make_state()
    prompt = FakePrompt(["RETURN 1;", "FAIL;", "RETURN", "2;"])

    outcome = interact(state, prompt_factory=lambda _: prompt)

    assert outcome is Outcome.CONTINUE
    assert state.source_depth == 1
    assert state.infile == "<interactive>"
    output = state.out.getvalue()
    assert "Enter `:help` for usage hints." in output
    assert "Connected to 'bolt://localhost:7687'" in output
    assert "RETURN\n2" in output
    assert "failed: FAIL" in state.err.getvalue()
    assert prompt.messages[:4] == [PROMPT, PROMPT, PROMPT, CONTINUATION_PROMPT]


def test_quit_ends_session_successfully(make_state) -> None:
    prompt = FakePrompt([":quit", "RETURN 1;"])
    state = make_state()

    assert interact(state, prompt_factory=lambda _: prompt) is Outcome.CONTINUE
    assert prompt.lines == ["RETURN 1;"]


def test_interrupt_discards_pending_input(make_state, fake_driver) -> None:
    prompt = FakePrompt(["MATCH (n)", KeyboardInterrupt(), "RETURN 5;"])

    interact(make_state(), prompt_factory=lambda _: prompt)

    assert [query for query, _ in fake_driver.queries] == ["RETURN 5"]


def test_query_without_connection_is_reported(make_state) -> None:
    state = make_state(connected=False)

    interact(state, prompt_factory=lambda _: FakePrompt(["RETURN 1;"]))

    assert "Not connected" in state.err.getvalue()
    assert state.error_count == 1
