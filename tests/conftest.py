"""Shared test fixtures: in-memory driver, terminal and prompt fakes."""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from neo4j.exceptions import DriverError

from neo4j_client.client.callbacks import ConnectionCallbacks
from neo4j_client.client.connection import Connection, parse_address
from neo4j_client.config import SessionConfig, Settings
from neo4j_client.shell.state import ShellState


class FakeRecord:
    def __init__(self, values: tuple[Any, ...]) -> None:
        self._values = values

    def values(self) -> list[Any]:
        return list(self._values)


class FakeResult:
    """Mimics the parts of neo4j.Result that QueryResult.from_driver reads."""

    def __init__(
        self,
        keys: tuple[str, ...],
        rows: list[tuple[Any, ...]],
        *,
        counters: dict[str, int] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._keys = keys
        self._rows = rows
        self._counters = counters or {}
        self._error = error

    def keys(self) -> list[str]:
        return list(self._keys)

    def __iter__(self):
        if self._error is not None:
            raise self._error
        return iter([FakeRecord(row) for row in self._rows])

    def consume(self) -> SimpleNamespace:
        return SimpleNamespace(counters=SimpleNamespace(**self._counters))


def echo_query(query: str, _: dict[str, Any]) -> FakeResult:
    """Default responder: one `query` column holding the query text; FAIL raises."""

    if "FAIL" in query:
        return FakeResult(("query",), [], error=DriverError(f"failed: {query}"))
    return FakeResult(("query",), [(query,)])


Responder = Callable[[str, dict[str, Any]], FakeResult]


class FakeSession:
    def __init__(self, driver: FakeDriver) -> None:
        self.driver = driver
        self.closed = False

    def run(self, query: str, parameters: dict[str, Any]) -> FakeResult:
        self.driver.queries.append((query, dict(parameters)))
        return self.driver.responder(query, parameters)

    def close(self) -> None:
        self.closed = True


class FakeDriver:
    """Records queries and lifecycle calls; connectivity errors are raised in order."""

    def __init__(
        self,
        *,
        responder: Responder = echo_query,
        connectivity_errors: list[Exception] | None = None,
    ) -> None:
        self.responder = responder
        self.connectivity_errors = list(connectivity_errors or [])
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.sessions: list[FakeSession] = []
        self.close_calls = 0

    def session(self) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    def verify_connectivity(self) -> None:
        if self.connectivity_errors:
            raise self.connectivity_errors.pop(0)

    def close(self) -> None:
        self.close_calls += 1


class FakeTerminal:
    """Terminal stand-in with scripted answers; EOFError once they run out."""

    def __init__(self, answers: list[str] | None = None) -> None:
        self.answers = list(answers or [])
        self.output: list[str] = []
        self.prompts: list[tuple[str, bool]] = []
        self.close_calls = 0
        self.is_open = True

    def write(self, text: str) -> None:
        self.output.append(text)

    def prompt(self, message: str, *, hidden: bool = False) -> str:
        self.prompts.append((message, hidden))
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False

    @property
    def text(self) -> str:
        return "".join(self.output)


class FakePrompt:
    """Line reader for the interactive loop; EOFError after the last line."""

    def __init__(self, lines: list[str | BaseException]) -> None:
        self.lines = list(lines)
        self.messages: list[str] = []

    def prompt(self, message: str) -> str:
        self.messages.append(message)
        if not self.lines:
            raise EOFError
        line = self.lines.pop(0)
        if isinstance(line, BaseException):
            raise line
        return line


class TtyStringIO(io.StringIO):
    def isatty(self) -> bool:
        return True


class FakeConnector:
    """Connector that records the configuration it saw and hands out fake connections."""

    def __init__(self, driver: FakeDriver | None = None, error: Exception | None = None) -> None:
        self.driver = driver or FakeDriver()
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def __call__(
        self,
        address: str,
        config: SessionConfig,
        callbacks: ConnectionCallbacks,
    ) -> Connection:
        self.calls.append(
            {
                "address": address,
                "username": config.username,
                "password": config.password,
                "callbacks": callbacks,
                "config": config,
            },
        )
        if self.error is not None:
            raise self.error
        return Connection(
            self.driver,
            parse_address(address),
            max_pipelined_requests=config.max_pipelined_requests,
            username=config.username,
        )


@pytest.fixture()
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(history_file=None, known_hosts_file=tmp_path / "known_hosts")


@pytest.fixture()
def make_state(fake_driver: FakeDriver):
    """Build a ShellState writing to StringIO streams, optionally connected."""

    def _make(
        *,
        connected: bool = True,
        stdin: str = "",
        config: SessionConfig | None = None,
    ) -> ShellState:
        config = config or SessionConfig()
        state = ShellState(
            prog_name="neo4j-client",
            config=config,
            inp=io.StringIO(stdin),
            out=io.StringIO(),
            err=io.StringIO(),
            connector=FakeConnector(fake_driver),
        )
        if connected:
            state.attach(
                Connection(
                    fake_driver,
                    parse_address("localhost"),
                    max_pipelined_requests=config.max_pipelined_requests,
                ),
            )
        return state

    return _make
