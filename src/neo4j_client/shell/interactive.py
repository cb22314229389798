"""Interactive prompt with persistent history."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, History, InMemoryHistory

from neo4j_client import __version__
from neo4j_client.errors import ExecutionError
from neo4j_client.shell.directives import Directive, DirectiveKind, DirectiveSplitter
from neo4j_client.shell.evaluate import Outcome, render_query, run_command, submit_query
from neo4j_client.shell.state import ShellState

logger = logging.getLogger(__name__)

PROMPT = "neo4j> "
CONTINUATION_PROMPT = "...> "


class LinePrompt(Protocol):
    """Anything that reads one line for a prompt string."""

    def prompt(self, message: str) -> str:
        """Return the entered line; raise EOFError at end of input."""


PromptFactory = Callable[[Path | None], LinePrompt]


def prompt_session(history_file: Path | None) -> LinePrompt:
    return PromptSession(history=_history(history_file))


def interact(state: ShellState, *, prompt_factory: PromptFactory = prompt_session) -> Outcome:
    """Read-evaluate loop until EOF or `:quit`; failed directives do not end it."""

    state.infile = "<interactive>"
    state.source_depth = 1
    reader = prompt_factory(state.config.history_file)
    splitter = DirectiveSplitter()

    state.echo(f"{state.prog_name} {__version__}.")
    state.echo("Enter `:help` for usage hints.")
    if state.connected:
        run_command(state, Directive(kind=DirectiveKind.COMMAND, text=":status", line=0))

    while True:
        try:
            line = reader.prompt(CONTINUATION_PROMPT if splitter.pending else PROMPT)
        except KeyboardInterrupt:
            splitter.discard()
            continue
        except EOFError:
            return Outcome.CONTINUE
        for directive in splitter.feed(f"{line}\n"):
            if _evaluate(state, directive) is Outcome.EXIT:
                return Outcome.CONTINUE


def _evaluate(state: ShellState, directive: Directive) -> Outcome:
    try:
        if directive.kind is DirectiveKind.COMMAND:
            return run_command(state, directive)
        render_query(state, submit_query(state, directive))
    except ExecutionError as error:
        state.print_error(error.message)
        return Outcome.FAILED
    return Outcome.CONTINUE


def _history(history_file: Path | None) -> History:
    if history_file is None:
        return InMemoryHistory()
    try:
        history_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        logger.warning("History disabled, cannot create %s: %s", history_file.parent, error)
        return InMemoryHistory()
    return FileHistory(str(history_file))
