"""Non-interactive readers: batch input and (nested) source files."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from pathlib import Path

from neo4j_client.client.connection import PendingQuery
from neo4j_client.errors import ExecutionError, SourceDepthExceeded
from neo4j_client.shell.directives import Directive, DirectiveKind, iter_directives
from neo4j_client.shell.evaluate import Outcome, location, render_query, run_command, submit_query
from neo4j_client.shell.state import STDIO_PATH, ShellState

logger = logging.getLogger(__name__)


def batch(state: ShellState, lines: Iterable[str]) -> Outcome:
    """Evaluate directives from a stream, keeping up to pipeline-max queries in flight."""

    inflight: deque[tuple[Directive, PendingQuery]] = deque()
    try:
        for directive in iter_directives(lines):
            if directive.kind is DirectiveKind.QUERY:
                try:
                    inflight.append((directive, submit_query(state, directive)))
                except ExecutionError as error:
                    state.print_error(error.message, location=location(state, directive))
                    return Outcome.FAILED
                if len(inflight) >= state.config.pipeline_max and not _render_oldest(
                    state,
                    inflight,
                ):
                    return Outcome.FAILED
                continue

            if not _render_all(state, inflight):
                return Outcome.FAILED
            try:
                outcome = run_command(state, directive)
            except ExecutionError as error:
                state.print_error(error.message, location=location(state, directive))
                return Outcome.FAILED
            if outcome is not Outcome.CONTINUE:
                return outcome
    except UnicodeDecodeError as error:
        inflight.clear()
        state.print_error(f"Unable to decode input: {error.reason}", location=state.infile)
        return Outcome.FAILED

    return Outcome.CONTINUE if _render_all(state, inflight) else Outcome.FAILED


def source(state: ShellState, path: str) -> Outcome:
    """Read directives from `path` one inclusion level deeper than the caller.

    Raises SourceDepthExceeded before opening the file when the new depth
    would pass the configured limit.
    """

    depth = state.source_depth + 1
    limit = state.config.source_max_depth
    if depth > limit:
        raise SourceDepthExceeded(
            f"Source depth exceeded (max {limit}) including '{path}'",
            depth=depth,
            max_depth=limit,
        )

    saved_infile, saved_depth = state.infile, state.source_depth
    state.infile, state.source_depth = path, depth
    logger.debug("Sourcing %s at depth %d", path, depth)
    try:
        if path == STDIO_PATH:
            state.infile = "<stdin>"
            return batch(state, state.inp)
        try:
            stream = Path(path).expanduser().open(encoding="utf-8")
        except OSError as error:
            raise ExecutionError(
                f"Unable to open source file '{path}': {error.strerror or error}",
            ) from error
        with stream:
            return batch(state, stream)
    finally:
        state.infile, state.source_depth = saved_infile, saved_depth


def read_stdin(state: ShellState) -> Outcome:
    state.infile = "<stdin>"
    state.source_depth = 1
    return batch(state, state.inp)


def _render_oldest(state: ShellState, inflight: deque[tuple[Directive, PendingQuery]]) -> bool:
    directive, pending = inflight.popleft()
    try:
        render_query(state, pending)
    except ExecutionError as error:
        state.print_error(error.message, location=location(state, directive))
        inflight.clear()
        return False
    return True


def _render_all(state: ShellState, inflight: deque[tuple[Directive, PendingQuery]]) -> bool:
    while inflight:
        if not _render_oldest(state, inflight):
            return False
    return True
