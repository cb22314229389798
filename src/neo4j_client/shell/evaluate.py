"""Directive evaluation: queries go to the connection, `:` commands run locally."""

from __future__ import annotations

import json
import logging
import shlex
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from neo4j_client.client.connection import PendingQuery
from neo4j_client.errors import ExecutionError, ShellError, SourceDepthExceeded
from neo4j_client.shell.directives import Directive
from neo4j_client.shell.render import RENDERERS
from neo4j_client.shell.state import ShellState

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """How a reader proceeds after a directive."""

    CONTINUE = "continue"
    FAILED = "failed"
    EXIT = "exit"


CommandHandler = Callable[[ShellState, list[str], Directive], Outcome]


@dataclass(slots=True)
class ShellCommandSpec:
    """A `:` command and its help line."""

    name: str
    usage: str
    description: str
    handler: CommandHandler


def location(state: ShellState, directive: Directive) -> str:
    return f"{state.infile}:{directive.line}"


def submit_query(state: ShellState, directive: Directive) -> PendingQuery:
    if state.connection is None or state.connection.closed:
        raise ExecutionError("Not connected")
    logger.debug("Submitting query from %s", location(state, directive))
    return state.connection.submit(directive.text, state.parameters)


def render_query(state: ShellState, pending: PendingQuery) -> None:
    state.render(pending.result(), state.out, state.render_flags)


def run_command(state: ShellState, directive: Directive) -> Outcome:
    """Run one `:` command; ExecutionError propagates to the reader."""

    try:
        words = shlex.split(directive.text[1:])
    except ValueError as error:
        raise ExecutionError(f"Invalid command: {error}") from error
    if not words:
        raise ExecutionError("Missing command name after ':'")
    name, args = words[0].lower(), words[1:]
    spec = COMMANDS.get(name)
    if spec is None:
        raise ExecutionError(f"Unknown command ':{name}' (try :help)")
    return spec.handler(state, args, directive)


def _help(state: ShellState, _: list[str], __: Directive) -> Outcome:
    width = max(len(spec.usage) for spec in COMMANDS.values())
    for spec in COMMANDS.values():
        state.echo(f"{spec.usage.ljust(width)}  {spec.description}")
    return Outcome.CONTINUE


def _quit(_: ShellState, __: list[str], ___: Directive) -> Outcome:
    return Outcome.EXIT


def _connect(state: ShellState, args: list[str], _: Directive) -> Outcome:
    address = _single_argument(":connect", args)
    if state.connected:
        raise ExecutionError("Already connected; use :disconnect first")
    if state.connector is None:
        raise ExecutionError("Connecting is not available in this session")
    try:
        connection = state.connector(address, state.config, state.callbacks)
    except ShellError as error:
        raise ExecutionError(error.message) from error
    finally:
        state.config.clear_password()
    state.attach(connection)
    return Outcome.CONTINUE


def _disconnect(state: ShellState, _: list[str], __: Directive) -> Outcome:
    if not state.connected:
        raise ExecutionError("Not connected")
    state.disconnect()
    return Outcome.CONTINUE


def _status(state: ShellState, _: list[str], __: Directive) -> Outcome:
    if state.connection is not None and state.connected:
        address = state.connection.address
        user = state.connection.username
        prefix = f"{user}@" if user else ""
        state.echo(f"Connected to '{address.scheme}://{prefix}{address.display}'")
    else:
        state.echo("Not connected")
    return Outcome.CONTINUE


def _reset(state: ShellState, _: list[str], __: Directive) -> Outcome:
    if state.connection is None or not state.connected:
        raise ExecutionError("Not connected")
    state.connection.reset()
    return Outcome.CONTINUE


def _source(state: ShellState, args: list[str], directive: Directive) -> Outcome:
    from neo4j_client.shell.readers import source  # noqa: PLC0415

    path = _single_argument(":source", args)
    try:
        return source(state, path)
    except SourceDepthExceeded as error:
        # Local to this inclusion: the including reader keeps going.
        state.print_error(error.message, location=location(state, directive))
        return Outcome.CONTINUE


def _output(state: ShellState, args: list[str], _: Directive) -> Outcome:
    state.redirect_output(_single_argument(":output", args))
    return Outcome.CONTINUE


def _format(state: ShellState, args: list[str], _: Directive) -> Outcome:
    if not args:
        state.echo(f"Current format: {state.format_name}")
        return Outcome.CONTINUE
    name = _single_argument(":format", args).lower()
    try:
        state.render = RENDERERS[name]
    except KeyError as error:
        choices = ", ".join(sorted(RENDERERS))
        raise ExecutionError(f"Unknown format '{name}' (choose from {choices})") from error
    return Outcome.CONTINUE


def _set(state: ShellState, args: list[str], _: Directive) -> Outcome:
    if not args:
        raise ExecutionError(":set requires name=value")
    for assignment in args:
        name, sep, raw = assignment.partition("=")
        if not sep or not name:
            raise ExecutionError(f"Invalid parameter assignment '{assignment}'")
        try:
            state.parameters[name] = json.loads(raw)
        except json.JSONDecodeError as error:
            raise ExecutionError(f"Invalid value for parameter '{name}': {error.msg}") from error
    return Outcome.CONTINUE


def _unset(state: ShellState, args: list[str], _: Directive) -> Outcome:
    if not args:
        raise ExecutionError(":unset requires a parameter name")
    for name in args:
        state.parameters.pop(name, None)
    return Outcome.CONTINUE


def _export(state: ShellState, _: list[str], __: Directive) -> Outcome:
    for name, value in sorted(state.parameters.items()):
        state.echo(f"{name}={json.dumps(value)}")
    return Outcome.CONTINUE


def _single_argument(command: str, args: list[str]) -> str:
    if len(args) != 1:
        raise ExecutionError(f"{command} requires exactly one argument")
    return args[0]


_SPECS = (
    ShellCommandSpec("help", ":help", "Show this help.", _help),
    ShellCommandSpec("quit", ":quit", "Exit the shell.", _quit),
    ShellCommandSpec("exit", ":exit", "Exit the shell.", _quit),
    ShellCommandSpec("connect", ":connect <url>", "Connect to a database.", _connect),
    ShellCommandSpec("disconnect", ":disconnect", "Close the current connection.", _disconnect),
    ShellCommandSpec("status", ":status", "Show the connection status.", _status),
    ShellCommandSpec("reset", ":reset", "Discard pending results and reset the session.", _reset),
    ShellCommandSpec("source", ":source <file>", "Read directives from a file.", _source),
    ShellCommandSpec("output", ":output <file>", "Write rendered results to a file.", _output),
    ShellCommandSpec("format", ":format [table|csv]", "Set or show the output format.", _format),
    ShellCommandSpec("set", ":set name=<json> ...", "Set query parameters.", _set),
    ShellCommandSpec("unset", ":unset name ...", "Remove query parameters.", _unset),
    ShellCommandSpec("export", ":export", "List query parameters.", _export),
)

COMMANDS: dict[str, ShellCommandSpec] = {spec.name: spec for spec in _SPECS}
