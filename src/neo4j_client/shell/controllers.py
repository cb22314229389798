"""Controller for the shell command: setup, mode dispatch and teardown."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import ExitStack
from dataclasses import dataclass
from typing import TextIO

from neo4j_client.client.connection import connect
from neo4j_client.config import Colorization, Settings
from neo4j_client.errors import ConfigurationError, ExecutionError, ShellError
from neo4j_client.shell.credentials import wire_callbacks
from neo4j_client.shell.evaluate import Outcome
from neo4j_client.shell.interactive import PromptFactory, interact, prompt_session
from neo4j_client.shell.logs import LoggerProvider
from neo4j_client.shell.modes import ExecutionMode, select_mode
from neo4j_client.shell.options import OptionValue, SessionConfigBuilder, SessionSetup
from neo4j_client.shell.readers import read_stdin, source
from neo4j_client.shell.render import RenderFlag, render_csv, render_table
from neo4j_client.shell.requests import FileRequestKind
from neo4j_client.shell.state import Connector, ShellState
from neo4j_client.shell.terminal import Terminal, echo_error, open_terminal

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ShellCommand:
    """CLI inputs for one shell run; options keep their command-line order."""

    prog_name: str
    address: str | None
    options: tuple[tuple[str, OptionValue], ...]
    stdin: TextIO
    stdout: TextIO
    stderr: TextIO


class ShellCliController:
    """Coordinates a shell session from parsed options to exit status."""

    def __init__(
        self,
        *,
        terminal_opener: Callable[[], Terminal | None] = open_terminal,
        connector: Connector = connect,
        prompt_factory: PromptFactory = prompt_session,
        settings_loader: Callable[[], Settings] = Settings.from_env,
    ) -> None:
        self.terminal_opener = terminal_opener
        self.connector = connector
        self.prompt_factory = prompt_factory
        self.settings_loader = settings_loader

    def run(self, command: ShellCommand) -> int:
        """Run the session and return the process exit status.

        Every resource acquired along the way is released in reverse order
        on all paths, including when option processing fails.
        """

        colorize = Colorization.AUTO
        try:
            with ExitStack() as stack:
                settings = self._load_settings()
                terminal = self.terminal_opener()
                if terminal is not None:
                    stack.callback(terminal.close)

                builder = SessionConfigBuilder(
                    settings,
                    stdin_is_tty=_isatty(command.stdin),
                    terminal=terminal,
                )
                try:
                    builder.apply_all(command.options)
                    setup = builder.build()
                finally:
                    colorize = builder.config.colorize
                    command.options = _without_password(command.options)

                stack.enter_context(
                    LoggerProvider(command.stderr, verbosity=setup.config.verbosity),
                )
                state = stack.enter_context(
                    ShellState(
                        prog_name=command.prog_name,
                        config=setup.config,
                        inp=command.stdin,
                        out=command.stdout,
                        err=command.stderr,
                        terminal=terminal,
                        callbacks=wire_callbacks(
                            terminal,
                            password_prompt=setup.config.password_prompt,
                        ),
                        connector=self.connector,
                    ),
                )
                self._connect(state, command.address)
                return self._dispatch(state, setup)
        except ShellError as error:
            echo_error(command.stderr, error.message, colorize=colorize)
            return 1

    def _load_settings(self) -> Settings:
        try:
            return self.settings_loader()
        except ValueError as error:
            raise ConfigurationError(str(error)) from error

    def _connect(self, state: ShellState, address: str | None) -> None:
        """Connect when an address was given; the password is dropped either way."""

        try:
            if address is not None:
                state.attach(self.connector(address, state.config, state.callbacks))
        finally:
            state.config.clear_password()

    def _dispatch(self, state: ShellState, setup: SessionSetup) -> int:
        mode = select_mode(
            stdin_is_tty=setup.stdin_is_tty,
            has_file_requests=bool(setup.requests),
            non_interactive=setup.non_interactive,
        )
        logger.debug("Running in %s mode", mode.value)

        if mode is ExecutionMode.INTERACTIVE:
            state.render = render_table
            state.render_flags = RenderFlag.SHOW_NULLS
            outcome = interact(state, prompt_factory=self.prompt_factory)
            return 1 if outcome is Outcome.FAILED else 0

        state.render = render_csv
        if mode is ExecutionMode.FILES:
            outcome = _process_requests(state, setup)
        else:
            outcome = read_stdin(state)
        if outcome is Outcome.FAILED or state.error_count > 0:
            return 1
        return 0


def _process_requests(state: ShellState, setup: SessionSetup) -> Outcome:
    """Handle file requests in command-line order; outputs redirect later sources."""

    for request in setup.requests:
        try:
            if request.kind is FileRequestKind.OUTPUT:
                state.redirect_output(request.path)
                continue
            outcome = source(state, request.path)
        except ExecutionError as error:
            state.print_error(error.message)
            return Outcome.FAILED
        if outcome is not Outcome.CONTINUE:
            return outcome
    return Outcome.CONTINUE


def _without_password(
    options: tuple[tuple[str, OptionValue], ...],
) -> tuple[tuple[str, OptionValue], ...]:
    return tuple((name, value) for name, value in options if name != "password")


def _isatty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError, OSError):
        return False
