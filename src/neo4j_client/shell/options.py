"""Session configuration builder: applies command-line options in order."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from neo4j_client.config import Colorization, SessionConfig, Settings
from neo4j_client.errors import ConfigurationError
from neo4j_client.shell.requests import FileRequestQueue
from neo4j_client.shell.terminal import Terminal

OptionValue = str | bool | int


@dataclass(slots=True)
class SessionSetup:
    """Result of argument processing: configuration plus the file request queue."""

    config: SessionConfig
    requests: FileRequestQueue
    stdin_is_tty: bool = False
    non_interactive: bool = False


class SessionConfigBuilder:
    """Consumes (option, value) pairs in command-line order.

    Each option is validated before it touches the configuration, so a bad
    value is never partially applied.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        stdin_is_tty: bool,
        terminal: Terminal | None,
    ) -> None:
        self.config = settings.session_config(interactive=stdin_is_tty)
        self.requests = FileRequestQueue()
        self.terminal = terminal
        self.stdin_is_tty = stdin_is_tty
        self.non_interactive = False
        self._handlers: dict[str, Callable[[OptionValue], None]] = {
            "history_file": self._history_file,
            "no_history": self._no_history,
            "ca_file": self._ca_file,
            "ca_directory": self._ca_directory,
            "colorize": self._colorize,
            "no_colorize": self._no_colorize,
            "insecure": self._insecure,
            "non_interactive": self._non_interactive,
            "username": self._username,
            "password": self._password,
            "prompt_password": self._prompt_password,
            "known_hosts": self._known_hosts,
            "no_known_hosts": self._no_known_hosts,
            "pipeline_max": self._pipeline_max,
            "source_max_depth": self._source_max_depth,
            "source": self._source,
            "output": self._output,
            "verbose": self._verbose,
        }

    def apply(self, name: str, value: OptionValue) -> None:
        try:
            handler = self._handlers[name]
        except KeyError as error:
            raise ConfigurationError(f"Unknown option '{name}'") from error
        handler(value)

    def apply_all(self, options: Iterable[tuple[str, OptionValue]]) -> None:
        for name, value in options:
            self.apply(name, value)

    def build(self) -> SessionSetup:
        """Finish argument processing; fails before any network or file I/O."""

        self.requests.validate()
        if self.config.interactive:
            self.config.password_prompt = True
        return SessionSetup(
            config=self.config,
            requests=self.requests,
            stdin_is_tty=self.stdin_is_tty,
            non_interactive=self.non_interactive,
        )

    @property
    def terminal_available(self) -> bool:
        return self.terminal is not None and self.terminal.is_open

    def _history_file(self, value: OptionValue) -> None:
        raw = str(value)
        self.config.history_file = Path(raw).expanduser() if raw else None

    def _no_history(self, _: OptionValue) -> None:
        self.config.history_file = None

    def _ca_file(self, value: OptionValue) -> None:
        self.config.ca_file = Path(str(value)).expanduser()

    def _ca_directory(self, value: OptionValue) -> None:
        self.config.ca_dir = Path(str(value)).expanduser()

    def _colorize(self, _: OptionValue) -> None:
        self.config.colorize = Colorization.ALWAYS

    def _no_colorize(self, _: OptionValue) -> None:
        self.config.colorize = Colorization.NEVER

    def _insecure(self, _: OptionValue) -> None:
        self.config.insecure = True

    def _non_interactive(self, _: OptionValue) -> None:
        self.non_interactive = True
        self.config.interactive = False
        if self.terminal is not None:
            self.terminal.close()

    def _username(self, value: OptionValue) -> None:
        self.config.username = str(value)

    def _password(self, value: OptionValue) -> None:
        self.config.password = str(value)

    def _prompt_password(self, _: OptionValue) -> None:
        if not self.terminal_available:
            raise ConfigurationError("Cannot prompt for a password without a tty")
        self.config.password_prompt = True

    def _known_hosts(self, value: OptionValue) -> None:
        self.config.known_hosts_file = Path(str(value)).expanduser()

    def _no_known_hosts(self, _: OptionValue) -> None:
        self.config.trust_known_hosts = False

    def _pipeline_max(self, value: OptionValue) -> None:
        try:
            self.config.set_pipeline_max(int(value))
        except ValueError as error:
            raise ConfigurationError(f"Invalid pipeline-max '{value}'") from error

    def _source_max_depth(self, value: OptionValue) -> None:
        try:
            self.config.set_source_max_depth(int(value))
        except ValueError as error:
            raise ConfigurationError(f"Invalid source-max-depth '{value}'") from error

    def _source(self, value: OptionValue) -> None:
        self.config.interactive = False
        self.requests.add_source(str(value))

    def _output(self, value: OptionValue) -> None:
        self.requests.add_output(str(value))

    def _verbose(self, value: OptionValue) -> None:
        self.config.verbosity += int(value)
