"""Explicit shell context passed to the dispatcher and every reader."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

from neo4j_client.client.callbacks import ConnectionCallbacks
from neo4j_client.client.connection import Connection
from neo4j_client.config import SessionConfig
from neo4j_client.errors import ExecutionError, ResourceError
from neo4j_client.shell.render import RENDERERS, RenderFlag, Renderer, render_csv
from neo4j_client.shell.terminal import Terminal, echo_error

logger = logging.getLogger(__name__)

STDIO_PATH = "-"

Connector = Callable[[str, SessionConfig, ConnectionCallbacks], Connection]


@dataclass(slots=True)
class ShellState:
    """Everything a reader needs: config, streams, connection and render target.

    Owns the connection and any redirected output stream; :meth:`close`
    releases both exactly once.
    """

    prog_name: str
    config: SessionConfig
    inp: TextIO = field(default_factory=lambda: sys.stdin)
    out: TextIO = field(default_factory=lambda: sys.stdout)
    err: TextIO = field(default_factory=lambda: sys.stderr)
    terminal: Terminal | None = None
    callbacks: ConnectionCallbacks = field(default_factory=ConnectionCallbacks)
    connector: Connector | None = None
    connection: Connection | None = None
    render: Renderer = render_csv
    render_flags: RenderFlag = RenderFlag.NONE
    infile: str = "<stdin>"
    source_depth: int = 0
    parameters: dict[str, Any] = field(default_factory=dict)
    error_count: int = 0
    outfile: str | None = None
    _redirect: TextIO | None = None
    _stdout: TextIO | None = None
    _closed: bool = False

    @property
    def connected(self) -> bool:
        return self.connection is not None and not self.connection.closed

    @property
    def format_name(self) -> str:
        for name, renderer in RENDERERS.items():
            if renderer is self.render:
                return name
        return getattr(self.render, "__name__", "custom")

    def print_error(self, message: str, *, location: str | None = None) -> None:
        text = f"{location}: {message}" if location else message
        self.error_count += 1
        echo_error(self.err, text, colorize=self.config.colorize)

    def echo(self, text: str) -> None:
        self.out.write(f"{text}\n")
        self.out.flush()

    def redirect_output(self, path: str) -> None:
        """Send subsequent rendering to `path` (`-` restores standard output).

        The previous redirect is closed before the new file is opened.
        """

        self._close_redirect()
        if path == STDIO_PATH:
            return
        try:
            stream = Path(path).expanduser().open("w", encoding="utf-8", newline="")
        except OSError as error:
            raise ExecutionError(
                f"Unable to open output file '{path}': {error.strerror or error}",
            ) from error
        self._stdout = self.out
        self._redirect = stream
        self.out = stream
        self.outfile = path
        logger.debug("Redirected output to %s", path)

    def attach(self, connection: Connection) -> None:
        if self.connected:
            raise ExecutionError("Already connected; use :disconnect first")
        self.connection = connection

    def disconnect(self) -> None:
        connection, self.connection = self.connection, None
        if connection is not None:
            connection.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._close_redirect()
        finally:
            self.disconnect()

    def __enter__(self) -> ShellState:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _close_redirect(self) -> None:
        stream, self._redirect = self._redirect, None
        if stream is None:
            return
        if self._stdout is not None:
            self.out = self._stdout
            self._stdout = None
        self.outfile = None
        try:
            stream.close()
        except OSError as error:
            raise ResourceError(f"Unable to close output file: {error}") from error
