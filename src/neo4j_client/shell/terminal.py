"""Controlling terminal handle and error stream helpers."""

from __future__ import annotations

import errno
import io
import logging
from typing import TextIO

import rich_click as click
from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_input
from prompt_toolkit.output import create_output

from neo4j_client.config import Colorization
from neo4j_client.errors import ResourceError

logger = logging.getLogger(__name__)

TTY_PATH = "/dev/tty"
# No device node, or a node with no controlling terminal behind it.
_ABSENT_TTY_ERRNOS = frozenset({errno.ENOENT, errno.ENXIO})


class Terminal:
    """Read/write handle on the controlling terminal, used for credential prompts."""

    def __init__(self, stream: TextIO, *, path: str = TTY_PATH) -> None:
        self.path = path
        self._stream: TextIO | None = stream

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def write(self, text: str) -> None:
        stream = self._require_stream()
        stream.write(text)
        stream.flush()

    def prompt(self, message: str, *, hidden: bool = False) -> str:
        """Block until the operator answers; hidden input is never echoed."""

        stream = self._require_stream()
        session: PromptSession[str] = PromptSession(
            input=create_input(stdin=stream),
            output=create_output(stdout=stream),
        )
        return session.prompt(message, is_password=hidden)

    def close(self) -> None:
        """Release the handle; later calls are no-ops."""

        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        stream.close()
        logger.debug("Closed terminal %s", self.path)

    def _require_stream(self) -> TextIO:
        if self._stream is None:
            raise ResourceError(f"terminal {self.path} is closed")
        return self._stream


def open_terminal(path: str = TTY_PATH) -> Terminal | None:
    """Open the controlling terminal, or return None when the process has none."""

    try:
        raw = io.FileIO(path, "r+")
    except OSError as error:
        if error.errno in _ABSENT_TTY_ERRNOS:
            logger.debug("No controlling terminal at %s", path)
            return None
        raise ResourceError(f"can't open {path}: {error.strerror or error}") from error
    stream = io.TextIOWrapper(raw, encoding="utf-8", line_buffering=True, write_through=True)
    return Terminal(stream, path=path)


def echo_error(stream: TextIO, message: str, *, colorize: Colorization) -> None:
    click.echo(click.style(message, fg="red"), file=stream, err=True, color=colorize.click_color)
