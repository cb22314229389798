"""Logger provider bound to the shell's error stream."""

from __future__ import annotations

import logging
from typing import TextIO

LOGGER_NAMES = ("neo4j_client", "neo4j")
_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)
_PLAIN_FORMAT = "%(message)s"
_DEBUG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def level_for_verbosity(verbosity: int) -> int:
    return _VERBOSITY_LEVELS[min(max(verbosity, 0), len(_VERBOSITY_LEVELS) - 1)]


class LoggerProvider:
    """Attaches one stream handler to the shell and driver loggers.

    Freed exactly once: :meth:`close` detaches and closes the handler, and
    repeated calls do nothing.
    """

    def __init__(self, stream: TextIO, *, verbosity: int = 0) -> None:
        self.level = level_for_verbosity(verbosity)
        self._handler: logging.Handler | None = logging.StreamHandler(stream)
        self._handler.setLevel(self.level)
        self._handler.setFormatter(
            logging.Formatter(_DEBUG_FORMAT if self.level <= logging.DEBUG else _PLAIN_FORMAT),
        )
        self._saved_levels: dict[str, int] = {}
        for name in LOGGER_NAMES:
            target = logging.getLogger(name)
            self._saved_levels[name] = target.level
            target.setLevel(self.level)
            target.addHandler(self._handler)

    @property
    def closed(self) -> bool:
        return self._handler is None

    def close(self) -> None:
        if self._handler is None:
            return
        handler, self._handler = self._handler, None
        for name in LOGGER_NAMES:
            target = logging.getLogger(name)
            target.removeHandler(handler)
            target.setLevel(self._saved_levels.get(name, logging.NOTSET))
        handler.close()

    def __enter__(self) -> LoggerProvider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
