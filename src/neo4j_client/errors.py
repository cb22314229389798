"""Error taxonomy shared by the shell and the connection layer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ShellError(Exception):
    """Base shell error."""

    message: str
    code: str = "shell_error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class ConfigurationError(ShellError):
    """Bad option value, malformed file request queue or missing terminal."""

    code: str = "configuration_error"


@dataclass(slots=True)
class ResourceError(ShellError):
    """Terminal, logger or stream could not be acquired."""

    code: str = "resource_error"


@dataclass(slots=True)
class DatabaseConnectionError(ShellError):
    """Handshake, trust or authentication failure."""

    code: str = "connection_error"


@dataclass(slots=True)
class ExecutionError(ShellError):
    """A directive failed while reading interactive, batch or source input."""

    code: str = "execution_error"


@dataclass(slots=True)
class SourceDepthExceeded(ExecutionError):
    """Nested source inclusion went past the configured limit."""

    code: str = "source_depth_exceeded"
    depth: int = 0
    max_depth: int = 0
