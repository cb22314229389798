"""Runtime configuration for the shell session."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

DEFAULT_PIPELINE_MAX = 5
DEFAULT_SOURCE_MAX_DEPTH = 10
# One query is a RUN and a PULL message on the wire.
MESSAGES_PER_REQUEST = 2


class Colorization(str, Enum):
    """Policy for ANSI colors on the error stream."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"

    @property
    def click_color(self) -> bool | None:
        if self is Colorization.ALWAYS:
            return True
        if self is Colorization.NEVER:
            return False
        return None


@dataclass(slots=True)
class Settings:
    """Defaults resolved from the environment before options are applied."""

    history_file: Path | None = None
    known_hosts_file: Path | None = None
    pipeline_max: int = DEFAULT_PIPELINE_MAX
    source_max_depth: int = DEFAULT_SOURCE_MAX_DEPTH
    username: str | None = None

    @classmethod
    def from_env(cls) -> Settings:
        """Load defaults from environment, falling back to the ~/.neo4j directory."""

        dot_dir = Path.home() / ".neo4j"
        return cls(
            history_file=_history_file(dot_dir),
            known_hosts_file=Path(
                os.getenv("NEO4J_CLIENT_KNOWN_HOSTS", str(dot_dir / "known_hosts")),
            ).expanduser(),
            pipeline_max=_env_positive_int("NEO4J_CLIENT_PIPELINE_MAX", DEFAULT_PIPELINE_MAX),
            source_max_depth=_env_positive_int(
                "NEO4J_CLIENT_SOURCE_MAX_DEPTH",
                DEFAULT_SOURCE_MAX_DEPTH,
            ),
            username=os.getenv("NEO4J_CLIENT_USERNAME") or None,
        )

    def session_config(self, *, interactive: bool) -> SessionConfig:
        config = SessionConfig(
            username=self.username,
            known_hosts_file=self.known_hosts_file,
            source_max_depth=self.source_max_depth,
            history_file=self.history_file,
            interactive=interactive,
        )
        config.set_pipeline_max(self.pipeline_max)
        return config


@dataclass(slots=True)
class SessionConfig:
    """Connection and behavior settings accumulated from the command line.

    Mutated only while options are applied; the controller treats it as
    read-only afterwards, except for :meth:`clear_password`.
    """

    username: str | None = None
    password: str | None = None
    ca_file: Path | None = None
    ca_dir: Path | None = None
    insecure: bool = False
    known_hosts_file: Path | None = None
    trust_known_hosts: bool = True
    pipeline_max: int = DEFAULT_PIPELINE_MAX
    max_pipelined_requests: int = DEFAULT_PIPELINE_MAX * MESSAGES_PER_REQUEST
    source_max_depth: int = DEFAULT_SOURCE_MAX_DEPTH
    colorize: Colorization = Colorization.AUTO
    interactive: bool = False
    password_prompt: bool = False
    history_file: Path | None = None
    verbosity: int = 0

    def set_pipeline_max(self, value: int) -> None:
        """Set the user-facing request budget; the transport counts messages."""

        if value < 1:
            raise ValueError(f"pipeline-max must be >= 1, got {value!r}")
        self.pipeline_max = value
        self.max_pipelined_requests = value * MESSAGES_PER_REQUEST

    def set_source_max_depth(self, value: int) -> None:
        if value < 1:
            raise ValueError(f"source-max-depth must be >= 1, got {value!r}")
        self.source_max_depth = value

    def clear_password(self) -> None:
        self.password = None


def _history_file(dot_dir: Path) -> Path | None:
    raw = os.getenv("NEO4J_CLIENT_HISTORY_FILE")
    if raw is None:
        return dot_dir / "client-history"
    if not raw.strip():
        return None
    return Path(raw.strip()).expanduser()


def _env_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    return value
