"""Execution mode selection."""

from __future__ import annotations

from enum import Enum


class ExecutionMode(str, Enum):
    """The three mutually exclusive ways a session reads directives."""

    INTERACTIVE = "interactive"
    FILES = "files"
    BATCH = "batch"


def select_mode(
    *,
    stdin_is_tty: bool,
    has_file_requests: bool,
    non_interactive: bool,
) -> ExecutionMode:
    """Interactive iff tty, no file requests and not forced; files iff any requests."""

    if has_file_requests:
        return ExecutionMode.FILES
    if stdin_is_tty and not non_interactive:
        return ExecutionMode.INTERACTIVE
    return ExecutionMode.BATCH
