"""Ordered queue of --source/--output file requests."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from neo4j_client.errors import ConfigurationError

MAX_FILE_REQUESTS = 128


class FileRequestKind(str, Enum):
    """What a queued file request does."""

    SOURCE = "source"
    OUTPUT = "output"


@dataclass(frozen=True, slots=True)
class FileRequest:
    """One queued file request; queue position is execution order."""

    path: str
    kind: FileRequestKind


@dataclass(slots=True)
class FileRequestQueue:
    """Bounded, insertion-ordered sequence of file requests.

    Overflowing the queue is a configuration error, never a silent truncation.
    """

    capacity: int = MAX_FILE_REQUESTS
    _requests: list[FileRequest] = field(default_factory=list)

    def add_source(self, path: str) -> None:
        self._append(FileRequest(path=path, kind=FileRequestKind.SOURCE))

    def add_output(self, path: str) -> None:
        self._append(FileRequest(path=path, kind=FileRequestKind.OUTPUT))

    def validate(self) -> None:
        """Reject a queue whose final entry redirects output with nothing to read."""

        if self._requests and self._requests[-1].kind is not FileRequestKind.SOURCE:
            raise ConfigurationError("--output/-o must be followed by --source/-i")

    def __iter__(self) -> Iterator[FileRequest]:
        return iter(tuple(self._requests))

    def __len__(self) -> int:
        return len(self._requests)

    def __bool__(self) -> bool:
        return bool(self._requests)

    def _append(self, request: FileRequest) -> None:
        if len(self._requests) >= self.capacity:
            raise ConfigurationError("Too many --source and/or --output args")
        self._requests.append(request)
