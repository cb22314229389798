"""Capabilities the connection layer calls back into while connecting."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class HostTrust(str, Enum):
    """Operator decision about a host whose certificate could not be verified."""

    REJECT = "reject"
    TRUST = "trust"
    TRUST_ONCE = "trust_once"


class HostMismatch(str, Enum):
    """Why a host could not be trusted automatically."""

    UNKNOWN = "unknown"
    CHANGED = "changed"


@dataclass(slots=True)
class UnverifiedHost:
    """Details passed to the unverified-host handler."""

    host: str
    fingerprint: str
    reason: HostMismatch
    known_hosts_file: str | None = None


@dataclass(slots=True)
class Credentials:
    """Username/password pair; repr never shows the password."""

    username: str | None = None
    password: str | None = None

    def __repr__(self) -> str:
        masked = "***" if self.password else None
        return f"Credentials(username={self.username!r}, password={masked!r})"


@dataclass(slots=True)
class AuthenticationReattempt:
    """Details passed to the authentication-reattempt handler."""

    host: str
    attempt: int
    username: str | None
    error: str


class UnverifiedHostHandler(Protocol):
    """Decides whether to trust a host; blocks until answered."""

    def __call__(self, request: UnverifiedHost) -> HostTrust:
        """Return the trust decision for the host."""


class AuthenticationReattemptHandler(Protocol):
    """Supplies new credentials after a rejection, or None to stop retrying."""

    def __call__(self, request: AuthenticationReattempt) -> Credentials | None:
        """Return credentials for the next attempt."""


@dataclass(slots=True)
class ConnectionCallbacks:
    """Handlers wired into a connection attempt; either may be absent."""

    unverified_host: UnverifiedHostHandler | None = None
    authentication_reattempt: AuthenticationReattemptHandler | None = None
