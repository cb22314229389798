"""Known-hosts based verification of server TLS certificates."""

from __future__ import annotations

import hashlib
import logging
import ssl
from collections.abc import Callable
from pathlib import Path

from neo4j_client.client.callbacks import (
    HostMismatch,
    HostTrust,
    UnverifiedHost,
    UnverifiedHostHandler,
)
from neo4j_client.errors import DatabaseConnectionError

logger = logging.getLogger(__name__)

FingerprintFetcher = Callable[[str, int], str]


def fetch_fingerprint(host: str, port: int, timeout: float = 10.0) -> str:
    """SHA-512 hex digest of the DER certificate the server presents."""

    try:
        pem = ssl.get_server_certificate((host, port), timeout=timeout)
    except OSError as error:
        raise DatabaseConnectionError(
            f"Could not retrieve TLS certificate from {host}:{port}: {error}",
        ) from error
    return hashlib.sha512(ssl.PEM_cert_to_DER_cert(pem)).hexdigest()


class KnownHosts:
    """`host:port fingerprint` lines; later lines win over earlier ones."""

    def __init__(self, path: Path | None) -> None:
        self.path = path

    def lookup(self, host_key: str) -> str | None:
        return self._load().get(host_key)

    def remember(self, host_key: str, fingerprint: str) -> None:
        if self.path is None:
            return
        entries = self._load()
        entries[host_key] = fingerprint
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                "".join(f"{key} {value}\n" for key, value in entries.items()),
                encoding="utf-8",
            )
        except OSError as error:
            raise DatabaseConnectionError(
                f"Unable to update known hosts {self.path}: {error.strerror or error}",
            ) from error
        logger.info("Added %s to known hosts %s", host_key, self.path)

    def _load(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as error:
            raise DatabaseConnectionError(
                f"Unable to read known hosts {self.path}: {error.strerror or error}",
            ) from error
        except UnicodeDecodeError as error:
            raise DatabaseConnectionError(
                f"Unable to read known hosts {self.path}: {error.reason}",
            ) from error
        entries: dict[str, str] = {}
        for line in text.splitlines():
            token = line.strip()
            if not token or token.startswith("#"):
                continue
            parts = token.split()
            if len(parts) != 2:
                logger.warning("Ignoring malformed known hosts line in %s: %r", self.path, line)
                continue
            entries[parts[0]] = parts[1].lower()
        return entries


class HostVerifier:
    """Checks a host against known hosts and defers unknown hosts to the operator."""

    def __init__(
        self,
        known_hosts: KnownHosts,
        handler: UnverifiedHostHandler | None,
        *,
        fingerprint_fetcher: FingerprintFetcher = fetch_fingerprint,
    ) -> None:
        self.known_hosts = known_hosts
        self.handler = handler
        self._fetch = fingerprint_fetcher

    def verify(self, host: str, port: int) -> None:
        host_key = f"{host}:{port}"
        fingerprint = self._fetch(host, port).lower()
        known = self.known_hosts.lookup(host_key)
        if known == fingerprint:
            logger.debug("Host %s matches known hosts", host_key)
            return

        reason = HostMismatch.UNKNOWN if known is None else HostMismatch.CHANGED
        if self.handler is None:
            raise DatabaseConnectionError(
                f"Host {host_key} could not be verified ({reason.value} fingerprint)",
            )
        decision = self.handler(
            UnverifiedHost(
                host=host_key,
                fingerprint=fingerprint,
                reason=reason,
                known_hosts_file=str(self.known_hosts.path) if self.known_hosts.path else None,
            ),
        )
        if decision is HostTrust.REJECT:
            raise DatabaseConnectionError(f"Host {host_key} was not trusted")
        if decision is HostTrust.TRUST:
            self.known_hosts.remember(host_key, fingerprint)
