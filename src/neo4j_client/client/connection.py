"""Single database connection: address parsing, handshake, pipelined queries."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

import neo4j
from neo4j import GraphDatabase, TrustAll, TrustCustomCAs, TrustSystemCAs, basic_auth
from neo4j.exceptions import AuthError, DriverError, Neo4jError

from neo4j_client.client.callbacks import (
    AuthenticationReattempt,
    ConnectionCallbacks,
    Credentials,
)
from neo4j_client.client.results import QueryResult
from neo4j_client.client.verification import (
    FingerprintFetcher,
    HostVerifier,
    KnownHosts,
    fetch_fingerprint,
)
from neo4j_client.config import MESSAGES_PER_REQUEST, SessionConfig
from neo4j_client.errors import ConfigurationError, DatabaseConnectionError, ExecutionError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 7687
MAX_AUTH_ATTEMPTS = 3
PLAIN_SCHEMES = frozenset({"bolt", "neo4j"})
# The driver negotiates TLS itself for these and rejects explicit trust settings.
DRIVER_TLS_SCHEMES = frozenset({"bolt+s", "bolt+ssc", "neo4j+s", "neo4j+ssc"})
CA_SUFFIXES = frozenset({".pem", ".crt", ".cer"})

DriverFactory = Callable[..., neo4j.Driver]


@dataclass(slots=True)
class Address:
    """Parsed `URL | host[:port]` argument."""

    scheme: str
    host: str
    port: int
    username: str | None = None
    password: str | None = None

    @property
    def uri(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}"

    @property
    def display(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def driver_managed_tls(self) -> bool:
        return self.scheme in DRIVER_TLS_SCHEMES


def parse_address(raw: str) -> Address:
    """Accept a bolt/neo4j URL or a bare `host[:port]`; bare hosts use bolt://."""

    text = raw.strip()
    if not text:
        raise ConfigurationError("Empty connection address")
    if "://" not in text:
        text = f"bolt://{text}"
    try:
        parsed = urlsplit(text)
        port = parsed.port
    except ValueError as error:
        raise ConfigurationError(f"Invalid connection address '{raw}': {error}") from error
    scheme = parsed.scheme.lower()
    if scheme not in PLAIN_SCHEMES | DRIVER_TLS_SCHEMES:
        raise ConfigurationError(f"Unsupported URL scheme '{parsed.scheme}' in '{raw}'")
    if not parsed.hostname:
        raise ConfigurationError(f"Invalid connection address '{raw}'")
    return Address(
        scheme=scheme,
        host=parsed.hostname,
        port=port or DEFAULT_PORT,
        username=unquote(parsed.username) if parsed.username else None,
        password=unquote(parsed.password) if parsed.password is not None else None,
    )


class PendingQuery:
    """A submitted query whose records may not have been read yet."""

    def __init__(
        self,
        query: str,
        result: neo4j.Result | None,
        error: Exception | None = None,
    ) -> None:
        self.query = query
        self._result = result
        self._error = error
        self._materialized: QueryResult | None = None

    @property
    def done(self) -> bool:
        return self._materialized is not None or self._error is not None

    def fetch(self) -> None:
        """Read all records from the server; failures are kept for :meth:`result`."""

        if self.done or self._result is None:
            return
        try:
            self._materialized = QueryResult.from_driver(self._result)
        except (Neo4jError, DriverError) as error:
            self._error = error
        finally:
            self._result = None

    def result(self) -> QueryResult:
        self.fetch()
        if self._error is not None:
            raise ExecutionError(_describe_error(self._error)) from self._error
        if self._materialized is None:
            raise ExecutionError("Query produced no result")
        return self._materialized


class Connection:
    """Owns the driver and one session; queries are submitted in order.

    At most ``max_pipelined_requests`` protocol messages are outstanding; the
    oldest pending query is drained before another is submitted past that
    budget.
    """

    def __init__(
        self,
        driver: neo4j.Driver,
        address: Address,
        *,
        max_pipelined_requests: int,
        username: str | None = None,
    ) -> None:
        self.driver = driver
        self.address = address
        self.username = username
        self.max_pipelined_requests = max_pipelined_requests
        self._session: neo4j.Session | None = driver.session()
        self._inflight: deque[PendingQuery] = deque()
        self._closed = False

    @property
    def max_inflight_queries(self) -> int:
        return max(1, self.max_pipelined_requests // MESSAGES_PER_REQUEST)

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, query: str, parameters: Mapping[str, Any] | None = None) -> PendingQuery:
        session = self._require_session()
        self._inflight = deque(pending for pending in self._inflight if not pending.done)
        while len(self._inflight) >= self.max_inflight_queries:
            self._inflight.popleft().fetch()
        try:
            pending = PendingQuery(query, session.run(query, dict(parameters or {})))
        except (Neo4jError, DriverError) as error:
            pending = PendingQuery(query, None, error)
        self._inflight.append(pending)
        return pending

    def drain(self) -> None:
        while self._inflight:
            self._inflight.popleft().fetch()

    def reset(self) -> None:
        """Discard outstanding results and start a fresh session."""

        self._inflight.clear()
        session = self._require_session()
        session.close()
        self._session = self.driver.session()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._inflight.clear()
        try:
            if self._session is not None:
                self._session.close()
        finally:
            self._session = None
            self.driver.close()
            logger.info("Disconnected from %s", self.address.display)

    def _require_session(self) -> neo4j.Session:
        if self._session is None:
            raise ExecutionError("Not connected")
        return self._session


def connect(
    raw_address: str,
    config: SessionConfig,
    callbacks: ConnectionCallbacks,
    *,
    driver_factory: DriverFactory = GraphDatabase.driver,
    fingerprint_fetcher: FingerprintFetcher = fetch_fingerprint,
) -> Connection:
    """Open the connection, re-prompting for credentials when the handler allows."""

    address = parse_address(raw_address)
    credentials = Credentials(
        username=config.username or address.username,
        password=config.password if config.password is not None else address.password,
    )
    options = _tls_options(address, config, callbacks, fingerprint_fetcher)

    attempt = 1
    while True:
        driver = driver_factory(address.uri, auth=_auth(credentials), **options)
        try:
            driver.verify_connectivity()
        except AuthError as error:
            driver.close()
            credentials = _reattempt(address, attempt, credentials, error, callbacks)
            attempt += 1
            continue
        except (Neo4jError, DriverError, OSError) as error:
            driver.close()
            raise DatabaseConnectionError(
                f"Could not connect to {address.display}: {_describe_error(error)}",
            ) from error
        logger.info("Connected to %s", address.display)
        return Connection(
            driver,
            address,
            max_pipelined_requests=config.max_pipelined_requests,
            username=credentials.username,
        )


def _reattempt(
    address: Address,
    attempt: int,
    credentials: Credentials,
    error: AuthError,
    callbacks: ConnectionCallbacks,
) -> Credentials:
    handler = callbacks.authentication_reattempt
    message = f"Authentication failed for {address.display}: {_describe_error(error)}"
    if handler is None or attempt >= MAX_AUTH_ATTEMPTS:
        raise DatabaseConnectionError(message) from error
    logger.debug("Authentication attempt %d rejected, asking for new credentials", attempt)
    updated = handler(
        AuthenticationReattempt(
            host=address.display,
            attempt=attempt,
            username=credentials.username,
            error=_describe_error(error),
        ),
    )
    if updated is None:
        raise DatabaseConnectionError(message) from error
    return updated


def _auth(credentials: Credentials) -> neo4j.Auth | None:
    if credentials.username is None:
        return None
    return basic_auth(credentials.username, credentials.password or "")


def _tls_options(
    address: Address,
    config: SessionConfig,
    callbacks: ConnectionCallbacks,
    fingerprint_fetcher: FingerprintFetcher,
) -> dict[str, Any]:
    if address.driver_managed_tls:
        return {}
    if config.insecure:
        return {"encrypted": False}
    ca_paths = _ca_paths(config.ca_file, config.ca_dir)
    if ca_paths:
        return {"encrypted": True, "trusted_certificates": TrustCustomCAs(*ca_paths)}
    if config.trust_known_hosts:
        verifier = HostVerifier(
            KnownHosts(config.known_hosts_file),
            callbacks.unverified_host,
            fingerprint_fetcher=fingerprint_fetcher,
        )
        verifier.verify(address.host, address.port)
        # The fingerprint was just pinned, so the chain itself is not checked.
        return {"encrypted": True, "trusted_certificates": TrustAll()}
    return {"encrypted": True, "trusted_certificates": TrustSystemCAs()}


def _ca_paths(ca_file: Path | None, ca_dir: Path | None) -> list[str]:
    paths: list[str] = []
    if ca_file is not None:
        paths.append(str(ca_file))
    if ca_dir is not None:
        try:
            entries = sorted(ca_dir.iterdir())
        except OSError as error:
            raise DatabaseConnectionError(
                f"Cannot read CA directory {ca_dir}: {error.strerror or error}",
            ) from error
        paths.extend(str(entry) for entry in entries if entry.suffix.lower() in CA_SUFFIXES)
    return paths


def _describe_error(error: BaseException) -> str:
    # Server failures carry a code and message; driver-side errors only their arguments.
    if isinstance(error, Neo4jError) and getattr(error, "code", None) and error.message:
        return str(error.message)
    return str(error)
