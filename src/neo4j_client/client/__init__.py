"""Database connection layer built on the official neo4j driver."""

from neo4j_client.client.callbacks import (
    AuthenticationReattempt,
    ConnectionCallbacks,
    Credentials,
    HostMismatch,
    HostTrust,
    UnverifiedHost,
)
from neo4j_client.client.connection import Address, Connection, PendingQuery, connect, parse_address
from neo4j_client.client.results import QueryResult

__all__ = [
    "Address",
    "AuthenticationReattempt",
    "Connection",
    "ConnectionCallbacks",
    "Credentials",
    "HostMismatch",
    "HostTrust",
    "PendingQuery",
    "QueryResult",
    "UnverifiedHost",
    "connect",
    "parse_address",
]
