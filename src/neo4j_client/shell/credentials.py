"""Terminal-backed handlers for host trust and authentication reattempts."""

from __future__ import annotations

import logging

from neo4j_client.client.callbacks import (
    AuthenticationReattempt,
    ConnectionCallbacks,
    Credentials,
    HostMismatch,
    HostTrust,
    UnverifiedHost,
)
from neo4j_client.shell.terminal import Terminal

logger = logging.getLogger(__name__)

_CHANGED_WARNING = """\
@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@
@    WARNING: REMOTE HOST IDENTIFICATION HAS CHANGED!     @
@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@
IT IS POSSIBLE THAT SOMEONE IS DOING SOMETHING NASTY!
Someone could be eavesdropping on you right now (man-in-the-middle attack)!
It is also possible that the host's certificate has just been changed.
"""


class TerminalHostVerification:
    """Asks the operator whether to trust a host (NO/yes/once)."""

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal

    def __call__(self, request: UnverifiedHost) -> HostTrust:
        if request.reason is HostMismatch.CHANGED:
            self.terminal.write(_CHANGED_WARNING)
            if request.known_hosts_file:
                self.terminal.write(f"The stored fingerprint is in {request.known_hosts_file}.\n")
        else:
            self.terminal.write(
                f"The authenticity of host '{request.host}' could not be established.\n",
            )
        self.terminal.write(f"TLS certificate fingerprint is {request.fingerprint}.\n")
        try:
            answer = self.terminal.prompt("Would you like to trust this host (NO/yes/once)? ")
        except (EOFError, KeyboardInterrupt):
            return HostTrust.REJECT
        normalized = answer.strip().lower()
        if normalized == "yes":
            return HostTrust.TRUST
        if normalized == "once":
            return HostTrust.TRUST_ONCE
        return HostTrust.REJECT


class TerminalAuthenticationReattempt:
    """Re-prompts for username (when unknown) and password after a rejection."""

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal

    def __call__(self, request: AuthenticationReattempt) -> Credentials | None:
        if request.username is not None:
            self.terminal.write("Invalid username or password, please try again.\n")
        try:
            username = request.username or self.terminal.prompt("Username: ").strip()
            if not username:
                return None
            password = self.terminal.prompt("Password: ", hidden=True)
        except (EOFError, KeyboardInterrupt):
            return None
        logger.debug("Retrying authentication for %s (attempt %d)", username, request.attempt + 1)
        return Credentials(username=username, password=password)


def wire_callbacks(terminal: Terminal | None, *, password_prompt: bool) -> ConnectionCallbacks:
    """Handlers only exist with a terminal; reauthentication also needs password prompting."""

    if terminal is None or not terminal.is_open:
        return ConnectionCallbacks()
    return ConnectionCallbacks(
        unverified_host=TerminalHostVerification(terminal),
        authentication_reattempt=(
            TerminalAuthenticationReattempt(terminal) if password_prompt else None
        ),
    )
