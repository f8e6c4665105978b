"""Session authentication state shared between the dispatcher and the status endpoint."""

from __future__ import annotations

import enum


class SessionStatus(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AWAITING_SCAN = "awaiting_scan"
    READY = "ready"


class SessionState:
    """Single-writer / multi-reader cell for the session status and latest token.

    Only the event dispatcher writes; HTTP handlers read through the accessors.
    Last write wins.
    """

    def __init__(self) -> None:
        self._status = SessionStatus.UNAUTHENTICATED
        self._token: str | None = None

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def current_token(self) -> str | None:
        """Latest session token, present only while awaiting a scan."""
        return self._token

    def issue_token(self, token: str) -> None:
        """Replace any previously issued token."""
        self._token = token
        self._status = SessionStatus.AWAITING_SCAN

    def mark_ready(self) -> None:
        self._token = None
        self._status = SessionStatus.READY
