"""Correlation IDs tying together the log lines of one request or engine event.

HTTP requests reuse an incoming X-Correlation-ID; engine events get a fresh
one. Relay tasks spawned while a scope is active inherit its id.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

CORRELATION_ID_HEADER = "X-Correlation-ID"

_current: ContextVar[str] = ContextVar("gusteau_correlation_id", default="")


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def get_correlation_id() -> str:
    """Correlation ID of the active scope, or "" outside any scope."""
    return _current.get()


def set_correlation_id(cid: str) -> Token[str]:
    return _current.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    _current.reset(token)


@contextmanager
def correlation_scope(cid: str | None = None) -> Iterator[str]:
    """Bind a correlation ID (generated when not given) for the enclosed block."""
    cid = cid or generate_correlation_id()
    token = _current.set(cid)
    try:
        yield cid
    finally:
        _current.reset(token)
