# src/logging/context.py
"""Contextual logging support: attach request_id, kind and parent to log records.

Each inbound request handler runs in its own asyncio task, so context
variables set by one handler never leak into a concurrently pending one.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_request_kind: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_kind", default=None
)
_parent_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "parent_request_id", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    request_kind: str | None = None
    parent_request_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        request_kind=_request_kind.get(),
        parent_request_id=_parent_request_id.get(),
    )


@contextmanager
def request_context(
    request_kind: str, request_id: str, parent_request_id: str | None = None
) -> Iterator[None]:
    """Bind request fields for the duration of one inbound request."""
    tokens = (
        _request_kind.set(request_kind),
        _request_id.set(request_id),
        _parent_request_id.set(parent_request_id),
    )
    try:
        yield
    finally:
        _parent_request_id.reset(tokens[2])
        _request_id.reset(tokens[1])
        _request_kind.reset(tokens[0])


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _request_kind.set(None)
    _parent_request_id.set(None)
