# src/broker/registry.py
"""Pending request registry: one map per request kind, ID -> entry.

Every method is synchronous. Lookup and removal of an entry happen with no
suspension point in between, so a settle racing a drain on the same event
loop can never settle an entry twice.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from inspectorbroker.core.errors import ConnectionClosed
from inspectorbroker.core.models import RequestKind

logger = logging.getLogger(__name__)


@dataclass
class PendingRequestEntry:
    """Resolve/reject pair for one suspended request."""

    future: asyncio.Future

    def resolve(self, value: Any) -> None:
        if not self.future.done():
            self.future.set_result(value)

    def reject(self, reason: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(reason)


class PendingRequestRegistry:
    """Tracks unsettled completion and elicitation requests by ID."""

    def __init__(self) -> None:
        self._entries: dict[RequestKind, dict[str, PendingRequestEntry]] = {
            kind: {} for kind in RequestKind
        }

    def register(self, kind: RequestKind, request_id: str, entry: PendingRequestEntry) -> None:
        """Insert an entry. IDs must be unique per kind."""
        entries = self._entries[kind]
        if request_id in entries:
            raise ValueError(f"Duplicate pending {kind.value} request ID: {request_id}")
        entries[request_id] = entry

    def open(self, kind: RequestKind, request_id: str) -> asyncio.Future:
        """Create a future on the running loop and register it under ``request_id``."""
        future = asyncio.get_running_loop().create_future()
        self.register(kind, request_id, PendingRequestEntry(future))
        return future

    def settle(self, kind: RequestKind, request_id: str, value: Any) -> bool:
        """Resolve and remove an entry. Unknown IDs are logged and ignored."""
        entry = self._entries[kind].pop(request_id, None)
        if entry is None:
            logger.warning("No resolver found for %s request: %s", kind.value, request_id)
            return False
        entry.resolve(value)
        return True

    def fail(self, kind: RequestKind, request_id: str, reason: BaseException) -> bool:
        """Reject and remove an entry. Unknown IDs are logged and ignored."""
        entry = self._entries[kind].pop(request_id, None)
        if entry is None:
            logger.warning("No resolver found for %s request: %s", kind.value, request_id)
            return False
        entry.reject(reason)
        return True

    def discard(self, kind: RequestKind, request_id: str) -> None:
        """Drop an entry without settling it (handler cleanup)."""
        self._entries[kind].pop(request_id, None)

    def drain_all(self, reason: BaseException | None = None) -> int:
        """Reject every pending entry in both maps and empty them.

        Returns:
            Number of entries rejected. A second call returns 0.
        """
        reason = reason if reason is not None else ConnectionClosed()
        drained = 0
        for kind, entries in self._entries.items():
            pending = list(entries.items())
            entries.clear()
            for request_id, entry in pending:
                logger.debug("Draining %s request %s: %s", kind.value, request_id, reason)
                entry.reject(reason)
                drained += 1
        if drained:
            logger.info("Drained %d pending request(s): %s", drained, reason)
        return drained

    def pending_ids(self, kind: RequestKind) -> list[str]:
        return list(self._entries[kind])

    def has_pending(self, kind: RequestKind) -> bool:
        return bool(self._entries[kind])

    def __contains__(self, item: tuple[RequestKind, str]) -> bool:
        kind, request_id = item
        return request_id in self._entries[kind]

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())
