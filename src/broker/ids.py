# src/broker/ids.py
"""Request ID generation for pending inbound requests.

IDs look like ``completion-1760750000000-7``. The trailing counter is shared
by every kind and only ever grows, so IDs stay unique within a process even
when many requests arrive in the same millisecond. They are not meant to be
unique across processes.
"""

from __future__ import annotations

import itertools
import time
from typing import Callable

from inspectorbroker.core.models import RequestKind


class RequestIdGenerator:
    """Produce ``<kind>-<epoch ms>-<counter>`` identifiers."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._counter = itertools.count(1)

    def next(self, kind: RequestKind | str) -> str:
        prefix = kind.value if isinstance(kind, RequestKind) else str(kind)
        millis = int(self._clock() * 1000)
        return f"{prefix}-{millis}-{next(self._counter)}"
