# src/core/errors.py
"""Broker error taxonomy.

Failures that settle a pending request are raised into the handler awaiting
it; the transport turns anything escaping a handler into a protocol error.
Elicitation handlers map UserRejected/UserDeclined to a ``decline`` result and
every other BrokerError to ``cancel``.
"""

from __future__ import annotations


class BrokerError(Exception):
    """Base class for all broker errors."""


class AutoDenied(BrokerError):
    """Approval mode is ``deny``; the request was refused without asking."""

    def __init__(self, kind: str, request_id: str):
        self.kind = kind
        self.request_id = request_id
        super().__init__(f"{kind.capitalize()} requests are disabled (request {request_id})")


class ConnectionClosed(BrokerError):
    """Session torn down while the request was still pending."""

    def __init__(self, message: str = "Connection closed"):
        super().__init__(message)


class UserRejected(BrokerError):
    """A human explicitly refused a completion request."""

    def __init__(self, message: str = "Sampling request rejected by user"):
        super().__init__(message)


class UserDeclined(UserRejected):
    """A human explicitly declined an elicitation request."""

    def __init__(self, message: str = "Elicitation request declined by user"):
        super().__init__(message)


class RequestCancelled(BrokerError):
    """The peer cancelled a specific in-flight request."""

    def __init__(self, request_id: str, reason: str | None = None):
        self.request_id = request_id
        self.reason = reason
        msg = f"Request {request_id} cancelled"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ProfileNotFoundError(BrokerError):
    """Testing profile lookup by ID failed."""

    def __init__(self, profile_id: str):
        self.profile_id = profile_id
        super().__init__(f"Testing profile not found: {profile_id}")
