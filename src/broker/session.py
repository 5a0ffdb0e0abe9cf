# src/broker/session.py
"""Inbound request broker for one client session.

A BrokerSession owns its pending request registry, ID generator and the two
dispatch policies. The transport calls ``handle_completion`` /
``handle_elicitation`` with wire params; the UI settles human-bound requests
by ID from an unrelated call site through ``settle_*`` / ``reject_*``.
Requests left unanswered stay pending until settled, cancelled or drained;
there is no timeout here.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol

from inspectorbroker.broker.converter import (
    DEFAULT_SERVER_NAME,
    to_completion_request,
    to_elicitation_request,
    to_wire_completion_result,
    to_wire_elicit_result,
)
from inspectorbroker.broker.ids import RequestIdGenerator
from inspectorbroker.broker.policy import CompletionPolicy, ElicitationPolicy
from inspectorbroker.broker.registry import PendingRequestRegistry
from inspectorbroker.core.errors import (
    AutoDenied,
    BrokerError,
    ConnectionClosed,
    RequestCancelled,
    UserDeclined,
    UserRejected,
)
from inspectorbroker.core.models import (
    CompletionRequest,
    CompletionResponse,
    ElicitationAction,
    ElicitationRequest,
    ElicitationResult,
    RequestKind,
)
from inspectorbroker.logging.context import request_context

logger = logging.getLogger(__name__)

COMPLETION_METHOD = "sampling/createMessage"
ELICITATION_METHOD = "elicitation/create"

WireHandler = Callable[[Mapping[str, Any]], Awaitable[dict[str, Any]]]


class RequestTransport(Protocol):
    """Anything that can route a peer request method to a handler."""

    def set_request_handler(self, method: str, handler: WireHandler) -> None: ...


@dataclass
class BrokerCallbacks:
    """Hooks towards the UI. Request hooks fire only when a human must answer."""

    on_completion_request: Callable[[str, CompletionRequest, str | None], None] | None = None
    on_elicitation_request: Callable[[str, ElicitationRequest, str | None], None] | None = None
    on_completion_cancelled: Callable[[str], None] | None = None
    on_elicitation_cancelled: Callable[[str], None] | None = None
    on_auto_approved: Callable[[str, Any, Any], None] | None = None
    on_auto_denied: Callable[[str, Any], None] | None = None


class BrokerSession:
    """Resolves peer-initiated completion and elicitation requests."""

    def __init__(
        self,
        callbacks: BrokerCallbacks | None = None,
        completion_policy: CompletionPolicy | None = None,
        elicitation_policy: ElicitationPolicy | None = None,
        server_name: str = DEFAULT_SERVER_NAME,
        registry: PendingRequestRegistry | None = None,
        id_generator: RequestIdGenerator | None = None,
    ) -> None:
        self.callbacks = callbacks or BrokerCallbacks()
        self.completion_policy = completion_policy or CompletionPolicy()
        self.elicitation_policy = elicitation_policy or ElicitationPolicy()
        self.server_name = server_name
        self.registry = registry or PendingRequestRegistry()
        self._ids = id_generator or RequestIdGenerator()

    # --- Transport side ---

    def attach(self, transport: RequestTransport, parent_request_id: str | None = None) -> None:
        """Register both inbound handlers on ``transport``.

        Args:
            transport: Protocol client exposing ``set_request_handler``.
            parent_request_id: Outbound call these requests are correlated with.
        """

        async def completion_handler(params: Mapping[str, Any]) -> dict[str, Any]:
            return await self.handle_completion(params, parent_request_id)

        async def elicitation_handler(params: Mapping[str, Any]) -> dict[str, Any]:
            return await self.handle_elicitation(params, parent_request_id)

        transport.set_request_handler(COMPLETION_METHOD, completion_handler)
        transport.set_request_handler(ELICITATION_METHOD, elicitation_handler)

    async def handle_completion(
        self, wire: Mapping[str, Any], parent_request_id: str | None = None
    ) -> dict[str, Any]:
        """Resolve one ``sampling/createMessage`` request.

        Raises:
            AutoDenied: Approval mode is ``deny``.
            BrokerError: The pending request was rejected, cancelled or drained.
        """
        kind = RequestKind.COMPLETION
        request_id = self._ids.next(kind)
        request = to_completion_request(wire)

        with request_context(kind.value, request_id, parent_request_id):
            logger.info("Completion request received: %s", request_id)
            decision = await self.completion_policy.decide(request)

            if decision.outcome == "deny":
                logger.info("Auto-denying completion request: %s", request_id)
                self._fire(self.callbacks.on_auto_denied, request_id, request)
                raise AutoDenied(kind.value, request_id)

            if decision.outcome == "auto":
                logger.info("Auto-responding via %s: %s", decision.source, request_id)
                self._fire(self.callbacks.on_auto_approved, request_id, request, decision.response)
                return to_wire_completion_result(decision.response)

            response = await self._await_human(kind, request_id, request, parent_request_id)
            logger.info("Completion response received: %s", request_id)
            return to_wire_completion_result(response)

    async def handle_elicitation(
        self, wire: Mapping[str, Any], parent_request_id: str | None = None
    ) -> dict[str, Any]:
        """Resolve one ``elicitation/create`` request.

        Never raises for refusals: a human decline maps to ``decline``, any
        other broker failure (cancel, disconnect) maps to ``cancel``.
        """
        kind = RequestKind.ELICITATION
        request_id = self._ids.next(kind)
        request = to_elicitation_request(wire, server_name=self.server_name)

        with request_context(kind.value, request_id, parent_request_id):
            logger.info("Elicitation request received: %s (%s)", request_id, request.mode)
            decision = await self.elicitation_policy.decide(request)

            if decision.outcome == "deny":
                logger.info("Auto-declining elicitation request: %s", request_id)
                self._fire(self.callbacks.on_auto_denied, request_id, request)
                return to_wire_elicit_result(None, "decline")

            if decision.outcome == "auto":
                logger.info("Auto-responding elicitation via %s: %s", decision.source, request_id)
                self._fire(self.callbacks.on_auto_approved, request_id, request, decision.response)
                return to_wire_elicit_result(decision.response.content, decision.response.action)

            try:
                result = await self._await_human(kind, request_id, request, parent_request_id)
            except UserRejected as exc:
                logger.info("Elicitation declined: %s (%s)", request_id, exc)
                return to_wire_elicit_result(None, "decline")
            except BrokerError as exc:
                logger.info("Elicitation cancelled: %s (%s)", request_id, exc)
                return to_wire_elicit_result(None, "cancel")

            logger.info("Elicitation response received: %s (%s)", request_id, result.action)
            return to_wire_elicit_result(result.content, result.action)

    async def _await_human(
        self,
        kind: RequestKind,
        request_id: str,
        request: Any,
        parent_request_id: str | None,
    ) -> Any:
        future = self.registry.open(kind, request_id)
        try:
            notify = (
                self.callbacks.on_completion_request
                if kind is RequestKind.COMPLETION
                else self.callbacks.on_elicitation_request
            )
            if notify is None:
                logger.warning(
                    "No UI callback for %s requests; %s waits for settlement by ID",
                    kind.value, request_id,
                )
            else:
                notify(request_id, request, parent_request_id)
            return await future
        except asyncio.CancelledError:
            logger.info("Handler for %s cancelled by transport", request_id)
            self._fire(self._cancelled_callback(kind), request_id)
            raise
        finally:
            self.registry.discard(kind, request_id)

    # --- UI side ---

    def settle_completion(self, request_id: str, response: CompletionResponse) -> bool:
        """Answer a pending completion request."""
        return self.registry.settle(RequestKind.COMPLETION, request_id, response)

    def reject_completion(self, request_id: str, reason: str | None = None) -> bool:
        """Refuse a pending completion request; the peer receives an error."""
        error = UserRejected(reason) if reason else UserRejected()
        return self.registry.fail(RequestKind.COMPLETION, request_id, error)

    def settle_elicitation(
        self,
        request_id: str,
        data: Mapping[str, Any] | None = None,
        action: ElicitationAction = "accept",
    ) -> bool:
        """Answer a pending elicitation request (``data`` is kept only on accept)."""
        result = ElicitationResult(
            action=action,
            content=dict(data or {}) if action == "accept" else None,
        )
        return self.registry.settle(RequestKind.ELICITATION, request_id, result)

    def reject_elicitation(self, request_id: str, reason: str | None = None) -> bool:
        """Decline a pending elicitation request; the peer receives ``decline``."""
        error = UserDeclined(reason) if reason else UserDeclined()
        return self.registry.fail(RequestKind.ELICITATION, request_id, error)

    def cancel_completion(self, request_id: str, reason: str | None = None) -> bool:
        """Peer cancelled a pending completion request."""
        return self._cancel(RequestKind.COMPLETION, request_id, reason)

    def cancel_elicitation(self, request_id: str, reason: str | None = None) -> bool:
        """Peer cancelled a pending elicitation request."""
        return self._cancel(RequestKind.ELICITATION, request_id, reason)

    def _cancel(self, kind: RequestKind, request_id: str, reason: str | None) -> bool:
        cancelled = self.registry.fail(kind, request_id, RequestCancelled(request_id, reason))
        if cancelled:
            self._fire(self._cancelled_callback(kind), request_id)
        return cancelled

    def drain_all(self, reason: str | BaseException | None = None) -> int:
        """Reject everything still pending, e.g. on disconnect.

        Returns:
            Number of requests rejected. Safe to call more than once.
        """
        if reason is None:
            error: BaseException = ConnectionClosed()
        elif isinstance(reason, BaseException):
            error = reason
        else:
            error = ConnectionClosed(reason)
        return self.registry.drain_all(error)

    def has_pending(self, kind: RequestKind) -> bool:
        return self.registry.has_pending(kind)

    def pending_ids(self, kind: RequestKind) -> list[str]:
        return self.registry.pending_ids(kind)

    # --- Helpers ---

    def _cancelled_callback(self, kind: RequestKind) -> Callable[[str], None] | None:
        if kind is RequestKind.COMPLETION:
            return self.callbacks.on_completion_cancelled
        return self.callbacks.on_elicitation_cancelled

    @staticmethod
    def _fire(callback: Callable[..., None] | None, *args: Any) -> None:
        """Invoke an optional hook. Errors raised by the hook are logged."""
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Broker callback %r failed", getattr(callback, "__name__", callback))
