# src/broker/policy.py
"""Dispatch policy: deny, answer automatically, or hand over to a human.

Resolution order in ``auto`` mode:
  1. Caller-supplied responder (sync or async); a non-None answer wins.
  2. Testing profile, when it opts in for this request kind.
  3. Fall through to ``ask``. Auto mode never swallows a request.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Literal, TypeVar, Union

from inspectorbroker.core.models import (
    ApprovalMode,
    CompletionRequest,
    CompletionResponse,
    ElicitationRequest,
    ElicitationResult,
    RequestKind,
)
from inspectorbroker.profiles.matching import generate_profile_response
from inspectorbroker.profiles.models import TestingProfile

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")

CompletionResponder = Callable[
    [CompletionRequest],
    Union[CompletionResponse, None, Awaitable[Union[CompletionResponse, None]]],
]
ElicitationResponder = Callable[
    [ElicitationRequest],
    Union[dict[str, Any], None, Awaitable[Union[dict[str, Any], None]]],
]


@dataclass(frozen=True)
class Decision(Generic[ResponseT]):
    """What to do with one inbound request."""

    outcome: Literal["deny", "auto", "ask"]
    response: ResponseT | None = None
    source: Literal["responder", "profile"] | None = None


class DispatchPolicy(ABC, Generic[RequestT, ResponseT]):
    """Three-mode approval policy for one request kind."""

    kind: RequestKind

    def __init__(
        self,
        mode: ApprovalMode = "ask",
        testing_profile: TestingProfile | None = None,
        auto_responder: Callable[[RequestT], Any] | None = None,
    ) -> None:
        if mode not in ("ask", "auto", "deny"):
            raise ValueError(f"Unknown approval mode: {mode!r}")
        self.mode = mode
        self.testing_profile = testing_profile
        self.auto_responder = auto_responder

    async def decide(self, request: RequestT) -> Decision[ResponseT]:
        if self.mode == "deny":
            return Decision(outcome="deny")

        if self.mode == "auto":
            if self.auto_responder is not None:
                answer = self.auto_responder(request)
                if inspect.isawaitable(answer):
                    answer = await answer
                if answer is not None:
                    return Decision(
                        outcome="auto", response=self._from_responder(answer), source="responder"
                    )

            if self.testing_profile is not None:
                response = self._from_profile(self.testing_profile, request)
                if response is not None:
                    return Decision(outcome="auto", response=response, source="profile")

            logger.info(
                "No %s auto-responder matched, falling back to ask mode", self.kind.value
            )

        return Decision(outcome="ask")

    def _from_responder(self, answer: Any) -> ResponseT:
        return answer

    @abstractmethod
    def _from_profile(self, profile: TestingProfile, request: RequestT) -> ResponseT | None:
        """Automatic answer from a testing profile, or None if it does not opt in."""


class CompletionPolicy(DispatchPolicy[CompletionRequest, CompletionResponse]):
    """Responders may return a CompletionResponse or an equivalent dict."""

    kind = RequestKind.COMPLETION

    def _from_responder(self, answer: Any) -> CompletionResponse:
        if isinstance(answer, CompletionResponse):
            return answer
        return CompletionResponse.model_validate(answer)

    def _from_profile(
        self, profile: TestingProfile, request: CompletionRequest
    ) -> CompletionResponse | None:
        if not profile.auto_respond:
            return None
        return generate_profile_response(profile, request)


class ElicitationPolicy(DispatchPolicy[ElicitationRequest, ElicitationResult]):
    """Responders return the form data to accept with; profiles use their defaults."""

    kind = RequestKind.ELICITATION

    def _from_responder(self, answer: Any) -> ElicitationResult:
        if isinstance(answer, ElicitationResult):
            return answer
        return ElicitationResult(action="accept", content=dict(answer))

    def _from_profile(
        self, profile: TestingProfile, request: ElicitationRequest
    ) -> ElicitationResult | None:
        if not profile.elicitation_auto_respond:
            return None
        return ElicitationResult(action="accept", content=dict(profile.elicitation_defaults or {}))
