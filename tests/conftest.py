# tests/conftest.py
"""Shared test fixtures for unit and integration tests.

Provides sample wire payloads, testing profiles and a session wired to
recording callbacks. No transport is involved; handlers are called directly.
"""

from __future__ import annotations

from typing import Any

import pytest

from inspectorbroker.broker.session import BrokerCallbacks, BrokerSession
from inspectorbroker.profiles.models import ModelOverride, TestingProfile


# === FIXTURES: Wire payloads ===


@pytest.fixture
def completion_params() -> dict[str, Any]:
    """Minimal valid sampling/createMessage params."""
    return {
        "messages": [
            {"role": "user", "content": {"type": "text", "text": "What is the capital of France?"}},
        ],
        "modelPreferences": {
            "hints": [{"name": "claude-3-sonnet"}],
            "intelligencePriority": 0.8,
        },
        "maxTokens": 256,
    }


@pytest.fixture
def form_params() -> dict[str, Any]:
    """Form elicitation params."""
    return {
        "message": "Please confirm your details",
        "requestedSchema": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Your name"},
                "age": {"type": "number"},
                "confirmed": {"type": "boolean", "default": False},
                "nickname": {"description": "Optional"},
            },
            "required": ["name"],
        },
    }


@pytest.fixture
def url_params() -> dict[str, Any]:
    """URL elicitation params."""
    return {
        "mode": "url",
        "message": "Authorize access",
        "url": "https://example.com/authorize",
        "elicitationId": "elicit-42",
    }


# === FIXTURES: Profiles ===


@pytest.fixture
def claude_profile() -> TestingProfile:
    """Profile with a claude-* override and a generic default."""
    return TestingProfile(
        id="claude-mock",
        name="Claude Mock",
        sampling_provider="mock",
        auto_respond=True,
        default_response="B",
        default_model="mock-model-1.0",
        model_overrides=[ModelOverride(pattern="claude-*", response="A")],
        elicitation_auto_respond=True,
        elicitation_defaults={"confirmed": True},
    )


@pytest.fixture
def manual_profile() -> TestingProfile:
    return TestingProfile(id="manual", name="Manual", auto_respond=False)


# === FIXTURES: Session ===


class CallbackRecorder:
    """Records every callback invocation as (hook, args)."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def hook(self, name: str):
        def _record(*args: Any) -> None:
            self.calls.append((name, args))
        return _record

    def named(self, name: str) -> list[tuple[Any, ...]]:
        return [args for hook, args in self.calls if hook == name]

    def callbacks(self) -> BrokerCallbacks:
        return BrokerCallbacks(
            on_completion_request=self.hook("completion_request"),
            on_elicitation_request=self.hook("elicitation_request"),
            on_completion_cancelled=self.hook("completion_cancelled"),
            on_elicitation_cancelled=self.hook("elicitation_cancelled"),
            on_auto_approved=self.hook("auto_approved"),
            on_auto_denied=self.hook("auto_denied"),
        )


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def session(recorder: CallbackRecorder) -> BrokerSession:
    """Session in ask mode reporting to ``recorder``."""
    return BrokerSession(callbacks=recorder.callbacks())
