# src/profiles/models.py
"""Testing profile types: reusable automatic answers for inbound requests."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from inspectorbroker.core.models import StopReason

SamplingProvider = Literal["manual", "mock", "ai-sdk"]


class ModelOverride(BaseModel):
    """Canned response used when a model hint matches ``pattern`` (e.g. ``claude-*``)."""

    pattern: str
    response: str


class TestingProfile(BaseModel):
    """Operator-defined configuration driving ``auto`` approval mode.

    Profiles are frozen: edits go through the repository, which stores a new
    instance, so a policy holding a profile never sees it change underneath.
    """

    __test__ = False  # not a pytest class

    model_config = {"frozen": True}

    id: str
    name: str
    description: str | None = None
    sampling_provider: SamplingProvider = "manual"
    auto_respond: bool = False
    default_response: str | None = None
    default_model: str | None = None
    default_stop_reason: StopReason | None = None
    model_overrides: list[ModelOverride] = Field(default_factory=list)
    elicitation_auto_respond: bool = False
    elicitation_defaults: dict[str, Any] | None = None
