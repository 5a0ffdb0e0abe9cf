# src/profiles/matching.py
"""Pick automatic completion answers from a testing profile.

Override patterns are matched against the whole hint; ``*`` matches any run of
characters and everything else is literal. The first override, in declaration
order, that matches any of the request's hints wins.
"""

from __future__ import annotations

import re
from functools import lru_cache

from inspectorbroker.core.models import CompletionRequest, CompletionResponse, TextContent
from inspectorbroker.profiles.models import TestingProfile

_FALLBACK_MODEL = "mock-model"
_FALLBACK_STOP_REASON = "endTurn"


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    parts = (re.escape(part) for part in pattern.split("*"))
    return re.compile(".*".join(parts))


def match_pattern(pattern: str, hint: str) -> bool:
    """Return True if ``hint`` matches the override ``pattern`` in full."""
    return _compile(pattern).fullmatch(hint) is not None


def response_for_model_hints(profile: TestingProfile, hints: list[str] | None) -> str:
    """Resolve the response text for a set of model hints.

    Args:
        profile: Testing profile holding overrides and the default response.
        hints: Model hint names from the request, in preference order.

    Returns:
        Override response of the first matching pattern, else the profile's
        default response (empty string if unset).
    """
    if profile.model_overrides and hints:
        for override in profile.model_overrides:
            if any(match_pattern(override.pattern, hint) for hint in hints):
                return override.response
    return profile.default_response or ""


def generate_profile_response(
    profile: TestingProfile, request: CompletionRequest
) -> CompletionResponse:
    """Build the automatic completion response a profile gives for ``request``."""
    return CompletionResponse(
        content=TextContent(text=response_for_model_hints(profile, request.model_hints)),
        model=profile.default_model or _FALLBACK_MODEL,
        stop_reason=profile.default_stop_reason or _FALLBACK_STOP_REASON,
    )
