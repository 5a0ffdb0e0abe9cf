# src/profiles/repository.py
"""In-memory testing profile repository.

Profiles live for the session duration only. The store is seeded with the
built-in ``manual`` and ``auto-approve`` profiles unless told otherwise.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from inspectorbroker.core.errors import ProfileNotFoundError
from inspectorbroker.profiles.models import TestingProfile

logger = logging.getLogger(__name__)

DEFAULT_PROFILES: tuple[TestingProfile, ...] = (
    TestingProfile(
        id="manual",
        name="Manual",
        description="Respond to requests manually (no auto-approve)",
        sampling_provider="manual",
        auto_respond=False,
    ),
    TestingProfile(
        id="auto-approve",
        name="Auto-Approve",
        description="Automatically approve with default response",
        sampling_provider="mock",
        auto_respond=True,
        default_response="This is an automated test response.",
        default_model="mock-model",
        default_stop_reason="endTurn",
        elicitation_auto_respond=True,
        elicitation_defaults={},
    ),
)


def _generate_profile_id() -> str:
    return f"profile-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class MemoryProfileRepository:
    """Dict-backed store of TestingProfile objects keyed by ID."""

    def __init__(self, include_defaults: bool = True) -> None:
        self._store: dict[str, TestingProfile] = {}
        if include_defaults:
            for profile in DEFAULT_PROFILES:
                self._store[profile.id] = profile

    async def list(self) -> list[TestingProfile]:
        return list(self._store.values())

    async def get(self, profile_id: str) -> TestingProfile | None:
        return self._store.get(profile_id)

    async def create(self, **fields: Any) -> TestingProfile:
        """Create a profile with a generated ID. Any ``id`` in ``fields`` is ignored."""
        fields.pop("id", None)
        profile = TestingProfile(id=_generate_profile_id(), **fields)
        self._store[profile.id] = profile
        logger.debug("Created testing profile %s (%s)", profile.id, profile.name)
        return profile

    async def update(self, profile_id: str, **updates: Any) -> TestingProfile:
        """Replace a profile with an updated copy.

        Raises:
            ProfileNotFoundError: If ``profile_id`` is unknown.
        """
        existing = self._store.get(profile_id)
        if existing is None:
            raise ProfileNotFoundError(profile_id)
        updates.pop("id", None)
        data = existing.model_dump()
        data.update(updates)
        updated = TestingProfile.model_validate(data)
        self._store[profile_id] = updated
        return updated

    async def delete(self, profile_id: str) -> None:
        self._store.pop(profile_id, None)
