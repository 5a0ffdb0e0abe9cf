# src/broker/factory.py
"""Build a BrokerSession from Settings."""

from __future__ import annotations

import logging

from inspectorbroker.broker.policy import (
    CompletionPolicy,
    CompletionResponder,
    ElicitationPolicy,
    ElicitationResponder,
)
from inspectorbroker.broker.session import BrokerCallbacks, BrokerSession
from inspectorbroker.config.settings import Settings
from inspectorbroker.core.errors import ProfileNotFoundError
from inspectorbroker.profiles.repository import MemoryProfileRepository

logger = logging.getLogger(__name__)


async def create_session(
    settings: Settings | None = None,
    callbacks: BrokerCallbacks | None = None,
    repository: MemoryProfileRepository | None = None,
    completion_responder: CompletionResponder | None = None,
    elicitation_responder: ElicitationResponder | None = None,
) -> BrokerSession:
    """Instantiate a session with the configured approval modes and profile.

    Args:
        settings: Broker settings. Defaults to ``ask`` mode with no profile.
        callbacks: UI hooks.
        repository: Profile store used to resolve ``testing_profile_id``.
        completion_responder: Custom auto-responder tried before the profile.
        elicitation_responder: Custom auto-responder tried before the profile.

    Raises:
        ProfileNotFoundError: If ``testing_profile_id`` is not in the repository.
    """
    settings = settings or Settings(_env_file=None)  # type: ignore[call-arg]

    profile = None
    if settings.testing_profile_id:
        repository = repository or MemoryProfileRepository()
        profile = await repository.get(settings.testing_profile_id)
        if profile is None:
            raise ProfileNotFoundError(settings.testing_profile_id)
        logger.info("Using testing profile %s (%s)", profile.id, profile.name)

    return BrokerSession(
        callbacks=callbacks,
        completion_policy=CompletionPolicy(
            mode=settings.completion_approval_mode,
            testing_profile=profile,
            auto_responder=completion_responder,
        ),
        elicitation_policy=ElicitationPolicy(
            mode=settings.elicitation_approval_mode,
            testing_profile=profile,
            auto_responder=elicitation_responder,
        ),
        server_name=settings.elicitation_server_name,
    )
