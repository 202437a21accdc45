"""Destination registration flow.

A webhook is validated, stored, and then probed once. Endpoints that are
dead on arrival (401/403/404) are soft-deleted straight away; transient
probe failures keep the destination since the next poll may well succeed.
"""

from typing import Tuple

import structlog

from lawcast.models.delivery import ProbeResult
from lawcast.models.destination import Destination
from lawcast.services.notification_service import NotificationService
from lawcast.services.registry_service import DestinationRegistry
from lawcast.utils.exceptions import InvalidWebhookUrlError
from lawcast.utils.validation import WebhookUrlValidation

logger = structlog.get_logger()


async def register_destination(
    url: str,
    registry: DestinationRegistry,
    notifier: NotificationService,
) -> Tuple[Destination, ProbeResult]:
    """Validate, store and probe a new webhook destination.

    Args:
        url: Discord webhook URL.
        registry: Destination registry.
        notifier: Fan-out engine used for the probe.

    Returns:
        The stored destination and the probe result.

    Raises:
        InvalidWebhookUrlError: URL malformed or permanently rejected by
            the endpoint.
        DuplicateDestinationError: URL already registered.
    """
    clean_url = WebhookUrlValidation.validate_discord_webhook_url(url)
    destination = registry.create(clean_url)

    probe = await notifier.test_send(destination)

    if probe.should_deactivate:
        registry.remove(destination.id)
        logger.warning(
            "destination_rejected",
            destination_id=destination.id,
            status_code=probe.status_code,
        )
        raise InvalidWebhookUrlError(
            f"Webhook rejected by endpoint: {probe.error or 'invalid webhook'}"
        )

    if not probe.success:
        logger.warning(
            "destination_probe_failed",
            destination_id=destination.id,
            error=probe.error,
        )
    else:
        logger.info("destination_registered", destination_id=destination.id)

    return destination, probe
