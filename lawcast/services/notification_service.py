"""Notification fan-out service for webhook destinations.

Delivers new-notice notifications to every active destination with:
- Discord embed message formatting
- Concurrent fire-and-collect delivery (one task per notice x destination)
- Permanent vs. transient failure classification
- Fail-safe error handling (never raises out of a batch)

Usage:
    from lawcast.services.notification_service import NotificationService
    from lawcast.models.config import NotificationConfig

    service = NotificationService(NotificationConfig())
    results = await service.send_batch(new_notices, destinations)
    dead = [r.destination_id for r in results if r.should_deactivate]
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import aiohttp
import structlog

from lawcast.models.config import NotificationConfig
from lawcast.models.delivery import DeliveryOutcome, DeliveryResult, ProbeResult
from lawcast.models.destination import Destination
from lawcast.models.notice import Notice
from lawcast.observability.metrics import DELIVERIES, DELIVERY_DURATION
from lawcast.utils.exceptions import DeliveryError

logger = structlog.get_logger()

# The endpoint was deleted or its token revoked; it will never succeed again.
PERMANENT_FAILURE_STATUSES = frozenset({401, 403, 404})

# Discord embed limits
EMBED_TITLE_MAX = 256
EMBED_FIELD_VALUE_MAX = 1024


def classify_failure(status_code: Optional[int]) -> DeliveryOutcome:
    """Classify a failed delivery by its HTTP status.

    Args:
        status_code: Status returned by the endpoint, or None when the
            request never got a response (timeout, DNS, connection reset).

    Returns:
        PERMANENT for 401/403/404, TRANSIENT for everything else.
    """
    if status_code is not None and status_code in PERMANENT_FAILURE_STATUSES:
        return DeliveryOutcome.PERMANENT
    return DeliveryOutcome.TRANSIENT


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


class DiscordMessageBuilder:
    """Builds Discord webhook payloads.

    Creates embed messages with:
    - Notice subject as title, linking to the notice page
    - Proposer, committee and comment count fields
    - Attachment links
    """

    def __init__(self, config: NotificationConfig) -> None:
        self.config = config

    def build_notice(self, notice: Notice) -> Dict[str, Any]:
        """Build the webhook payload announcing one notice.

        Args:
            notice: Newly detected notice.

        Returns:
            Discord webhook JSON payload.
        """
        fields: List[Dict[str, Any]] = [
            {
                "name": "Bill",
                "value": _truncate(notice.subject, EMBED_FIELD_VALUE_MAX),
                "inline": False,
            },
            {
                "name": "Proposer",
                "value": notice.proposer_category or "-",
                "inline": True,
            },
            {
                "name": "Committee",
                "value": notice.committee or "-",
                "inline": True,
            },
            {
                "name": "Comments",
                "value": str(notice.num_comments),
                "inline": True,
            },
        ]

        if notice.attachments:
            links = "\n".join(f"[{a.label}]({a.url})" for a in notice.attachments)
            fields.append(
                {
                    "name": "Attachments",
                    "value": _truncate(links, EMBED_FIELD_VALUE_MAX),
                    "inline": False,
                }
            )

        embed: Dict[str, Any] = {
            "title": _truncate(
                f"New legislative notice #{notice.num}", EMBED_TITLE_MAX
            ),
            "color": self.config.notice_color,
            "fields": fields,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "footer": {"text": self.config.footer_text},
        }
        if notice.link:
            embed["url"] = notice.link

        return {"username": self.config.username, "embeds": [embed]}

    def build_probe(self) -> Dict[str, Any]:
        """Build the synthetic registration test payload."""
        return {
            "username": self.config.username,
            "embeds": [
                {
                    "title": "LawCast webhook test",
                    "description": (
                        "This webhook is registered. New legislative notices "
                        "will be posted here."
                    ),
                    "color": self.config.probe_color,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "footer": {"text": self.config.footer_text},
                }
            ],
        }


class NotificationService:
    """Fan-out engine for webhook notifications.

    Each (notice, destination) pair is attempted exactly once per batch.
    All errors are captured into DeliveryResult values - a failing or slow
    destination never blocks or cancels the others.

    Attributes:
        config: Notification configuration.
    """

    def __init__(self, config: Optional[NotificationConfig] = None) -> None:
        self.config = config or NotificationConfig()
        self._message_builder = DiscordMessageBuilder(self.config)

    async def send_batch(
        self,
        notices: List[Notice],
        destinations: List[Destination],
    ) -> List[DeliveryResult]:
        """Deliver every notice to every destination concurrently.

        Args:
            notices: New notices to announce.
            destinations: Active destinations.

        Returns:
            Exactly len(notices) * len(destinations) results, notice-major.
        """
        if not notices or not destinations:
            return []

        semaphore = asyncio.Semaphore(self.config.max_concurrent_deliveries)
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        logger.info(
            "fanout_starting",
            notices=len(notices),
            destinations=len(destinations),
        )

        async with aiohttp.ClientSession(timeout=timeout) as session:

            async def bounded(notice: Notice, destination: Destination) -> DeliveryResult:
                async with semaphore:
                    return await self.send(notice, destination, session=session)

            tasks = [
                bounded(notice, destination)
                for notice in notices
                for destination in destinations
            ]
            results: List[DeliveryResult] = list(await asyncio.gather(*tasks))

        failed = [r for r in results if not r.success]
        logger.info(
            "fanout_completed",
            attempts=len(results),
            delivered=len(results) - len(failed),
            transient=sum(1 for r in failed if not r.should_deactivate),
            permanent=sum(1 for r in failed if r.should_deactivate),
        )
        return results

    async def send(
        self,
        notice: Notice,
        destination: Destination,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> DeliveryResult:
        """Deliver one notice to one destination. Never raises.

        Args:
            notice: Notice to announce.
            destination: Target destination.
            session: Shared HTTP session; a private one is opened if None.

        Returns:
            DeliveryResult with the classified outcome.
        """
        payload = self._message_builder.build_notice(notice)
        result = await self._deliver(
            destination.url,
            payload,
            session=session,
            destination_id=destination.id,
            notice_num=notice.num,
        )
        DELIVERIES.labels(outcome=result.outcome.value).inc()
        return result

    async def test_send(
        self,
        destination: Union[Destination, str],
    ) -> ProbeResult:
        """Send a synthetic probe to a single destination.

        Used at registration time to discard endpoints that are dead on
        arrival. Same classification rule as regular deliveries.

        Args:
            destination: Destination or bare webhook URL.

        Returns:
            ProbeResult (notice_num is None).
        """
        if isinstance(destination, Destination):
            url, destination_id = destination.url, destination.id
        else:
            url, destination_id = destination, None

        result = await self._deliver(
            url,
            self._message_builder.build_probe(),
            destination_id=destination_id,
        )
        logger.info(
            "webhook_probe_completed",
            destination_id=destination_id,
            outcome=result.outcome.value,
            status_code=result.status_code,
        )
        return result

    async def _deliver(
        self,
        url: str,
        payload: Dict[str, Any],
        session: Optional[aiohttp.ClientSession] = None,
        destination_id: Optional[int] = None,
        notice_num: Optional[int] = None,
    ) -> DeliveryResult:
        start = time.time()
        try:
            if session is None:
                timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
                async with aiohttp.ClientSession(timeout=timeout) as own_session:
                    status_code = await self._post(own_session, url, payload)
            else:
                status_code = await self._post(session, url, payload)

            return DeliveryResult(
                destination_id=destination_id,
                notice_num=notice_num,
                outcome=DeliveryOutcome.DELIVERED,
                status_code=status_code,
            )

        except DeliveryError as e:
            outcome = classify_failure(e.status_code)
            logger.warning(
                "webhook_delivery_failed",
                destination_id=destination_id,
                notice_num=notice_num,
                status_code=e.status_code,
                outcome=outcome.value,
                error=str(e),
            )
            return DeliveryResult(
                destination_id=destination_id,
                notice_num=notice_num,
                outcome=outcome,
                status_code=e.status_code,
                error=str(e),
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error = str(e) or type(e).__name__
            logger.warning(
                "webhook_delivery_error",
                destination_id=destination_id,
                notice_num=notice_num,
                error=error,
                error_type=type(e).__name__,
            )
            return DeliveryResult(
                destination_id=destination_id,
                notice_num=notice_num,
                outcome=DeliveryOutcome.TRANSIENT,
                error=f"HTTP error: {error}",
            )
        except Exception as e:
            # Catch-all: one destination must never break the batch
            logger.exception(
                "webhook_delivery_unexpected_error",
                destination_id=destination_id,
                notice_num=notice_num,
                error=str(e),
            )
            return DeliveryResult(
                destination_id=destination_id,
                notice_num=notice_num,
                outcome=DeliveryOutcome.TRANSIENT,
                error=f"Unexpected error: {str(e)}",
            )
        finally:
            DELIVERY_DURATION.observe(time.time() - start)

    async def _post(
        self,
        session: aiohttp.ClientSession,
        url: str,
        payload: Dict[str, Any],
    ) -> int:
        """POST the payload; return the status on 2xx, raise DeliveryError otherwise."""
        async with session.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
        ) as response:
            if 200 <= response.status < 300:
                return response.status

            # The status alone decides the outcome; the body is only context
            try:
                response_text = await response.text(errors="replace")
            except (aiohttp.ClientError, asyncio.TimeoutError):
                response_text = ""
            raise DeliveryError(
                f"HTTP {response.status}: {response_text[:100]}",
                status_code=response.status,
            )
