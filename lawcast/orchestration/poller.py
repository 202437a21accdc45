"""Single-flight poll orchestrator.

Drives one change-detection cycle per scheduler tick:

    fetch -> cache.merge (diff + update) -> fan-out -> batch deactivation

Guarantees:
- At most one cycle in flight; overlapping ticks are dropped, not queued
- Scheduled cycles never raise; failures are reported as PollCycleResult
- The startup fetch is the only path whose failure propagates
"""

import asyncio
import time
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog

from lawcast.models.cache import CacheInfo
from lawcast.models.notice import Notice
from lawcast.orchestration.result import (
    PollCycleResult,
    STATUS_EMPTY,
    STATUS_FAILED,
    STATUS_NOT_READY,
    STATUS_SKIPPED,
    STATUS_SUCCESS,
)
from lawcast.observability.metrics import (
    ACTIVE_DESTINATIONS,
    NEW_NOTICES,
    NOTICES_FETCHED,
    POLL_CYCLE_DURATION,
    POLL_CYCLES,
)
from lawcast.services.notice_cache import NoticeCache
from lawcast.services.notification_service import NotificationService
from lawcast.services.registry_service import DestinationRegistry
from lawcast.services.sources.base import NoticeSource
from lawcast.utils.exceptions import FetchError

logger = structlog.get_logger()


class PollState(str, Enum):
    """Poller lifecycle state"""

    IDLE = "idle"
    POLLING = "polling"


class NoticePoller:
    """Coordinates the source, cache, fan-out engine and registry.

    Attributes:
        source: Where notices are fetched from.
        cache: Change-detection cache owned by this poller.
        notifier: Fan-out engine.
        registry: Destination registry.
    """

    def __init__(
        self,
        source: NoticeSource,
        cache: NoticeCache,
        notifier: NotificationService,
        registry: DestinationRegistry,
    ):
        self.source = source
        self.cache = cache
        self.notifier = notifier
        self.registry = registry

        self._state = PollState.IDLE
        self._ready = False
        self._idle = asyncio.Event()
        self._idle.set()

        self.last_result: Optional[PollCycleResult] = None
        self.last_success: Optional[PollCycleResult] = None
        self.cycles_run = 0
        self.cycles_skipped = 0
        self.cycles_failed = 0

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def initialize(self) -> int:
        """Establish the cache baseline before scheduling starts.

        No notifications are sent for notices present at startup.

        Returns:
            Number of notices seeded into the cache.

        Raises:
            FetchError: If the source could not be read. The poller stays
                not ready and the caller should abort startup.
        """
        logger.info("poller_initializing", source=self.source.name)

        try:
            notices = await self.source.fetch()
        except FetchError as e:
            logger.error("poller_initialization_failed", error=str(e))
            raise

        if notices:
            self.cache.initialize(notices)
        else:
            # First scheduled poll establishes the baseline silently
            logger.warning("poller_initialized_empty")

        self._ready = True
        logger.info("poller_initialized", seeded=len(notices))
        return len(notices)

    async def tick(self) -> PollCycleResult:
        """Run one poll cycle. Never raises.

        Returns:
            Result describing what the cycle did.
        """
        if not self._ready:
            logger.warning("poll_tick_not_ready")
            return self._record(PollCycleResult(status=STATUS_NOT_READY))

        if self._state is PollState.POLLING:
            self.cycles_skipped += 1
            logger.info("poll_tick_skipped", reason="cycle_in_progress")
            return self._record(PollCycleResult(status=STATUS_SKIPPED))

        # Check-and-set before the first await
        self._state = PollState.POLLING
        self._idle.clear()
        start = time.time()

        try:
            result = await self._run_cycle()
        except Exception as e:
            logger.exception("poll_cycle_unexpected_error", error=str(e))
            result = PollCycleResult(status=STATUS_FAILED, error=str(e))
        finally:
            self._state = PollState.IDLE
            self._idle.set()

        result.duration_seconds = time.time() - start
        POLL_CYCLE_DURATION.observe(result.duration_seconds)
        self.cycles_run += 1
        if result.status == STATUS_FAILED:
            self.cycles_failed += 1
        else:
            self.last_success = result

        logger.info("poll_cycle_completed", **result.to_dict())
        return self._record(result)

    async def _run_cycle(self) -> PollCycleResult:
        try:
            notices = await self.source.fetch()
        except FetchError as e:
            logger.warning("poll_fetch_failed", error=str(e))
            return PollCycleResult(status=STATUS_FAILED, error=str(e))

        NOTICES_FETCHED.inc(len(notices))

        if not notices:
            logger.info("poll_fetch_empty")
            return PollCycleResult(status=STATUS_EMPTY)

        new = self.cache.merge(notices)
        result = PollCycleResult(
            status=STATUS_SUCCESS,
            fetched=len(notices),
            new_notices=[n.num for n in new],
        )

        if not new:
            return result

        NEW_NOTICES.inc(len(new))
        logger.info("new_notices_detected", nums=result.new_notices)

        # Registry calls do file I/O; keep them off the event loop
        destinations = await asyncio.to_thread(self.registry.list_active)
        ACTIVE_DESTINATIONS.set(len(destinations))
        if not destinations:
            logger.info("fanout_skipped_no_destinations", new=len(new))
            return result

        deliveries = await self.notifier.send_batch(new, destinations)
        result.deliveries = len(deliveries)
        result.failed_deliveries = sum(1 for d in deliveries if not d.success)

        dead_ids = sorted(
            {
                d.destination_id
                for d in deliveries
                if d.should_deactivate and d.destination_id is not None
            }
        )
        if dead_ids:
            await asyncio.to_thread(self.registry.deactivate_many, dead_ids)
            result.deactivated_ids = dead_ids
            logger.warning("destinations_deactivated_after_fanout", ids=dead_ids)

        return result

    def _record(self, result: PollCycleResult) -> PollCycleResult:
        if result.ran:
            self.last_result = result
        POLL_CYCLES.labels(status=result.status).inc()
        return result

    async def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait for an in-flight cycle to finish.

        Args:
            timeout: Seconds to wait; None waits indefinitely.

        Returns:
            True if the poller is idle, False if the timeout expired first.
        """
        if self._idle.is_set():
            return True
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("poller_drain_timeout", timeout=timeout)
            return False

    def recent(self, limit: Optional[int] = None) -> List[Notice]:
        return self.cache.recent(limit)

    def cache_info(self) -> CacheInfo:
        return self.cache.info()

    def status(self) -> Dict[str, Any]:
        """Snapshot of poller state for status endpoints."""
        return {
            "state": self._state.value,
            "ready": self._ready,
            "source": self.source.name,
            "cycles_run": self.cycles_run,
            "cycles_skipped": self.cycles_skipped,
            "cycles_failed": self.cycles_failed,
            "last_result": self.last_result.to_dict() if self.last_result else None,
            "last_success_at": (
                self.last_success.finished_at.isoformat()
                if self.last_success
                else None
            ),
        }
