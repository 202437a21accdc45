"""APScheduler wrapper that drives the notice poller.

One interval job per poller calls ``NoticePoller.tick``. Shutdown stops
new ticks first and then gives any in-flight cycle a grace period.

Usage:
    scheduler = NoticeScheduler(shutdown_grace_seconds=30)
    scheduler.add_poll_job(poller, interval_minutes=10)

    # Blocks until SIGINT/SIGTERM
    await scheduler.start()
"""

import asyncio
import signal
from typing import Any, Dict, List
import structlog

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import (
    EVENT_JOB_EXECUTED,
    EVENT_JOB_ERROR,
    EVENT_JOB_MISSED,
    JobExecutionEvent,
)

from lawcast.observability.metrics import SCHEDULER_JOBS
from lawcast.orchestration.poller import NoticePoller
from lawcast.scheduling.jobs import BaseJob, NoticePollJob

logger = structlog.get_logger()

POLL_JOB_ID = "notice_poll"


class NoticeScheduler:
    """Runs poll ticks on an interval inside the daemon's event loop.

    The poller's own guard is what keeps cycles single-flight;
    ``max_instances=1`` and ``coalesce`` only stop APScheduler from piling
    up ticks behind a slow cycle.
    """

    def __init__(
        self,
        timezone: str = "Asia/Seoul",
        max_instances: int = 1,
        coalesce: bool = True,
        misfire_grace_time: int = 60,
        shutdown_grace_seconds: float = 30.0,
    ):
        """Initialize the scheduler.

        Args:
            timezone: Timezone for tick times
            max_instances: Max concurrent instances per job
            coalesce: Collapse a backlog of missed ticks into one
            misfire_grace_time: Seconds a late tick may still run
            shutdown_grace_seconds: How long shutdown waits for an
                in-flight poll cycle
        """
        self.scheduler = AsyncIOScheduler(
            timezone=timezone,
            job_defaults={
                "max_instances": max_instances,
                "coalesce": coalesce,
                "misfire_grace_time": misfire_grace_time,
            },
        )

        self.shutdown_grace_seconds = shutdown_grace_seconds
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._pollers: List[NoticePoller] = []

        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)

        logger.info("scheduler_initialized", timezone=timezone)

    def add_poll_job(
        self,
        poller: NoticePoller,
        interval_minutes: int = 10,
        job_id: str = POLL_JOB_ID,
    ) -> str:
        """Tick ``poller`` every ``interval_minutes``.

        Re-adding the same ``job_id`` replaces the previous schedule. The
        poller is drained on shutdown.

        Returns:
            Job ID
        """
        if poller not in self._pollers:
            self._pollers.append(poller)

        job = self.scheduler.add_job(
            NoticePollJob(poller),
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=job_id,
            name=job_id,
            replace_existing=True,
        )

        next_run = getattr(job, "next_run_time", None)
        logger.info(
            "poll_job_added",
            job_id=job_id,
            interval_minutes=interval_minutes,
            next_run=str(next_run) if next_run else "not scheduled",
        )

        self._update_metrics()
        return job_id

    def get_jobs(self) -> List[Dict[str, Any]]:
        """Scheduled jobs with their next tick and run counters."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            info: Dict[str, Any] = {
                "id": job.id,
                "next_run_time": next_run.isoformat() if next_run else None,
            }
            if isinstance(job.func, BaseJob):
                info.update(job.func.get_status())
            jobs.append(info)
        return jobs

    async def start(self) -> None:
        """Start ticking and block until shutdown."""
        if self._running:  # pragma: no cover
            logger.warning("scheduler_already_running")
            return

        self._running = True  # pragma: no cover (blocking scheduler runtime)
        self._shutdown_event.clear()  # pragma: no cover

        loop = asyncio.get_running_loop()  # pragma: no cover
        for sig in (signal.SIGTERM, signal.SIGINT):  # pragma: no cover
            loop.add_signal_handler(sig, self._signal_handler)  # pragma: no cover

        self.scheduler.start()  # pragma: no cover
        logger.info(  # pragma: no cover
            "scheduler_started", jobs=len(self.scheduler.get_jobs())
        )

        self._update_metrics()  # pragma: no cover

        await self._shutdown_event.wait()  # pragma: no cover

    async def shutdown(self) -> bool:
        """Stop firing ticks, then drain in-flight poll cycles.

        Returns:
            True if every poller went idle within the grace period.
        """
        if not self._running:
            return True

        logger.info("scheduler_shutting_down")

        # Running ticks are coroutines on this loop; drained below
        self.scheduler.shutdown(wait=False)
        self._running = False

        drained = True
        for poller in self._pollers:
            if not await poller.wait_idle(self.shutdown_grace_seconds):
                drained = False

        self._shutdown_event.set()

        logger.info("scheduler_stopped", drained=drained)
        return drained

    def _signal_handler(self) -> None:
        logger.info("shutdown_signal_received")
        asyncio.create_task(self.shutdown())

    def _on_job_executed(self, event: JobExecutionEvent) -> None:
        logger.debug(
            "poll_tick_executed",
            job_id=event.job_id,
            scheduled_run_time=str(event.scheduled_run_time),
        )
        self._update_metrics()

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        # tick() never raises, so this means a bug in the job wrapper
        logger.error(
            "poll_tick_failed",
            job_id=event.job_id,
            exception=str(event.exception),
            traceback=event.traceback,
        )
        self._update_metrics()

    def _on_job_missed(self, event: JobExecutionEvent) -> None:
        logger.warning(
            "poll_tick_missed",
            job_id=event.job_id,
            scheduled_run_time=str(event.scheduled_run_time),
        )
        self._update_metrics()

    def _update_metrics(self) -> None:
        jobs = self.scheduler.get_jobs()
        pending = sum(1 for j in jobs if getattr(j, "pending", False))

        SCHEDULER_JOBS.labels(status="pending").set(pending)
        SCHEDULER_JOBS.labels(status="running").set(len(jobs) - pending)

    @property
    def is_running(self) -> bool:
        return self._running
