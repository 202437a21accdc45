"""Scheduled job definitions for LawCast.

Provides:
- BaseJob: correlation ids, timing and run/error counters
- NoticePollJob: one poll cycle per scheduler tick

Usage:
    from lawcast.scheduling.jobs import NoticePollJob

    job = NoticePollJob(poller)
    await job()
"""

import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import structlog

from lawcast.observability.context import correlation_id_context
from lawcast.orchestration.poller import NoticePoller

logger = structlog.get_logger()


class BaseJob(ABC):
    """Base class for scheduled jobs.

    Provides common functionality:
    - Correlation ID management
    - Error handling and logging
    - Execution timing
    """

    def __init__(self, name: str):
        """Initialize job.

        Args:
            name: Job name for logging
        """
        self.name = name
        self.last_run: Optional[datetime] = None
        self.last_success: Optional[datetime] = None
        self.run_count: int = 0
        self.error_count: int = 0

    async def __call__(self) -> Any:
        """Execute the job with correlation ID and error handling."""
        start = time.time()
        now = datetime.now(timezone.utc)

        with correlation_id_context(
            f"{self.name}-{now.strftime('%Y%m%d-%H%M%S')}"
        ) as corr_id:
            logger.info(
                "job_starting",
                job_name=self.name,
                correlation_id=corr_id,
            )

            try:
                result = await self.run()
            except Exception as e:
                self.last_run = datetime.now(timezone.utc)
                self.error_count += 1

                logger.error(
                    "job_failed",
                    job_name=self.name,
                    error=str(e),
                    correlation_id=corr_id,
                    exc_info=True,
                )
                raise

            self.last_run = datetime.now(timezone.utc)
            self.last_success = self.last_run
            self.run_count += 1

            logger.info(
                "job_completed",
                job_name=self.name,
                duration_seconds=round(time.time() - start, 2),
                correlation_id=corr_id,
            )
            return result

    @abstractmethod
    async def run(self) -> Any:
        """Execute the job logic."""
        pass  # pragma: no cover (abstract method)

    def get_status(self) -> Dict[str, Any]:
        """Get job status information."""
        return {
            "name": self.name,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_success": (
                self.last_success.isoformat() if self.last_success else None
            ),
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class NoticePollJob(BaseJob):
    """Runs one poll cycle.

    The poller decides whether the tick actually polls (not ready, already
    polling) and never raises, so this job only fails on programming errors.
    """

    def __init__(self, poller: NoticePoller):
        super().__init__("notice_poll")
        self.poller = poller

    async def run(self) -> Dict[str, Any]:
        result = await self.poller.tick()
        return result.to_dict()
