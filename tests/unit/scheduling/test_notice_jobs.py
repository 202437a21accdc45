"""Tests for scheduled job definitions."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from lawcast.observability.context import get_correlation_id
from lawcast.orchestration.poller import NoticePoller
from lawcast.orchestration.result import PollCycleResult
from lawcast.scheduling.jobs import BaseJob, NoticePollJob


class ConcreteJob(BaseJob):
    """Concrete implementation for testing BaseJob."""

    def __init__(self, result=None, should_fail=False):
        super().__init__("test_job")
        self.result = result or {"status": "ok"}
        self.should_fail = should_fail
        self.seen_correlation_id = None

    async def run(self):
        self.seen_correlation_id = get_correlation_id()
        if self.should_fail:
            raise ValueError("Job failed")
        return self.result


class TestBaseJob:
    """Tests for BaseJob class."""

    def test_init(self):
        job = ConcreteJob()

        assert job.name == "test_job"
        assert job.last_run is None
        assert job.run_count == 0
        assert job.error_count == 0

    @pytest.mark.asyncio
    async def test_call_success(self):
        job = ConcreteJob(result={"data": "test"})

        result = await job()

        assert result == {"data": "test"}
        assert job.last_success is not None
        assert job.run_count == 1

    @pytest.mark.asyncio
    async def test_correlation_id_scoped_to_run(self):
        job = ConcreteJob()

        await job()

        assert job.seen_correlation_id.startswith("test_job-")
        assert get_correlation_id() is None

    @pytest.mark.asyncio
    async def test_call_failure(self):
        job = ConcreteJob(should_fail=True)

        with pytest.raises(ValueError):
            await job()

        assert job.error_count == 1
        assert job.last_success is None
        assert job.last_run is not None

    @pytest.mark.asyncio
    async def test_get_status(self):
        job = ConcreteJob()
        await job()

        status = job.get_status()

        assert status["name"] == "test_job"
        assert status["run_count"] == 1
        assert status["last_run"] is not None


class TestNoticePollJob:
    """Tests for NoticePollJob."""

    @pytest.mark.asyncio
    async def test_runs_one_tick(self):
        poller = MagicMock(spec=NoticePoller)
        poller.tick = AsyncMock(return_value=PollCycleResult(status="success", fetched=3))
        job = NoticePollJob(poller)

        result = await job()

        poller.tick.assert_awaited_once()
        assert result["status"] == "success"
        assert result["fetched"] == 3
        assert job.name == "notice_poll"
