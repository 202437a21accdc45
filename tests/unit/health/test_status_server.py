"""Tests for the FastAPI status server and health checks."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from lawcast.health.checks import CheckStatus, HealthChecker, HealthStatus
from lawcast.health.server import (
    create_health_app,
    get_health_checker,
    set_health_checker,
)
from lawcast.models.cache import CacheConfig
from lawcast.models.notice import Notice
from lawcast.orchestration.poller import NoticePoller
from lawcast.orchestration.result import PollCycleResult
from lawcast.scheduling.scheduler import POLL_JOB_ID, NoticeScheduler
from lawcast.services.notice_cache import NoticeCache
from lawcast.services.notification_service import NotificationService
from lawcast.services.registry_service import DestinationRegistry
from lawcast.services.sources.base import NoticeSource


def make_notices(*nums):
    return [Notice(num=n, subject=f"Notice {n}") for n in nums]


@pytest.fixture(autouse=True)
def reset_checker():
    set_health_checker(None)
    yield
    set_health_checker(None)


@pytest.fixture
def registry(tmp_path):
    registry = DestinationRegistry(registry_path=tmp_path / "destinations.json")
    registry.create("https://hooks.test/1")
    return registry


@pytest.fixture
def poller(registry):
    source = MagicMock(spec=NoticeSource)
    source.name = "fake"
    source.fetch = AsyncMock(return_value=make_notices(*range(1, 31)))
    return NoticePoller(
        source=source,
        cache=NoticeCache(CacheConfig(max_size=50)),
        notifier=MagicMock(spec=NotificationService),
        registry=registry,
    )


@pytest.fixture
def ready_poller(poller):
    asyncio.run(poller.initialize())
    return poller


class TestHealthChecker:
    """Tests for HealthChecker."""

    @pytest.mark.asyncio
    async def test_without_poller_unhealthy(self):
        report = await HealthChecker().check_all()

        assert report.status == HealthStatus.UNHEALTHY
        assert await HealthChecker().is_ready() is False

    @pytest.mark.asyncio
    async def test_not_initialized_fails(self, poller, registry):
        checker = HealthChecker(poller=poller, registry=registry)

        result = await checker.check_cache_ready()

        assert result.status == CheckStatus.FAIL
        assert await checker.is_ready() is False

    @pytest.mark.asyncio
    async def test_ready_poller_healthy(self, poller, registry):
        await poller.initialize()
        checker = HealthChecker(poller=poller, registry=registry)

        report = await checker.check_all()

        assert report.status == HealthStatus.HEALTHY
        assert {c.name for c in report.checks} == {"cache_ready", "last_poll", "registry"}
        assert await checker.is_ready() is True

    @pytest.mark.asyncio
    async def test_stale_poll_warns(self, poller, registry):
        await poller.initialize()
        stale = PollCycleResult(status="success")
        stale.finished_at = datetime.now(timezone.utc) - timedelta(hours=2)
        poller.last_result = stale
        poller.last_success = stale
        checker = HealthChecker(poller=poller, registry=registry, poll_interval_minutes=10)

        result = await checker.check_last_poll()

        assert result.status == CheckStatus.WARN

    @pytest.mark.asyncio
    async def test_only_failed_polls_warn(self, poller, registry):
        await poller.initialize()
        poller.last_result = PollCycleResult(status="failed", error="down")
        checker = HealthChecker(poller=poller, registry=registry)

        result = await checker.check_last_poll()

        assert result.status == CheckStatus.WARN

    @pytest.mark.asyncio
    async def test_no_active_destinations_warns(self, poller, tmp_path):
        empty = DestinationRegistry(registry_path=tmp_path / "empty.json")
        checker = HealthChecker(poller=poller, registry=empty)

        result = await checker.check_registry()

        assert result.status == CheckStatus.WARN

    @pytest.mark.asyncio
    async def test_unreadable_registry_fails(self, poller):
        registry = MagicMock(spec=DestinationRegistry)
        registry.stats.side_effect = OSError("disk gone")
        checker = HealthChecker(poller=poller, registry=registry)

        result = await checker.check_registry()

        assert result.status == CheckStatus.FAIL


class TestEndpoints:
    """Tests for HTTP endpoints."""

    def test_health_ok(self, ready_poller, registry):
        client = TestClient(create_health_app(poller=ready_poller, registry=registry))

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_unhealthy_without_poller(self):
        client = TestClient(create_health_app())

        assert client.get("/health").status_code == 503

    def test_ready_not_initialized(self, poller, registry):
        client = TestClient(create_health_app(poller=poller, registry=registry))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    def test_ready_initialized(self, ready_poller, registry):
        client = TestClient(create_health_app(poller=ready_poller, registry=registry))

        assert client.get("/ready").json()["ready"] is True

    def test_live(self):
        response = TestClient(create_health_app()).get("/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True

    def test_metrics(self):
        response = TestClient(create_health_app()).get("/metrics")

        assert response.status_code == 200
        assert "lawcast_" in response.text

    def test_status(self, ready_poller, registry):
        client = TestClient(create_health_app(poller=ready_poller, registry=registry))

        body = client.get("/status").json()

        assert body["cache"]["size"] == 30
        assert body["cache"]["is_initialized"] is True
        assert body["destinations"] == {"total": 1, "active": 1, "inactive": 0}
        assert body["poller"]["ready"] is True
        assert body["jobs"] is None

    def test_status_lists_poll_job(self, ready_poller, registry):
        scheduler = NoticeScheduler()
        scheduler.add_poll_job(ready_poller, interval_minutes=5)
        client = TestClient(
            create_health_app(
                poller=ready_poller, registry=registry, scheduler=scheduler
            )
        )

        jobs = client.get("/status").json()["jobs"]

        assert [j["id"] for j in jobs] == [POLL_JOB_ID]
        assert jobs[0]["name"] == "notice_poll"
        assert jobs[0]["run_count"] == 0

    def test_status_without_poller(self):
        assert TestClient(create_health_app()).get("/status").status_code == 503

    def test_recent_default_limit(self, ready_poller, registry):
        client = TestClient(
            create_health_app(poller=ready_poller, registry=registry, recent_limit=20)
        )

        body = client.get("/notices/recent").json()

        assert body["count"] == 20
        assert body["notices"][0]["num"] == 30

    def test_recent_custom_limit(self, ready_poller, registry):
        client = TestClient(create_health_app(poller=ready_poller, registry=registry))

        body = client.get("/notices/recent", params={"limit": 5}).json()

        assert [n["num"] for n in body["notices"]] == [30, 29, 28, 27, 26]

    def test_recent_limit_out_of_range(self, ready_poller, registry):
        client = TestClient(create_health_app(poller=ready_poller, registry=registry))

        assert client.get("/notices/recent", params={"limit": 0}).status_code == 422
        assert client.get("/notices/recent", params={"limit": 500}).status_code == 422

    def test_root(self):
        body = TestClient(create_health_app()).get("/").json()

        assert body["endpoints"]["recent"] == "/notices/recent"


class TestGlobalChecker:
    """Tests for global checker accessors."""

    def test_get_creates_default(self):
        assert isinstance(get_health_checker(), HealthChecker)

    def test_create_app_with_poller_installs_checker(self, poller, registry):
        create_health_app(poller=poller, registry=registry)

        assert get_health_checker().poller is poller
