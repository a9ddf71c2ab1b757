import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from app import config
from app.services import scheduler_service
from app.services.scheduler_service import PeriodicScheduler, estimate_next_update


class TestPeriodicScheduler:
    @pytest.mark.asyncio
    async def test_runs_job_every_interval(self):
        job = AsyncMock()
        scheduler = PeriodicScheduler(job, interval_seconds=0.01)

        scheduler.start()
        await asyncio.sleep(0.1)
        scheduler.stop()

        assert job.await_count >= 2

    @pytest.mark.asyncio
    async def test_first_run_waits_one_interval(self):
        job = AsyncMock()
        scheduler = PeriodicScheduler(job, interval_seconds=60)

        scheduler.start()
        await asyncio.sleep(0.02)

        job.assert_not_awaited()
        assert scheduler.next_run_at > datetime.now(timezone.utc) + timedelta(seconds=50)
        scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_prevents_next_tick(self):
        job = AsyncMock()
        scheduler = PeriodicScheduler(job, interval_seconds=0.01)

        scheduler.start()
        await asyncio.sleep(0.05)
        scheduler.stop()
        runs = job.await_count
        await asyncio.sleep(0.05)

        assert job.await_count == runs
        assert scheduler.next_run_at is None
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_failing_job_is_rearmed(self):
        job = AsyncMock(side_effect=RuntimeError("boom"))
        scheduler = PeriodicScheduler(job, interval_seconds=0.01)

        scheduler.start()
        await asyncio.sleep(0.1)
        scheduler.stop()

        assert job.await_count >= 2

    @pytest.mark.asyncio
    async def test_stop_lets_running_job_finish(self):
        finished = asyncio.Event()

        async def job():
            await asyncio.sleep(0.1)
            finished.set()

        scheduler = PeriodicScheduler(job, interval_seconds=0)
        scheduler.start()
        await asyncio.sleep(0.02)  # inside the first job
        scheduler.stop()

        await asyncio.wait_for(finished.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_restart_during_job_keeps_single_loop(self):
        active = 0
        peak = 0

        async def job():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.05)
            active -= 1

        scheduler = PeriodicScheduler(job, interval_seconds=0.01)
        scheduler.start()
        await asyncio.sleep(0.03)  # inside the first job
        scheduler.stop()
        scheduler.start()
        await asyncio.sleep(0.2)
        scheduler.stop()
        await asyncio.sleep(0.06)

        assert peak == 1

    def test_interval_defaults_to_config(self, monkeypatch):
        monkeypatch.setattr(config, "UPDATE_INTERVAL_SECONDS", 123)

        assert PeriodicScheduler(AsyncMock()).interval == 123


class TestEstimateNextUpdate:
    def test_oldest_update_plus_interval(self):
        older = datetime(2024, 5, 1, 10, 0)
        newer = datetime(2024, 5, 1, 12, 0)

        assert estimate_next_update([newer, older], 3600) == datetime(2024, 5, 1, 11, 0)

    def test_never_updated_token_counts_as_epoch(self):
        assert estimate_next_update([datetime(2024, 5, 1), None], 60) == datetime(1970, 1, 1, 0, 1)

    def test_no_tokens(self):
        assert estimate_next_update([], 3600) is None


class TestFollowUp:
    @pytest.mark.asyncio
    @respx.mock
    async def test_follow_up_calls_update_url_after_delay(self, monkeypatch):
        monkeypatch.setattr(config, "CRON_SECRET", "s3cret")
        route = respx.get("https://metrics.example/api/update").mock(return_value=httpx.Response(200))

        task = scheduler_service.schedule_follow_up("https://metrics.example/api/update", 0.01)
        await task

        assert route.called
        assert route.calls.last.request.headers["authorization"] == "Bearer s3cret"

    @pytest.mark.asyncio
    @respx.mock
    async def test_follow_up_failure_is_only_logged(self):
        respx.get("https://metrics.example/api/update").mock(side_effect=httpx.ConnectError("gone"))

        task = scheduler_service.schedule_follow_up("https://metrics.example/api/update", 0)
        await task

        assert task.exception() is None
