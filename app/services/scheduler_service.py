import asyncio
import httpx
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Iterable, Optional
from app import config
from app.services.update_service import update_all_metrics

logger = logging.getLogger("scheduler")

class PeriodicScheduler:
    """
    Runs ``job`` once per interval in the background.

    The next wait only starts after the job finishes (successfully or not), so
    the schedule drifts by the job's run time. ``stop()`` cancels a pending
    wait but lets a job that is already running finish.
    """

    def __init__(self, job: Callable[[], Awaitable], interval_seconds: Optional[float] = None):
        self.job = job
        self.interval_seconds = interval_seconds
        self.is_running = False
        self.next_run_at: Optional[datetime] = None
        self._task = None
        self._in_job = False

    @property
    def interval(self) -> float:
        if self.interval_seconds is not None:
            return self.interval_seconds
        return config.UPDATE_INTERVAL_SECONDS

    def start(self):
        if self.is_running:
            return
        self.is_running = True
        logger.info(f"Metrics scheduler started (every {self.interval} seconds)")
        if self._task and not self._task.done():
            # Stopped during a job: that loop carries on once the job is done
            return
        self._task = asyncio.create_task(self._loop())

    def stop(self):
        self.is_running = False
        self.next_run_at = None
        if self._task:
            if not self._in_job:
                self._task.cancel()
                self._task = None
            logger.info("Metrics scheduler stopped")

    async def _loop(self):
        while self.is_running:
            self.next_run_at = datetime.now(timezone.utc) + timedelta(seconds=self.interval)
            logger.info(f"Next metrics update scheduled for: {self.next_run_at.isoformat()}")
            await asyncio.sleep(self.interval)

            self._in_job = True
            try:
                await self.job()
            except Exception as e:
                logger.error(f"Error during scheduled metrics update: {e}", exc_info=True)
            finally:
                self._in_job = False

def estimate_next_update(last_updated: Iterable[Optional[datetime]], interval_seconds: float) -> Optional[datetime]:
    """Oldest token update plus one interval; tokens never updated count as the epoch."""
    timestamps = [ts or datetime(1970, 1, 1) for ts in last_updated]
    if not timestamps:
        return None
    return min(timestamps) + timedelta(seconds=interval_seconds)

# Follow-up calls must stay referenced until they finish
_follow_ups = set()

async def _call_update_later(url: str, delay_seconds: float):
    await asyncio.sleep(delay_seconds)
    headers = {"Authorization": f"Bearer {config.CRON_SECRET}"} if config.CRON_SECRET else {}
    try:
        async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
            res = await client.get(url, headers=headers)
        logger.info(f"Follow-up update call to {url} returned {res.status_code}")
    except httpx.HTTPError as e:
        logger.warning(f"Follow-up update call to {url} failed: {e}")

def schedule_follow_up(url: str, delay_seconds: float) -> asyncio.Task:
    """
    Ask this deployment to update again after a delay.

    Best effort only: a serverless instance is usually frozen or gone long
    before the delay runs out. The external cron trigger is what keeps updates
    going.
    """
    task = asyncio.create_task(_call_update_later(url, delay_seconds))
    _follow_ups.add(task)
    task.add_done_callback(_follow_ups.discard)
    logger.info(f"Follow-up update requested in {delay_seconds} seconds (best effort)")
    return task

metrics_scheduler = PeriodicScheduler(update_all_metrics)
