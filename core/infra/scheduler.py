"""
Scheduler infrastructure for periodic concert watch runs.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from croniter import croniter


logger = logging.getLogger(__name__)


def build_trigger(interval_minutes: Optional[int] = None, cron: Optional[str] = None, timezone: str = "UTC") -> BaseTrigger:
    """Cron wins when both are given; otherwise a fixed interval.

    Raises:
        ValueError: If the cron expression is not a valid 5-field crontab
            or neither option is set
    """
    if cron:
        if len(cron.split()) != 5 or not croniter.is_valid(cron):
            raise ValueError(f"Invalid cron expression: {cron!r}")
        return CronTrigger.from_crontab(cron, timezone=timezone)

    if not interval_minutes or interval_minutes <= 0:
        raise ValueError("interval_minutes must be a positive number when no cron is given")
    return IntervalTrigger(minutes=interval_minutes, timezone=timezone)


class Scheduler:
    """AsyncIOScheduler wrapper with an in-memory job store."""

    def __init__(self, timezone: str = "UTC"):
        self.timezone = timezone
        # One run at a time; a late tick is merged into the next one
        self._scheduler = AsyncIOScheduler(
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 60},
            timezone=timezone,
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    async def start(self) -> None:
        if not self.running:
            self._scheduler.start()
            logger.info(f"Scheduler started ({self.timezone})")

    async def stop(self) -> None:
        if self.running:
            # Running jobs observe the cancel event instead of being awaited
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def schedule(
        self,
        func,
        job_id: str,
        interval_minutes: Optional[int] = None,
        cron: Optional[str] = None,
        args: Sequence[Any] = (),
    ) -> None:
        """Register ``func(*args)`` under ``job_id``, replacing any previous job."""
        trigger = build_trigger(interval_minutes, cron, self.timezone)
        self._scheduler.add_job(func, trigger=trigger, id=job_id, args=list(args), replace_existing=True)
        logger.info(f"Scheduled {job_id}: {trigger}")

    def list_jobs(self) -> Dict[str, Dict[str, Any]]:
        return {
            job.id: {
                "name": job.name,
                "next_run": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
            for job in self._scheduler.get_jobs()
        }
