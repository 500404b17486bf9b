import asyncio

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from core.infra.scheduler import Scheduler, build_trigger


def test_cron_takes_precedence():
    trigger = build_trigger(interval_minutes=60, cron="0 8 * * *", timezone="Europe/Copenhagen")

    assert isinstance(trigger, CronTrigger)


def test_interval_trigger():
    trigger = build_trigger(interval_minutes=30)

    assert isinstance(trigger, IntervalTrigger)
    assert trigger.interval.total_seconds() == 1800


@pytest.mark.parametrize("cron", ["0 8 * *", "61 8 * * *", "every morning at eight"])
def test_invalid_cron_raises(cron):
    with pytest.raises(ValueError):
        build_trigger(cron=cron)


@pytest.mark.parametrize("minutes", [0, -5, None])
def test_non_positive_interval_raises(minutes):
    with pytest.raises(ValueError):
        build_trigger(interval_minutes=minutes)


def test_schedule_and_list_jobs():
    async def job():
        pass

    async def scenario():
        scheduler = Scheduler(timezone="Europe/Copenhagen")
        await scheduler.start()
        try:
            scheduler.schedule(job, "concert-watch", interval_minutes=60)
            scheduler.schedule(job, "concert-watch", cron="0 8 * * *")
            return scheduler.running, scheduler.list_jobs()
        finally:
            await scheduler.stop()

    running, jobs = asyncio.run(scenario())

    assert running
    assert list(jobs) == ["concert-watch"]
    assert jobs["concert-watch"]["next_run"] is not None
    assert "cron" in jobs["concert-watch"]["trigger"]
