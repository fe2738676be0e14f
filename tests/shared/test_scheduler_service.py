# -*- coding: utf-8 -*-
"""
Tests del SchedulerService (sin arrancar el loop de APScheduler).
"""

import pytest

from app.shared.scheduler import SchedulerService


async def _noop(**kwargs):
    return None


def test_add_cron_job_requires_five_fields():
    scheduler = SchedulerService()
    with pytest.raises(ValueError):
        scheduler.add_cron_job(_noop, "bad", "0 0 * *")


def test_jobs_are_replaced_by_id():
    scheduler = SchedulerService()
    scheduler.add_interval_job(_noop, "tick", minutes=5)
    scheduler.add_interval_job(_noop, "tick", minutes=10)

    jobs = scheduler.get_jobs()
    assert [job["id"] for job in jobs] == ["tick"]
    assert scheduler.get_job_status("tick")["name"] == "tick"
    assert scheduler.get_job_status("missing") is None


async def test_start_and_shutdown():
    scheduler = SchedulerService()
    scheduler.add_cron_job(_noop, "nightly", "15 0 * * *")

    scheduler.start()
    assert scheduler.is_running
    scheduler.shutdown(wait=False)
    assert not scheduler.is_running
