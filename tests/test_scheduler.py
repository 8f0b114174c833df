import asyncio
from datetime import datetime, timedelta

import pytest
from apscheduler.events import EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from labsync.exceptions import IntegrityViolation
from labsync.services.scheduler import JOB_ID, SchedulerService


class StubReconciler:
    def __init__(self, error=None):
        self.error = error
        self.triggers = []

    async def run_pass(self, trigger="scheduled", dry_run=False):
        self.triggers.append(trigger)
        if self.error:
            raise self.error
        return {"checked": 1, "resolved": 1, "errors": []}


class SlowReconciler(StubReconciler):
    def __init__(self, delay):
        super().__init__()
        self.delay = delay

    async def run_pass(self, trigger="scheduled", dry_run=False):
        await asyncio.sleep(self.delay)
        return await super().run_pass(trigger, dry_run)


def armed_service(reconciler, planned_at, fatal=None):
    """A service whose scheduler is set up but not started."""
    service = SchedulerService(
        reconciler,
        interval=timedelta(hours=12),
        on_fatal=fatal.append if fatal is not None else None,
    )
    service.scheduler = AsyncIOScheduler()
    service._running = True
    service._planned_at = planned_at
    return service


async def run_scheduled_pass(service):
    """Run the job body, then report it finished the way the executor does."""
    await service._run_pass_job()
    service._on_pass_done(
        JobExecutionEvent(EVENT_JOB_EXECUTED, JOB_ID, "default", service._planned_at)
    )


@pytest.mark.asyncio
async def test_start_schedules_an_immediate_pass_and_stop_halts():
    service = SchedulerService(StubReconciler(), interval=timedelta(hours=12))
    before = datetime.now()
    service.start()
    try:
        assert service.is_running
        assert [job["id"] for job in service.get_jobs()] == [JOB_ID]
        assert service._planned_at >= before
        assert service._planned_at <= datetime.now()
    finally:
        service.stop()
    assert not service.is_running


@pytest.mark.asyncio
async def test_pass_rearms_one_interval_after_the_planned_time():
    planned = datetime.now()
    service = armed_service(StubReconciler(), planned)

    await run_scheduled_pass(service)

    assert service._planned_at == planned + timedelta(hours=12)
    assert service.scheduler.get_job(JOB_ID) is not None


@pytest.mark.asyncio
async def test_overrunning_pass_delays_the_next_run_instead_of_skipping_it():
    planned = datetime.now() - timedelta(hours=13)
    service = armed_service(StubReconciler(), planned)

    before = datetime.now()
    await run_scheduled_pass(service)

    assert before <= service._planned_at <= datetime.now()


@pytest.mark.asyncio
async def test_unexpected_error_is_logged_and_schedule_continues():
    planned = datetime.now()
    service = armed_service(StubReconciler(error=RuntimeError("db down")), planned)

    await run_scheduled_pass(service)

    assert service._planned_at == planned + timedelta(hours=12)


@pytest.mark.asyncio
async def test_integrity_violation_goes_to_fatal_handler_and_stops_scheduling():
    fatal = []
    violation = IntegrityViolation("DUP", 2)
    planned = datetime.now()
    service = armed_service(StubReconciler(error=violation), planned, fatal)

    await run_scheduled_pass(service)

    assert fatal == [violation]
    assert service._planned_at == planned
    assert service.scheduler.get_job(JOB_ID) is None


@pytest.mark.asyncio
async def test_trigger_now_runs_a_manual_pass():
    reconciler = StubReconciler()
    service = SchedulerService(reconciler)

    summary = await service.trigger_now()

    assert summary["resolved"] == 1
    assert reconciler.triggers == ["manual"]


@pytest.mark.asyncio
async def test_trigger_now_treats_integrity_violation_as_fatal():
    fatal = []
    violation = IntegrityViolation("DUP", 0)
    service = SchedulerService(StubReconciler(error=violation), on_fatal=fatal.append)

    with pytest.raises(IntegrityViolation):
        await service.trigger_now()

    assert fatal == [violation]


@pytest.mark.asyncio
async def test_running_scheduler_keeps_polling_when_passes_outlast_the_interval():
    reconciler = SlowReconciler(delay=0.3)
    service = SchedulerService(reconciler, interval=timedelta(seconds=0.1))
    service.start()
    try:
        await asyncio.sleep(1.5)
        assert len(reconciler.triggers) >= 3
        assert set(reconciler.triggers) == {"scheduled"}
        assert service.scheduler.get_job(JOB_ID) is not None
    finally:
        service.stop()
