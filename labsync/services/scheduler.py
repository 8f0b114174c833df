"""
Background job scheduler for result polling.

Uses APScheduler to run a reconciliation pass right away and then once per
poll interval. The next run is armed once the executor reports the current
one finished, so a slow pass pushes the next run back instead of overlapping
or skipping it.
"""
import asyncio
import logging
import os
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from ..exceptions import IntegrityViolation
from .reconciler import Reconciler

logger = logging.getLogger(__name__)

JOB_ID = "pending_results_sync"

FatalHandler = Callable[[IntegrityViolation], None]


def terminate_process(exc: IntegrityViolation) -> None:
    """Default fatal handler: stop the whole process with a non-zero status."""
    logger.critical(f"Integrity violation, terminating: {exc}")
    logging.shutdown()
    os._exit(1)


class SchedulerService:
    """Manages the periodic results sync and supervises its failures."""

    def __init__(
        self,
        reconciler: Reconciler,
        interval: timedelta = timedelta(hours=12),
        on_fatal: Optional[FatalHandler] = None,
    ):
        self.reconciler = reconciler
        self.interval = interval
        self.on_fatal = on_fatal or terminate_process
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._planned_at: Optional[datetime] = None
        self._pass_lock = asyncio.Lock()

    def start(self):
        """Start the scheduler; the first pass runs immediately."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_listener(self._on_pass_done, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
        self._arm(datetime.now())
        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started, polling every {self.interval}")

    def stop(self):
        """Stop the scheduler."""
        if not self._running:
            return
        self._running = False
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def next_run(self) -> Optional[datetime]:
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    def get_jobs(self) -> list:
        """Get list of scheduled jobs."""
        if not self.scheduler:
            return []

        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    def _arm(self, run_at: datetime):
        self._planned_at = run_at
        self.scheduler.add_job(
            self._run_pass_job,
            DateTrigger(run_date=run_at),
            id=JOB_ID,
            name="Pending Results Sync",
            replace_existing=True,
            misfire_grace_time=None,
        )

    def _arm_next(self):
        if not self.scheduler or not self._running:
            return
        planned = (self._planned_at or datetime.now()) + self.interval
        self._arm(max(planned, datetime.now()))

    def _on_pass_done(self, event: JobExecutionEvent):
        # Fired after the executor has released the job instance
        if event.job_id == JOB_ID:
            self._arm_next()

    async def _run_pass_job(self):
        """Execute one scheduled pass."""
        logger.info("Starting scheduled results sync...")
        start_time = datetime.utcnow()

        try:
            async with self._pass_lock:
                summary = await self.reconciler.run_pass(trigger="scheduled")
            duration = (datetime.utcnow() - start_time).total_seconds()
            logger.info(
                f"Scheduled results sync completed in {duration:.1f}s. "
                f"Resolved {summary['resolved']} of {summary['checked']} pending samples."
            )
        except IntegrityViolation as e:
            self._handle_fatal(e)
            return
        except Exception as e:
            logger.error(f"Scheduled results sync failed: {e}", exc_info=True)

    def _handle_fatal(self, exc: IntegrityViolation):
        logger.critical(f"Results sync hit an integrity violation: {exc}")
        self.on_fatal(exc)
        # Only reached when the handler chose not to exit
        self.stop()

    async def trigger_now(self) -> Dict:
        """Run a pass outside the schedule. Integrity violations are handled as fatal."""
        logger.info("Manually triggered results sync...")
        try:
            async with self._pass_lock:
                return await self.reconciler.run_pass(trigger="manual")
        except IntegrityViolation as e:
            self._handle_fatal(e)
            raise
