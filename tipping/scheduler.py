"""Background scheduler for match status reconciliation."""

import logging
import os
import time
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from tipping.clock import Clock
from tipping.lifecycle.reconciler import StatusReconciler
from tipping.telemetry.metrics import record_job_run, record_reconcile_run
from tipping.telemetry.sentry import capture_exception as sentry_capture_exception
from tipping.utils.throttle import Throttle

logger = logging.getLogger(__name__)

RECONCILE_JOB_ID = "reconcile_match_status"
HEARTBEAT_JOB_ID = "scheduler_heartbeat"


class ReconcileScheduler:
    """
    Periodic reconciliation on a fixed interval, plus a heartbeat job.

    tick() performs one pass and never raises, so a failing store cannot stop
    the schedule: the next tick is always run. Tests call tick() directly.
    """

    def __init__(
        self,
        reconciler: StatusReconciler,
        clock: Clock,
        interval_seconds: int = 60,
        heartbeat_minutes: int = 30,
        throttle: Optional[Throttle] = None,
    ):
        self.reconciler = reconciler
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.heartbeat_minutes = heartbeat_minutes
        self.throttle = throttle
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self._started = False
        self.last_result: Optional[dict] = None

    @property
    def running(self) -> bool:
        return self._started and self.scheduler.running

    async def tick(self) -> dict:
        """Run one reconciliation pass; failures are logged and reported, not raised."""
        start_time = time.time()

        if self.throttle is not None:
            self.throttle.mark()

        try:
            transitioned = await self.reconciler.reconcile(self.clock.now())
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(f"[RECONCILE] Tick failed: {e}")
            sentry_capture_exception(e, job_id=RECONCILE_JOB_ID)
            record_job_run(job=RECONCILE_JOB_ID, status="error", duration_ms=duration_ms)
            record_reconcile_run("tick", "error")
            if self.throttle is not None:
                self.throttle.reset()
            self.last_result = {"status": "error", "error": str(e)}
            return self.last_result

        duration_ms = (time.time() - start_time) * 1000
        if transitioned:
            logger.info(
                f"[RECONCILE] Tick applied {transitioned} transition(s) in {duration_ms:.0f}ms"
            )
        record_job_run(job=RECONCILE_JOB_ID, status="ok", duration_ms=duration_ms)
        record_reconcile_run("tick", "ok")
        self.last_result = {
            "status": "ok",
            "transitioned": transitioned,
            "duration_ms": round(duration_ms),
        }
        return self.last_result

    def _log_scheduler_jobs(self) -> None:
        """Log all registered scheduler jobs and their next run times."""
        jobs = self.scheduler.get_jobs()
        if not jobs:
            logger.warning("SCHEDULER HEARTBEAT: No jobs registered!")
            return

        job_info = []
        for job in jobs:
            next_run = job.next_run_time
            next_str = next_run.strftime("%Y-%m-%d %H:%M:%S UTC") if next_run else "None"
            job_info.append(f"  - {job.id}: next={next_str}")

        logger.info(
            f"SCHEDULER HEARTBEAT: {len(jobs)} jobs registered:\n" + "\n".join(job_info)
        )

    async def heartbeat(self) -> None:
        """Periodic heartbeat to confirm scheduler is running and log job status."""
        self._log_scheduler_jobs()

    def start(self) -> None:
        """
        Register jobs and start the scheduler.

        Must be called from inside a running event loop. A second call is a no-op.
        """
        if self._started:
            logger.warning("Scheduler already started, skipping duplicate initialization")
            return

        # Uvicorn sets this env var in the reloader subprocess
        if os.environ.get("UVICORN_RELOADED"):
            logger.info("Skipping scheduler in reload subprocess")
            return

        self.scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=RECONCILE_JOB_ID,
            name="Match Status Reconciliation",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.add_job(
            self.heartbeat,
            trigger=IntervalTrigger(minutes=self.heartbeat_minutes),
            id=HEARTBEAT_JOB_ID,
            name="Scheduler Heartbeat",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.start()
        self._started = True

        self._log_scheduler_jobs()
        logger.info(
            f"Scheduler started:\n"
            f"  - Match status reconciliation: Every {self.interval_seconds}s\n"
            f"  - Scheduler heartbeat: Every {self.heartbeat_minutes} min"
        )

    def stop(self) -> None:
        """Stop the background scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self._started = False
