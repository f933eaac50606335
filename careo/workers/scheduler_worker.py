# careo/workers/scheduler_worker.py
"""
Scheduler Worker for daily intake generation.

Owns the APScheduler instance and is the only component that decides WHEN
generation runs:

- A cron job fires once a day at a fixed UTC time (11:00 UTC by default,
  local midday for a UK facility) and generates records for the
  facility-local "today"
- Optionally, a one-off job runs the same generation at startup, so a
  process that was down at fire time catches up without waiting a day

Both jobs are safe to fire more than once because generation is idempotent.
Misfired runs are coalesced and a run never overlaps itself.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..constants import (
    DAILY_GENERATION_JOB_ID,
    DEFAULT_GENERATION_CRON_HOUR_UTC,
    DEFAULT_GENERATION_CRON_MINUTE_UTC,
    GENERATION_MISFIRE_GRACE_SECONDS,
    SCHEDULER_MAX_INSTANCES,
    STARTUP_GENERATION_JOB_ID,
)
from ..enums import GenerationTrigger, LogEmoji, LoggerName, LogSource, WorkerType
from ..models.generation_run_model import GenerationRunResult
from ..services.intake_generation_service import IntakeGenerationService
from ..services.logger import get_service_logger
from ..utils.time_utils import UTC_TIMEZONE, utc_now
from .base_worker import BaseWorker

scheduler_logger = get_service_logger(LoggerName.SCHEDULER_WORKER, LogSource.SCHEDULER)


class SchedulerWorker(BaseWorker):
    """
    Schedules the daily generation job.

    Responsibilities:
    - APScheduler lifecycle management
    - Daily cron registration in UTC
    - Startup catch-up run
    - Keeping the last run result for status reporting
    """

    def __init__(
        self,
        generation_service: IntakeGenerationService,
        cron_hour_utc: int = DEFAULT_GENERATION_CRON_HOUR_UTC,
        cron_minute_utc: int = DEFAULT_GENERATION_CRON_MINUTE_UTC,
        run_on_startup: bool = True,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        """
        Initialize scheduler worker with injected dependencies.

        Args:
            generation_service: Service that performs a generation run
            cron_hour_utc: Hour (UTC) the daily job fires
            cron_minute_utc: Minute the daily job fires
            run_on_startup: Also run once shortly after start
            scheduler: APScheduler instance (a UTC AsyncIOScheduler by default)
        """
        super().__init__(WorkerType.SCHEDULER_WORKER.value)

        self.generation_service = generation_service
        self.cron_hour_utc = cron_hour_utc
        self.cron_minute_utc = cron_minute_utc
        self.run_on_startup = run_on_startup
        self.scheduler = scheduler or AsyncIOScheduler(timezone=UTC_TIMEZONE)
        self.last_result: Optional[GenerationRunResult] = None

    async def initialize(self) -> None:
        """Register generation jobs and start the scheduler."""
        scheduler_logger.info(
            "Initializing intake generation scheduler", emoji=LogEmoji.STARTUP
        )

        self.add_daily_generation_job()
        if self.run_on_startup:
            self.add_startup_generation_job()

        self.start_scheduler()

    async def cleanup(self) -> None:
        """Cleanup scheduler worker resources."""
        self.stop_scheduler()

    # APScheduler Management

    def start_scheduler(self) -> None:
        """Start the APScheduler instance."""
        if not self.scheduler.running:
            self.scheduler.start()
            scheduler_logger.info("Scheduler started successfully", emoji=LogEmoji.SUCCESS)
        else:
            scheduler_logger.debug("Scheduler already running")

    def stop_scheduler(self) -> None:
        """Stop the APScheduler instance."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            scheduler_logger.info("Scheduler stopped", emoji=LogEmoji.SHUTDOWN)
        else:
            scheduler_logger.debug("Scheduler already stopped")

    def add_daily_generation_job(self) -> None:
        """Register (or replace) the daily cron job."""
        self.scheduler.add_job(
            self.run_generation,
            trigger="cron",
            hour=self.cron_hour_utc,
            minute=self.cron_minute_utc,
            timezone=UTC_TIMEZONE,
            id=DAILY_GENERATION_JOB_ID,
            kwargs={"trigger": GenerationTrigger.SCHEDULED},
            replace_existing=True,
            max_instances=SCHEDULER_MAX_INSTANCES,
            coalesce=True,
            misfire_grace_time=GENERATION_MISFIRE_GRACE_SECONDS,
        )
        scheduler_logger.info(
            f"Daily intake generation scheduled at "
            f"{self.cron_hour_utc:02d}:{self.cron_minute_utc:02d} UTC",
            emoji=LogEmoji.SCHEDULER,
        )

    def add_startup_generation_job(self, delay_seconds: int = 5) -> None:
        """Register a one-off catch-up run shortly after start."""
        self.scheduler.add_job(
            self.run_generation,
            trigger="date",
            run_date=utc_now() + timedelta(seconds=delay_seconds),
            id=STARTUP_GENERATION_JOB_ID,
            kwargs={"trigger": GenerationTrigger.STARTUP},
            replace_existing=True,
            max_instances=SCHEDULER_MAX_INSTANCES,
            misfire_grace_time=GENERATION_MISFIRE_GRACE_SECONDS,
        )

    async def run_generation(
        self, trigger: GenerationTrigger = GenerationTrigger.SCHEDULED
    ) -> Optional[GenerationRunResult]:
        """
        Job body: generate records for the facility-local today.

        Returns:
            The run result, or None if the run raised unexpectedly
        """
        try:
            result = await self.generation_service.run_for_today(trigger=trigger)
        except Exception as e:
            self.log_error("Intake generation job failed", e)
            return None

        self.last_result = result
        return result

    def is_healthy(self) -> bool:
        """Healthy while started and the scheduler loop is running."""
        return self.running and bool(self.scheduler.running)

    def get_next_run_time(self) -> Optional[str]:
        job = self.scheduler.get_job(DAILY_GENERATION_JOB_ID)
        if job is None or job.next_run_time is None:
            return None
        return job.next_run_time.isoformat()

    def get_status(self) -> Dict[str, Any]:
        """
        Get scheduler worker status.

        Returns:
            Dict[str, Any]: Scheduler state and the last run summary
        """
        status = super().get_status()
        status.update(
            {
                "worker_type": WorkerType.SCHEDULER_WORKER.value,
                "scheduler_running": self.scheduler.running,
                "next_run_time": self.get_next_run_time(),
                "retry_policy": self.generation_service.retry_manager.get_stats(),
                "last_run": (
                    {
                        "run_id": self.last_result.run_id,
                        "target_date": self.last_result.target_date.isoformat(),
                        "status": self.last_result.status.value,
                        "records_inserted": self.last_result.records_inserted,
                        "failures": len(self.last_result.failures),
                    }
                    if self.last_result
                    else None
                ),
            }
        )
        return status
