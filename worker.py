#!/usr/bin/env python3
"""
Careo Intake Generation Worker

Runs the scheduler that generates each day's intake records:

- Initializes logging and the async database pool
- Wires the generation service to PostgreSQL with the facility's shift and
  retry configuration from settings
- Starts the SchedulerWorker (daily cron plus optional startup catch-up)
- Waits for SIGINT/SIGTERM and shuts down cleanly

Only one worker process should run per database; running more is safe but
wasteful, since every run is idempotent.
"""

import asyncio
import signal

from careo.config import settings
from careo.database import async_db
from careo.database.order_repository import PostgresGenerationRunLog, PostgresOrderRepository
from careo.enums import LogEmoji, LoggerName, LogSource
from careo.models.generation_run_model import GenerationConfig
from careo.models.shift_model import ShiftConfig
from careo.services.intake_generation_service import IntakeGenerationService
from careo.services.logger import get_service_logger, initialize_global_logger
from careo.workers import SchedulerWorker

logger = get_service_logger(LoggerName.SYSTEM, LogSource.SYSTEM)


class IntakeGenerationWorker:
    """
    Process-level wrapper around the SchedulerWorker.
    """

    def __init__(self):
        shift_config = ShiftConfig.from_settings(settings)
        self.generation_service = IntakeGenerationService(
            repository=PostgresOrderRepository(async_db, shift_config.timezone),
            shift_config=shift_config,
            config=GenerationConfig.from_settings(settings),
            run_log=PostgresGenerationRunLog(async_db),
        )
        self.scheduler_worker = SchedulerWorker(
            generation_service=self.generation_service,
            cron_hour_utc=settings.generation_cron_hour_utc,
            cron_minute_utc=settings.generation_cron_minute_utc,
            run_on_startup=settings.generation_run_on_startup,
        )
        self._shutdown_event = asyncio.Event()

    def _signal_handler(self, signum: int) -> None:
        """Handle shutdown signals gracefully."""
        logger.info(
            f"Received signal {signum}, shutting down gracefully...",
            emoji=LogEmoji.SHUTDOWN,
        )
        self._shutdown_event.set()

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, self._signal_handler, signum)

        await async_db.initialize()
        logger.info("Async database initialized for worker", emoji=LogEmoji.DATABASE)

        try:
            await self.scheduler_worker.start()
            logger.info(
                "Intake generation worker started",
                extra_context={
                    "facility_timezone": settings.facility_timezone,
                    **self.scheduler_worker.get_status(),
                },
                emoji=LogEmoji.STARTUP,
            )
            await self._shutdown_event.wait()
        finally:
            logger.info("Worker shutting down...")
            await self.scheduler_worker.stop()
            await async_db.close()


async def main():
    """Main async entry point for the intake generation worker."""
    initialize_global_logger(
        log_level=settings.log_level,
        logs_directory=settings.logs_directory,
        log_file=settings.log_file,
    )

    worker = IntakeGenerationWorker()
    await worker.start()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    finally:
        logger.info("Application exiting")
