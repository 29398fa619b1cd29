"""Scheduler for the periodic task execution generation job."""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from croniter import croniter

from src.core.config import Settings
from src.services.execution_generator import TaskExecutionGenerator


logger = logging.getLogger(__name__)

JOB_ID = "generate_due_executions"


class GenerationScheduler:
    """Runs ``generate_due_executions`` on the configured CRON schedule."""

    def __init__(self, generator: TaskExecutionGenerator, settings: Settings) -> None:
        self.generator = generator
        self.cron = settings.generation_cron
        self.horizon_days = settings.generation_horizon_days
        self.scheduler = AsyncIOScheduler(timezone=UTC)
        self.last_run: datetime | None = None
        self.last_created: int | None = None
        self.last_error: str | None = None

    async def run_generation(self) -> int:
        """Run one generation pass; failures are recorded rather than raised."""
        self.last_run = datetime.now(UTC)
        try:
            created = await self.generator.generate_due_executions(self.horizon_days)
        except Exception as e:
            self.last_error = str(e)
            logger.error("scheduled_generation_failed", extra={"job": JOB_ID, "error": str(e)})
            return 0

        self.last_created = created
        self.last_error = None
        logger.info("scheduled_generation_complete", extra={"job": JOB_ID, "created_count": created})
        return created

    def start(self) -> None:
        """Register the generation job and start the scheduler.

        This should be called during FastAPI app startup.
        """
        logger.info("Starting scheduler")
        self.scheduler.add_job(
            self.run_generation,
            trigger=CronTrigger.from_crontab(self.cron, timezone=UTC),
            id=JOB_ID,
            name="Generate Due Task Executions",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Scheduler started", extra={"job": JOB_ID, "cron": self.cron, "horizon_days": self.horizon_days})

    def stop(self) -> None:
        """Stop the scheduler.

        This should be called during FastAPI app shutdown.
        """
        if not self.scheduler.running:
            return
        logger.info("Stopping scheduler")
        self.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    def next_run_time(self, now: datetime | None = None) -> datetime:
        """Next time the generation job fires after ``now``."""
        base = now or datetime.now(UTC)
        return croniter(self.cron, base).get_next(datetime)

    def status(self) -> dict[str, Any]:
        """Snapshot of the job state for the health endpoint."""
        return {
            "job": JOB_ID,
            "running": self.scheduler.running,
            "cron": self.cron,
            "next_run": self.next_run_time().isoformat(),
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_created": self.last_created,
            "last_error": self.last_error,
        }
