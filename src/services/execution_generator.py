"""Generation of scheduled task executions from care task recurrence rules."""

import logging
from datetime import date, timedelta

from src.core.config import constants
from src.core.date_math import Clock, add_days, is_after
from src.core.errors import CareloopError, ConflictError, RejectedError
from src.core.logging import span
from src.domain.care_task import CareTask, TaskType
from src.domain.task_execution import ExecutionStatus, TaskExecution
from src.services.care_task_store import CareTaskStore
from src.services.execution_store import ExecutionStore


logger = logging.getLogger(__name__)


def next_scheduled_date(task: CareTask, latest: TaskExecution | None) -> date | None:
    """Date of the occurrence following ``latest``; the start date seeds the series.

    None when the following date cannot be represented, which ends the series.
    """
    if latest is None:
        return task.start_date
    return add_days(latest.scheduled_date, task.recurrence_interval_days)


class TaskExecutionGenerator:
    """Materializes the next occurrence of a care task on demand."""

    def __init__(self, executions: ExecutionStore, care_tasks: CareTaskStore, clock: Clock) -> None:
        self.executions = executions
        self.care_tasks = care_tasks
        self.clock = clock

    async def generate_next_execution(self, care_task_id: str, task: CareTask | None = None) -> str | None:
        """Create the next TODO execution for a care task.

        Args:
            care_task_id: Task to advance
            task: Already-loaded snapshot of the task, skips the lookup

        Returns:
            Id of the new execution, or None once the series has passed its end date

        Raises:
            NotFoundError: If the task does not exist
            RejectedError: If the task is inactive or is a one-off that already has its execution
            ConflictError: If another request created the same occurrence concurrently
        """
        with span("execution_generator.generate_next_execution"):
            if task is None:
                task = await self.care_tasks.get_task(care_task_id)

            if not task.is_active:
                raise RejectedError("Cannot generate executions for inactive task")

            latest = await self.executions.fetch_latest_by_task(care_task_id)
            if latest is not None and task.is_one_off:
                raise RejectedError("One-off task already has its execution")

            scheduled_date = next_scheduled_date(task, latest)
            if scheduled_date is None or is_after(scheduled_date, task.end_date):
                logger.info(
                    "execution_series_exhausted",
                    extra={"care_task_id": care_task_id, "end_date": str(task.end_date)},
                )
                return None

            now = self.clock.now()
            execution = await self.executions.insert(
                {
                    "care_task_id": care_task_id,
                    "status": ExecutionStatus.TODO,
                    "scheduled_date": scheduled_date,
                    "execution_date": None,
                    "executed_by": None,
                    "quantity_purchased": constants.DEFAULT_QUANTITY_PURCHASED,
                    "quantity_unit": constants.PURCHASE_DEFAULT_UNIT if task.task_type == TaskType.PURCHASE else "",
                    "actual_cost": None,
                    "evidence_url": None,
                    "notes": "",
                    "covered_by_execution_id": None,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            logger.info(
                "execution_generated",
                extra={
                    "care_task_id": care_task_id,
                    "execution_id": execution.id,
                    "scheduled_date": scheduled_date.isoformat(),
                },
            )
            return execution.id

    async def generate_due_executions(self, horizon_days: int) -> int:
        """Create every occurrence of the active tasks scheduled up to ``horizon_days`` ahead.

        A failure on one task is logged and the remaining tasks are still processed.

        Returns:
            Number of executions created
        """
        with span("execution_generator.generate_due_executions"):
            horizon = self.clock.now().date() + timedelta(days=horizon_days)
            created = 0

            for task in await self.care_tasks.list_tasks(is_active=True):
                try:
                    created += await self._generate_until(task, horizon)
                except ConflictError:
                    logger.info("execution_generation_raced", extra={"care_task_id": task.id})
                except CareloopError as e:
                    logger.error("execution_generation_failed", extra={"care_task_id": task.id, "error": e.message})

            logger.info("due_executions_generated", extra={"created_count": created, "horizon": horizon.isoformat()})
            return created

    async def _generate_until(self, task: CareTask, horizon: date) -> int:
        created = 0
        while True:
            latest = await self.executions.fetch_latest_by_task(task.id)
            if latest is not None and task.is_one_off:
                return created
            scheduled_date = next_scheduled_date(task, latest)
            if scheduled_date is None or is_after(scheduled_date, horizon):
                return created
            if await self.generate_next_execution(task.id, task) is None:
                return created
            created += 1
