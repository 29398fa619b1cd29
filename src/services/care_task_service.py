"""Care task management: creation with a seeded first execution, updates and soft deletes."""

import logging
from typing import Any

from src.core.date_math import Clock
from src.core.logging import span
from src.domain.care_task import CareTask, TaskType
from src.domain.create_models import CareTaskCreate
from src.domain.task_execution import ExecutionStatus, TaskExecution
from src.domain.update_models import CareTaskUpdate
from src.services.care_item_service import CareItemService
from src.services.care_task_store import CareTaskStore
from src.services.execution_generator import TaskExecutionGenerator
from src.services.execution_store import ExecutionStore


logger = logging.getLogger(__name__)


class CareTaskService:
    """Care task CRUD on top of the task and execution stores."""

    def __init__(
        self,
        tasks: CareTaskStore,
        executions: ExecutionStore,
        generator: TaskExecutionGenerator,
        care_items: CareItemService,
        clock: Clock,
    ) -> None:
        self.tasks = tasks
        self.executions = executions
        self.generator = generator
        self.care_items = care_items
        self.clock = clock

    async def create_task(self, payload: CareTaskCreate, caller_id: str) -> tuple[CareTask, str | None]:
        """Create a care task and generate its first execution.

        Returns:
            The stored task and the id of the seeded execution (None when the
            end date precedes the start date)

        Raises:
            NotFoundError: If the referenced care item does not exist
        """
        with span("care_task_service.create_task"):
            if payload.care_item_id:
                await self.care_items.get_item(payload.care_item_id)

            now = self.clock.now()
            task = await self.tasks.insert(
                {
                    **payload.model_dump(),
                    "is_active": True,
                    "deactivated_at": None,
                    "created_by": caller_id,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            execution_id = await self.generator.generate_next_execution(task.id, task)

            logger.info("care_task_created", extra={"care_task_id": task.id, "execution_id": execution_id})
            return task, execution_id

    async def get_task(self, task_id: str) -> CareTask:
        return await self.tasks.get_task(task_id)

    async def list_tasks(
        self,
        *,
        is_active: bool | None = True,
        task_type: TaskType | None = None,
        care_item_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[CareTask]:
        return await self.tasks.list_tasks(
            is_active=is_active, task_type=task_type, care_item_id=care_item_id, limit=limit, offset=offset
        )

    async def update_task(self, task_id: str, payload: CareTaskUpdate) -> CareTask:
        """Apply the fields present in ``payload``.

        Raises:
            NotFoundError: If the task or a newly referenced care item does not exist
        """
        with span("care_task_service.update_task"):
            await self.tasks.get_task(task_id)
            updates: dict[str, Any] = payload.model_dump(exclude_unset=True)
            if updates.get("care_item_id"):
                await self.care_items.get_item(updates["care_item_id"])

            updates["updated_at"] = self.clock.now()
            task = await self.tasks.update(task_id, updates)
            logger.info("care_task_updated", extra={"care_task_id": task_id, "fields": sorted(updates)})
            return task

    async def deactivate_task(self, task_id: str) -> CareTask:
        """Soft delete: the task stops producing executions."""
        with span("care_task_service.deactivate_task"):
            await self.tasks.get_task(task_id)
            now = self.clock.now()
            task = await self.tasks.update(task_id, {"is_active": False, "deactivated_at": now, "updated_at": now})
            logger.info("care_task_deactivated", extra={"care_task_id": task_id})
            return task

    async def reactivate_task(self, task_id: str) -> CareTask:
        with span("care_task_service.reactivate_task"):
            await self.tasks.get_task(task_id)
            task = await self.tasks.update(
                task_id, {"is_active": True, "deactivated_at": None, "updated_at": self.clock.now()}
            )
            logger.info("care_task_reactivated", extra={"care_task_id": task_id})
            return task

    async def list_task_executions(
        self,
        task_id: str,
        *,
        status: ExecutionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[TaskExecution]:
        """Executions of one task, most recently scheduled first."""
        await self.tasks.get_task(task_id)
        return await self.executions.list_by_task(task_id, status=status, limit=limit, offset=offset)

    async def generate_next_execution(self, task_id: str) -> str | None:
        return await self.generator.generate_next_execution(task_id)

    async def count_task_executions(self, task_id: str, *, status: ExecutionStatus | None = None) -> int:
        return await self.executions.count_by_task(task_id, status=status)
