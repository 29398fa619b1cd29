"""Persistence adapter for task executions."""

import logging
from datetime import date
from typing import Any

from src.core.db_client import DocumentStore, sanitize_param
from src.core.errors import store_errors
from src.domain.task_execution import ExecutionStatus, TaskExecution


logger = logging.getLogger(__name__)

COLLECTION = "task_executions"
ENTITY = "Task execution"


def _clauses(**equals: str | None) -> list[str]:
    return [f'{field} = "{sanitize_param(value)}"' for field, value in equals.items() if value]


class ExecutionStore:
    """Typed access to the ``task_executions`` collection."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def get_execution(self, execution_id: str) -> TaskExecution:
        """Fetch one execution.

        Raises:
            NotFoundError: If the id does not resolve
        """
        with store_errors(ENTITY):
            record = await self.store.get_record(collection=COLLECTION, record_id=execution_id)
        return TaskExecution.model_validate(record)

    async def fetch_latest_by_task(self, care_task_id: str) -> TaskExecution | None:
        """Execution of the task with the greatest scheduled date, if any."""
        with store_errors(ENTITY):
            record = await self.store.get_first_record(
                collection=COLLECTION,
                filter_query=f'care_task_id = "{sanitize_param(care_task_id)}"',
                sort="-scheduled_date",
            )
        return TaskExecution.model_validate(record) if record else None

    async def insert(self, data: dict[str, Any]) -> TaskExecution:
        """Store a new execution.

        Raises:
            ConflictError: If the task already has an execution on that date
        """
        with store_errors(ENTITY):
            record = await self.store.create_record(collection=COLLECTION, data=data)
        return TaskExecution.model_validate(record)

    async def update(self, execution_id: str, data: dict[str, Any]) -> TaskExecution:
        """Merge fields into one execution."""
        with store_errors(ENTITY):
            record = await self.store.update_record(collection=COLLECTION, record_id=execution_id, data=data)
        return TaskExecution.model_validate(record)

    async def batch_update(self, updates: dict[str, dict[str, Any]]) -> list[TaskExecution]:
        """Apply several updates atomically; a missing id aborts all of them."""
        with store_errors(ENTITY):
            records = await self.store.batch_update(collection=COLLECTION, updates=updates)
        return [TaskExecution.model_validate(record) for record in records]

    async def list_by_task(
        self,
        care_task_id: str,
        *,
        status: ExecutionStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[TaskExecution]:
        """Executions of one task, most recently scheduled first."""
        return await self.list_executions(care_task_id=care_task_id, status=status, limit=limit, offset=offset)

    async def list_executions(
        self,
        *,
        status: ExecutionStatus | None = None,
        care_task_id: str | None = None,
        executed_by: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[TaskExecution]:
        """Executions matching every given criterion, most recently scheduled first."""
        clauses = _clauses(status=status, care_task_id=care_task_id, executed_by=executed_by)
        if date_from:
            clauses.append(f'scheduled_date >= "{date_from.isoformat()}"')
        if date_to:
            clauses.append(f'scheduled_date <= "{date_to.isoformat()}"')

        with store_errors(ENTITY):
            records = await self.store.list_records(
                collection=COLLECTION,
                filter_query=" && ".join(clauses),
                sort="-scheduled_date",
                limit=limit,
                offset=offset,
            )
        return [TaskExecution.model_validate(record) for record in records]

    async def list_covered_by(self, covering_id: str) -> list[TaskExecution]:
        """Executions whose fulfillment was subsumed by ``covering_id``."""
        with store_errors(ENTITY):
            records = await self.store.list_records(
                collection=COLLECTION,
                filter_query=f'covered_by_execution_id = "{sanitize_param(covering_id)}"',
                sort="scheduled_date",
            )
        return [TaskExecution.model_validate(record) for record in records]

    async def count_by_task(self, care_task_id: str, *, status: ExecutionStatus | None = None) -> int:
        """Number of executions of one task, ignoring pagination."""
        filter_query = " && ".join(_clauses(care_task_id=care_task_id, status=status))
        with store_errors(ENTITY):
            return await self.store.count_records(collection=COLLECTION, filter_query=filter_query)
