"""Persistence adapter for care tasks."""

from typing import Any

from src.core.db_client import DocumentStore, sanitize_param
from src.core.errors import store_errors
from src.domain.care_task import CareTask, TaskType


COLLECTION = "care_tasks"
ENTITY = "Care task"


class CareTaskStore:
    """Typed access to the ``care_tasks`` collection."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def get_task(self, task_id: str) -> CareTask:
        """Fetch one care task.

        Raises:
            NotFoundError: If the id does not resolve
        """
        with store_errors(ENTITY):
            record = await self.store.get_record(collection=COLLECTION, record_id=task_id)
        return CareTask.model_validate(record)

    async def insert(self, data: dict[str, Any]) -> CareTask:
        with store_errors(ENTITY):
            record = await self.store.create_record(collection=COLLECTION, data=data)
        return CareTask.model_validate(record)

    async def update(self, task_id: str, data: dict[str, Any]) -> CareTask:
        with store_errors(ENTITY):
            record = await self.store.update_record(collection=COLLECTION, record_id=task_id, data=data)
        return CareTask.model_validate(record)

    async def list_tasks(
        self,
        *,
        is_active: bool | None = True,
        task_type: TaskType | None = None,
        care_item_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[CareTask]:
        """Care tasks matching the criteria, newest first; ``is_active=None`` means any."""
        clauses = []
        if is_active is not None:
            clauses.append(f"is_active = {'true' if is_active else 'false'}")
        if task_type:
            clauses.append(f'task_type = "{sanitize_param(task_type)}"')
        if care_item_id:
            clauses.append(f'care_item_id = "{sanitize_param(care_item_id)}"')

        with store_errors(ENTITY):
            records = await self.store.list_records(
                collection=COLLECTION,
                filter_query=" && ".join(clauses),
                sort="-created_at",
                limit=limit,
                offset=offset,
            )
        return [CareTask.model_validate(record) for record in records]
