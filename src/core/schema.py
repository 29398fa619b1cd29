"""Document store schema (code-first): collections and their indexes."""

import logging

from pydantic import BaseModel

from src.core.db_client import DocumentStore


logger = logging.getLogger(__name__)


class IndexSpec(BaseModel):
    """Index over one or more document fields."""

    name: str
    collection: str
    fields: list[str]
    unique: bool = False


# Central list of all collections in the schema
COLLECTIONS = [
    "categories",
    "care_items",
    "care_tasks",
    "task_executions",
    "client_profiles",
    "users",
]

INDEXES = [
    IndexSpec(name="idx_care_items_category_id", collection="care_items", fields=["category_id"]),
    IndexSpec(name="idx_care_tasks_care_item_id", collection="care_tasks", fields=["care_item_id"]),
    IndexSpec(name="idx_care_tasks_is_active", collection="care_tasks", fields=["is_active"]),
    # One occurrence per task and date; concurrent generation for the same task
    # fails on insert instead of producing a duplicate.
    IndexSpec(
        name="idx_task_executions_task_date",
        collection="task_executions",
        fields=["care_task_id", "scheduled_date"],
        unique=True,
    ),
    IndexSpec(name="idx_task_executions_status", collection="task_executions", fields=["status"]),
    IndexSpec(
        name="idx_task_executions_covered_by",
        collection="task_executions",
        fields=["covered_by_execution_id"],
    ),
    IndexSpec(name="idx_client_profiles_is_active", collection="client_profiles", fields=["is_active"]),
    IndexSpec(name="idx_users_uid", collection="users", fields=["uid"], unique=True),
]


async def init_db(store: DocumentStore) -> None:
    """Create every collection and index; idempotent."""
    for collection in COLLECTIONS:
        await store.ensure_collection(collection)

    for index in INDEXES:
        await store.ensure_index(
            collection=index.collection,
            name=index.name,
            fields=index.fields,
            unique=index.unique,
        )

    logger.info("Schema initialized", extra={"collections": len(COLLECTIONS), "indexes": len(INDEXES)})
