"""Care item (supply) management."""

import logging
from typing import Any

from src.core.date_math import Clock
from src.core.db_client import DocumentStore, sanitize_param
from src.core.errors import store_errors
from src.core.logging import span
from src.domain.care_item import CareItem
from src.domain.create_models import CareItemCreate
from src.domain.update_models import CareItemUpdate
from src.services.category_service import CategoryService


logger = logging.getLogger(__name__)

COLLECTION = "care_items"
ENTITY = "Care item"


class CareItemService:
    def __init__(self, store: DocumentStore, categories: CategoryService, clock: Clock) -> None:
        self.store = store
        self.categories = categories
        self.clock = clock

    async def create_item(self, payload: CareItemCreate, caller_id: str) -> CareItem:
        """Create a care item in an existing category.

        Raises:
            NotFoundError: If the category does not exist
        """
        with span("care_item_service.create_item"):
            await self.categories.get_category(payload.category_id)
            now = self.clock.now()
            with store_errors(ENTITY):
                record = await self.store.create_record(
                    collection=COLLECTION,
                    data={
                        **payload.model_dump(),
                        "is_active": True,
                        "deactivated_at": None,
                        "created_by": caller_id,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
            logger.info("care_item_created", extra={"care_item_id": record["id"], "category_id": payload.category_id})
            return CareItem.model_validate(record)

    async def get_item(self, item_id: str) -> CareItem:
        """Fetch one care item.

        Raises:
            NotFoundError: If the id does not resolve
        """
        with store_errors(ENTITY):
            record = await self.store.get_record(collection=COLLECTION, record_id=item_id)
        return CareItem.model_validate(record)

    async def list_items(
        self,
        *,
        is_active: bool | None = True,
        category_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[CareItem]:
        """Care items matching the criteria, newest first."""
        clauses = []
        if is_active is not None:
            clauses.append(f"is_active = {'true' if is_active else 'false'}")
        if category_id:
            clauses.append(f'category_id = "{sanitize_param(category_id)}"')

        with store_errors(ENTITY):
            records = await self.store.list_records(
                collection=COLLECTION,
                filter_query=" && ".join(clauses),
                sort="-created_at",
                limit=limit,
                offset=offset,
            )
        return [CareItem.model_validate(record) for record in records]

    async def update_item(self, item_id: str, payload: CareItemUpdate) -> CareItem:
        with span("care_item_service.update_item"):
            updates: dict[str, Any] = payload.model_dump(exclude_unset=True)
            await self.get_item(item_id)
            if updates.get("category_id"):
                await self.categories.get_category(updates["category_id"])

            updates["updated_at"] = self.clock.now()
            with store_errors(ENTITY):
                record = await self.store.update_record(collection=COLLECTION, record_id=item_id, data=updates)
            logger.info("care_item_updated", extra={"care_item_id": item_id, "fields": sorted(updates)})
            return CareItem.model_validate(record)

    async def set_active(self, item_id: str, *, active: bool) -> CareItem:
        """Soft delete (``active=False``) or reactivate a care item."""
        with span("care_item_service.set_active"):
            now = self.clock.now()
            with store_errors(ENTITY):
                record = await self.store.update_record(
                    collection=COLLECTION,
                    record_id=item_id,
                    data={"is_active": active, "deactivated_at": None if active else now, "updated_at": now},
                )
            logger.info("care_item_active_changed", extra={"care_item_id": item_id, "is_active": active})
            return CareItem.model_validate(record)
