"""Category management."""

import logging

from src.core.date_math import Clock
from src.core.db_client import DocumentStore
from src.core.errors import store_errors
from src.core.logging import span
from src.domain.category import Category
from src.domain.create_models import CategoryCreate
from src.domain.update_models import CategoryUpdate


logger = logging.getLogger(__name__)

COLLECTION = "categories"
ENTITY = "Category"


class CategoryService:
    def __init__(self, store: DocumentStore, clock: Clock) -> None:
        self.store = store
        self.clock = clock

    async def create_category(self, payload: CategoryCreate) -> Category:
        with span("category_service.create_category"):
            now = self.clock.now()
            with store_errors(ENTITY):
                record = await self.store.create_record(
                    collection=COLLECTION,
                    data={**payload.model_dump(), "is_active": True, "created_at": now, "updated_at": now},
                )
            logger.info("category_created", extra={"category_id": record["id"]})
            return Category.model_validate(record)

    async def get_category(self, category_id: str) -> Category:
        """Fetch one category.

        Raises:
            NotFoundError: If the id does not resolve
        """
        with store_errors(ENTITY):
            record = await self.store.get_record(collection=COLLECTION, record_id=category_id)
        return Category.model_validate(record)

    async def list_categories(self, *, is_active: bool | None = True) -> list[Category]:
        """Categories in display order, then by name; ``is_active=None`` means any."""
        filter_query = "" if is_active is None else f"is_active = {'true' if is_active else 'false'}"
        with store_errors(ENTITY):
            records = await self.store.list_records(
                collection=COLLECTION, filter_query=filter_query, sort="display_order,name"
            )
        return [Category.model_validate(record) for record in records]

    async def update_category(self, category_id: str, payload: CategoryUpdate) -> Category:
        with span("category_service.update_category"):
            updates = {**payload.model_dump(exclude_unset=True), "updated_at": self.clock.now()}
            with store_errors(ENTITY):
                record = await self.store.update_record(collection=COLLECTION, record_id=category_id, data=updates)
            logger.info("category_updated", extra={"category_id": category_id, "fields": sorted(updates)})
            return Category.model_validate(record)

    async def deactivate_category(self, category_id: str) -> Category:
        with span("category_service.deactivate_category"):
            with store_errors(ENTITY):
                record = await self.store.update_record(
                    collection=COLLECTION,
                    record_id=category_id,
                    data={"is_active": False, "updated_at": self.clock.now()},
                )
            logger.info("category_deactivated", extra={"category_id": category_id})
            return Category.model_validate(record)
