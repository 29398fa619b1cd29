"""Category and care item endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Query, status

from src.core.config import constants
from src.domain.care_item import CareItem
from src.domain.create_models import CareItemCreate, CategoryCreate
from src.domain.update_models import CareItemUpdate, CategoryUpdate
from src.interface.dependencies import CurrentUser, ServicesDep, parse_active_filter
from src.models.service_models import ActionResponse, Pagination


categories_router = APIRouter(prefix="/api/categories", tags=["categories"])
care_items_router = APIRouter(prefix="/api/care-items", tags=["care-items"])


@categories_router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, services: ServicesDep, _user: CurrentUser) -> dict[str, Any]:
    category = await services.categories.create_category(payload)
    return {"message": "Category created successfully", "id": category.id, "data": category}


@categories_router.get("")
async def list_categories(services: ServicesDep, _user: CurrentUser, is_active: str | None = None) -> dict[str, Any]:
    """Categories in display order."""
    categories = await services.categories.list_categories(is_active=parse_active_filter(is_active))
    return {"categories": categories, "count": len(categories)}


@categories_router.put("/{category_id}")
async def update_category(
    category_id: str, payload: CategoryUpdate, services: ServicesDep, _user: CurrentUser
) -> dict[str, Any]:
    category = await services.categories.update_category(category_id, payload)
    return {"message": "Category updated successfully", "data": category}


@categories_router.delete("/{category_id}")
async def deactivate_category(category_id: str, services: ServicesDep, _user: CurrentUser) -> ActionResponse:
    await services.categories.deactivate_category(category_id)
    return ActionResponse(message="Category deactivated successfully", id=category_id)


@care_items_router.post("", status_code=status.HTTP_201_CREATED)
async def create_care_item(payload: CareItemCreate, services: ServicesDep, user: CurrentUser) -> dict[str, Any]:
    item = await services.care_items.create_item(payload, user.uid)
    return {"message": "Care item created successfully", "id": item.id, "data": item}


@care_items_router.get("")
async def list_care_items(
    services: ServicesDep,
    _user: CurrentUser,
    is_active: str | None = None,
    category_id: str | None = None,
    limit: Annotated[int, Query(ge=1, le=constants.MAX_PAGE_LIMIT)] = constants.DEFAULT_PAGE_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict[str, Any]:
    items = await services.care_items.list_items(
        is_active=parse_active_filter(is_active), category_id=category_id, limit=limit, offset=offset
    )
    return {"care_items": items, "count": len(items), "pagination": Pagination(limit=limit, offset=offset)}


@care_items_router.get("/{item_id}")
async def get_care_item(item_id: str, services: ServicesDep, _user: CurrentUser) -> CareItem:
    return await services.care_items.get_item(item_id)


@care_items_router.put("/{item_id}")
async def update_care_item(
    item_id: str, payload: CareItemUpdate, services: ServicesDep, _user: CurrentUser
) -> dict[str, Any]:
    item = await services.care_items.update_item(item_id, payload)
    return {"message": "Care item updated successfully", "data": item}


@care_items_router.delete("/{item_id}")
async def deactivate_care_item(item_id: str, services: ServicesDep, _user: CurrentUser) -> ActionResponse:
    await services.care_items.set_active(item_id, active=False)
    return ActionResponse(message="Care item deactivated successfully", id=item_id)


@care_items_router.patch("/{item_id}/reactivate")
async def reactivate_care_item(item_id: str, services: ServicesDep, _user: CurrentUser) -> ActionResponse:
    await services.care_items.set_active(item_id, active=True)
    return ActionResponse(message="Care item reactivated successfully", id=item_id)
