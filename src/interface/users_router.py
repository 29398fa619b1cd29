"""Endpoints for the caller's own client profile and the users who have one."""

from typing import Annotated, Any

from fastapi import APIRouter, Query

from src.core.config import constants
from src.domain.create_models import ClientProfileCreate, ClientProfileSearch
from src.domain.update_models import ClientProfileUpdate
from src.interface.dependencies import CurrentUser, ServicesDep, TokenDep, parse_active_filter
from src.models.service_models import Pagination, UserActionResponse


router = APIRouter(prefix="/api/users", tags=["users"])


@router.put("/client-profile")
async def set_client_profile(
    payload: ClientProfileCreate, services: ServicesDep, user: CurrentUser, token: TokenDep
) -> dict[str, Any]:
    """Create or replace the caller's client profile."""
    profile = await services.users.set_client_profile(user, token, payload)
    return {"message": "Client profile updated successfully", "data": {"user_id": user.uid, "client_profile": profile}}


@router.get("/client-profile")
async def get_client_profile(services: ServicesDep, user: CurrentUser) -> dict[str, Any]:
    profile = await services.users.get_client_profile(user.uid)
    return {"user_id": user.uid, "client_profile": profile}


@router.patch("/client-profile")
async def update_client_profile(
    payload: ClientProfileUpdate, services: ServicesDep, user: CurrentUser
) -> dict[str, Any]:
    """Change only the supplied fields of the caller's client profile."""
    profile = await services.users.update_client_profile(user.uid, payload)
    return {"message": "Client profile updated successfully", "data": {"user_id": user.uid, "client_profile": profile}}


@router.delete("/client-profile")
async def deactivate_client_profile(services: ServicesDep, user: CurrentUser) -> UserActionResponse:
    await services.users.set_client_profile_active(user.uid, active=False)
    return UserActionResponse(message="Client profile deactivated successfully", user_id=user.uid)


@router.patch("/client-profile/reactivate")
async def reactivate_client_profile(services: ServicesDep, user: CurrentUser) -> UserActionResponse:
    await services.users.set_client_profile_active(user.uid, active=True)
    return UserActionResponse(message="Client profile reactivated successfully", user_id=user.uid)


@router.get("/all-client-profiles")
async def list_users_with_client_profiles(
    services: ServicesDep,
    _user: CurrentUser,
    is_active: str | None = None,
    search: str | None = None,
    limit: Annotated[int, Query(ge=1, le=constants.MAX_PAGE_LIMIT)] = constants.DEFAULT_PAGE_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict[str, Any]:
    users = await services.users.list_users_with_profiles(
        is_active=parse_active_filter(is_active), search=search, limit=limit, offset=offset
    )
    return {
        "users_with_client_profiles": users,
        "count": len(users),
        "pagination": Pagination(limit=limit, offset=offset),
    }


@router.post("/search-client-profiles")
async def search_users_with_client_profiles(
    criteria: ClientProfileSearch, services: ServicesDep, _user: CurrentUser
) -> dict[str, Any]:
    users = await services.users.search_users_with_profiles(criteria)
    return {"users_with_client_profiles": users, "count": len(users), "search_criteria": criteria}
