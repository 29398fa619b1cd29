"""Client profile endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Query, status

from src.core.config import constants
from src.domain.client_profile import ClientProfile
from src.domain.create_models import ClientProfileCreate, ClientProfileSearch, VitalsUpdate
from src.domain.update_models import ClientProfileUpdate
from src.interface.dependencies import CurrentUser, ServicesDep, parse_active_filter
from src.models.service_models import ActionResponse, Pagination


router = APIRouter(prefix="/api/client-profiles", tags=["client-profiles"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_client_profile(
    payload: ClientProfileCreate, services: ServicesDep, _user: CurrentUser
) -> dict[str, Any]:
    profile = await services.client_profiles.create_profile(payload)
    return {"message": "Client profile created successfully", "id": profile.id, "data": profile}


@router.get("")
async def list_client_profiles(
    services: ServicesDep,
    _user: CurrentUser,
    is_active: str | None = None,
    search: str | None = None,
    limit: Annotated[int, Query(ge=1, le=constants.MAX_PAGE_LIMIT)] = constants.DEFAULT_PAGE_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict[str, Any]:
    """Profiles, optionally narrowed by a name, email or mobile substring."""
    profiles = await services.client_profiles.list_profiles(
        is_active=parse_active_filter(is_active), search=search, limit=limit, offset=offset
    )
    return {"client_profiles": profiles, "count": len(profiles), "pagination": Pagination(limit=limit, offset=offset)}


@router.post("/search")
async def search_client_profiles(
    criteria: ClientProfileSearch, services: ServicesDep, _user: CurrentUser
) -> dict[str, Any]:
    profiles = await services.client_profiles.search_profiles(criteria)
    return {"client_profiles": profiles, "count": len(profiles), "search_criteria": criteria}


@router.get("/{profile_id}")
async def get_client_profile(profile_id: str, services: ServicesDep, _user: CurrentUser) -> ClientProfile:
    return await services.client_profiles.get_profile(profile_id)


@router.put("/{profile_id}")
async def update_client_profile(
    profile_id: str, payload: ClientProfileUpdate, services: ServicesDep, _user: CurrentUser
) -> dict[str, Any]:
    profile = await services.client_profiles.update_profile(profile_id, payload)
    return {"message": "Client profile updated successfully", "data": profile}


@router.patch("/{profile_id}/vitals")
async def update_client_vitals(
    profile_id: str, payload: VitalsUpdate, services: ServicesDep, _user: CurrentUser
) -> dict[str, Any]:
    profile = await services.client_profiles.update_vitals(profile_id, payload)
    return {"message": "Client vitals updated successfully", "data": profile.latest_vitals}


@router.delete("/{profile_id}")
async def deactivate_client_profile(profile_id: str, services: ServicesDep, _user: CurrentUser) -> ActionResponse:
    await services.client_profiles.set_active(profile_id, active=False)
    return ActionResponse(message="Client profile deactivated successfully", id=profile_id)


@router.patch("/{profile_id}/reactivate")
async def reactivate_client_profile(profile_id: str, services: ServicesDep, _user: CurrentUser) -> ActionResponse:
    await services.client_profiles.set_active(profile_id, active=True)
    return ActionResponse(message="Client profile reactivated successfully", id=profile_id)
