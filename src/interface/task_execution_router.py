"""Task execution endpoints: listing, lifecycle updates and bulk coverage."""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Query

from src.core.config import constants
from src.core.date_math import to_date
from src.core.errors import ValidationError
from src.domain.task_execution import ExecutionStatus, TaskExecution
from src.domain.update_models import CoverExecutionsRequest, ExecutionPatch
from src.interface.dependencies import CurrentUser, ServicesDep
from src.models.service_models import CoverageResponse, Pagination


router = APIRouter(prefix="/api/task-executions", tags=["task-executions"])


def _query_date(value: str | None, name: str) -> date | None:
    if not value:
        return None
    try:
        return to_date(value)
    except ValueError as e:
        raise ValidationError(f"{name} must be a valid date") from e


@router.get("")
async def list_task_executions(
    services: ServicesDep,
    _user: CurrentUser,
    status: ExecutionStatus | None = None,
    care_task_id: str | None = None,
    executed_by: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    limit: Annotated[int, Query(ge=1, le=constants.MAX_PAGE_LIMIT)] = constants.DEFAULT_EXECUTION_PAGE_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict[str, Any]:
    """Executions matching the filters, most recently scheduled first."""
    executions = await services.executions.list_executions(
        status=status,
        care_task_id=care_task_id,
        executed_by=executed_by,
        date_from=_query_date(date_from, "date_from"),
        date_to=_query_date(date_to, "date_to"),
        limit=limit,
        offset=offset,
    )
    return {"executions": executions, "count": len(executions), "pagination": Pagination(limit=limit, offset=offset)}


@router.get("/{execution_id}")
async def get_task_execution(execution_id: str, services: ServicesDep, _user: CurrentUser) -> TaskExecution:
    return await services.executions.get_execution(execution_id)


@router.put("/{execution_id}")
async def update_task_execution(
    execution_id: str, patch: ExecutionPatch, services: ServicesDep, user: CurrentUser
) -> dict[str, Any]:
    """Update status and fulfillment details; omitted fields are left as they are."""
    execution = await services.lifecycle.update_execution(execution_id, patch, user.uid)
    return {"message": "Task execution updated successfully", "data": execution}


@router.patch("/{execution_id}/cover-executions")
async def cover_executions(
    execution_id: str, body: CoverExecutionsRequest, services: ServicesDep, _user: CurrentUser
) -> CoverageResponse:
    """Mark other executions as covered by this one."""
    result = await services.coverage.cover_executions(execution_id, body.execution_ids)
    return CoverageResponse(message=f"{result.covered_count} executions marked as covered", **result.model_dump())


@router.get("/{execution_id}/covered-executions")
async def list_covered_executions(execution_id: str, services: ServicesDep, _user: CurrentUser) -> dict[str, Any]:
    covered = await services.coverage.list_covered_by(execution_id)
    return {"covered_executions": covered, "count": len(covered)}
