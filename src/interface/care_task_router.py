"""Care task endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query, status

from src.core.config import constants
from src.domain.care_task import CareTask, TaskType
from src.domain.create_models import CareTaskCreate
from src.domain.task_execution import ExecutionStatus
from src.domain.update_models import CareTaskUpdate
from src.interface.dependencies import CurrentUser, ServicesDep, parse_active_filter
from src.models.service_models import ActionResponse, GeneratedExecutionResponse, Pagination


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/care-tasks", tags=["care-tasks"])

Limit = Annotated[int, Query(ge=1, le=constants.MAX_PAGE_LIMIT)]
Offset = Annotated[int, Query(ge=0)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_care_task(payload: CareTaskCreate, services: ServicesDep, user: CurrentUser) -> dict[str, Any]:
    """Create a care task and schedule its first execution."""
    task, execution_id = await services.care_tasks.create_task(payload, user.uid)
    return {
        "message": "Care task created successfully",
        "id": task.id,
        "execution_id": execution_id,
        "data": task,
    }


@router.get("")
async def list_care_tasks(
    services: ServicesDep,
    _user: CurrentUser,
    is_active: str | None = None,
    task_type: TaskType | None = None,
    care_item_id: str | None = None,
    limit: Limit = constants.DEFAULT_PAGE_LIMIT,
    offset: Offset = 0,
) -> dict[str, Any]:
    tasks = await services.care_tasks.list_tasks(
        is_active=parse_active_filter(is_active),
        task_type=task_type,
        care_item_id=care_item_id,
        limit=limit,
        offset=offset,
    )
    return {"care_tasks": tasks, "count": len(tasks), "pagination": Pagination(limit=limit, offset=offset)}


@router.get("/{task_id}")
async def get_care_task(task_id: str, services: ServicesDep, _user: CurrentUser) -> CareTask:
    return await services.care_tasks.get_task(task_id)


@router.get("/{task_id}/executions")
async def list_care_task_executions(
    task_id: str,
    services: ServicesDep,
    _user: CurrentUser,
    status: ExecutionStatus | None = None,
    limit: Limit = constants.DEFAULT_EXECUTION_PAGE_LIMIT,
    offset: Offset = 0,
) -> dict[str, Any]:
    """Executions of the task, most recently scheduled first."""
    executions = await services.care_tasks.list_task_executions(task_id, status=status, limit=limit, offset=offset)
    total = await services.care_tasks.count_task_executions(task_id, status=status)
    return {
        "executions": executions,
        "count": len(executions),
        "total": total,
        "pagination": Pagination(limit=limit, offset=offset),
    }


@router.put("/{task_id}")
async def update_care_task(
    task_id: str, payload: CareTaskUpdate, services: ServicesDep, _user: CurrentUser
) -> dict[str, Any]:
    task = await services.care_tasks.update_task(task_id, payload)
    return {"message": "Care task updated successfully", "data": task}


@router.delete("/{task_id}")
async def deactivate_care_task(task_id: str, services: ServicesDep, _user: CurrentUser) -> ActionResponse:
    """Soft delete a care task."""
    await services.care_tasks.deactivate_task(task_id)
    return ActionResponse(message="Care task deactivated successfully", id=task_id)


@router.patch("/{task_id}/reactivate")
async def reactivate_care_task(task_id: str, services: ServicesDep, _user: CurrentUser) -> ActionResponse:
    await services.care_tasks.reactivate_task(task_id)
    return ActionResponse(message="Care task reactivated successfully", id=task_id)


@router.post("/{task_id}/generate-executions")
async def generate_task_execution(
    task_id: str, services: ServicesDep, user: CurrentUser
) -> GeneratedExecutionResponse:
    """Generate the next execution of the task."""
    execution_id = await services.care_tasks.generate_next_execution(task_id)
    logger.info("manual_generation", extra={"care_task_id": task_id, "execution_id": execution_id, "user_id": user.uid})
    if execution_id is None:
        return GeneratedExecutionResponse(message="Task has no further executions to generate", execution_id=None)
    return GeneratedExecutionResponse(message="Task execution generated successfully", execution_id=execution_id)
