"""FastAPI dependencies: the service container and the authenticated caller."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request

from src.core.config import Settings
from src.core.db_client import DocumentStore
from src.core.errors import AuthError, ValidationError
from src.core.scheduler import GenerationScheduler
from src.interface.auth import AuthenticatedUser, IdentityProvider
from src.services.care_item_service import CareItemService
from src.services.care_task_service import CareTaskService
from src.services.category_service import CategoryService
from src.services.client_profile_service import ClientProfileService
from src.services.coverage import CoverageEngine
from src.services.execution_generator import TaskExecutionGenerator
from src.services.execution_lifecycle import ExecutionLifecycleManager
from src.services.execution_store import ExecutionStore
from src.services.user_service import UserService


@dataclass
class Services:
    """Everything a request handler may need, built once per application."""

    settings: Settings
    store: DocumentStore
    identity: IdentityProvider
    executions: ExecutionStore
    generator: TaskExecutionGenerator
    lifecycle: ExecutionLifecycleManager
    coverage: CoverageEngine
    categories: CategoryService
    care_items: CareItemService
    care_tasks: CareTaskService
    client_profiles: ClientProfileService
    users: UserService
    scheduler: GenerationScheduler | None = None


def get_services(request: Request) -> Services:
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]


def bearer_token(authorization: Annotated[str | None, Header()] = None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("No token provided")
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise AuthError("No token provided")
    return token


TokenDep = Annotated[str, Depends(bearer_token)]


async def get_current_user(services: ServicesDep, token: TokenDep) -> AuthenticatedUser:
    """Verify the bearer token and return the caller's identity."""
    return await services.identity.verify_token(token)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]


def parse_active_filter(is_active: str | None) -> bool | None:
    """Map the ``is_active`` query value: ``true`` (default), ``false`` or ``all``."""
    value = (is_active or "true").lower()
    if value == "all":
        return None
    if value not in {"true", "false"}:
        raise ValidationError("is_active must be one of: true, false, all")
    return value == "true"
