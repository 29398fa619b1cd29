"""careloop - care management API for recurring care tasks."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.config import Settings, get_settings
from src.core.date_math import Clock, SystemClock
from src.core.db_client import DocumentStore
from src.core.errors import register_exception_handlers
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.scheduler import GenerationScheduler
from src.core.schema import init_db
from src.interface.auth import IdentityProvider, build_identity_provider
from src.interface.auth_router import router as auth_router
from src.interface.care_task_router import router as care_task_router
from src.interface.catalog_router import care_items_router, categories_router
from src.interface.client_profile_router import router as client_profile_router
from src.interface.dependencies import Services
from src.interface.task_execution_router import router as task_execution_router
from src.interface.users_router import router as users_router
from src.services.care_item_service import CareItemService
from src.services.care_task_service import CareTaskService
from src.services.care_task_store import CareTaskStore
from src.services.category_service import CategoryService
from src.services.client_profile_service import ClientProfileService
from src.services.coverage import CoverageEngine
from src.services.execution_generator import TaskExecutionGenerator
from src.services.execution_lifecycle import ExecutionLifecycleManager
from src.services.execution_store import ExecutionStore
from src.services.user_service import UserService


logger = logging.getLogger(__name__)


def validate_startup_configuration(settings: Settings) -> None:
    """Fail fast when a required credential is missing.

    Raises:
        SystemExit: If the configured identity backend lacks its credential
    """
    logger.info("startup_validation_begin")
    try:
        if settings.auth_backend == "firebase":
            settings.require_credential("firebase_api_key", "Firebase")
        elif settings.secret_key == "change-me" and not settings.is_development:
            logger.warning("startup_validation", extra={"stage": "credentials", "warning": "default secret key"})
        logger.info("startup_validation_complete", extra={"status": "ok", "auth_backend": settings.auth_backend})
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)


def build_services(
    settings: Settings,
    store: DocumentStore,
    identity: IdentityProvider,
    clock: Clock,
) -> Services:
    """Wire every service against one store and clock."""
    executions = ExecutionStore(store)
    tasks = CareTaskStore(store)
    generator = TaskExecutionGenerator(executions, tasks, clock)
    categories = CategoryService(store, clock)
    care_items = CareItemService(store, categories, clock)
    return Services(
        settings=settings,
        store=store,
        identity=identity,
        executions=executions,
        generator=generator,
        lifecycle=ExecutionLifecycleManager(
            executions, clock, enforce_transitions=settings.enforce_status_transitions
        ),
        coverage=CoverageEngine(executions, clock, validate_covering=settings.validate_covering_execution),
        categories=categories,
        care_items=care_items,
        care_tasks=CareTaskService(tasks, executions, generator, care_items, clock),
        client_profiles=ClientProfileService(store, clock),
        users=UserService(store, identity, clock),
        scheduler=GenerationScheduler(generator, settings) if settings.enable_scheduler else None,
    )


def create_app(
    settings: Settings | None = None,
    *,
    identity: IdentityProvider | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Configuration; read from the environment when omitted
        identity: Identity provider override; built from settings when omitted
        clock: Time source; the system clock when omitted
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan context manager."""
        # Startup
        configure_logfire(settings)
        if identity is None:
            validate_startup_configuration(settings)

        store = DocumentStore(settings.database_path)
        await store.connect()
        await init_db(store)
        logger.info("Database initialized", extra={"database_path": settings.database_path})

        provider = identity or build_identity_provider(settings)
        services = build_services(settings, store, provider, clock or SystemClock())
        app.state.services = services
        if services.scheduler is not None:
            services.scheduler.start()
        try:
            yield
        finally:
            # Shutdown
            if services.scheduler is not None:
                services.scheduler.stop()
            await services.identity.close()
            await store.close()

    app = FastAPI(
        title="careloop",
        description="Care management API for recurring care tasks",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, settings)

    # Instrument FastAPI with Logfire
    instrument_fastapi(app)

    # Register routers
    app.include_router(auth_router)
    app.include_router(categories_router)
    app.include_router(care_items_router)
    app.include_router(care_task_router)
    app.include_router(task_execution_router)
    app.include_router(client_profile_router)
    app.include_router(users_router)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(
            content={
                "status": "OK",
                "message": "Care Management API is running",
                "timestamp": datetime.now(UTC).isoformat(),
            },
            status_code=200,
        )

    @app.get("/health/scheduler")
    async def scheduler_health_check(request: Request) -> JSONResponse:
        """Generation job status; reports disabled when the scheduler is off."""
        scheduler = request.app.state.services.scheduler
        if scheduler is None:
            return JSONResponse(content={"status": "disabled"}, status_code=200)
        return JSONResponse(content={"status": "enabled", **scheduler.status()}, status_code=200)

    return app


app = create_app()
