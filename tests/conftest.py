"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncIterator, Iterator
from datetime import UTC, date, datetime

import pytest
from fastapi.testclient import TestClient

from src.core.config import Settings
from src.core.date_math import FixedClock
from src.core.db_client import DocumentStore
from src.core.schema import init_db
from src.domain.care_task import CareTask, TaskType
from src.interface.auth import SignedTokenIdentityProvider
from src.main import create_app
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


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-01-01 09:00 UTC."""
    return FixedClock(datetime(2024, 1, 1, 9, 0, tzinfo=UTC))


@pytest.fixture
async def store() -> AsyncIterator[DocumentStore]:
    """Fresh in-memory document store with the full schema."""
    document_store = DocumentStore(":memory:")
    await document_store.connect()
    await init_db(document_store)
    yield document_store
    await document_store.close()


@pytest.fixture
def executions(store: DocumentStore) -> ExecutionStore:
    return ExecutionStore(store)


@pytest.fixture
def task_store(store: DocumentStore) -> CareTaskStore:
    return CareTaskStore(store)


@pytest.fixture
def generator(executions: ExecutionStore, task_store: CareTaskStore, clock: FixedClock) -> TaskExecutionGenerator:
    return TaskExecutionGenerator(executions, task_store, clock)


@pytest.fixture
def lifecycle(executions: ExecutionStore, clock: FixedClock) -> ExecutionLifecycleManager:
    return ExecutionLifecycleManager(executions, clock)


@pytest.fixture
def coverage(executions: ExecutionStore, clock: FixedClock) -> CoverageEngine:
    return CoverageEngine(executions, clock)


@pytest.fixture
def categories(store: DocumentStore, clock: FixedClock) -> CategoryService:
    return CategoryService(store, clock)


@pytest.fixture
def care_items(store: DocumentStore, categories: CategoryService, clock: FixedClock) -> CareItemService:
    return CareItemService(store, categories, clock)


@pytest.fixture
def care_tasks(
    task_store: CareTaskStore,
    executions: ExecutionStore,
    generator: TaskExecutionGenerator,
    care_items: CareItemService,
    clock: FixedClock,
) -> CareTaskService:
    return CareTaskService(task_store, executions, generator, care_items, clock)


@pytest.fixture
def client_profiles(store: DocumentStore, clock: FixedClock) -> ClientProfileService:
    return ClientProfileService(store, clock)


@pytest.fixture
def make_task(task_store: CareTaskStore, clock: FixedClock):
    """Factory storing a care task directly, bypassing first-execution seeding."""

    async def _make_task(
        *,
        start_date: date = date(2024, 1, 1),
        end_date: date | None = None,
        interval: int = 7,
        task_type: TaskType = TaskType.GENERAL,
        is_active: bool = True,
        name: str = "Change dressing",
    ) -> CareTask:
        now = clock.now()
        return await task_store.insert(
            {
                "name": name,
                "description": "",
                "start_date": start_date,
                "end_date": end_date,
                "recurrence_interval_days": interval,
                "task_type": task_type,
                "care_item_id": None,
                "is_active": is_active,
                "created_by": "user-1",
                "created_at": now,
                "updated_at": now,
            }
        )

    return _make_task


@pytest.fixture
def settings() -> Settings:
    """Settings for the in-process application under test."""
    return Settings(
        environment="test",
        database_path=":memory:",
        auth_backend="signed",
        secret_key="test-secret-key",
        logfire_token=None,
        enable_scheduler=False,
    )


@pytest.fixture
def identity(settings: Settings) -> SignedTokenIdentityProvider:
    return SignedTokenIdentityProvider(settings)


@pytest.fixture
def client(settings: Settings, identity: SignedTokenIdentityProvider, clock: FixedClock) -> Iterator[TestClient]:
    """Test client running the application lifespan."""
    app = create_app(settings, identity=identity, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def users(store: DocumentStore, identity: SignedTokenIdentityProvider, clock: FixedClock) -> UserService:
    return UserService(store, identity, clock)


@pytest.fixture
def auth_headers(identity: SignedTokenIdentityProvider) -> dict[str, str]:
    token = identity.issue_token("user-1", email="carer@example.com", name="Casey Carer")
    return {"Authorization": f"Bearer {token}"}
