"""Bulk coverage: one fulfilled execution standing in for several others."""

import logging

from pydantic import BaseModel

from src.core.date_math import Clock
from src.core.errors import ValidationError
from src.core.logging import log_with_context, span
from src.domain.task_execution import ExecutionStatus, TaskExecution
from src.services.execution_store import ExecutionStore


logger = logging.getLogger(__name__)


class CoverageResult(BaseModel):
    """Outcome of a coverage request."""

    covered_count: int
    covered_executions: list[str]
    covering_execution_id: str


def _validate_covered_ids(covering_id: str, covered_ids: list[str] | None) -> list[str]:
    if not covered_ids:
        raise ValidationError("execution_ids must be a non-empty array")
    if any(not isinstance(execution_id, str) or not execution_id.strip() for execution_id in covered_ids):
        raise ValidationError("execution_ids must contain non-empty strings")
    if len(set(covered_ids)) != len(covered_ids):
        raise ValidationError("execution_ids must not contain duplicates")
    if covering_id in covered_ids:
        raise ValidationError("An execution cannot cover itself")
    return list(covered_ids)


class CoverageEngine:
    """Marks executions as covered by another execution, all or nothing."""

    def __init__(self, executions: ExecutionStore, clock: Clock, *, validate_covering: bool = False) -> None:
        self.executions = executions
        self.clock = clock
        self.validate_covering = validate_covering

    async def cover_executions(self, covering_id: str, covered_ids: list[str] | None) -> CoverageResult:
        """Mark ``covered_ids`` COVERED by ``covering_id`` in one atomic write.

        Raises:
            ValidationError: If the id list is empty, malformed, repeats an id or includes the covering id
            NotFoundError: If any covered id (or, when validated, the covering id) does not exist;
                no execution is modified
        """
        with span("coverage.cover_executions"):
            ids = _validate_covered_ids(covering_id, covered_ids)
            if self.validate_covering:
                await self.executions.get_execution(covering_id)

            now = self.clock.now()
            await self.executions.batch_update(
                {
                    execution_id: {
                        "status": ExecutionStatus.COVERED,
                        "covered_by_execution_id": covering_id,
                        "updated_at": now,
                    }
                    for execution_id in ids
                }
            )

            log_with_context(logger, "info", "executions_covered", covering_execution_id=covering_id, count=len(ids))
            return CoverageResult(covered_count=len(ids), covered_executions=ids, covering_execution_id=covering_id)

    async def list_covered_by(self, covering_id: str) -> list[TaskExecution]:
        """Executions covered by ``covering_id``."""
        with span("coverage.list_covered_by"):
            return await self.executions.list_covered_by(covering_id)
