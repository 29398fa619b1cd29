"""Status and fulfillment updates for task executions."""

import logging
from typing import Any

from src.core.date_math import Clock
from src.core.errors import RejectedError, ValidationError
from src.core.logging import log_with_context, span
from src.domain.task_execution import ExecutionStatus, TaskExecution, can_transition
from src.domain.update_models import ExecutionPatch
from src.services.execution_store import ExecutionStore


logger = logging.getLogger(__name__)

# Fields copied verbatim from the patch whenever the request carries them
_PASSTHROUGH_FIELDS = ("quantity_purchased", "quantity_unit", "actual_cost", "evidence_url", "notes")


def parse_status(value: str) -> ExecutionStatus:
    """Validate a status string against the execution statuses."""
    try:
        return ExecutionStatus(value)
    except ValueError as e:
        allowed = ", ".join(status.value for status in ExecutionStatus)
        raise ValidationError(f"Status must be one of: {allowed}") from e


class ExecutionLifecycleManager:
    """Applies partial updates to executions, stamping who did what and when."""

    def __init__(self, executions: ExecutionStore, clock: Clock, *, enforce_transitions: bool = False) -> None:
        self.executions = executions
        self.clock = clock
        self.enforce_transitions = enforce_transitions

    async def update_execution(self, execution_id: str, patch: ExecutionPatch, caller_id: str) -> TaskExecution:
        """Apply ``patch`` to an execution on behalf of ``caller_id``.

        Only fields present in the patch are written. Marking an execution DONE
        without a date stamps the current time and the caller, unless the stored
        execution already carries an execution date.

        Raises:
            NotFoundError: If the execution does not exist
            ValidationError: If the status is not a known execution status
            RejectedError: If transitions are enforced and the status change is not allowed
        """
        with span("execution_lifecycle.update_execution"):
            status = parse_status(patch.status) if patch.is_set("status") and patch.status is not None else None
            current = await self.executions.get_execution(execution_id)
            now = self.clock.now()
            updates: dict[str, Any] = {}

            if status is not None:
                if self.enforce_transitions and not can_transition(current.status, status):
                    log_with_context(
                        logger,
                        "warning",
                        "execution_transition_rejected",
                        execution_id=execution_id,
                        current=current.status,
                        target=status,
                    )
                    raise RejectedError(f"Cannot change execution status from {current.status} to {status}")
                updates["status"] = status
                if status == ExecutionStatus.DONE and not patch.is_set("execution_date") and not current.execution_date:
                    updates["execution_date"] = now
                    updates["executed_by"] = caller_id

            if patch.is_set("execution_date"):
                updates["execution_date"] = patch.execution_date
                if patch.execution_date is not None:
                    updates["executed_by"] = caller_id

            for field in _PASSTHROUGH_FIELDS:
                if patch.is_set(field):
                    updates[field] = getattr(patch, field)

            updates["updated_at"] = now
            updated = await self.executions.update(execution_id, updates)

            logger.info(
                "execution_updated",
                extra={"execution_id": execution_id, "fields": sorted(updates), "caller_id": caller_id},
            )
            return updated
