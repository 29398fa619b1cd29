"""Task execution domain models, statuses and status transitions."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class ExecutionStatus(StrEnum):
    """Lifecycle status of one scheduled occurrence."""

    TODO = "TODO"
    DONE = "DONE"
    COVERED = "COVERED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    CANCELLED = "CANCELLED"


# Transitions enforced when strict status checking is enabled
EXECUTION_TRANSITIONS: dict[ExecutionStatus, set[ExecutionStatus]] = {
    ExecutionStatus.TODO: {ExecutionStatus.DONE, ExecutionStatus.CANCELLED, ExecutionStatus.COVERED},
    ExecutionStatus.DONE: {ExecutionStatus.REFUNDED, ExecutionStatus.PARTIALLY_REFUNDED},
    ExecutionStatus.COVERED: set(),
    ExecutionStatus.REFUNDED: set(),
    ExecutionStatus.PARTIALLY_REFUNDED: set(),
    ExecutionStatus.CANCELLED: set(),
}


def can_transition(current: ExecutionStatus, target: ExecutionStatus) -> bool:
    """Whether ``target`` is reachable from ``current``; re-setting the same status is allowed."""
    return current == target or target in EXECUTION_TRANSITIONS[current]


class TaskExecution(BaseModel):
    """One scheduled (and eventually fulfilled) occurrence of a care task."""

    id: str = Field(..., description="Unique execution ID assigned by the store")
    care_task_id: str = Field(..., description="Owning care task")
    status: ExecutionStatus = Field(default=ExecutionStatus.TODO, description="Lifecycle status")
    scheduled_date: date = Field(..., description="Date this occurrence is due")
    execution_date: datetime | None = Field(default=None, description="When the occurrence was fulfilled")
    executed_by: str | None = Field(default=None, description="User who fulfilled the occurrence")
    quantity_purchased: int | None = Field(default=None, description="Units bought")
    quantity_unit: str = Field(default="", description="Unit of quantity_purchased")
    actual_cost: float | None = Field(default=None, description="Amount actually spent")
    evidence_url: str | None = Field(default=None, description="Receipt or photo evidence")
    notes: str = Field(default="", description="Free-form notes")
    covered_by_execution_id: str | None = Field(
        default=None, description="Execution whose fulfillment subsumed this occurrence"
    )
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")
