"""Partial-update models.

Only fields present in the request body are applied: each service reads
``model_fields_set`` (via ``model_dump(exclude_unset=True)``) as the field mask,
so an omitted field is left untouched. An explicit ``null`` clears a field only
where the stored entity allows it; required fields reject it.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from src.domain.care_task import TaskType
from src.domain.create_models import ClientProfileFields, coerce_optional_date, coerce_optional_datetime


def reject_null(value: Any, info: ValidationInfo) -> Any:
    """Refuse ``null`` for a field the stored entity requires."""
    if value is None:
        msg = f"{info.field_name} cannot be null"
        raise ValueError(msg)
    return value


class CategoryUpdate(BaseModel):
    """Partial update for a category."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    color_code: str | None = None
    display_order: int | None = None

    check_required = field_validator("name", "description", "color_code", "display_order")(reject_null)


class CareItemUpdate(BaseModel):
    """Partial update for a care item."""

    name: str | None = Field(default=None, min_length=1)
    estimated_unit_cost: float | None = Field(default=None, gt=0)
    quantity_per_purchase: int | None = Field(default=None, ge=1)
    quantity_unit: str | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    category_id: str | None = Field(default=None, min_length=1)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        """Accept ISO dates and full timestamps."""
        return coerce_optional_date(v)

    check_required = field_validator(
        "name", "estimated_unit_cost", "quantity_per_purchase", "quantity_unit", "start_date", "category_id"
    )(reject_null)


class CareTaskUpdate(BaseModel):
    """Partial update for a care task."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    recurrence_interval_days: int | None = Field(default=None, ge=0)
    task_type: TaskType | None = None
    care_item_id: str | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        """Accept ISO dates and full timestamps."""
        return coerce_optional_date(v)

    @field_validator("care_item_id", mode="before")
    @classmethod
    def blank_care_item_is_none(cls, v: Any) -> Any:
        """An empty care item reference detaches the task from its item."""
        return v or None

    check_required = field_validator("name", "description", "start_date", "recurrence_interval_days", "task_type")(
        reject_null
    )


class ClientProfileUpdate(ClientProfileFields):
    """Partial update for a client profile."""


class ExecutionPatch(BaseModel):
    """Lifecycle patch for a task execution.

    ``status`` stays a plain string so the lifecycle manager can report the
    allowed set itself.
    """

    status: str | None = None
    quantity_purchased: int | None = None
    quantity_unit: str | None = None
    actual_cost: float | None = None
    evidence_url: str | None = None
    execution_date: datetime | None = None
    notes: str | None = None

    @field_validator("execution_date", mode="before")
    @classmethod
    def parse_execution_date(cls, v: Any) -> Any:
        """Accept ISO dates and full timestamps; empty clears the date."""
        return coerce_optional_datetime(v)

    check_required = field_validator("status", "quantity_unit", "notes")(reject_null)

    def is_set(self, field: str) -> bool:
        """Whether the request body carried ``field``."""
        return field in self.model_fields_set


class CoverExecutionsRequest(BaseModel):
    """Body of the cover-executions endpoint."""

    execution_ids: list[str] | None = None
