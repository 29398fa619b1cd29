"""Care task domain models and enums."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TaskType(StrEnum):
    """What kind of obligation a care task represents."""

    PURCHASE = "PURCHASE"
    GENERAL = "GENERAL"


class CareTask(BaseModel):
    """Recurring or one-off care obligation."""

    id: str = Field(..., description="Unique task ID assigned by the store")
    name: str = Field(..., description="Task name (e.g., 'Buy incontinence pads')")
    description: str = Field(default="", description="Detailed task description")
    start_date: date = Field(..., description="Date of the first occurrence")
    end_date: date | None = Field(default=None, description="Inclusive last date an occurrence may be scheduled")
    recurrence_interval_days: int = Field(..., ge=0, description="Days between occurrences; 0 means one-off")
    task_type: TaskType = Field(..., description="PURCHASE or GENERAL")
    care_item_id: str | None = Field(default=None, description="Care item this task is about")
    is_active: bool = Field(default=True, description="False once soft-deleted")
    deactivated_at: datetime | None = Field(default=None, description="When the task was soft-deleted")
    created_by: str | None = Field(default=None, description="User ID of the creator")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")

    @property
    def is_one_off(self) -> bool:
        return self.recurrence_interval_days == 0
