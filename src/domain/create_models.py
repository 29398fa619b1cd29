"""Pydantic models for creating records in the document store."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.config import constants
from src.core.date_math import to_date, to_datetime
from src.domain.care_task import TaskType
from src.domain.client_profile import Sex, Vitals


def coerce_optional_date(value: Any) -> Any:
    """Parse date strings leniently; empty values mean "no date"."""
    if value is None or value == "":
        return None
    if isinstance(value, str | date):
        return to_date(value)
    return value


def coerce_optional_datetime(value: Any) -> Any:
    """Parse timestamp strings leniently; empty values mean "no timestamp"."""
    if value is None or value == "":
        return None
    if isinstance(value, str | date):
        return to_datetime(value)
    return value


class CategoryCreate(BaseModel):
    """Payload for creating a category."""

    name: str = Field(..., min_length=1, description="Category name")
    description: str = Field(default="", description="Category description")
    color_code: str = Field(default=constants.DEFAULT_CATEGORY_COLOR, description="Display colour (hex)")
    display_order: int = Field(default=0, description="Sort position in listings")


class CareItemCreate(BaseModel):
    """Payload for creating a care item."""

    name: str = Field(..., min_length=1, description="Item name")
    estimated_unit_cost: float = Field(..., gt=0, description="Expected cost per unit")
    quantity_per_purchase: int = Field(default=1, ge=1, description="Units bought per purchase")
    quantity_unit: str = Field(..., min_length=1, description="Unit of measure")
    start_date: date = Field(..., description="First date the item is needed")
    end_date: date | None = Field(default=None, description="Last date the item is needed")
    category_id: str = Field(..., min_length=1, description="Owning category")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        """Accept ISO dates and full timestamps."""
        return coerce_optional_date(v)


class CareTaskCreate(BaseModel):
    """Payload for creating a care task."""

    name: str = Field(..., min_length=1, description="Task name")
    description: str = Field(default="", description="Detailed task description")
    start_date: date = Field(..., description="Date of the first occurrence")
    end_date: date | None = Field(default=None, description="Inclusive last occurrence date")
    recurrence_interval_days: int = Field(..., ge=0, description="Days between occurrences; 0 means one-off")
    task_type: TaskType = Field(..., description="PURCHASE or GENERAL")
    care_item_id: str | None = Field(default=None, description="Care item this task is about")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> Any:
        """Accept ISO dates and full timestamps."""
        return coerce_optional_date(v)

    @field_validator("care_item_id", mode="before")
    @classmethod
    def blank_care_item_is_none(cls, v: Any) -> Any:
        """Treat an empty care item reference as no reference."""
        return v or None


class ClientProfileFields(BaseModel):
    """Descriptive client profile fields; only supplied fields are stored."""

    full_name: str | None = None
    date_of_birth: date | None = None
    sex: Sex | None = None
    age: int | None = Field(default=None, ge=0)
    mobile_number: str | None = None
    email_address: str | None = None
    postal_address: str | None = None
    emergency_contacts: list[dict[str, Any]] | None = None
    notes: str | None = None
    medical_conditions: str | None = None
    allergies: str | None = None
    medications: str | None = None
    accessibility_needs: str | None = None
    latest_vitals: Vitals | None = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, v: Any) -> Any:
        """Accept ISO dates and full timestamps."""
        return coerce_optional_date(v)


class ClientProfileCreate(ClientProfileFields):
    """Payload for creating a client profile."""


class VitalsUpdate(BaseModel):
    """Payload for recording the latest vital signs."""

    heart_rate: int | None = None
    blood_pressure: str | None = None
    oxygen_saturation: float | None = None
    temperature: float | None = None
    recorded_date: datetime | None = None

    @field_validator("recorded_date", mode="before")
    @classmethod
    def parse_recorded_date(cls, v: Any) -> Any:
        """Accept ISO dates and full timestamps."""
        return coerce_optional_datetime(v)

    @model_validator(mode="after")
    def require_one_vital(self) -> "VitalsUpdate":
        """At least one vital sign must be present."""
        if not any((self.heart_rate, self.blood_pressure, self.oxygen_saturation, self.temperature)):
            msg = "At least one vital sign must be provided"
            raise ValueError(msg)
        return self


class ClientProfileSearch(BaseModel):
    """Criteria for the client profile search endpoint."""

    full_name: str | None = None
    email_address: str | None = None
    mobile_number: str | None = None
    age_min: int | None = Field(default=None, ge=0)
    age_max: int | None = Field(default=None, ge=0)
    sex: Sex | None = None
    has_medical_conditions: bool | None = None
    is_active: bool = True
    limit: int = Field(default=constants.DEFAULT_PAGE_LIMIT, ge=1, le=constants.MAX_PAGE_LIMIT)
