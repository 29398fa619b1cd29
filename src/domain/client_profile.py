"""Client (care recipient) profile domain models."""

from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class Sex(StrEnum):
    """Recorded sex of the client."""

    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"
    PREFER_NOT_TO_SAY = "Prefer not to say"


class Vitals(BaseModel):
    """Most recent vital signs recorded for the client."""

    heart_rate: int | None = None
    blood_pressure: str | None = None
    oxygen_saturation: float | None = None
    temperature: float | None = None
    recorded_date: datetime | None = None


class ClientProfile(BaseModel):
    """Care recipient profile; every descriptive field is optional."""

    id: str = Field(..., description="Unique profile ID assigned by the store")
    full_name: str | None = None
    date_of_birth: date | None = None
    sex: Sex | None = None
    age: int | None = Field(default=None, description="Age in years, derived from date_of_birth when not given")
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
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
