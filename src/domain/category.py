"""Category domain model."""

from datetime import datetime

from pydantic import BaseModel


class Category(BaseModel):
    """Grouping for care items (e.g., 'Hygiene', 'Medication')."""

    id: str
    name: str
    description: str = ""
    color_code: str = "#6B7280"
    display_order: int = 0
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
