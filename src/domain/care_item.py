"""Care item domain model."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class CareItem(BaseModel):
    """Supply consumed in caring for the client."""

    id: str = Field(..., description="Unique item ID assigned by the store")
    name: str = Field(..., description="Item name (e.g., 'Gauze pads')")
    estimated_unit_cost: float = Field(..., description="Expected cost per unit")
    quantity_per_purchase: int = Field(default=1, description="Units bought per purchase")
    quantity_unit: str = Field(..., description="Unit of measure (e.g., 'box')")
    start_date: date = Field(..., description="First date the item is needed")
    end_date: date | None = Field(default=None, description="Last date the item is needed")
    category_id: str = Field(..., description="Owning category")
    is_active: bool = Field(default=True, description="False once soft-deleted")
    deactivated_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
