"""Box schemas for request/response validation."""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class BoxBase(BaseModel):
    """Base box schema."""
    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    description: str = ""


class BoxCreate(BoxBase):
    """Schema for creating a box."""
    pass


class BoxUpdate(BaseModel):
    """Schema for updating a box."""
    name: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class BoxResponse(BoxBase):
    """Schema for box response."""
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BoxWithStats(BoxResponse):
    """Box with aggregate figures over its items."""
    item_count: int = 0
    total_value: float = 0.0
    with_receipts: int = 0


class BoxWithItems(BoxWithStats):
    """Schema for box with items."""
    items: List["ItemResponse"] = []


# Forward reference for circular import
from boxmanager.schemas.item import ItemResponse
BoxWithItems.model_rebuild()
