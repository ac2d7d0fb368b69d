"""Location schemas for request/response validation."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class LocationBase(BaseModel):
    """Base location schema."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class LocationCreate(LocationBase):
    """Schema for creating a location."""
    pass


class LocationUpdate(BaseModel):
    """Schema for updating a location."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class LocationResponse(LocationBase):
    """Schema for location response."""
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
