"""Item schemas for request/response validation."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ItemBase(BaseModel):
    """Base item schema."""
    name: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    details: str = ""
    value: Optional[float] = Field(None, ge=0)


class ItemCreate(ItemBase):
    """Schema for creating an item."""
    box_id: str


class ItemUpdate(BaseModel):
    """Schema for updating an item."""
    name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=1)
    details: Optional[str] = None
    value: Optional[float] = Field(None, ge=0)
    box_id: Optional[str] = None


class ItemResponse(ItemBase):
    """Schema for item response."""
    id: str
    box_id: str
    receipt_filename: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReceiptUploadResponse(BaseModel):
    """Result of a receipt upload."""
    message: str
    filename: str
