"""Activity log schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ActivityLogResponse(BaseModel):
    """Schema for an activity log entry."""
    id: int
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    entity_name: Optional[str] = None
    details: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
