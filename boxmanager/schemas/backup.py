"""Backup and restore schemas."""
from typing import Optional
from pydantic import BaseModel


class RestoreResponse(BaseModel):
    """Result of a successful restore."""
    message: str
    backup_created_at: Optional[str] = None
    backup_version: Optional[str] = None
    boxes: int
    items: int
    locations: int
    attachments: int


class RestoreStatusResponse(BaseModel):
    """Current restore state."""
    state: str
    last_error: Optional[str] = None
