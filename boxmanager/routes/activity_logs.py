"""Activity log routes."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from boxmanager.database import get_db
from boxmanager.schemas.activity_log import ActivityLogResponse
from boxmanager.services.activity import recent_activity

router = APIRouter(prefix="/activity-logs", tags=["Activity"])


@router.get("/", response_model=List[ActivityLogResponse])
async def list_activity_logs(
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Most recent activity, newest first."""
    return recent_activity(db, limit)
