"""Activity log helpers."""
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from boxmanager.database import StoreHandle, StoreUnavailable
from boxmanager.models.activity_log import ActivityAction, ActivityEntity, ActivityLog


def log_activity(
    db: Session,
    action: ActivityAction,
    entity_type: ActivityEntity,
    entity_id: Optional[str] = None,
    entity_name: Optional[str] = None,
    details: Optional[str] = None
):
    """Add an activity entry to the session. The caller commits."""
    entry = ActivityLog(
        action=action.value,
        entity_type=entity_type.value,
        entity_id=entity_id,
        entity_name=entity_name,
        details=details
    )
    db.add(entry)
    return entry


def recent_activity(db: Session, limit: int = 50) -> List[ActivityLog]:
    """Newest entries first."""
    return db.query(ActivityLog).order_by(ActivityLog.id.desc()).limit(limit).all()


def record_system_activity(store: StoreHandle, action: ActivityAction, details: Optional[str] = None):
    """Write a system entry in its own session; failures are only logged."""
    try:
        db = store.session()
    except StoreUnavailable:
        logger.warning(f"Store closed, {action.value} not recorded in activity log")
        return
    try:
        log_activity(db, action, ActivityEntity.SYSTEM, entity_name="System", details=details)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not record {action.value} in activity log: {e}")
    finally:
        db.close()
