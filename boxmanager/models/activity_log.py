"""Activity log model."""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func

from boxmanager.database import Base


class ActivityAction(str, enum.Enum):
    """Kinds of recorded actions."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"


class ActivityEntity(str, enum.Enum):
    """Entity types an activity can refer to."""
    BOX = "box"
    ITEM = "item"
    LOCATION = "location"
    SYSTEM = "system"


class ActivityLog(Base):
    """Append-only audit record shown in the activity feed."""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=True)
    entity_name = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
