"""Box model."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from boxmanager.database import Base, generate_id


class Box(Base):
    """Box model - a physical storage container holding items."""
    __tablename__ = "boxes"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    # Free-text label; matched against Location.name, not a foreign key
    location = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    items = relationship(
        "Item",
        back_populates="box",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
