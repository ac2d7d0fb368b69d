"""Item model."""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from boxmanager.database import Base, generate_id


class Item(Base):
    """Item model - stored in boxes."""
    __tablename__ = "items"

    id = Column(String(64), primary_key=True, default=generate_id)
    box_id = Column(String(64), ForeignKey("boxes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    details = Column(Text, nullable=False, default="")
    value = Column(Float, nullable=True, default=None)
    # Name of a file under <UPLOAD_DIR>/receipts
    receipt_filename = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    box = relationship("Box", back_populates="items")
