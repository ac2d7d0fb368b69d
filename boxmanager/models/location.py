"""Location model."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from boxmanager.database import Base, generate_id


class Location(Base):
    """Named place where boxes are kept.

    Boxes refer to a location by name through Box.location; deleting a
    location that is still in use is refused by the routes.
    """
    __tablename__ = "locations"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
