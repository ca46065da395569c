"""User model definitions."""

from sqlalchemy import Column, Integer, String
from backend.database import Base


class User(Base):
    """Represents a portal user taking part in scheduling."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    display_name = Column(String)
    role = Column(String)  # provider/requester
    # Bumped on every booking; the row lock it takes serializes a provider's bookings.
    booking_version = Column(Integer, nullable=False, default=0, server_default="0")
