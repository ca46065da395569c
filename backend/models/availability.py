"""Availability model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Time, UniqueConstraint
from backend.database import Base


class AvailabilityRule(Base):
    """Represents a provider's recurring availability for one weekday.

    ``weekday`` counts from Sunday (0) to Saturday (6).
    """
    __tablename__ = "availability_rules"
    __table_args__ = (
        UniqueConstraint("provider_id", "weekday", name="uq_availability_rules_provider_weekday"),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    weekday = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
