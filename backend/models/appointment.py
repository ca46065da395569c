"""Appointment model definitions."""

import enum
from datetime import datetime, timedelta

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from backend.database import Base


class ActorRole(str, enum.Enum):
    PROVIDER = "provider"
    REQUESTER = "requester"


class AppointmentStatus(str, enum.Enum):
    PENDING_PROVIDER_APPROVAL = "pending_provider_approval"
    PENDING_REQUESTER_APPROVAL = "pending_requester_approval"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    # Reserved; no transition produces or consumes it.
    RESCHEDULED = "rescheduled"


# Stored status values that reserve time on the provider calendar.
OCCUPYING_STATUSES = frozenset({
    AppointmentStatus.PENDING_PROVIDER_APPROVAL.value,
    AppointmentStatus.PENDING_REQUESTER_APPROVAL.value,
    AppointmentStatus.SCHEDULED.value,
})


class Appointment(Base):
    """Represents an appointment between a provider and a requester."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String)
    start_time = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    status = Column(String, nullable=False)
    location = Column(String)
    cancellation_reason = Column(String)
    requester_role = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)
