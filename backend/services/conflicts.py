"""Overlap detection against a provider's time-occupying appointments."""

from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.models.appointment import OCCUPYING_STATUSES, Appointment


def intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    # Half-open intervals: touching endpoints do not overlap.
    return first_start < second_end and second_start < first_end


class ConflictChecker:
    def __init__(self, db: Session):
        self.db = db

    def _occupying(self, provider_id: int):
        return self.db.query(Appointment).filter(
            Appointment.provider_id == provider_id,
            Appointment.status.in_(OCCUPYING_STATUSES),
        )

    def find_conflict(
        self,
        provider_id: int,
        start_time: datetime,
        duration_minutes: int,
    ) -> Appointment | None:
        """Return the earliest occupying appointment overlapping the interval, if any.

        An unknown provider simply has no appointments, so the interval is free.
        """
        longest = (
            self._occupying(provider_id)
            .with_entities(func.max(Appointment.duration_minutes))
            .scalar()
        )
        if longest is None:
            return None

        end_time = start_time + timedelta(minutes=duration_minutes)
        # Anything starting before this ends before start_time.
        earliest_start = start_time - timedelta(minutes=longest)

        query = self._occupying(provider_id).filter(
            Appointment.start_time < end_time,
            Appointment.start_time > earliest_start,
        )
        for appointment in query.order_by(Appointment.start_time.asc(), Appointment.id.asc()):
            if intervals_overlap(appointment.start_time, appointment.end_time, start_time, end_time):
                return appointment
        return None

    def is_free(self, provider_id: int, start_time: datetime, duration_minutes: int) -> bool:
        return self.find_conflict(provider_id, start_time, duration_minutes) is None
