"""Scheduling façade: the operations callers use to book and manage appointments."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core import config
from backend.core.errors import (
    AccessDeniedError,
    NotFoundError,
    SchedulingError,
    SlotUnavailableError,
    ValidationError,
)
from backend.models.appointment import ActorRole, Appointment, AppointmentStatus
from backend.models.availability import AvailabilityRule
from backend.models.user import User
from backend.services import reservations
from backend.services.availability_calendar import AvailabilityCalendar
from backend.services.availability_store import AvailabilityStore
from backend.services.collaborators import LoggingNotifier, Notifier, ProfileLookup, UserProfileLookup
from backend.services.conflicts import ConflictChecker
from backend.services.lifecycle import AppointmentLifecycle, initial_status, parse_role
from backend.services.slots import SlotGenerator, SlotSequence

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000


@dataclass(frozen=True)
class AppointmentView:
    appointment: Appointment
    counterparty_name: str


def _awaiting_status(role: ActorRole) -> str:
    if role is ActorRole.PROVIDER:
        return AppointmentStatus.PENDING_PROVIDER_APPROVAL.value
    return AppointmentStatus.PENDING_REQUESTER_APPROVAL.value


def _clean_optional(value: str | None, field_name: str, max_length: int) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    if len(normalized) > max_length:
        raise ValidationError(f'{field_name} must be {max_length} characters or fewer.')
    return normalized


class SchedulingService:
    def __init__(
        self,
        db: Session,
        notifier: Notifier | None = None,
        profiles: ProfileLookup | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.notifier = notifier or LoggingNotifier()
        self.profiles = profiles or UserProfileLookup(db)
        self.clock = clock
        self.store = AvailabilityStore(db)
        self.checker = ConflictChecker(db)
        self.slots = SlotGenerator(self.store, self.checker)
        self.calendar = AvailabilityCalendar(self.store)
        self.lifecycle = AppointmentLifecycle()

    # Availability

    def set_availability(
        self,
        provider_id: int,
        weekday: int,
        start_time: time,
        end_time: time,
        is_available: bool = True,
        actor_id: int | None = None,
    ) -> AvailabilityRule:
        if actor_id is not None and actor_id != provider_id:
            raise AccessDeniedError('Providers can only change their own availability.')
        self._require_user(provider_id, ActorRole.PROVIDER)
        return self.store.set_rule(provider_id, weekday, start_time, end_time, is_available)

    def get_availability(self, provider_id: int) -> list[AvailabilityRule]:
        return self.store.get_rules(provider_id)

    def get_available_slots(self, provider_id: int, day: date) -> SlotSequence:
        return self.slots.slots_for(provider_id, day)

    def available_dates(
        self,
        provider_id: int,
        window_days: int | None = None,
        from_date: date | None = None,
    ) -> list[date]:
        return self.calendar.available_dates(
            provider_id,
            window_days=window_days,
            from_date=from_date or self.clock().date(),
        )

    # Appointments

    def list_appointments(
        self,
        actor_id: int,
        role,
        upcoming_only: bool = False,
    ) -> list[AppointmentView]:
        actor_role = parse_role(role)
        query = self.db.query(Appointment).filter(self._party_filter(actor_id, actor_role))
        appointments = query.order_by(Appointment.start_time.asc(), Appointment.id.asc()).all()

        if upcoming_only:
            now = self.clock()
            appointments = [appointment for appointment in appointments if appointment.end_time > now]

        return [self._view(appointment, actor_role) for appointment in appointments]

    def list_pending_approvals(self, actor_id: int, role) -> list[AppointmentView]:
        """Appointments waiting on this actor's approve/decline decision."""
        actor_role = parse_role(role)
        appointments = self.db.query(Appointment).filter(
            self._party_filter(actor_id, actor_role),
            Appointment.status == _awaiting_status(actor_role),
        ).order_by(Appointment.start_time.asc(), Appointment.id.asc()).all()
        return [self._view(appointment, actor_role) for appointment in appointments]

    def get_appointment(self, appointment_id: int, actor_id: int | None = None) -> Appointment:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if appointment is None:
            raise NotFoundError(f'Appointment {appointment_id} not found.')
        if actor_id is not None and actor_id not in (appointment.provider_id, appointment.requester_id):
            raise AccessDeniedError('Only the parties to an appointment can view it.')
        return appointment

    def request_appointment(
        self,
        provider_id: int,
        requester_id: int,
        title: str,
        start_time: datetime,
        requester_role,
        description: str | None = None,
        duration_minutes: int | None = None,
        location: str | None = None,
    ) -> Appointment:
        role = parse_role(requester_role)
        duration_minutes = (
            config.DEFAULT_APPOINTMENT_DURATION_MINUTES if duration_minutes is None else duration_minutes
        )

        normalized_title = (title or '').strip()
        if not normalized_title:
            raise ValidationError('Title is required.')
        if len(normalized_title) > MAX_TITLE_LENGTH:
            raise ValidationError(f'Title must be {MAX_TITLE_LENGTH} characters or fewer.')
        if not 0 < duration_minutes <= config.MAX_APPOINTMENT_DURATION_MINUTES:
            raise ValidationError(
                f'Duration must be between 1 and {config.MAX_APPOINTMENT_DURATION_MINUTES} minutes.'
            )

        start_time = start_time.replace(second=0, microsecond=0)
        if start_time < self.clock().replace(second=0, microsecond=0):
            raise ValidationError('Appointments cannot be booked in the past.')

        self._require_user(provider_id, ActorRole.PROVIDER)
        self._require_user(requester_id, ActorRole.REQUESTER)

        # Check and insert under the provider's booking lock so concurrent requests
        # for overlapping times are decided one at a time.
        reservations.lock_provider_calendar(self.db, provider_id)
        conflict = self.checker.find_conflict(provider_id, start_time, duration_minutes)
        if conflict is not None:
            error = self._slot_unavailable(conflict)
            self.db.rollback()
            raise error

        appointment = Appointment(
            provider_id=provider_id,
            requester_id=requester_id,
            title=normalized_title,
            description=_clean_optional(description, 'Description', MAX_DESCRIPTION_LENGTH),
            start_time=start_time,
            duration_minutes=duration_minutes,
            location=_clean_optional(location, 'Location', MAX_TITLE_LENGTH),
            status=initial_status(role).value,
            requester_role=role.value,
            created_at=self.clock(),
        )

        try:
            self.db.add(appointment)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(
            'Appointment %s requested by %s for provider %s at %s (%s)',
            appointment.id,
            role.value,
            provider_id,
            start_time.isoformat(),
            appointment.status,
        )
        self._notify(appointment.id, None, appointment.status)
        return appointment

    def change_status(
        self,
        appointment_id: int,
        actor_role,
        action,
        reason: str | None = None,
        actor_id: int | None = None,
    ) -> Appointment:
        role = parse_role(actor_role)
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
        ).with_for_update().first()
        if appointment is None:
            raise NotFoundError(f'Appointment {appointment_id} not found.')

        if actor_id is not None:
            party_id = appointment.provider_id if role is ActorRole.PROVIDER else appointment.requester_id
            if actor_id != party_id:
                self.db.rollback()
                raise AccessDeniedError(f'Only the appointment {role.value} can act as {role.value}.')

        try:
            transition = self.lifecycle.apply(appointment, role, action, reason)
        except SchedulingError:
            self.db.rollback()
            raise

        self.db.commit()
        self.db.refresh(appointment)

        logger.info(
            'Appointment %s moved from %s to %s by %s',
            appointment.id,
            transition.old_status,
            transition.new_status,
            role.value,
        )
        self._notify(transition.appointment_id, transition.old_status, transition.new_status)
        return appointment

    # Helpers

    def _require_user(self, user_id: int, role: ActorRole) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None or user.role != role.value:
            raise NotFoundError(f'{role.value.capitalize()} {user_id} not found.')
        return user

    def _party_filter(self, actor_id: int, role: ActorRole):
        if role is ActorRole.PROVIDER:
            return Appointment.provider_id == actor_id
        return Appointment.requester_id == actor_id

    def _view(self, appointment: Appointment, role: ActorRole) -> AppointmentView:
        counterparty_id = appointment.requester_id if role is ActorRole.PROVIDER else appointment.provider_id
        return AppointmentView(
            appointment=appointment,
            counterparty_name=self.profiles.display_name(counterparty_id),
        )

    def _slot_unavailable(self, conflict: Appointment) -> SlotUnavailableError:
        return SlotUnavailableError(
            f'This time overlaps an appointment that is {conflict.status}.',
            conflicting_status=conflict.status,
            conflicting_appointment_id=conflict.id,
        )

    def _notify(self, appointment_id: int, old_status: str | None, new_status: str) -> None:
        try:
            self.notifier.notify(appointment_id, old_status, new_status)
        except Exception:
            logger.exception('Failed to send status notification for appointment %s', appointment_id)
