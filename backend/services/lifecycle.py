"""Appointment status state machine.

Transitions are keyed by ``(current status, actor role, action)``; anything
not in the table is rejected, including every move out of a terminal state.
"""

import enum
from dataclasses import dataclass

from backend.core.errors import InvalidTransitionError, ValidationError
from backend.models.appointment import ActorRole, Appointment, AppointmentStatus


class AppointmentAction(str, enum.Enum):
    APPROVE = "approve"
    DECLINE = "decline"
    CANCEL = "cancel"
    COMPLETE = "complete"


TERMINAL_STATUSES = frozenset({
    AppointmentStatus.COMPLETED.value,
    AppointmentStatus.CANCELLED.value,
})

# Actions whose outcome records the caller's reason on the appointment.
REASON_ACTIONS = frozenset({AppointmentAction.DECLINE, AppointmentAction.CANCEL})

TRANSITIONS: dict[tuple[AppointmentStatus, ActorRole, AppointmentAction], AppointmentStatus] = {
    (AppointmentStatus.PENDING_PROVIDER_APPROVAL, ActorRole.PROVIDER, AppointmentAction.APPROVE):
        AppointmentStatus.SCHEDULED,
    (AppointmentStatus.PENDING_PROVIDER_APPROVAL, ActorRole.PROVIDER, AppointmentAction.DECLINE):
        AppointmentStatus.CANCELLED,
    (AppointmentStatus.PENDING_REQUESTER_APPROVAL, ActorRole.REQUESTER, AppointmentAction.APPROVE):
        AppointmentStatus.SCHEDULED,
    (AppointmentStatus.PENDING_REQUESTER_APPROVAL, ActorRole.REQUESTER, AppointmentAction.DECLINE):
        AppointmentStatus.CANCELLED,
    (AppointmentStatus.SCHEDULED, ActorRole.PROVIDER, AppointmentAction.CANCEL):
        AppointmentStatus.CANCELLED,
    (AppointmentStatus.SCHEDULED, ActorRole.REQUESTER, AppointmentAction.CANCEL):
        AppointmentStatus.CANCELLED,
    (AppointmentStatus.SCHEDULED, ActorRole.PROVIDER, AppointmentAction.COMPLETE):
        AppointmentStatus.COMPLETED,
}


@dataclass(frozen=True)
class Transition:
    appointment_id: int
    old_status: str
    new_status: str


def parse_role(role) -> ActorRole:
    try:
        return ActorRole(role)
    except ValueError:
        raise ValidationError(f'Unknown actor role: {role!r}.') from None


def parse_action(action) -> AppointmentAction:
    try:
        return AppointmentAction(action)
    except ValueError:
        raise ValidationError(f'Unknown appointment action: {action!r}.') from None


def initial_status(requester_role) -> AppointmentStatus:
    """Whoever asks for the appointment leaves the decision to the other party."""
    if parse_role(requester_role) is ActorRole.PROVIDER:
        return AppointmentStatus.PENDING_REQUESTER_APPROVAL
    return AppointmentStatus.PENDING_PROVIDER_APPROVAL


def allowed_actions(status: str, actor_role) -> list[AppointmentAction]:
    role = parse_role(actor_role)
    return [
        action
        for (from_status, from_role, action) in TRANSITIONS
        if from_status.value == status and from_role is role
    ]


class AppointmentLifecycle:
    def next_status(self, current_status: str, actor_role, action) -> AppointmentStatus:
        role = parse_role(actor_role)
        parsed_action = parse_action(action)

        if current_status in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f'Appointment is already {current_status}; no further changes are allowed.',
                current_status=current_status,
                action=parsed_action.value,
                actor_role=role.value,
            )

        try:
            key = (AppointmentStatus(current_status), role, parsed_action)
        except ValueError:
            key = None

        if key not in TRANSITIONS:
            raise InvalidTransitionError(
                f'A {role.value} cannot {parsed_action.value} an appointment that is {current_status}.',
                current_status=current_status,
                action=parsed_action.value,
                actor_role=role.value,
            )
        return TRANSITIONS[key]

    def apply(
        self,
        appointment: Appointment,
        actor_role,
        action,
        reason: str | None = None,
    ) -> Transition:
        """Move ``appointment`` to its next status in place; the caller persists it."""
        old_status = appointment.status
        new_status = self.next_status(old_status, actor_role, action)

        appointment.status = new_status.value
        if parse_action(action) in REASON_ACTIONS:
            appointment.cancellation_reason = (reason or '').strip() or None

        return Transition(
            appointment_id=appointment.id,
            old_status=old_status,
            new_status=new_status.value,
        )
