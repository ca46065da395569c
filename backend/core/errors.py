"""Typed failures raised by the scheduling services.

Every error carries a stable ``kind`` tag and a human-readable ``reason`` so
the HTTP layer (or any other host) can render it without string matching.
"""


class SchedulingError(Exception):
    kind = "scheduling_error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"kind": self.kind, "reason": self.reason}


class ValidationError(SchedulingError):
    """Malformed input: empty title, end before start, past start time."""

    kind = "validation_error"


class NotFoundError(SchedulingError):
    kind = "not_found"


class AccessDeniedError(SchedulingError):
    """The actor is not a party to the appointment or does not own the rules."""

    kind = "access_denied"


class SlotUnavailableError(SchedulingError):
    kind = "slot_unavailable"

    def __init__(
        self,
        reason: str,
        conflicting_status: str | None = None,
        conflicting_appointment_id: int | None = None,
    ):
        super().__init__(reason)
        self.conflicting_status = conflicting_status
        self.conflicting_appointment_id = conflicting_appointment_id

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["conflicting_status"] = self.conflicting_status
        payload["conflicting_appointment_id"] = self.conflicting_appointment_id
        return payload


class InvalidTransitionError(SchedulingError):
    kind = "invalid_transition"

    def __init__(self, reason: str, current_status: str, action: str, actor_role: str):
        super().__init__(reason)
        self.current_status = current_status
        self.action = action
        self.actor_role = actor_role

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["current_status"] = self.current_status
        payload["action"] = self.action
        payload["actor_role"] = self.actor_role
        return payload
