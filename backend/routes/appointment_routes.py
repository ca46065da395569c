from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError

from backend.auth.dependencies import Actor, get_current_actor
from backend.core import config
from backend.core.errors import SchedulingError
from backend.models.appointment import ActorRole
from backend.routes.common import (
    database_unavailable,
    ensure_database_ready,
    get_scheduling_service,
    to_http_exception,
)
from backend.services.lifecycle import AppointmentAction, allowed_actions
from backend.services.scheduling import AppointmentView, SchedulingService

router = APIRouter(tags=['appointments'])

MAX_REASON_LENGTH = 600


class CreateAppointmentRequest(BaseModel):
    counterparty_id: int
    title: str
    start_time: datetime
    description: str | None = None
    duration_minutes: int = Field(default=config.DEFAULT_APPOINTMENT_DURATION_MINUTES, gt=0)
    location: str | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Title is required.')
        return normalized

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: datetime) -> datetime:
        # Scheduling works on provider-local naive datetimes.
        return value.replace(tzinfo=None, second=0, microsecond=0)


class ChangeStatusRequest(BaseModel):
    action: AppointmentAction
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')

        return normalized


class AppointmentResponse(BaseModel):
    id: int
    provider_id: int
    requester_id: int
    counterparty_name: str | None = None
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    location: str | None = None
    status: str
    cancellation_reason: str | None = None
    requester_role: str
    created_at: datetime | None = None
    allowed_actions: list[str] = []


def build_appointment_response(
    appointment,
    actor_role: ActorRole,
    counterparty_name: str | None = None,
) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        provider_id=appointment.provider_id,
        requester_id=appointment.requester_id,
        counterparty_name=counterparty_name,
        title=appointment.title,
        description=appointment.description,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        duration_minutes=appointment.duration_minutes,
        location=appointment.location,
        status=appointment.status,
        cancellation_reason=appointment.cancellation_reason,
        requester_role=appointment.requester_role,
        created_at=appointment.created_at,
        allowed_actions=[action.value for action in allowed_actions(appointment.status, actor_role)],
    )


def _view_response(view: AppointmentView, actor_role: ActorRole) -> AppointmentResponse:
    return build_appointment_response(view.appointment, actor_role, view.counterparty_name)


@router.get('/', response_model=list[AppointmentResponse])
def list_appointments(
    upcoming_only: bool = Query(default=False),
    actor: Actor = Depends(get_current_actor),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        views = service.list_appointments(actor.id, actor.role, upcoming_only=upcoming_only)
        return [_view_response(view, actor.role) for view in views]
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc


@router.get('/pending', response_model=list[AppointmentResponse])
def list_pending_appointments(
    actor: Actor = Depends(get_current_actor),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        views = service.list_pending_approvals(actor.id, actor.role)
        return [_view_response(view, actor.role) for view in views]
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        appointment = service.get_appointment(appointment_id, actor_id=actor.id)
        counterparty_id = (
            appointment.requester_id if actor.role is ActorRole.PROVIDER else appointment.provider_id
        )
        return build_appointment_response(
            appointment,
            actor.role,
            service.profiles.display_name(counterparty_id),
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc


@router.post('/', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    actor: Actor = Depends(get_current_actor),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    if actor.role is ActorRole.PROVIDER:
        provider_id, requester_id = actor.id, data.counterparty_id
    else:
        provider_id, requester_id = data.counterparty_id, actor.id

    try:
        appointment = service.request_appointment(
            provider_id=provider_id,
            requester_id=requester_id,
            title=data.title,
            start_time=data.start_time,
            requester_role=actor.role,
            description=data.description,
            duration_minutes=data.duration_minutes,
            location=data.location,
        )
        return build_appointment_response(
            appointment,
            actor.role,
            service.profiles.display_name(data.counterparty_id),
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc


@router.post('/{appointment_id}/status', response_model=AppointmentResponse)
def change_appointment_status(
    appointment_id: int,
    data: ChangeStatusRequest,
    actor: Actor = Depends(get_current_actor),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        appointment = service.change_status(
            appointment_id,
            actor.role,
            data.action,
            reason=data.reason,
            actor_id=actor.id,
        )
        return build_appointment_response(appointment, actor.role)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc
