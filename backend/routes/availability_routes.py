from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import BaseModel, field_validator
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
from backend.services.availability_store import WEEKDAY_NAMES
from backend.services.scheduling import SchedulingService

router = APIRouter(tags=['availability'])

MAX_CALENDAR_WINDOW_DAYS = 90


class SetAvailabilityRequest(BaseModel):
    start_time: time
    end_time: time
    is_available: bool = True

    @field_validator('start_time', 'end_time')
    @classmethod
    def drop_seconds(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0)


class AvailabilityRuleResponse(BaseModel):
    provider_id: int
    weekday: int
    weekday_name: str
    start_time: time
    end_time: time
    is_available: bool


class TimeSlotResponse(BaseModel):
    time: time
    start_time: datetime
    is_available: bool


def _rule_response(rule) -> AvailabilityRuleResponse:
    return AvailabilityRuleResponse(
        provider_id=rule.provider_id,
        weekday=rule.weekday,
        weekday_name=WEEKDAY_NAMES[rule.weekday],
        start_time=rule.start_time,
        end_time=rule.end_time,
        is_available=rule.is_available,
    )


@router.get('/providers/{provider_id}/rules', response_model=list[AvailabilityRuleResponse])
def list_availability_rules(
    provider_id: int,
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return [_rule_response(rule) for rule in service.get_availability(provider_id)]
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc


@router.put('/rules/{weekday}', response_model=AvailabilityRuleResponse)
def set_availability_rule(
    data: SetAvailabilityRequest,
    weekday: int = Path(..., ge=0, le=6),
    actor: Actor = Depends(get_current_actor),
    service: SchedulingService = Depends(get_scheduling_service),
):
    if actor.role is not ActorRole.PROVIDER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only providers can set availability.',
        )

    ensure_database_ready()

    try:
        rule = service.set_availability(
            actor.id,
            weekday,
            data.start_time,
            data.end_time,
            data.is_available,
            actor_id=actor.id,
        )
        return _rule_response(rule)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc


@router.get('/providers/{provider_id}/slots', response_model=list[TimeSlotResponse])
def list_time_slots(
    provider_id: int,
    slot_date: date = Query(..., alias='date'),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return [
            TimeSlotResponse(
                time=slot.time,
                start_time=slot.start_time,
                is_available=slot.is_available,
            )
            for slot in service.get_available_slots(provider_id, slot_date)
        ]
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc


@router.get('/providers/{provider_id}/dates', response_model=list[date])
def list_available_dates(
    provider_id: int,
    days: int = Query(default=config.AVAILABILITY_WINDOW_DAYS, ge=1, le=MAX_CALENDAR_WINDOW_DAYS),
    from_date: date | None = Query(default=None, alias='from'),
    service: SchedulingService = Depends(get_scheduling_service),
):
    ensure_database_ready()

    try:
        return service.available_dates(provider_id, window_days=days, from_date=from_date)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(service.db) from exc
