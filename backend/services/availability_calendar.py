"""Coarse per-date availability: which dates match an enabled weekday rule.

This deliberately ignores existing bookings; a fully booked day is still
reported. Use the slot generator for real capacity on a given date.
"""

from datetime import date, timedelta

from backend.core import config
from backend.core.errors import ValidationError
from backend.services.availability_store import AvailabilityStore
from backend.services.slots import weekday_of


class AvailabilityCalendar:
    def __init__(self, store: AvailabilityStore):
        self.store = store

    def available_dates(
        self,
        provider_id: int,
        window_days: int | None = None,
        from_date: date | None = None,
    ) -> list[date]:
        window_days = config.AVAILABILITY_WINDOW_DAYS if window_days is None else window_days
        if window_days <= 0:
            raise ValidationError('The availability window must cover at least one day.')

        from_date = from_date or date.today()
        enabled_weekdays = {
            rule.weekday for rule in self.store.get_rules(provider_id) if rule.is_available
        }
        if not enabled_weekdays:
            return []

        return [
            from_date + timedelta(days=offset)
            for offset in range(window_days)
            if weekday_of(from_date + timedelta(days=offset)) in enabled_weekdays
        ]
