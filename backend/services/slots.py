"""Bookable slot generation from a provider's weekly availability."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from backend.services.availability_store import AvailabilityStore
from backend.services.conflicts import ConflictChecker

# Fixed system granularity; not configurable per provider.
SLOT_INCREMENT_MINUTES = 30


@dataclass(frozen=True)
class TimeSlot:
    time: time
    start_time: datetime
    is_available: bool


def weekday_of(day: date) -> int:
    """Sunday-based weekday index (0=Sunday..6=Saturday)."""
    return day.isoweekday() % 7


def iterate_slot_starts(day: date, start_time: time, end_time: time) -> Iterator[datetime]:
    current = datetime.combine(day, start_time)
    end = datetime.combine(day, end_time)

    while current < end:
        yield current
        current += timedelta(minutes=SLOT_INCREMENT_MINUTES)


class SlotSequence:
    """Lazy view of one provider's slots on one date.

    Each iteration re-reads the rule and re-checks conflicts, so the sequence
    can be walked any number of times and always reflects the current data.
    """

    def __init__(self, generator: 'SlotGenerator', provider_id: int, day: date):
        self._generator = generator
        self.provider_id = provider_id
        self.day = day

    def __iter__(self) -> Iterator[TimeSlot]:
        return self._generator.iter_slots(self.provider_id, self.day)

    def __repr__(self) -> str:
        return f'SlotSequence(provider_id={self.provider_id!r}, day={self.day.isoformat()})'


class SlotGenerator:
    def __init__(self, store: AvailabilityStore, checker: ConflictChecker):
        self.store = store
        self.checker = checker

    def slots_for(self, provider_id: int, day: date) -> SlotSequence:
        return SlotSequence(self, provider_id, day)

    def iter_slots(self, provider_id: int, day: date) -> Iterator[TimeSlot]:
        rule = self.store.get_rule(provider_id, weekday_of(day))
        if rule is None or not rule.is_available:
            return

        for slot_start in iterate_slot_starts(day, rule.start_time, rule.end_time):
            yield TimeSlot(
                time=slot_start.time(),
                start_time=slot_start,
                is_available=self.checker.is_free(provider_id, slot_start, SLOT_INCREMENT_MINUTES),
            )
