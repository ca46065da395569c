from datetime import date, datetime, time

from backend.services.availability_store import AvailabilityStore
from backend.services.conflicts import ConflictChecker
from backend.services.slots import SlotGenerator, iterate_slot_starts, weekday_of
from conftest import PROVIDER_ID, make_appointment

MONDAY = date(2025, 3, 10)


def _generator(db) -> SlotGenerator:
    return SlotGenerator(AvailabilityStore(db), ConflictChecker(db))


def test_weekday_of_counts_from_sunday() -> None:
    assert weekday_of(date(2025, 3, 9)) == 0
    assert weekday_of(MONDAY) == 1
    assert weekday_of(date(2025, 3, 15)) == 6


def test_full_day_rule_produces_sixteen_half_hour_slots(db) -> None:
    AvailabilityStore(db).set_rule(PROVIDER_ID, 1, time(9, 0), time(17, 0))

    slots = list(_generator(db).slots_for(PROVIDER_ID, MONDAY))

    assert len(slots) == 16
    assert slots[0].time == time(9, 0)
    assert slots[1].time == time(9, 30)
    assert slots[-1].time == time(16, 30)
    assert time(17, 0) not in [slot.time for slot in slots]
    assert all(slot.is_available for slot in slots)


def test_slot_starts_stop_before_rule_end() -> None:
    starts = list(iterate_slot_starts(MONDAY, time(9, 0), time(10, 45)))

    assert starts == [
        datetime(2025, 3, 10, 9, 0),
        datetime(2025, 3, 10, 9, 30),
        datetime(2025, 3, 10, 10, 0),
        datetime(2025, 3, 10, 10, 30),
    ]


def test_no_rule_means_no_slots(db) -> None:
    assert list(_generator(db).slots_for(PROVIDER_ID, MONDAY)) == []


def test_disabled_rule_means_no_slots(db) -> None:
    AvailabilityStore(db).set_rule(PROVIDER_ID, 1, time(9, 0), time(12, 0), is_available=False)

    assert list(_generator(db).slots_for(PROVIDER_ID, MONDAY)) == []


def test_rule_for_other_weekday_does_not_apply(db) -> None:
    AvailabilityStore(db).set_rule(PROVIDER_ID, 2, time(9, 0), time(12, 0))

    assert list(_generator(db).slots_for(PROVIDER_ID, MONDAY)) == []


def test_booked_slot_is_reported_unavailable(db) -> None:
    AvailabilityStore(db).set_rule(PROVIDER_ID, 1, time(9, 0), time(12, 0))
    make_appointment(db, start_time=datetime(2025, 3, 10, 10, 0), duration_minutes=60)

    availability = {slot.time: slot.is_available for slot in _generator(db).slots_for(PROVIDER_ID, MONDAY)}

    assert availability == {
        time(9, 0): True,
        time(9, 30): True,
        time(10, 0): False,
        time(10, 30): False,
        time(11, 0): True,
        time(11, 30): True,
    }


def test_cancelled_appointment_does_not_block_slot(db) -> None:
    AvailabilityStore(db).set_rule(PROVIDER_ID, 1, time(9, 0), time(12, 0))
    make_appointment(db, start_time=datetime(2025, 3, 10, 10, 0), status='cancelled')

    slots = list(_generator(db).slots_for(PROVIDER_ID, MONDAY))

    assert all(slot.is_available for slot in slots)


def test_slot_sequence_is_restartable_and_deterministic(db) -> None:
    AvailabilityStore(db).set_rule(PROVIDER_ID, 1, time(9, 0), time(12, 0))
    make_appointment(db, start_time=datetime(2025, 3, 10, 9, 30))
    sequence = _generator(db).slots_for(PROVIDER_ID, MONDAY)

    assert list(sequence) == list(sequence)
    assert list(sequence) == list(_generator(db).slots_for(PROVIDER_ID, MONDAY))


def test_slot_sequence_reflects_changes_between_iterations(db) -> None:
    AvailabilityStore(db).set_rule(PROVIDER_ID, 1, time(9, 0), time(10, 0))
    sequence = _generator(db).slots_for(PROVIDER_ID, MONDAY)
    assert [slot.is_available for slot in sequence] == [True, True]

    make_appointment(db, start_time=datetime(2025, 3, 10, 9, 0))

    assert [slot.is_available for slot in sequence] == [False, True]
