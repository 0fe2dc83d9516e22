from datetime import date, datetime, time

import pytest

from reservas.models.appointment import AppointmentStatus
from reservas.scheduling.availability import compute_availability, is_peak_slot
from reservas.scheduling.errors import (
    BookingValidationError,
    BusinessNotFoundError,
    PastDateError,
    ServiceNotActiveError,
    ServiceNotFoundError,
    ServiceOwnershipError,
)

MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)
NOW = datetime(2024, 1, 1, 8, 0)


def _starts(result) -> list[time]:
    return [slot.start.time() for slot in result.slots]


@pytest.fixture
def open_monday(set_hours):
    return set_hours(MONDAY.weekday(), open_time=time(9, 0), close_time=time(18, 0))


def test_open_day_lists_every_granular_start(db, business, make_service, open_monday) -> None:
    service = make_service(duration_minutes=30)

    result = compute_availability(db, business.id, MONDAY, [service.id], now=NOW)

    starts = _starts(result)
    assert result.total_duration_minutes == 30
    assert len(starts) == 35
    assert starts[0] == time(9, 0)
    assert starts[-1] == time(17, 30)
    assert all((slot.end - slot.start).total_seconds() == 30 * 60 for slot in result.slots)


def test_blackout_day_has_no_slots(db, business, make_service, open_monday, add_blackout) -> None:
    service = make_service()
    add_blackout(MONDAY)

    result = compute_availability(db, business.id, MONDAY, [service.id], now=NOW)

    assert result.slots == []
    assert result.total_duration_minutes == 30


def test_day_without_working_hours_has_no_slots(db, business, make_service, open_monday) -> None:
    service = make_service()

    assert compute_availability(db, business.id, TUESDAY, [service.id], now=NOW).slots == []


def test_inactive_working_hours_are_ignored(db, business, make_service, set_hours) -> None:
    service = make_service()
    set_hours(TUESDAY.weekday(), active=False)

    assert compute_availability(db, business.id, TUESDAY, [service.id], now=NOW).slots == []


def test_existing_booking_removes_overlapping_starts(db, business, make_service, open_monday, book) -> None:
    service = make_service(duration_minutes=30)
    book(datetime(2024, 1, 15, 10, 0), datetime(2024, 1, 15, 11, 0), service)

    starts = _starts(compute_availability(db, business.id, MONDAY, [service.id], now=NOW))

    assert len(starts) == 30
    assert time(9, 30) in starts
    assert time(11, 0) in starts
    for blocked in (time(9, 45), time(10, 0), time(10, 15), time(10, 30), time(10, 45)):
        assert blocked not in starts


def test_cancelled_booking_does_not_block(db, business, make_service, open_monday, book) -> None:
    service = make_service()
    book(
        datetime(2024, 1, 15, 10, 0),
        datetime(2024, 1, 15, 11, 0),
        service,
        status=AppointmentStatus.CANCELLED,
    )

    assert len(compute_availability(db, business.id, MONDAY, [service.id], now=NOW).slots) == 35


def test_excluded_appointment_does_not_block(db, business, make_service, open_monday, book) -> None:
    service = make_service()
    existing = book(datetime(2024, 1, 15, 10, 0), datetime(2024, 1, 15, 11, 0), service)

    result = compute_availability(
        db, business.id, MONDAY, [service.id], exclude_appointment_id=existing.id, now=NOW,
    )

    assert len(result.slots) == 35


def test_other_business_bookings_do_not_block(db, business, other_business, make_service, open_monday, book) -> None:
    service = make_service()
    foreign_service = make_service(owner=other_business)
    book(datetime(2024, 1, 15, 9, 0), datetime(2024, 1, 15, 18, 0), foreign_service, owner=other_business)

    assert len(compute_availability(db, business.id, MONDAY, [service.id], now=NOW).slots) == 35


def test_durations_of_multiple_services_are_summed(db, business, make_service, open_monday) -> None:
    haircut = make_service(name='Corte', duration_minutes=30)
    beard = make_service(name='Barba', duration_minutes=45)

    result = compute_availability(db, business.id, MONDAY, [haircut.id, beard.id], now=NOW)

    assert result.total_duration_minutes == 75
    assert _starts(result)[-1] == time(16, 45)
    assert len(result.slots) == 32
    assert result.slots[0].label == '09:00 - 10:15'


def test_peak_window_slots_are_recommended(db, business, make_service, open_monday) -> None:
    service = make_service()

    result = compute_availability(db, business.id, MONDAY, [service.id], now=NOW)

    recommended = [slot.start.time() for slot in result.slots if slot.recommended]
    assert recommended[0] == time(10, 0)
    assert recommended[-1] == time(15, 45)
    assert len(recommended) == 24


@pytest.mark.parametrize(
    ('start', 'expected'),
    [
        (time(9, 45), False),
        (time(10, 0), True),
        (time(15, 59), True),
        (time(16, 0), False),
    ],
)
def test_is_peak_slot_bounds(start, expected) -> None:
    assert is_peak_slot(start) is expected


def test_past_date_is_rejected(db, business, make_service, open_monday) -> None:
    service = make_service()

    with pytest.raises(PastDateError):
        compute_availability(db, business.id, MONDAY, [service.id], now=datetime(2024, 1, 16, 8, 0))


def test_today_skips_slots_that_already_started(db, business, make_service, open_monday) -> None:
    service = make_service()

    result = compute_availability(
        db, business.id, MONDAY, [service.id], now=datetime(2024, 1, 15, 12, 5),
    )

    starts = _starts(result)
    assert starts[0] == time(12, 15)
    assert len(starts) == 22


def test_unknown_service_is_rejected(db, business, open_monday) -> None:
    with pytest.raises(ServiceNotFoundError):
        compute_availability(db, business.id, MONDAY, ['missing-service'], now=NOW)


def test_foreign_service_is_rejected(db, business, other_business, make_service, open_monday) -> None:
    foreign_service = make_service(owner=other_business)

    with pytest.raises(ServiceOwnershipError):
        compute_availability(db, business.id, MONDAY, [foreign_service.id], now=NOW)


def test_inactive_service_is_rejected(db, business, make_service, open_monday) -> None:
    service = make_service(name='Tinte', active=False)

    with pytest.raises(ServiceNotActiveError) as exception_info:
        compute_availability(db, business.id, MONDAY, [service.id], now=NOW)

    assert 'Tinte' in exception_info.value.message


def test_empty_service_list_is_rejected(db, business, open_monday) -> None:
    with pytest.raises(BookingValidationError):
        compute_availability(db, business.id, MONDAY, [], now=NOW)


def test_unknown_business_is_rejected(db) -> None:
    with pytest.raises(BusinessNotFoundError):
        compute_availability(db, 'missing-business', MONDAY, ['any'], now=NOW)


def test_repeated_queries_return_the_same_slots(db, business, make_service, open_monday, book) -> None:
    service = make_service()
    book(datetime(2024, 1, 15, 13, 0), datetime(2024, 1, 15, 14, 0), service)

    first = compute_availability(db, business.id, MONDAY, [service.id], now=NOW)
    second = compute_availability(db, business.id, MONDAY, [service.id], now=NOW)

    assert first.slots == second.slots
