from datetime import date, time, timedelta

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from reservas.routes import availability_routes
from reservas.routes.availability_routes import AvailabilityRequest, get_availability


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch):
    monkeypatch.setattr(availability_routes, 'ensure_database_ready', lambda: None)


@pytest.fixture
def future_day():
    return date.today() + timedelta(days=14)


def test_availability_request_strips_identifiers() -> None:
    request = AvailabilityRequest(
        date=date(2026, 1, 5),
        service_ids=[' svc-1 ', '', 'svc-2'],
        exclude_appointment_id='   ',
    )

    assert request.service_ids == ['svc-1', 'svc-2']
    assert request.exclude_appointment_id is None


def test_availability_request_requires_a_service() -> None:
    with pytest.raises(ValidationError):
        AvailabilityRequest(date=date(2026, 1, 5), service_ids=[' '])


def test_get_availability_returns_labelled_slots(db, business, make_service, set_hours, future_day) -> None:
    service = make_service(duration_minutes=60)
    set_hours(future_day.weekday(), open_time=time(9, 0), close_time=time(11, 0))

    response = get_availability(
        AvailabilityRequest(date=future_day, service_ids=[service.id]),
        business_id=business.id,
        db=db,
    )

    assert response.date == future_day
    assert response.total_duration_minutes == 60
    assert [slot.label for slot in response.slots] == [
        '09:00 - 10:00',
        '09:15 - 10:15',
        '09:30 - 10:30',
        '09:45 - 10:45',
        '10:00 - 11:00',
    ]
    assert [slot.recommended for slot in response.slots] == [False, False, False, False, True]


def test_get_availability_on_blackout_day_is_empty(db, business, make_service, set_hours, add_blackout, future_day) -> None:
    service = make_service()
    set_hours(future_day.weekday())
    add_blackout(future_day)

    response = get_availability(
        AvailabilityRequest(date=future_day, service_ids=[service.id]),
        business_id=business.id,
        db=db,
    )

    assert response.slots == []


def test_get_availability_rejects_past_date(db, business, make_service) -> None:
    service = make_service()

    with pytest.raises(HTTPException) as exception_info:
        get_availability(
            AvailabilityRequest(date=date.today() - timedelta(days=2), service_ids=[service.id]),
            business_id=business.id,
            db=db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Cannot book in the past.'


def test_get_availability_rejects_service_of_another_business(db, business, other_business, make_service, future_day) -> None:
    foreign_service = make_service(owner=other_business)

    with pytest.raises(HTTPException) as exception_info:
        get_availability(
            AvailabilityRequest(date=future_day, service_ids=[foreign_service.id]),
            business_id=business.id,
            db=db,
        )

    assert exception_info.value.status_code == 400
