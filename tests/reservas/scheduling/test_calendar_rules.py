from datetime import date, time

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from reservas.models.calendar import WorkingHours
from reservas.scheduling.calendar_rules import (
    blackout_days_for,
    get_business,
    is_blackout_day,
    working_hours_for,
)
from reservas.scheduling.errors import AmbiguousWorkingHoursError, BusinessNotFoundError

MONDAY = 0
TUESDAY = 1


def test_get_business_raises_for_unknown_id(db) -> None:
    with pytest.raises(BusinessNotFoundError):
        get_business(db, 'missing-business')


def test_working_hours_for_returns_active_row(db, business, set_hours) -> None:
    set_hours(MONDAY, open_time=time(8, 0), close_time=time(12, 0), active=False)
    set_hours(MONDAY, open_time=time(9, 0), close_time=time(18, 0))

    hours = working_hours_for(db, business.id, MONDAY)

    assert hours is not None
    assert hours.open_time == time(9, 0)
    assert hours.close_time == time(18, 0)


def test_working_hours_for_returns_none_without_active_row(db, business, set_hours) -> None:
    set_hours(TUESDAY, active=False)

    assert working_hours_for(db, business.id, TUESDAY) is None
    assert working_hours_for(db, business.id, MONDAY) is None


def test_working_hours_are_scoped_to_business(db, business, other_business, set_hours) -> None:
    set_hours(MONDAY, owner=other_business)

    assert working_hours_for(db, business.id, MONDAY) is None
    assert working_hours_for(db, other_business.id, MONDAY) is not None


def test_second_active_row_for_weekday_is_rejected_by_schema(db, set_hours) -> None:
    set_hours(MONDAY)

    with pytest.raises(IntegrityError):
        set_hours(MONDAY, open_time=time(10, 0))
    db.rollback()


def test_ambiguous_working_hours_raise_on_legacy_schema(db, business) -> None:
    # Databases created before the partial unique index may hold duplicates.
    db.execute(text('DROP INDEX uq_working_hours_active_weekday'))
    db.add_all([
        WorkingHours(business_id=business.id, weekday=MONDAY, open_time=time(9, 0), close_time=time(18, 0)),
        WorkingHours(business_id=business.id, weekday=MONDAY, open_time=time(10, 0), close_time=time(14, 0)),
    ])
    db.commit()

    with pytest.raises(AmbiguousWorkingHoursError) as exception_info:
        working_hours_for(db, business.id, MONDAY)

    assert exception_info.value.weekday == MONDAY


def test_blackout_days_are_scoped_to_business_and_date(db, business, other_business, add_blackout) -> None:
    add_blackout(date(2024, 1, 15), reason='Inventario')
    add_blackout(date(2024, 1, 16), owner=other_business)

    assert is_blackout_day(db, business.id, date(2024, 1, 15)) is True
    assert is_blackout_day(db, business.id, date(2024, 1, 16)) is False
    assert [day.reason for day in blackout_days_for(db, business.id, date(2024, 1, 15))] == ['Inventario']
