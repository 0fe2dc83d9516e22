import os
from datetime import datetime, time
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from reservas.database import Base  # noqa: E402
from reservas.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from reservas.models.business import Business  # noqa: E402
from reservas.models.calendar import BlackoutDay, WorkingHours  # noqa: E402
from reservas.models.service import Service  # noqa: E402


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def business(db):
    business = Business(name='Barbería Centro', timezone='America/Mexico_City')
    db.add(business)
    db.commit()
    db.refresh(business)
    return business


@pytest.fixture
def other_business(db):
    business = Business(name='Spa Norte', timezone='America/Mexico_City')
    db.add(business)
    db.commit()
    db.refresh(business)
    return business


@pytest.fixture
def make_service(db, business):
    def _make_service(name='Corte', duration_minutes=30, price='150.00', active=True, owner=None):
        service = Service(
            business_id=(owner or business).id,
            name=name,
            duration_minutes=duration_minutes,
            price=Decimal(price),
            active=active,
        )
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return _make_service


@pytest.fixture
def set_hours(db, business):
    def _set_hours(weekday, open_time=time(9, 0), close_time=time(18, 0), active=True, owner=None):
        hours = WorkingHours(
            business_id=(owner or business).id,
            weekday=weekday,
            open_time=open_time,
            close_time=close_time,
            active=active,
        )
        db.add(hours)
        db.commit()
        return hours

    return _set_hours


@pytest.fixture
def add_blackout(db, business):
    def _add_blackout(day, reason='Feriado', owner=None):
        blackout = BlackoutDay(business_id=(owner or business).id, date=day, reason=reason)
        db.add(blackout)
        db.commit()
        return blackout

    return _add_blackout


@pytest.fixture
def book(db, business):
    """Insert an appointment directly, bypassing the booking checks."""
    def _book(start: datetime, end: datetime, service, status=AppointmentStatus.CONFIRMED, owner=None, **extra):
        appointment = Appointment(
            business_id=(owner or business).id,
            service_id=service.id,
            start_time=start,
            end_time=end,
            status=status,
            **extra,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _book
