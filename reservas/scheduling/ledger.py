"""
Booking ledger.

Every read and write of appointments done by the scheduling engine goes
through here, and every query is filtered by business id.
"""

import logging
import zlib
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reservas.models.appointment import Appointment, AppointmentStatus
from reservas.scheduling.errors import AppointmentNotFoundError

logger = logging.getLogger(__name__)

BLOCKING_STATUSES = (
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
)


def appointments_for(
    db: Session,
    business_id: str,
    window_start: datetime | None = None,
    window_end: datetime | None = None,
    statuses=None,
    exclude_appointment_id: str | None = None,
) -> list[Appointment]:
    """Appointments of one business, optionally limited to those overlapping
    ``[window_start, window_end)``, ordered by start time."""
    query = db.query(Appointment).filter(Appointment.business_id == business_id)

    if window_end is not None:
        query = query.filter(Appointment.start_time < window_end)
    if window_start is not None:
        query = query.filter(Appointment.end_time > window_start)
    if statuses is not None:
        query = query.filter(Appointment.status.in_(list(statuses)))
    if exclude_appointment_id:
        query = query.filter(Appointment.id != exclude_appointment_id)

    return query.order_by(Appointment.start_time.asc(), Appointment.id.asc()).all()


def blocking_appointments(
    db: Session,
    business_id: str,
    window_start: datetime,
    window_end: datetime,
    exclude_appointment_id: str | None = None,
) -> list[Appointment]:
    return appointments_for(
        db,
        business_id,
        window_start=window_start,
        window_end=window_end,
        statuses=BLOCKING_STATUSES,
        exclude_appointment_id=exclude_appointment_id,
    )


def get_appointment(db: Session, business_id: str, appointment_id: str) -> Appointment:
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.business_id == business_id,
    ).first()

    if appointment is None:
        raise AppointmentNotFoundError(appointment_id)

    return appointment


def series_children(
    db: Session,
    business_id: str,
    parent_id: str,
    starting_after: datetime | None = None,
) -> list[Appointment]:
    query = db.query(Appointment).filter(
        Appointment.business_id == business_id,
        Appointment.parent_id == parent_id,
    )
    if starting_after is not None:
        query = query.filter(Appointment.start_time > starting_after)

    return query.all()


def lock_business_calendar(db: Session, business_id: str) -> None:
    """Serialize check-then-write sequences for one business until the
    current transaction ends. Only PostgreSQL gets a real lock."""
    if db.get_bind().dialect.name != 'postgresql':
        return

    lock_key = zlib.crc32(f'reservas:calendar:{business_id}'.encode('utf-8'))
    db.execute(text('SELECT pg_advisory_xact_lock(:key)'), {'key': lock_key})


def save(db: Session, appointment: Appointment) -> Appointment:
    try:
        db.add(appointment)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(appointment)
    return appointment


def save_all(db: Session, appointments: list[Appointment]) -> list[Appointment]:
    """Persist every appointment in one transaction, or none of them."""
    try:
        db.add_all(appointments)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Bulk save of %s appointments failed, rolled back.', len(appointments))
        raise

    for appointment in appointments:
        db.refresh(appointment)

    return appointments
