"""
Overlap detection.

Intervals are half-open: ``[start, end)``. An appointment ending at 10:00
does not conflict with one starting at 10:00. Cancelled appointments never
block the calendar.
"""

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from reservas.models.appointment import Appointment
from reservas.scheduling import ledger
from reservas.scheduling.ledger import BLOCKING_STATUSES

logger = logging.getLogger(__name__)


def intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    return first_start < second_end and second_start < first_end


def blocks_calendar(appointment: Appointment) -> bool:
    return appointment.status in BLOCKING_STATUSES


def find_conflicts(
    bookings: Iterable[Appointment],
    start: datetime,
    end: datetime,
    exclude_appointment_id: str | None = None,
) -> list[Appointment]:
    """Bookings that would collide with ``[start, end)``."""
    return [
        booking
        for booking in bookings
        if blocks_calendar(booking)
        and (exclude_appointment_id is None or booking.id != exclude_appointment_id)
        and intervals_overlap(start, end, booking.start_time, booking.end_time)
    ]


def has_conflict(
    db: Session,
    business_id: str,
    start: datetime,
    end: datetime,
    exclude_appointment_id: str | None = None,
) -> bool:
    if end <= start:
        raise ValueError('end must be after start.')

    candidates = ledger.blocking_appointments(
        db,
        business_id,
        window_start=start,
        window_end=end,
        exclude_appointment_id=exclude_appointment_id,
    )
    conflicts = find_conflicts(candidates, start, end, exclude_appointment_id)

    if conflicts:
        logger.debug(
            'Interval %s - %s for business %s overlaps %s booking(s), first %s',
            start, end, business_id, len(conflicts), conflicts[0].id,
        )

    return bool(conflicts)
