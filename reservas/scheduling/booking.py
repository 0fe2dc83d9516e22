"""
Booking service.

Entry points used by the HTTP layer to create and mutate single
appointments. Each check-then-write sequence runs in one transaction
holding the business's calendar lock.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reservas.models.appointment import Appointment, AppointmentLineItem, AppointmentStatus, RecurrenceKind
from reservas.models.business import new_id
from reservas.scheduling import calendar_rules, ledger
from reservas.scheduling.availability import resolve_services
from reservas.scheduling.clock import local_now
from reservas.scheduling.errors import (
    BookingValidationError,
    PastDateError,
    SchedulingError,
    SlotConflictError,
)
from reservas.scheduling.overlap import has_conflict
from reservas.scheduling.recurrence import RecurrenceRule, expand_series, normalize_weekdays, validate_rule
from reservas.scheduling.transitions import is_terminal, validate_status_transition

logger = logging.getLogger(__name__)


@dataclass
class BookingRequest:
    start_time: datetime
    service_ids: list[str]
    client_id: str | None = None
    staff_id: str | None = None
    notes: str | None = None
    price: Decimal | None = None
    recurrence: RecurrenceRule | None = None


@dataclass
class BookingResult:
    appointment: Appointment
    series: list[Appointment] = field(default_factory=list)


def _current_time(db: Session, business_id: str, now: datetime | None) -> datetime:
    business = calendar_rules.get_business(db, business_id)
    return now or local_now(business.timezone)


def create_appointment(
    db: Session,
    business_id: str,
    request: BookingRequest,
    now: datetime | None = None,
) -> BookingResult:
    current = _current_time(db, business_id, now)
    start_time = request.start_time.replace(second=0, microsecond=0)

    if start_time < current:
        raise PastDateError('Appointments must be scheduled in the future.')

    services = resolve_services(db, business_id, request.service_ids)
    total_duration = sum(service.duration_minutes for service in services)
    end_time = start_time + timedelta(minutes=total_duration)
    price = request.price if request.price is not None else sum(
        (Decimal(service.price) for service in services), Decimal('0')
    )

    rule = request.recurrence
    is_recurring = rule is not None and rule.kind != RecurrenceKind.NONE
    if is_recurring:
        validate_rule(rule, start_time)

    try:
        ledger.lock_business_calendar(db, business_id)
        if has_conflict(db, business_id, start_time, end_time):
            raise SlotConflictError('This time is already booked.', conflicting_starts=[start_time])

        appointment = Appointment(
            id=new_id(),
            business_id=business_id,
            client_id=request.client_id,
            staff_id=request.staff_id,
            service_id=services[0].id,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus.PENDING,
            notes=request.notes,
            price=price,
            line_items=[
                AppointmentLineItem(
                    service_id=service.id,
                    position=position,
                    price=service.price,
                    duration_minutes=service.duration_minutes,
                )
                for position, service in enumerate(services)
            ],
        )

        if is_recurring:
            appointment.is_recurring = True
            appointment.recurrence_kind = rule.kind
            appointment.recurrence_interval_days = rule.interval_days
            if rule.uses_weekday_filter:
                appointment.recurrence_weekdays = normalize_weekdays(rule.weekdays)
            appointment.recurrence_count = rule.count
            appointment.recurrence_end_date = rule.end_date

        db.add(appointment)
        db.flush()

        series: list[Appointment] = []
        if is_recurring:
            series = expand_series(db, appointment)
        if series:
            db.refresh(appointment)
        else:
            # Single booking, or a rule with no further occurrences: only flushed so far.
            ledger.save(db, appointment)
    except (SchedulingError, SQLAlchemyError):
        db.rollback()
        raise

    logger.info(
        'Appointment %s created for business %s at %s (%s minutes, %s series occurrences)',
        appointment.id, business_id, start_time, total_duration, len(series),
    )
    return BookingResult(appointment=appointment, series=series)


def change_status(
    db: Session,
    business_id: str,
    appointment_id: str,
    new_status: AppointmentStatus,
) -> Appointment:
    appointment = ledger.get_appointment(db, business_id, appointment_id)
    previous = appointment.status
    validate_status_transition(previous, new_status)

    appointment.status = new_status
    ledger.save(db, appointment)

    logger.info('Appointment %s status %s -> %s', appointment_id, previous.value, new_status.value)
    return appointment


def reschedule_appointment(
    db: Session,
    business_id: str,
    appointment_id: str,
    new_start: datetime,
    now: datetime | None = None,
) -> Appointment:
    """Move an appointment, keeping its duration. The appointment itself is
    ignored by the conflict check."""
    appointment = ledger.get_appointment(db, business_id, appointment_id)
    if is_terminal(appointment.status):
        raise BookingValidationError('Cancelled or completed appointments cannot be rescheduled.')

    current = _current_time(db, business_id, now)
    start_time = new_start.replace(second=0, microsecond=0)
    if start_time < current:
        raise PastDateError('Appointments must be scheduled in the future.')

    end_time = start_time + (appointment.end_time - appointment.start_time)

    try:
        ledger.lock_business_calendar(db, business_id)
        if has_conflict(db, business_id, start_time, end_time, exclude_appointment_id=appointment.id):
            raise SlotConflictError('This time is already booked.', conflicting_starts=[start_time])

        appointment.start_time = start_time
        appointment.end_time = end_time
        ledger.save(db, appointment)
    except (SchedulingError, SQLAlchemyError):
        db.rollback()
        raise

    logger.info('Appointment %s moved to %s', appointment_id, start_time)
    return appointment


def mark_paid(
    db: Session,
    business_id: str,
    appointment_id: str,
    now: datetime | None = None,
) -> Appointment:
    appointment = ledger.get_appointment(db, business_id, appointment_id)
    if appointment.status == AppointmentStatus.CANCELLED:
        raise BookingValidationError('Cancelled appointments cannot be marked as paid.')

    appointment.paid = True
    appointment.paid_at = _current_time(db, business_id, now)
    ledger.save(db, appointment)

    logger.info('Payment registered for appointment %s', appointment_id)
    return appointment


def get_appointment(db: Session, business_id: str, appointment_id: str) -> Appointment:
    return ledger.get_appointment(db, business_id, appointment_id)


def list_appointments(
    db: Session,
    business_id: str,
    day: date | None = None,
    status: AppointmentStatus | None = None,
) -> list[Appointment]:
    window_start = window_end = None
    if day is not None:
        window_start = datetime.combine(day, time.min)
        window_end = window_start + timedelta(days=1)

    return ledger.appointments_for(
        db,
        business_id,
        window_start=window_start,
        window_end=window_end,
        statuses=[status] if status is not None else None,
    )
