"""
Availability Service

Computes the bookable slots of one business for a date and a set of
services, combining:
- Blackout days
- Weekly working hours
- Existing appointments (cancelled ones excluded)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from reservas.core import config
from reservas.models.service import Service
from reservas.scheduling import calendar_rules, ledger
from reservas.scheduling.clock import local_now
from reservas.scheduling.errors import (
    BookingValidationError,
    PastDateError,
    ServiceNotActiveError,
    ServiceNotFoundError,
    ServiceOwnershipError,
)
from reservas.scheduling.overlap import find_conflicts
from reservas.scheduling.slots import generate_candidates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailableSlot:
    start: datetime
    end: datetime
    recommended: bool = False

    @property
    def label(self) -> str:
        return f'{self.start:%H:%M} - {self.end:%H:%M}'


@dataclass
class AvailabilityResult:
    day: date
    total_duration_minutes: int
    slots: list[AvailableSlot] = field(default_factory=list)


def resolve_services(db: Session, business_id: str, service_ids: list[str]) -> list[Service]:
    """Load the requested services in request order, checking that each one
    exists, belongs to ``business_id`` and is active."""
    if not service_ids:
        raise BookingValidationError('At least one service is required.')

    found = {
        service.id: service
        for service in db.query(Service).filter(Service.id.in_(list(set(service_ids)))).all()
    }

    services: list[Service] = []
    for service_id in service_ids:
        service = found.get(service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)
        if service.business_id != business_id:
            raise ServiceOwnershipError(service_id)
        if not service.active:
            raise ServiceNotActiveError(service_id, service.name)
        services.append(service)

    return services


def is_peak_slot(start: time) -> bool:
    minutes = start.hour * 60 + start.minute
    return config.PEAK_WINDOW_START_HOUR * 60 <= minutes < config.PEAK_WINDOW_END_HOUR * 60


def compute_availability(
    db: Session,
    business_id: str,
    day: date,
    service_ids: list[str],
    exclude_appointment_id: str | None = None,
    now: datetime | None = None,
) -> AvailabilityResult:
    """
    Bookable slots for ``day``.

    Algorithm:
        1. Reject dates before the business-local today
        2. Sum the durations of the requested services
        3. Blackout day -> no slots
        4. No active working hours for the weekday -> no slots
        5. Generate candidates at the configured granularity
        6. Drop candidates overlapping a blocking appointment, and on today
           those that already started
        7. Flag candidates inside the peak window as recommended
    """
    business = calendar_rules.get_business(db, business_id)
    current = now or local_now(business.timezone)

    if day < current.date():
        raise PastDateError()

    services = resolve_services(db, business_id, service_ids)
    total_duration = sum(service.duration_minutes for service in services)
    result = AvailabilityResult(day=day, total_duration_minutes=total_duration)

    logger.info(
        'Computing availability for business %s on %s (%s services, %s minutes)',
        business_id, day, len(services), total_duration,
    )

    if calendar_rules.is_blackout_day(db, business_id, day):
        logger.info('%s is a blackout day for business %s', day, business_id)
        return result

    hours = calendar_rules.working_hours_for(db, business_id, day.weekday())
    if hours is None:
        logger.info('No working hours for business %s on weekday %s', business_id, day.weekday())
        return result

    candidates = generate_candidates(
        hours.open_time,
        hours.close_time,
        total_duration,
        config.SLOT_GRANULARITY_MINUTES,
    )

    day_start = datetime.combine(day, time.min)
    bookings = ledger.blocking_appointments(
        db,
        business_id,
        window_start=day_start,
        window_end=day_start + timedelta(days=1),
        exclude_appointment_id=exclude_appointment_id,
    )

    for candidate in candidates:
        slot_start = datetime.combine(day, candidate)
        if slot_start < current:
            continue

        slot_end = slot_start + timedelta(minutes=total_duration)
        if find_conflicts(bookings, slot_start, slot_end, exclude_appointment_id):
            continue

        result.slots.append(
            AvailableSlot(start=slot_start, end=slot_end, recommended=is_peak_slot(candidate))
        )

    logger.info('Found %s available slots for business %s on %s', len(result.slots), business_id, day)
    return result
