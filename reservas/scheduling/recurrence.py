"""
Recurrence expansion.

A recurring root appointment carries its rule (kind, interval, weekday
filter, count, end date). Expanding it creates the additional occurrences
as independent child appointments; the root's own slot is never repeated.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from reservas.core import config
from reservas.models.appointment import Appointment, AppointmentStatus, RecurrenceKind
from reservas.scheduling import ledger
from reservas.scheduling.errors import InvalidRecurrenceRuleError, SlotConflictError
from reservas.scheduling.overlap import find_conflicts

logger = logging.getLogger(__name__)

WEEKDAY_CODES = {
    'MON': 0, 'TUE': 1, 'WED': 2, 'THU': 3, 'FRI': 4, 'SAT': 5, 'SUN': 6,
    'LUN': 0, 'MAR': 1, 'MIE': 2, 'JUE': 3, 'VIE': 4, 'SAB': 5, 'DOM': 6,
}
WEEKDAY_NAMES = ('MON', 'TUE', 'WED', 'THU', 'FRI', 'SAT', 'SUN')

FIXED_STEP_DAYS = {
    RecurrenceKind.DAILY: 1,
    RecurrenceKind.WEEKLY: 7,
    RecurrenceKind.BIWEEKLY: 14,
}
MONTH_STEPS = {
    RecurrenceKind.MONTHLY: 1,
    RecurrenceKind.QUARTERLY: 3,
}


@dataclass(frozen=True)
class RecurrenceRule:
    kind: RecurrenceKind = RecurrenceKind.NONE
    interval_days: int | None = None
    weekdays: str | None = None
    count: int | None = None
    end_date: date | None = None

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> 'RecurrenceRule':
        return cls(
            kind=appointment.recurrence_kind or RecurrenceKind.NONE,
            interval_days=appointment.recurrence_interval_days,
            weekdays=appointment.recurrence_weekdays,
            count=appointment.recurrence_count,
            end_date=appointment.recurrence_end_date,
        )

    @property
    def uses_weekday_filter(self) -> bool:
        return self.kind == RecurrenceKind.WEEKLY and self.weekdays is not None


def parse_weekdays(raw: str) -> frozenset[int]:
    """Turn ``"MON,WED,FRI"`` (or ``"LUN,MIE,VIE"``) into weekday numbers."""
    tokens = [token.strip().upper() for token in raw.split(',') if token.strip()]
    if not tokens:
        raise InvalidRecurrenceRuleError('Weekly weekday filter must name at least one day.')

    unknown = [token for token in tokens if token not in WEEKDAY_CODES]
    if unknown:
        raise InvalidRecurrenceRuleError(f'Unknown weekday code(s): {", ".join(unknown)}.')

    return frozenset(WEEKDAY_CODES[token] for token in tokens)


def normalize_weekdays(raw: str | None) -> str | None:
    """Canonical storage form, e.g. ``"wed, lun"`` -> ``"MON,WED"``."""
    if raw is None:
        return None
    return ','.join(WEEKDAY_NAMES[day] for day in sorted(parse_weekdays(raw)))


def validate_rule(rule: RecurrenceRule, anchor: datetime) -> None:
    if rule.kind == RecurrenceKind.NONE:
        return

    if rule.kind == RecurrenceKind.CUSTOM_INTERVAL:
        if rule.interval_days is None or rule.interval_days < 1:
            raise InvalidRecurrenceRuleError('Custom recurrence interval must be at least 1 day.')

    if rule.uses_weekday_filter:
        parse_weekdays(rule.weekdays)

    if rule.count is not None and rule.count < 1:
        raise InvalidRecurrenceRuleError('Occurrence count must be at least 1.')

    if rule.end_date is not None and rule.end_date < anchor.date():
        raise InvalidRecurrenceRuleError('Recurrence end date is before the first appointment.')


def add_months(value: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` later, clamped to the last day of shorter months."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _nth_occurrence(rule: RecurrenceRule, anchor: datetime, step: int) -> datetime:
    if rule.kind in FIXED_STEP_DAYS:
        return anchor + timedelta(days=FIXED_STEP_DAYS[rule.kind] * step)
    if rule.kind in MONTH_STEPS:
        # Always measured from the anchor so a clamped month does not drift the series.
        return add_months(anchor, MONTH_STEPS[rule.kind] * step)
    if rule.kind == RecurrenceKind.CUSTOM_INTERVAL:
        return anchor + timedelta(days=rule.interval_days * step)
    raise InvalidRecurrenceRuleError(f'Unsupported recurrence kind: {rule.kind}')


def occurrence_starts(rule: RecurrenceRule, anchor: datetime) -> list[datetime]:
    """Start times of the additional occurrences, ascending.

    Stops at the occurrence count (``DEFAULT_MAX_OCCURRENCES`` when the rule
    sets none) or at the end date, inclusive, whichever comes first.
    """
    validate_rule(rule, anchor)
    if rule.kind == RecurrenceKind.NONE:
        return []

    limit = rule.count if rule.count is not None else config.DEFAULT_MAX_OCCURRENCES

    def within_end(candidate: datetime) -> bool:
        return rule.end_date is None or candidate.date() <= rule.end_date

    starts: list[datetime] = []

    if rule.uses_weekday_filter:
        allowed = parse_weekdays(rule.weekdays)
        candidate = anchor
        while len(starts) < limit:
            candidate += timedelta(days=1)
            if not within_end(candidate):
                break
            if candidate.weekday() in allowed:
                starts.append(candidate)
        return starts

    step = 1
    while len(starts) < limit:
        candidate = _nth_occurrence(rule, anchor, step)
        if not within_end(candidate):
            break
        starts.append(candidate)
        step += 1

    return starts


def build_child(parent: Appointment, start: datetime, duration: timedelta) -> Appointment:
    return Appointment(
        business_id=parent.business_id,
        client_id=parent.client_id,
        staff_id=parent.staff_id,
        service_id=parent.service_id,
        price=parent.price,
        notes=parent.notes,
        start_time=start,
        end_time=start + duration,
        status=AppointmentStatus.PENDING,
        is_recurring=False,
        recurrence_kind=RecurrenceKind.NONE,
        parent_id=parent.id,
    )


def expand_series(
    db: Session,
    parent: Appointment,
    conflict_policy: str | None = None,
) -> list[Appointment]:
    """
    Create and persist the child appointments of a recurring root.

    With the ``reject`` policy every occurrence is checked against the
    business's blocking appointments (the root excluded); a single collision
    fails the whole series and nothing is written. ``allow`` skips the check.
    """
    if not parent.is_recurring or parent.recurrence_kind in (None, RecurrenceKind.NONE):
        logger.warning('Recurrence requested for non-recurring appointment %s', parent.id)
        return []

    policy = (conflict_policy or config.RECURRENCE_CONFLICT_POLICY).lower()
    if policy not in config.RECURRENCE_CONFLICT_POLICIES:
        raise ValueError(f'Unknown recurrence conflict policy: {policy}')

    if parent.id is None:
        db.add(parent)
        db.flush()

    rule = RecurrenceRule.from_appointment(parent)
    duration = parent.end_time - parent.start_time
    starts = occurrence_starts(rule, parent.start_time)

    logger.info(
        'Expanding %s series for appointment %s: %s occurrences',
        rule.kind.value, parent.id, len(starts),
    )

    if not starts:
        return []

    if policy == 'reject':
        ledger.lock_business_calendar(db, parent.business_id)
        bookings = ledger.blocking_appointments(
            db,
            parent.business_id,
            window_start=starts[0],
            window_end=starts[-1] + duration,
            exclude_appointment_id=parent.id,
        )
        conflicting = [
            start for start in starts
            if find_conflicts(bookings, start, start + duration, parent.id)
        ]
        if conflicting:
            logger.info(
                'Series for appointment %s collides with existing bookings at %s',
                parent.id, ', '.join(start.isoformat() for start in conflicting),
            )
            raise SlotConflictError(
                f'{len(conflicting)} occurrence(s) of the series overlap existing appointments.',
                conflicting_starts=conflicting,
            )

    children = [build_child(parent, start, duration) for start in starts]
    ledger.save_all(db, children)

    logger.info('Created %s appointments for series %s', len(children), parent.id)
    return children
