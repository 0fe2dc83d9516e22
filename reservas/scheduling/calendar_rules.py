"""
Calendar rules store.

Read-only access to a business's weekly working hours and blackout days.
"""

from datetime import date

from sqlalchemy.orm import Session

from reservas.models.business import Business
from reservas.models.calendar import BlackoutDay, WorkingHours
from reservas.scheduling.errors import AmbiguousWorkingHoursError, BusinessNotFoundError


def get_business(db: Session, business_id: str) -> Business:
    business = db.query(Business).filter(Business.id == business_id).first()
    if business is None:
        raise BusinessNotFoundError(business_id)
    return business


def working_hours_for(db: Session, business_id: str, weekday: int) -> WorkingHours | None:
    """The active working-hours row for ``weekday`` (0=Monday), if any."""
    rows = db.query(WorkingHours).filter(
        WorkingHours.business_id == business_id,
        WorkingHours.weekday == weekday,
        WorkingHours.active.is_(True),
    ).all()

    if len(rows) > 1:
        raise AmbiguousWorkingHoursError(business_id, weekday)

    return rows[0] if rows else None


def blackout_days_for(db: Session, business_id: str, day: date) -> list[BlackoutDay]:
    return db.query(BlackoutDay).filter(
        BlackoutDay.business_id == business_id,
        BlackoutDay.date == day,
    ).all()


def is_blackout_day(db: Session, business_id: str, day: date) -> bool:
    return bool(blackout_days_for(db, business_id, day))
