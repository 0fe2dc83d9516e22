"""
Series management.

Bulk operations over the children of a recurring appointment. Only
occurrences that start after ``from_instant`` (default: now) are touched;
past occurrences keep whatever status they had.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from reservas.models.appointment import Appointment, AppointmentStatus
from reservas.scheduling import calendar_rules, ledger
from reservas.scheduling.clock import local_now
from reservas.scheduling.transitions import is_terminal, validate_status_transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesPatch:
    notes: str | None = None
    price: Decimal | None = None
    status: AppointmentStatus | None = None

    def is_empty(self) -> bool:
        return self.notes is None and self.price is None and self.status is None


def _resolve_from_instant(db: Session, business_id: str, from_instant: datetime | None) -> datetime:
    if from_instant is not None:
        return from_instant
    return local_now(calendar_rules.get_business(db, business_id).timezone)


def list_series(db: Session, business_id: str, parent_id: str) -> list[Appointment]:
    ledger.get_appointment(db, business_id, parent_id)
    return ledger.series_children(db, business_id, parent_id)


def cancel_forward(
    db: Session,
    business_id: str,
    parent_id: str,
    from_instant: datetime | None = None,
) -> int:
    """Cancel every upcoming occurrence of the series that is still open.
    Returns how many changed."""
    ledger.get_appointment(db, business_id, parent_id)
    cutoff = _resolve_from_instant(db, business_id, from_instant)

    children = [
        child
        for child in ledger.series_children(db, business_id, parent_id, starting_after=cutoff)
        if not is_terminal(child.status)
    ]
    if not children:
        return 0

    for child in children:
        child.status = AppointmentStatus.CANCELLED
    ledger.save_all(db, children)

    logger.info('Cancelled %s upcoming appointments of series %s', len(children), parent_id)
    return len(children)


def update_forward(
    db: Session,
    business_id: str,
    parent_id: str,
    patch: SeriesPatch,
    from_instant: datetime | None = None,
) -> int:
    """Apply the non-null fields of ``patch`` to every upcoming occurrence.

    Status changes are validated for all selected children before any of
    them is modified.
    """
    ledger.get_appointment(db, business_id, parent_id)
    cutoff = _resolve_from_instant(db, business_id, from_instant)

    children = ledger.series_children(db, business_id, parent_id, starting_after=cutoff)
    if not children or patch.is_empty():
        return 0

    if patch.status is not None:
        for child in children:
            if child.status != patch.status:
                validate_status_transition(child.status, patch.status)

    for child in children:
        if patch.notes is not None:
            child.notes = patch.notes
        if patch.price is not None:
            child.price = patch.price
        if patch.status is not None:
            child.status = patch.status
    ledger.save_all(db, children)

    logger.info('Updated %s upcoming appointments of series %s', len(children), parent_id)
    return len(children)
