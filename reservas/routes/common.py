import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from reservas.database import ensure_scheduling_schema
from reservas.scheduling.errors import (
    AppointmentNotFoundError,
    BookingValidationError,
    BusinessNotFoundError,
    InvalidTransitionError,
    SchedulingError,
    SlotConflictError,
)

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

_STATUS_BY_ERROR = (
    (AppointmentNotFoundError, status.HTTP_404_NOT_FOUND),
    (BusinessNotFoundError, status.HTTP_404_NOT_FOUND),
    (SlotConflictError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (BookingValidationError, status.HTTP_400_BAD_REQUEST),
)


def scheduling_http_error(exc: SchedulingError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        logger.exception('Scheduling schema check failed.')
        raise database_unavailable() from exc
