"""Domain errors raised by the scheduling engine.

None of these are retried internally. Callers decide whether to re-prompt
(``SlotConflictError.retryable``) or surface the message as is.
"""

from datetime import datetime


class SchedulingError(Exception):
    """Base class for every error the scheduling engine raises."""

    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookingValidationError(SchedulingError):
    """The request can never succeed as written."""


class ServiceNotFoundError(BookingValidationError):
    def __init__(self, service_id: str):
        super().__init__(f'Service not found: {service_id}')
        self.service_id = service_id


class ServiceOwnershipError(BookingValidationError):
    def __init__(self, service_id: str):
        super().__init__(f'Service {service_id} belongs to another business.')
        self.service_id = service_id


class ServiceNotActiveError(BookingValidationError):
    def __init__(self, service_id: str, service_name: str):
        super().__init__(f'Service {service_name} is not active.')
        self.service_id = service_id


class PastDateError(BookingValidationError):
    def __init__(self, message: str = 'Cannot book in the past.'):
        super().__init__(message)


class InvalidRecurrenceRuleError(BookingValidationError):
    pass


class AmbiguousWorkingHoursError(BookingValidationError):
    def __init__(self, business_id: str, weekday: int):
        super().__init__(
            f'Business {business_id} has more than one active working-hours row for weekday {weekday}.'
        )
        self.business_id = business_id
        self.weekday = weekday


class SlotConflictError(SchedulingError):
    """The requested interval overlaps a booking that still blocks the calendar."""

    retryable = True

    def __init__(self, message: str, conflicting_starts: list[datetime] | None = None):
        super().__init__(message)
        self.conflicting_starts = conflicting_starts or []


class InvalidTransitionError(SchedulingError):
    def __init__(self, current, new):
        super().__init__(f'Cannot change appointment status from {_label(current)} to {_label(new)}.')
        self.current = current
        self.new = new


class AppointmentNotFoundError(SchedulingError):
    def __init__(self, appointment_id: str):
        super().__init__(f'Appointment not found: {appointment_id}')
        self.appointment_id = appointment_id


class BusinessNotFoundError(SchedulingError):
    def __init__(self, business_id: str):
        super().__init__(f'Business not found: {business_id}')
        self.business_id = business_id


def _label(status) -> str:
    return getattr(status, 'value', str(status))
