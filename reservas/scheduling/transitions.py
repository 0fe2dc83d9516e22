from reservas.models.appointment import AppointmentStatus
from reservas.scheduling.errors import InvalidTransitionError

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def validate_status_transition(current: AppointmentStatus, new: AppointmentStatus) -> None:
    if not can_transition(current, new):
        raise InvalidTransitionError(current, new)


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES
