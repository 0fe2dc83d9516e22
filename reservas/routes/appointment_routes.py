from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reservas.auth.dependencies import get_current_business_id
from reservas.core.config import MAX_APPOINTMENT_NOTES_LENGTH
from reservas.database import get_db
from reservas.models.appointment import AppointmentStatus, RecurrenceKind
from reservas.routes.common import database_unavailable, ensure_database_ready, scheduling_http_error
from reservas.scheduling import booking, series
from reservas.scheduling.errors import SchedulingError
from reservas.scheduling.recurrence import RecurrenceRule

router = APIRouter(tags=['appointments'])


def _normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


def _normalize_price(value: Decimal | None) -> Decimal | None:
    if value is not None and value < 0:
        raise ValueError('Price cannot be negative.')
    return value


def _parse_status(value):
    if value is None or isinstance(value, AppointmentStatus):
        return value
    normalized = str(value).strip().upper()
    try:
        return AppointmentStatus(normalized)
    except ValueError as exc:
        raise ValueError(f'Invalid status: {value}') from exc


class RecurrenceRequest(BaseModel):
    kind: RecurrenceKind
    interval_days: int | None = None
    weekdays: str | None = None
    count: int | None = None
    end_date: date | None = None

    @field_validator('kind', mode='before')
    @classmethod
    def validate_kind(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def to_rule(self) -> RecurrenceRule:
        return RecurrenceRule(
            kind=self.kind,
            interval_days=self.interval_days,
            weekdays=self.weekdays,
            count=self.count,
            end_date=self.end_date,
        )


class CreateAppointmentRequest(BaseModel):
    start_time: datetime
    service_ids: list[str]
    client_id: str | None = None
    staff_id: str | None = None
    notes: str | None = None
    price: Decimal | None = None
    recurrence: RecurrenceRequest | None = None

    @field_validator('service_ids')
    @classmethod
    def validate_service_ids(cls, value: list[str]) -> list[str]:
        normalized = [service_id.strip() for service_id in value if service_id.strip()]
        if not normalized:
            raise ValueError('At least one service is required.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: Decimal | None) -> Decimal | None:
        return _normalize_price(value)


class ChangeStatusRequest(BaseModel):
    status: AppointmentStatus

    @field_validator('status', mode='before')
    @classmethod
    def validate_status(cls, value):
        return _parse_status(value)


class RescheduleRequest(BaseModel):
    start_time: datetime


class UpdateSeriesRequest(BaseModel):
    notes: str | None = None
    price: Decimal | None = None
    status: AppointmentStatus | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: Decimal | None) -> Decimal | None:
        return _normalize_price(value)

    @field_validator('status', mode='before')
    @classmethod
    def validate_status(cls, value):
        return _parse_status(value)


class LineItemResponse(BaseModel):
    service_id: str
    price: Decimal
    duration_minutes: int

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: str
    business_id: str
    client_id: str | None = None
    staff_id: str | None = None
    service_id: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: AppointmentStatus
    notes: str | None = None
    price: Decimal | None = None
    paid: bool
    paid_at: datetime | None = None
    is_recurring: bool
    recurrence_kind: RecurrenceKind
    parent_id: str | None = None
    line_items: list[LineItemResponse] = []

    class Config:
        from_attributes = True


class CreateAppointmentResponse(BaseModel):
    appointment: AppointmentResponse
    series: list[AppointmentResponse]


class SeriesMutationResponse(BaseModel):
    parent_id: str
    updated: int


@router.post('', response_model=CreateAppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    request = booking.BookingRequest(
        start_time=data.start_time,
        service_ids=data.service_ids,
        client_id=data.client_id,
        staff_id=data.staff_id,
        notes=data.notes,
        price=data.price,
        recurrence=data.recurrence.to_rule() if data.recurrence else None,
    )

    try:
        result = booking.create_appointment(db, business_id, request)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return CreateAppointmentResponse(
        appointment=AppointmentResponse.model_validate(result.appointment),
        series=[AppointmentResponse.model_validate(child) for child in result.series],
    )


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    day: date | None = Query(default=None),
    appointment_status: str | None = Query(default=None, alias='status'),
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        status_filter = _parse_status(appointment_status)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        appointments = booking.list_appointments(db, business_id, day=day, status=status_filter)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return [AppointmentResponse.model_validate(appointment) for appointment in appointments]


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking.get_appointment(db, business_id, appointment_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return AppointmentResponse.model_validate(appointment)


@router.put('/{appointment_id}/schedule', response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: str,
    data: RescheduleRequest,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking.reschedule_appointment(db, business_id, appointment_id, data.start_time)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return AppointmentResponse.model_validate(appointment)


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def change_appointment_status(
    appointment_id: str,
    data: ChangeStatusRequest,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking.change_status(db, business_id, appointment_id, data.status)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return AppointmentResponse.model_validate(appointment)


@router.post('/{appointment_id}/payment', response_model=AppointmentResponse)
def register_payment(
    appointment_id: str,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking.mark_paid(db, business_id, appointment_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return AppointmentResponse.model_validate(appointment)


@router.get('/{appointment_id}/series', response_model=list[AppointmentResponse])
def list_series(
    appointment_id: str,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        children = series.list_series(db, business_id, appointment_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return [AppointmentResponse.model_validate(child) for child in children]


@router.delete('/{appointment_id}/series', response_model=SeriesMutationResponse)
def cancel_series(
    appointment_id: str,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        cancelled = series.cancel_forward(db, business_id, appointment_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return SeriesMutationResponse(parent_id=appointment_id, updated=cancelled)


@router.patch('/{appointment_id}/series', response_model=SeriesMutationResponse)
def update_series(
    appointment_id: str,
    data: UpdateSeriesRequest,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    patch = series.SeriesPatch(notes=data.notes, price=data.price, status=data.status)

    try:
        updated = series.update_forward(db, business_id, appointment_id, patch)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return SeriesMutationResponse(parent_id=appointment_id, updated=updated)
