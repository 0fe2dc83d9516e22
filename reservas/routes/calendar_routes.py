from datetime import date, time
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from reservas.auth.dependencies import get_current_business_id
from reservas.database import get_db
from reservas.models.calendar import BlackoutDay, WorkingHours
from reservas.models.service import Service
from reservas.routes.common import database_unavailable, ensure_database_ready

router = APIRouter(tags=['calendar'])

MAX_BLACKOUT_REASON_LENGTH = 200


class WorkingHoursRequest(BaseModel):
    open_time: time
    close_time: time
    active: bool = True

    @model_validator(mode='after')
    def validate_bounds(self) -> 'WorkingHoursRequest':
        if self.active and self.close_time <= self.open_time:
            raise ValueError('Closing time must be after opening time.')
        return self


class WorkingHoursResponse(BaseModel):
    id: str
    weekday: int
    open_time: time
    close_time: time
    active: bool

    class Config:
        from_attributes = True


class CreateBlackoutDayRequest(BaseModel):
    date: date
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_BLACKOUT_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_BLACKOUT_REASON_LENGTH} characters or fewer.')

        return normalized


class BlackoutDayResponse(BaseModel):
    id: str
    date: date
    reason: str | None = None

    class Config:
        from_attributes = True


class CreateServiceRequest(BaseModel):
    name: str
    price: Decimal
    duration_minutes: int
    active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Service name is required.')
        return normalized

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError('Price cannot be negative.')
        return value

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        if value < 1:
            raise ValueError('Duration must be at least 1 minute.')
        return value


class ServiceResponse(BaseModel):
    id: str
    name: str
    price: Decimal
    duration_minutes: int
    active: bool

    class Config:
        from_attributes = True


@router.get('/working-hours', response_model=list[WorkingHoursResponse])
def list_working_hours(
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return db.query(WorkingHours).filter(
            WorkingHours.business_id == business_id,
        ).order_by(WorkingHours.weekday.asc(), WorkingHours.active.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/working-hours/{weekday}', response_model=WorkingHoursResponse)
def set_working_hours(
    data: WorkingHoursRequest,
    weekday: int = Path(..., ge=0, le=6),
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    """Replace the hours of one weekday. Earlier rows are kept, deactivated."""
    ensure_database_ready()

    try:
        previous_rows = db.query(WorkingHours).filter(
            WorkingHours.business_id == business_id,
            WorkingHours.weekday == weekday,
            WorkingHours.active.is_(True),
        ).all()
        for row in previous_rows:
            row.active = False
        db.flush()

        hours = WorkingHours(
            business_id=business_id,
            weekday=weekday,
            open_time=data.open_time,
            close_time=data.close_time,
            active=data.active,
        )
        db.add(hours)
        db.commit()
        db.refresh(hours)

        return hours
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/blackout-days', response_model=list[BlackoutDayResponse])
def list_blackout_days(
    from_date: date | None = Query(default=None),
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = db.query(BlackoutDay).filter(BlackoutDay.business_id == business_id)
        if from_date is not None:
            query = query.filter(BlackoutDay.date >= from_date)
        return query.order_by(BlackoutDay.date.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/blackout-days', response_model=BlackoutDayResponse, status_code=status.HTTP_201_CREATED)
def create_blackout_day(
    data: CreateBlackoutDayRequest,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        blackout_day = BlackoutDay(business_id=business_id, date=data.date, reason=data.reason)
        db.add(blackout_day)
        db.commit()
        db.refresh(blackout_day)

        return blackout_day
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='This date is already a blackout day.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/blackout-days/{blackout_day_id}', status_code=status.HTTP_204_NO_CONTENT)
def remove_blackout_day(
    blackout_day_id: str,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        blackout_day = db.query(BlackoutDay).filter(
            BlackoutDay.id == blackout_day_id,
            BlackoutDay.business_id == business_id,
        ).first()

        if not blackout_day:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Blackout day not found.',
            )

        db.delete(blackout_day)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/services', response_model=list[ServiceResponse])
def list_services(
    include_inactive: bool = Query(default=False),
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = db.query(Service).filter(Service.business_id == business_id)
        if not include_inactive:
            query = query.filter(Service.active.is_(True))
        return query.order_by(Service.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/services', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: CreateServiceRequest,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        service = Service(
            business_id=business_id,
            name=data.name,
            price=data.price,
            duration_minutes=data.duration_minutes,
            active=data.active,
        )
        db.add(service)
        db.commit()
        db.refresh(service)

        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
