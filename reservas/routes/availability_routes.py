from datetime import date, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reservas.auth.dependencies import get_current_business_id
from reservas.database import get_db
from reservas.routes.common import database_unavailable, ensure_database_ready, scheduling_http_error
from reservas.scheduling.availability import compute_availability
from reservas.scheduling.errors import SchedulingError

router = APIRouter(tags=['availability'])


class AvailabilityRequest(BaseModel):
    date: date
    service_ids: list[str]
    exclude_appointment_id: str | None = None

    @field_validator('service_ids')
    @classmethod
    def validate_service_ids(cls, value: list[str]) -> list[str]:
        normalized = [service_id.strip() for service_id in value if service_id.strip()]
        if not normalized:
            raise ValueError('At least one service is required.')
        return normalized

    @field_validator('exclude_appointment_id')
    @classmethod
    def validate_exclude_appointment_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class AvailableSlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    label: str
    recommended: bool


class AvailabilityResponse(BaseModel):
    date: date
    total_duration_minutes: int
    slots: list[AvailableSlotResponse]


@router.post('', response_model=AvailabilityResponse)
def get_availability(
    data: AvailabilityRequest,
    business_id: str = Depends(get_current_business_id),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        result = compute_availability(
            db,
            business_id,
            data.date,
            data.service_ids,
            exclude_appointment_id=data.exclude_appointment_id,
        )
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return AvailabilityResponse(
        date=result.day,
        total_duration_minutes=result.total_duration_minutes,
        slots=[
            AvailableSlotResponse(
                start_time=slot.start,
                end_time=slot.end,
                label=slot.label,
                recommended=slot.recommended,
            )
            for slot in result.slots
        ],
    )
