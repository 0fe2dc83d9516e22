"""Appointment model definitions."""

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from reservas.database import Base
from reservas.models.business import new_id


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RecurrenceKind(str, enum.Enum):
    NONE = "NONE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    CUSTOM_INTERVAL = "CUSTOM_INTERVAL"


class Appointment(Base):
    """A booked interval for one or more services.

    Cancelled appointments stay in the table so reporting over past periods
    remains consistent. A recurring root carries the recurrence attributes;
    each generated child points back to it through ``parent_id``.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_appointments_end_after_start"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), nullable=True)
    staff_id = Column(String(36), nullable=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)

    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(
        Enum(AppointmentStatus, native_enum=False, length=20),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    notes = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=True)

    paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime, nullable=True)

    recurrence_kind = Column(
        Enum(RecurrenceKind, native_enum=False, length=20),
        nullable=False,
        default=RecurrenceKind.NONE,
    )
    recurrence_interval_days = Column(Integer, nullable=True)
    recurrence_weekdays = Column(String(64), nullable=True)  # e.g. "MON,WED,FRI"
    recurrence_count = Column(Integer, nullable=True)
    recurrence_end_date = Column(Date, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    parent_id = Column(String(36), ForeignKey("appointments.id"), nullable=True, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    line_items = relationship(
        "AppointmentLineItem",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentLineItem.position",
    )

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def __repr__(self):
        return f"<Appointment(id={self.id}, start={self.start_time}, status={self.status})>"


class AppointmentLineItem(Base):
    """Price and duration of one booked service, frozen at booking time."""
    __tablename__ = "appointment_line_items"

    id = Column(String(36), primary_key=True, default=new_id)
    appointment_id = Column(String(36), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    appointment = relationship("Appointment", back_populates="line_items")
