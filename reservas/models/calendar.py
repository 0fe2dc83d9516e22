"""Calendar rule model definitions: weekly working hours and blackout days."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Time, UniqueConstraint, text
from sqlalchemy.sql import func

from reservas.database import Base
from reservas.models.business import new_id


class WorkingHours(Base):
    """Opening hours of a business for one weekday (0=Monday, 6=Sunday)."""
    __tablename__ = "working_hours"
    __table_args__ = (
        Index(
            "uq_working_hours_active_weekday",
            "business_id",
            "weekday",
            unique=True,
            sqlite_where=text("active"),
            postgresql_where=text("active"),
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday = Column(Integer, nullable=False)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)
    active = Column(Boolean, nullable=False, default=True)


class BlackoutDay(Base):
    """A date on which the business accepts no bookings."""
    __tablename__ = "blackout_days"
    __table_args__ = (
        UniqueConstraint("business_id", "date", name="uq_blackout_days_business_date"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    reason = Column(String(200), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
