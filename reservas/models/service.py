"""Service catalog model definitions."""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String

from reservas.database import Base
from reservas.models.business import new_id


class Service(Base):
    """A bookable service. Only active services can be scheduled."""
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes >= 1", name="ck_services_duration_positive"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=False, default=30)
    active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, business_id={self.business_id})>"
