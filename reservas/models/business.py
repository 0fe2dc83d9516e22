"""Business (tenant) model definitions."""

import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from reservas.core import config
from reservas.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Business(Base):
    """A tenant. Owns services, calendar rules and appointments."""
    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    timezone = Column(String(64), nullable=False, default=config.DEFAULT_BUSINESS_TIMEZONE)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"
