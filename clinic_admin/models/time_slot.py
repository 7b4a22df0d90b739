"""Time slot model definitions."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from clinic_admin.database import Base


def new_record_id() -> str:
    return uuid.uuid4().hex


class TimeSlot(Base):
    """Represents a bookable interval on a doctor's calendar."""
    __tablename__ = "slots"

    id = Column(String, primary_key=True, default=new_record_id)
    doctor_id = Column(String, nullable=False, index=True)
    doctor_name = Column(String)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    start_time = Column(String(5), nullable=False)  # HH:mm
    end_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
