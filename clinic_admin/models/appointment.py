"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from clinic_admin.database import Base
from clinic_admin.models.time_slot import new_record_id


class Appointment(Base):
    """Represents a patient's booking against one time slot.

    ``date``, ``start_time`` and ``end_time`` are copied from the slot when the
    booking is made and are not kept in step with later edits to that slot.
    """
    __tablename__ = "appointments"

    id = Column(String, primary_key=True, default=new_record_id)
    slot_id = Column(String, nullable=False, index=True)
    patient_name = Column(String, nullable=False)
    patient_phone = Column(String, nullable=False)
    patient_email = Column(String)
    date = Column(String(10), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    doctor_id = Column(String, nullable=False, index=True)
    doctor_name = Column(String)
    status = Column(String(16), nullable=False, default="scheduled")
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
