"""User model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, String
from clinic_admin.database import Base
from clinic_admin.models.time_slot import new_record_id


class User(Base):
    """Represents a clinic staff account."""
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True, default=new_record_id)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    display_name = Column(String)
    phone_number = Column(String)
    photo_url = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
