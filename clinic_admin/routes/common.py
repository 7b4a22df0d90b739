from fastapi import Depends, HTTPException, status
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_admin.database import SessionLocal, ensure_appointment_schema, ensure_slot_schema
from clinic_admin.errors import (
    AccountValidationError,
    AuthenticationError,
    BookingValidationError,
    BulkSlotCreationError,
    ClinicError,
    DuplicateAccountError,
    InvalidStatusError,
    NotFoundError,
    SlotSyncError,
    SlotUnavailableError,
    SlotValidationError,
    StoreError,
)
from clinic_admin.models.appointment import Appointment
from clinic_admin.models.time_slot import TimeSlot
from clinic_admin.services.booking_service import BookingService
from clinic_admin.services.slot_service import SlotService
from clinic_admin.store.repository import SqlRepository

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

_STATUS_BY_ERROR = [
    (SlotValidationError, status.HTTP_400_BAD_REQUEST),
    (BookingValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidStatusError, status.HTTP_400_BAD_REQUEST),
    (AccountValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (SlotUnavailableError, status.HTTP_409_CONFLICT),
    (DuplicateAccountError, status.HTTP_409_CONFLICT),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def ensure_database_ready() -> None:
    try:
        ensure_slot_schema()
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    return SlotService(SqlRepository(TimeSlot, db))


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(SqlRepository(TimeSlot, db), SqlRepository(Appointment, db))


def to_http_exception(exc: ClinicError) -> HTTPException:
    """Map a service error onto the HTTP response the dashboard expects."""
    if isinstance(exc, BulkSlotCreationError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                'message': str(exc),
                'createdIds': exc.created_ids,
                'failedSlots': [
                    {'startTime': start_time, 'endTime': end_time, 'error': str(error)}
                    for start_time, end_time, error in exc.failures
                ],
            },
        )

    if isinstance(exc, SlotSyncError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                'message': str(exc),
                'appointmentId': exc.appointment_id,
                'slotId': exc.slot_id,
                'isAvailable': exc.is_available,
            },
        )

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            detail = DATABASE_UNAVAILABLE_DETAIL if error_type is StoreError else str(exc)
            return HTTPException(status_code=status_code, detail=detail)

    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
