from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import field_validator

from clinic_admin.auth.dependencies import get_current_doctor
from clinic_admin.auth.identity import DoctorIdentity
from clinic_admin.errors import ClinicError
from clinic_admin.routes.common import CamelModel, ensure_database_ready, get_booking_service, to_http_exception
from clinic_admin.scheduling.lifecycle import parse_status, ui_actions
from clinic_admin.services.booking_service import BookingService

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


class CreateAppointmentRequest(CamelModel):
    slot_id: str
    patient_name: str
    patient_phone: str
    patient_email: str | None = None
    notes: str | None = None

    @field_validator('patient_email')
    @classmethod
    def validate_patient_email(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip().lower()
        if not normalized:
            return None
        if '@' not in normalized:
            raise ValueError('Patient email must be a valid email address.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateStatusRequest(CamelModel):
    status: str


class AppointmentResponse(CamelModel):
    id: str
    slot_id: str
    patient_name: str
    patient_phone: str
    patient_email: str | None = None
    date: str
    start_time: str
    end_time: str
    doctor_id: str
    doctor_name: str | None = None
    status: str
    notes: str | None = None
    actions: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SlotMismatchResponse(CamelModel):
    slot_id: str
    is_available: bool
    holding_appointment_ids: list[str]
    problem: str


def to_appointment_response(appointment) -> AppointmentResponse:
    response = AppointmentResponse.model_validate(appointment)
    response.actions = ui_actions(appointment.status)
    return response


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    date: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias='status'),
    mine: bool = Query(default=True),
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    ensure_database_ready()

    try:
        wanted_status = parse_status(status_filter).value if status_filter else None

        if mine:
            appointments = bookings.list_by_doctor(doctor.doctor_id)
        elif date:
            appointments = bookings.list_by_date(date)
        elif wanted_status:
            appointments = bookings.list_by_status(wanted_status)
        else:
            appointments = bookings.list_all()

        appointments = [
            appointment for appointment in appointments
            if (date is None or appointment.date == date)
            and (wanted_status is None or appointment.status == wanted_status)
        ]
        return [to_appointment_response(appointment) for appointment in appointments]
    except ClinicError as exc:
        raise to_http_exception(exc) from exc


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    ensure_database_ready()

    try:
        appointment_id = bookings.book(
            doctor,
            slot_id=data.slot_id,
            patient_name=data.patient_name,
            patient_phone=data.patient_phone,
            patient_email=data.patient_email,
            notes=data.notes,
        )
        return to_appointment_response(bookings.get(appointment_id))
    except ClinicError as exc:
        raise to_http_exception(exc) from exc


@router.get('/audit', response_model=list[SlotMismatchResponse])
def audit_slot_availability(
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    ensure_database_ready()

    try:
        mismatches = bookings.audit_slot_availability(doctor.doctor_id)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc

    return [
        SlotMismatchResponse(
            slot_id=mismatch.slot_id,
            is_available=mismatch.is_available,
            holding_appointment_ids=list(mismatch.holding_appointment_ids),
            problem=mismatch.problem,
        )
        for mismatch in mismatches
    ]


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    del doctor
    ensure_database_ready()

    try:
        return to_appointment_response(bookings.get(appointment_id))
    except ClinicError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: str,
    data: UpdateStatusRequest,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    del doctor
    ensure_database_ready()

    try:
        bookings.update_status(appointment_id, data.status)
        return to_appointment_response(bookings.get(appointment_id))
    except ClinicError as exc:
        raise to_http_exception(exc) from exc


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: str,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    del doctor
    ensure_database_ready()

    try:
        bookings.delete(appointment_id)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc
