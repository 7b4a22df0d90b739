from datetime import date as date_type

from fastapi import APIRouter, Depends, Query

from clinic_admin.auth.dependencies import get_current_doctor
from clinic_admin.auth.identity import DoctorIdentity
from clinic_admin.errors import ClinicError
from clinic_admin.routes.appointment_routes import AppointmentResponse, to_appointment_response
from clinic_admin.routes.common import CamelModel, ensure_database_ready, get_booking_service, to_http_exception
from clinic_admin.services.booking_service import BookingService
from clinic_admin.services.reports import daily_schedule, patient_roster, status_summary

router = APIRouter(tags=['reports'])


class DailyScheduleResponse(CamelModel):
    date: str
    appointments: list[AppointmentResponse]
    status_counts: dict[str, int]


class PatientRecordResponse(CamelModel):
    patient_name: str
    patient_phone: str
    patient_email: str | None = None
    appointments: list[AppointmentResponse]
    last_appointment_date: str
    last_appointment_time: str


@router.get('/schedule', response_model=DailyScheduleResponse)
def get_daily_schedule(
    date: str | None = Query(default=None),
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    ensure_database_ready()

    schedule_date = date or date_type.today().isoformat()
    try:
        appointments, counts = daily_schedule(bookings.list_by_doctor(doctor.doctor_id), schedule_date)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc

    return DailyScheduleResponse(
        date=schedule_date,
        appointments=[to_appointment_response(appointment) for appointment in appointments],
        status_counts=counts,
    )


@router.get('/patients', response_model=list[PatientRecordResponse])
def list_patients(
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    ensure_database_ready()

    try:
        roster = patient_roster(bookings.list_by_doctor(doctor.doctor_id))
    except ClinicError as exc:
        raise to_http_exception(exc) from exc

    return [
        PatientRecordResponse(
            patient_name=record.patient_name,
            patient_phone=record.patient_phone,
            patient_email=record.patient_email,
            appointments=[to_appointment_response(appointment) for appointment in record.appointments],
            last_appointment_date=record.last_appointment_date,
            last_appointment_time=record.last_appointment_time,
        )
        for record in roster
    ]


@router.get('/status-summary', response_model=dict[str, int])
def get_status_summary(
    doctor: DoctorIdentity = Depends(get_current_doctor),
    bookings: BookingService = Depends(get_booking_service),
):
    ensure_database_ready()

    try:
        return status_summary(bookings.list_by_doctor(doctor.doctor_id))
    except ClinicError as exc:
        raise to_http_exception(exc) from exc
