from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import field_validator

from clinic_admin.auth.dependencies import get_current_doctor
from clinic_admin.auth.identity import DoctorIdentity
from clinic_admin.core import config
from clinic_admin.errors import ClinicError
from clinic_admin.routes.common import CamelModel, ensure_database_ready, get_slot_service, to_http_exception
from clinic_admin.scheduling.partitioner import partition
from clinic_admin.services.slot_service import SlotService

router = APIRouter(tags=['slots'])


class SlotWindowRequest(CamelModel):
    date: str
    start_time: str
    end_time: str
    duration: int = config.DEFAULT_SLOT_DURATION_MINUTES

    @field_validator('date', 'start_time', 'end_time')
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()


class UpdateSlotRequest(CamelModel):
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    duration: int | None = None
    is_available: bool | None = None


class SlotResponse(CamelModel):
    id: str
    doctor_id: str
    doctor_name: str | None = None
    date: str
    start_time: str
    end_time: str
    duration: int
    is_available: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SlotIntervalResponse(CamelModel):
    start_time: str
    end_time: str


class SlotPreviewResponse(CamelModel):
    slots: list[SlotIntervalResponse]
    count: int


class BulkSlotResponse(CamelModel):
    created_ids: list[str]
    count: int


class ToggleAvailabilityResponse(CamelModel):
    id: str
    is_available: bool


def parse_preview_duration(value) -> int:
    """Read the duration field as typed so far; blank or non-numeric means the default."""
    text = str(value).strip() if value is not None else ''
    try:
        return int(text)
    except ValueError:
        return config.DEFAULT_SLOT_DURATION_MINUTES


@router.get('/preview', response_model=SlotPreviewResponse)
def preview_slots(
    start_time: str | None = Query(default=None, alias='startTime'),
    end_time: str | None = Query(default=None, alias='endTime'),
    duration: str | None = Query(default=None),
):
    intervals = partition(start_time, end_time, parse_preview_duration(duration))
    return SlotPreviewResponse(
        slots=[SlotIntervalResponse(start_time=start, end_time=end) for start, end in intervals],
        count=len(intervals),
    )


@router.get('', response_model=list[SlotResponse])
def list_slots(
    date: str | None = Query(default=None),
    available: bool = Query(default=False),
    mine: bool = Query(default=True),
    doctor: DoctorIdentity = Depends(get_current_doctor),
    slots: SlotService = Depends(get_slot_service),
):
    ensure_database_ready()

    doctor_id = doctor.doctor_id if mine else None
    try:
        if available:
            return slots.list_available(slot_date=date, doctor_id=doctor_id)

        if date:
            return [
                slot for slot in slots.list_by_date(date)
                if doctor_id is None or slot.doctor_id == doctor_id
            ]

        if doctor_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A date is required when listing every doctor's slots.",
            )

        return slots.list_by_doctor(doctor_id)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc


@router.post('', response_model=SlotResponse, status_code=status.HTTP_201_CREATED)
def create_slot(
    data: SlotWindowRequest,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    slots: SlotService = Depends(get_slot_service),
):
    ensure_database_ready()

    try:
        slot_id = slots.create_slot(doctor, data.date, data.start_time, data.end_time, data.duration)
        return slots.get_slot(slot_id)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc


@router.post('/bulk', response_model=BulkSlotResponse, status_code=status.HTTP_201_CREATED)
def create_slots_from_range(
    data: SlotWindowRequest,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    slots: SlotService = Depends(get_slot_service),
):
    ensure_database_ready()

    try:
        created_ids = slots.create_from_range(doctor, data.date, data.start_time, data.end_time, data.duration)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc

    return BulkSlotResponse(created_ids=created_ids, count=len(created_ids))


@router.patch('/{slot_id}', response_model=SlotResponse)
def update_slot(
    slot_id: str,
    data: UpdateSlotRequest,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    slots: SlotService = Depends(get_slot_service),
):
    del doctor
    ensure_database_ready()

    try:
        slots.update_slot(slot_id, data.model_dump(exclude_unset=True))
        return slots.get_slot(slot_id)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc


@router.post('/{slot_id}/toggle', response_model=ToggleAvailabilityResponse)
def toggle_slot_availability(
    slot_id: str,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    slots: SlotService = Depends(get_slot_service),
):
    del doctor
    ensure_database_ready()

    try:
        is_available = slots.toggle_availability(slot_id)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc

    return ToggleAvailabilityResponse(id=slot_id, is_available=is_available)


@router.delete('/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(
    slot_id: str,
    doctor: DoctorIdentity = Depends(get_current_doctor),
    slots: SlotService = Depends(get_slot_service),
):
    del doctor
    ensure_database_ready()

    try:
        slots.delete_slot(slot_id)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc
