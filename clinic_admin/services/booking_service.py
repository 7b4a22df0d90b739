"""Appointment booking and the slot availability writes that follow it.

Every mutating call is two independent store writes: the appointment first,
then its slot. Nothing spans both writes, so two concurrent bookings of the
same slot can both succeed. When the second write fails the first is kept and
``SlotSyncError`` reports what needs reconciling.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

from clinic_admin.auth.identity import DoctorIdentity
from clinic_admin.errors import (
    BookingValidationError,
    NotFoundError,
    SlotSyncError,
    SlotUnavailableError,
    StoreError,
)
from clinic_admin.scheduling.lifecycle import (
    INITIAL_STATUS,
    holds_slot,
    parse_status,
    slot_availability_after,
)
from clinic_admin.services.slot_service import sort_by_calendar
from clinic_admin.store.repository import Repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotMismatch:
    slot_id: str
    is_available: bool
    holding_appointment_ids: tuple[str, ...]
    problem: str


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class BookingService:
    def __init__(self, slots: Repository, appointments: Repository):
        self.slots = slots
        self.appointments = appointments

    def _write_slot_availability(self, appointment_id: str, slot_id: str, is_available: bool) -> None:
        try:
            self.slots.update(slot_id, {'is_available': is_available})
        except StoreError as exc:
            logger.error(
                'Appointment %s written but slot %s availability=%s failed',
                appointment_id,
                slot_id,
                is_available,
            )
            raise SlotSyncError(appointment_id, slot_id, is_available, exc) from exc
        logger.info('Slot %s availability set to %s after appointment %s', slot_id, is_available, appointment_id)

    def get(self, appointment_id: str):
        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError('Appointment', appointment_id)
        return appointment

    def book(
        self,
        identity: DoctorIdentity,
        slot_id: str,
        patient_name: str,
        patient_phone: str,
        patient_email: str | None = None,
        notes: str | None = None,
    ) -> str:
        patient_name = _clean(patient_name)
        patient_phone = _clean(patient_phone)
        if not patient_name:
            raise BookingValidationError('Patient name is required.')
        if not patient_phone:
            raise BookingValidationError('Patient phone is required.')

        slot = self.slots.get(slot_id)
        # Doctors book into their own schedule only.
        if slot is None or slot.doctor_id != identity.doctor_id:
            raise BookingValidationError('Please select a valid time slot')
        if not slot.is_available:
            raise SlotUnavailableError('This time slot is no longer available.')

        appointment_id = self.appointments.create({
            'slot_id': slot_id,
            'patient_name': patient_name,
            'patient_phone': patient_phone,
            'patient_email': _clean(patient_email),
            'date': slot.date,
            'start_time': slot.start_time,
            'end_time': slot.end_time,
            'doctor_id': slot.doctor_id,
            'doctor_name': slot.doctor_name,
            'status': INITIAL_STATUS.value,
            'notes': _clean(notes),
        })
        logger.info('Booked appointment %s on slot %s', appointment_id, slot_id)

        self._write_slot_availability(appointment_id, slot_id, False)
        return appointment_id

    def update_status(self, appointment_id: str, status) -> None:
        new_status = parse_status(status)
        appointment = self.get(appointment_id)
        slot_id = appointment.slot_id

        self.appointments.update(appointment_id, {'status': new_status.value})

        is_available = slot_availability_after(new_status)
        if is_available is not None:
            self._write_slot_availability(appointment_id, slot_id, is_available)

    def delete(self, appointment_id: str) -> None:
        appointment = self.get(appointment_id)
        slot_id = appointment.slot_id

        self.appointments.delete(appointment_id)
        logger.info('Deleted appointment %s', appointment_id)

        self._write_slot_availability(appointment_id, slot_id, True)

    def list_all(self) -> list:
        return sort_by_calendar(self.appointments.find_by())

    def list_by_doctor(self, doctor_id: str) -> list:
        return sort_by_calendar(self.appointments.find_by(doctor_id=doctor_id))

    def list_by_date(self, appointment_date: str) -> list:
        return sort_by_calendar(self.appointments.find_by(date=appointment_date))

    def list_by_status(self, status) -> list:
        return sort_by_calendar(self.appointments.find_by(status=parse_status(status).value))

    def audit_slot_availability(self, doctor_id: str) -> list[SlotMismatch]:
        """Compare each of the doctor's slots with the appointments holding it.

        Only reports; nothing is rewritten.
        """
        holders: dict[str, list[str]] = defaultdict(list)
        for appointment in self.appointments.find_by(doctor_id=doctor_id):
            if holds_slot(appointment.status):
                holders[appointment.slot_id].append(appointment.id)

        mismatches: list[SlotMismatch] = []
        for slot in sort_by_calendar(self.slots.find_by(doctor_id=doctor_id)):
            holding = tuple(sorted(holders.get(slot.id, [])))
            if len(holding) > 1:
                problem = 'double-booked'
            elif holding and slot.is_available:
                problem = 'available-but-booked'
            elif not holding and not slot.is_available:
                problem = 'unavailable-without-booking'
            else:
                continue
            mismatches.append(SlotMismatch(slot.id, bool(slot.is_available), holding, problem))

        return mismatches
