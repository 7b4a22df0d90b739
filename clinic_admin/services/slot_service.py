"""Slot management: bulk generation from a window and manual slot edits."""

import logging
from typing import Any

from clinic_admin.auth.identity import DoctorIdentity
from clinic_admin.errors import BulkSlotCreationError, NotFoundError, SlotValidationError, StoreError
from clinic_admin.scheduling.partitioner import (
    build_slot_candidates,
    is_valid_date,
    parse_clock,
)
from clinic_admin.store.repository import Repository

logger = logging.getLogger(__name__)


def calendar_order(record) -> tuple[str, str, str]:
    return (record.date or '', record.start_time or '', record.end_time or '')


def sort_by_calendar(records: list) -> list:
    return sorted(records, key=calendar_order)


def validate_slot_window(slot_date: str, start_time: str, end_time: str, duration) -> None:
    if not is_valid_date(slot_date):
        raise SlotValidationError('Date must be a valid YYYY-MM-DD value.')

    start_minutes = parse_clock(start_time)
    end_minutes = parse_clock(end_time)
    if start_minutes is None or end_minutes is None:
        raise SlotValidationError('Start and end times must use the HH:mm format.')

    if start_minutes >= end_minutes:
        raise SlotValidationError('End time must be after start time')

    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise SlotValidationError('Duration must be a positive number of minutes.')


class SlotService:
    def __init__(self, slots: Repository):
        self.slots = slots

    def create_from_range(
        self,
        identity: DoctorIdentity,
        slot_date: str,
        start_time: str,
        end_time: str,
        duration: int,
    ) -> list[str]:
        """Persist one slot per partition interval.

        Every candidate is attempted even after a failure. If any write fails,
        ``BulkSlotCreationError`` reports the ids that were written; those
        slots stay in the store.
        """
        validate_slot_window(slot_date, start_time, end_time, duration)

        candidates = build_slot_candidates(
            slot_date,
            identity.doctor_id,
            identity.doctor_name,
            start_time,
            end_time,
            duration,
        )
        if not candidates:
            raise SlotValidationError(
                f'The window from {start_time} to {end_time} cannot fit a {duration}-minute slot.'
            )

        created_ids: list[str] = []
        failures: list[tuple[str, str, Exception]] = []
        for candidate in candidates:
            try:
                created_ids.append(self.slots.create(candidate.to_record()))
            except StoreError as exc:
                failures.append((candidate.start_time, candidate.end_time, exc))

        if failures:
            logger.error(
                'Bulk slot creation for doctor %s on %s: %d created, %d failed',
                identity.doctor_id,
                slot_date,
                len(created_ids),
                len(failures),
            )
            raise BulkSlotCreationError(created_ids, failures)

        logger.info('Created %d slots for doctor %s on %s', len(created_ids), identity.doctor_id, slot_date)
        return created_ids

    def create_slot(
        self,
        identity: DoctorIdentity,
        slot_date: str,
        start_time: str,
        end_time: str,
        duration: int,
    ) -> str:
        validate_slot_window(slot_date, start_time, end_time, duration)
        return self.slots.create({
            'doctor_id': identity.doctor_id,
            'doctor_name': identity.doctor_name,
            'date': slot_date,
            'start_time': start_time,
            'end_time': end_time,
            'duration': duration,
            'is_available': True,
        })

    def get_slot(self, slot_id: str):
        slot = self.slots.get(slot_id)
        if slot is None:
            raise NotFoundError('Slot', slot_id)
        return slot

    def update_slot(self, slot_id: str, fields: dict[str, Any]) -> None:
        # Edits may leave duration out of step with the times; that is allowed.
        slot = self.get_slot(slot_id)
        window = {}
        for name in ('date', 'start_time', 'end_time', 'duration'):
            value = fields.get(name)
            window[name] = getattr(slot, name) if value is None else value
        if any(fields.get(name) is not None for name in window):
            validate_slot_window(window['date'], window['start_time'], window['end_time'], window['duration'])
        self.slots.update(slot_id, fields)

    def toggle_availability(self, slot_id: str) -> bool:
        slot = self.get_slot(slot_id)
        is_available = not slot.is_available
        self.slots.update(slot_id, {'is_available': is_available})
        return is_available

    def delete_slot(self, slot_id: str) -> None:
        self.get_slot(slot_id)
        self.slots.delete(slot_id)

    def list_by_doctor(self, doctor_id: str) -> list:
        return sort_by_calendar(self.slots.find_by(doctor_id=doctor_id))

    def list_by_date(self, slot_date: str) -> list:
        return sort_by_calendar(self.slots.find_by(date=slot_date))

    def list_available(self, slot_date: str | None = None, doctor_id: str | None = None) -> list:
        filters: dict[str, Any] = {'is_available': True}
        if slot_date:
            filters['date'] = slot_date
        if doctor_id:
            filters['doctor_id'] = doctor_id
        return sort_by_calendar(self.slots.find_by(**filters))
