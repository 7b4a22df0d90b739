"""Read-only views computed from already-fetched appointments."""

import re
from dataclasses import dataclass, field

from clinic_admin.scheduling.lifecycle import AppointmentStatus

PHONE_SEPARATORS = re.compile(r'[\s-]+')


@dataclass
class PatientRecord:
    patient_name: str
    patient_phone: str
    patient_email: str | None
    appointments: list = field(default_factory=list)
    last_appointment_date: str = ''
    last_appointment_time: str = ''


def normalize_phone(phone: str | None) -> str:
    return PHONE_SEPARATORS.sub('', phone or '')


def _visit_order(appointment) -> tuple[str, str]:
    return (appointment.date or '', appointment.start_time or '')


def status_summary(appointments) -> dict[str, int]:
    counts = {status.value: 0 for status in AppointmentStatus}
    for appointment in appointments:
        if appointment.status in counts:
            counts[appointment.status] += 1
    return counts


def daily_schedule(appointments, schedule_date: str) -> tuple[list, dict[str, int]]:
    day = sorted(
        (appointment for appointment in appointments if appointment.date == schedule_date),
        key=lambda appointment: appointment.start_time or '',
    )
    return day, status_summary(day)


def patient_roster(appointments) -> list[PatientRecord]:
    """Group appointments into one record per patient, keyed by phone number."""
    by_phone: dict[str, list] = {}
    for appointment in appointments:
        by_phone.setdefault(normalize_phone(appointment.patient_phone), []).append(appointment)

    roster = []
    for visits in by_phone.values():
        visits = sorted(visits, key=_visit_order)
        latest = visits[-1]
        roster.append(
            PatientRecord(
                patient_name=latest.patient_name,
                patient_phone=latest.patient_phone,
                patient_email=latest.patient_email or None,
                appointments=visits,
                last_appointment_date=latest.date,
                last_appointment_time=latest.start_time,
            )
        )

    roster.sort(key=lambda record: (record.patient_name or '').casefold())
    return roster
