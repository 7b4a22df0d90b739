"""Appointment status values and the slot availability each one implies.

Any status may be set from any other status. The dashboard only offers a
subset of moves (see ``ui_actions``), but nothing here rejects a transition.
"""

from enum import Enum

from clinic_admin.errors import InvalidStatusError


class AppointmentStatus(str, Enum):
    SCHEDULED = 'scheduled'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no-show'


INITIAL_STATUS = AppointmentStatus.SCHEDULED

# Statuses that hand the slot back to the pool.
SLOT_RELEASING_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})

# Statuses under which an appointment still holds its slot.
SLOT_HOLDING_STATUSES = frozenset({
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
})


def parse_status(value) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value

    normalized = str(value or '').strip().lower()
    try:
        return AppointmentStatus(normalized)
    except ValueError as exc:
        allowed = ', '.join(status.value for status in AppointmentStatus)
        raise InvalidStatusError(f'Invalid appointment status. Expected one of: {allowed}.') from exc


def slot_availability_after(status) -> bool | None:
    """Availability to write on the slot after moving to ``status``.

    ``None`` means the transition does not touch the slot.
    """
    if parse_status(status) in SLOT_RELEASING_STATUSES:
        return True
    return None


def holds_slot(status) -> bool:
    return parse_status(status) in SLOT_HOLDING_STATUSES


def ui_actions(status) -> list[str]:
    current = parse_status(status)
    actions = []
    if current == AppointmentStatus.SCHEDULED:
        actions.append('confirm')
    if current not in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED):
        actions.append('complete')
    if current != AppointmentStatus.CANCELLED:
        actions.append('cancel')
    actions.append('delete')
    return actions
