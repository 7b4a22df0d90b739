"""Split a working window into fixed-length, back-to-back time slots.

Times are naive ``HH:mm`` wall-clock strings scoped to a single date.
Everything here is pure: no I/O and no dependence on the current time, so the
preview can be recomputed on every form change.
"""

import re
from dataclasses import dataclass
from datetime import date as date_type

CLOCK_PATTERN = re.compile(r'^(\d{2}):(\d{2})$')
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class SlotCandidate:
    doctor_id: str
    doctor_name: str
    date: str
    start_time: str
    end_time: str
    duration: int
    is_available: bool = True

    def to_record(self) -> dict:
        return {
            'doctor_id': self.doctor_id,
            'doctor_name': self.doctor_name,
            'date': self.date,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'duration': self.duration,
            'is_available': self.is_available,
        }


def parse_clock(value: str | None) -> int | None:
    """Return minutes since midnight for ``HH:mm``, or ``None`` if malformed."""
    if not isinstance(value, str):
        return None

    match = CLOCK_PATTERN.match(value.strip())
    if not match:
        return None

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None

    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    hours, remainder = divmod(minutes, 60)
    return f'{hours:02d}:{remainder:02d}'


def is_valid_date(value: str | None) -> bool:
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        date_type.fromisoformat(value)
    except ValueError:
        return False
    return True


def slot_minutes(start_time: str, end_time: str) -> int | None:
    start_minutes = parse_clock(start_time)
    end_minutes = parse_clock(end_time)
    if start_minutes is None or end_minutes is None:
        return None
    return end_minutes - start_minutes


def partition(start_time: str | None, end_time: str | None, duration_minutes) -> list[tuple[str, str]]:
    """Divide ``[start_time, end_time)`` into contiguous slots of ``duration_minutes``.

    Returns an empty list when the duration is not a positive integer, either
    endpoint is missing or malformed, or the window is empty or inverted. A
    trailing remainder shorter than one slot is dropped.

    >>> partition('09:00', '10:10', 30)
    [('09:00', '09:30'), ('09:30', '10:00')]
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        return []
    if duration_minutes <= 0:
        return []

    start_minutes = parse_clock(start_time)
    end_minutes = parse_clock(end_time)
    if start_minutes is None or end_minutes is None or start_minutes >= end_minutes:
        return []

    slots: list[tuple[str, str]] = []
    cursor = start_minutes
    while cursor + duration_minutes <= end_minutes:
        slots.append((format_clock(cursor), format_clock(cursor + duration_minutes)))
        cursor += duration_minutes

    return slots


def build_slot_candidates(
    slot_date: str,
    doctor_id: str,
    doctor_name: str,
    start_time: str,
    end_time: str,
    duration_minutes: int,
) -> list[SlotCandidate]:
    return [
        SlotCandidate(
            doctor_id=doctor_id,
            doctor_name=doctor_name,
            date=slot_date,
            start_time=slot_start,
            end_time=slot_end,
            duration=duration_minutes,
        )
        for slot_start, slot_end in partition(start_time, end_time, duration_minutes)
    ]
