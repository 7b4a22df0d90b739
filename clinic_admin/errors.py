"""Exceptions raised by the scheduling and booking services.

Routes translate these into ``HTTPException`` responses; services never raise
HTTP errors themselves.
"""


class ClinicError(Exception):
    """Base class for every error the services raise."""


class SlotValidationError(ClinicError):
    """Slot input was missing, malformed or produced no slots."""


class BookingValidationError(ClinicError):
    """Booking input was missing or malformed."""


class InvalidStatusError(ClinicError):
    """An appointment status outside the known set was requested."""


class NotFoundError(ClinicError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f'{kind} not found.')
        self.kind = kind
        self.record_id = record_id


class SlotUnavailableError(ClinicError):
    """The slot is already marked unavailable."""


class AccountValidationError(ClinicError):
    """Signup input (email or password) was rejected."""


class DuplicateAccountError(ClinicError):
    pass


class AuthenticationError(ClinicError):
    pass


class StoreError(ClinicError):
    """The backing store rejected or could not complete a call."""


class BulkSlotCreationError(ClinicError):
    """Some slots in a batch failed to persist.

    Slots listed in ``created_ids`` were written and are left in place.
    """

    def __init__(self, created_ids: list[str], failures: list[tuple[str, str, Exception]]):
        super().__init__(
            f'{len(failures)} of {len(created_ids) + len(failures)} slots could not be created.'
        )
        self.created_ids = created_ids
        self.failures = failures


class SlotSyncError(ClinicError):
    """The appointment write succeeded but the paired slot write did not."""

    def __init__(self, appointment_id: str, slot_id: str, is_available: bool, cause: Exception):
        super().__init__(
            f'Appointment {appointment_id} was saved but slot {slot_id} could not be marked '
            f'{"available" if is_available else "unavailable"}.'
        )
        self.appointment_id = appointment_id
        self.slot_id = slot_id
        self.is_available = is_available
        self.cause = cause
