from dataclasses import dataclass

DEFAULT_DOCTOR_NAME = 'Doctor'


@dataclass(frozen=True)
class DoctorIdentity:
    """The authenticated actor, as seen by slot and booking code."""
    doctor_id: str
    doctor_name: str


def identity_for_user(user) -> DoctorIdentity:
    display_name = (user.display_name or '').strip()
    return DoctorIdentity(
        doctor_id=user.id,
        doctor_name=display_name or user.email or DEFAULT_DOCTOR_NAME,
    )
