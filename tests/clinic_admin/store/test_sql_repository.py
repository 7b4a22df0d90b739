import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from clinic_admin.auth.identity import DoctorIdentity
from clinic_admin.database import Base
from clinic_admin.errors import StoreError
from clinic_admin.models.appointment import Appointment
from clinic_admin.models.time_slot import TimeSlot
from clinic_admin.services.booking_service import BookingService
from clinic_admin.services.slot_service import SlotService
from clinic_admin.store.repository import SqlRepository, sanitize_updates


@pytest.fixture
def store_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[TimeSlot.__table__, Appointment.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[Appointment.__table__, TimeSlot.__table__])


def slot_fields(**overrides) -> dict:
    fields = {
        'doctor_id': 'doc-1',
        'doctor_name': 'Dr. Rivera',
        'date': '2026-03-02',
        'start_time': '09:00',
        'end_time': '09:30',
        'duration': 30,
        'is_available': True,
    }
    fields.update(overrides)
    return fields


def test_sanitize_updates_drops_store_owned_and_unset_fields() -> None:
    assert sanitize_updates({'id': 'x', 'created_at': 1, 'updated_at': 2, 'date': None, 'duration': 15}) == {
        'duration': 15,
    }


def test_create_assigns_an_opaque_id(store_db) -> None:
    repository = SqlRepository(TimeSlot, store_db)

    slot_id = repository.create(slot_fields())

    slot = repository.get(slot_id)
    assert isinstance(slot_id, str) and len(slot_id) == 32
    assert slot.start_time == '09:00'
    assert slot.created_at is not None


def test_update_and_find_by_equality(store_db) -> None:
    repository = SqlRepository(TimeSlot, store_db)
    first = repository.create(slot_fields())
    repository.create(slot_fields(start_time='09:30', end_time='10:00'))
    repository.create(slot_fields(doctor_id='doc-2'))

    repository.update(first, {'is_available': False, 'id': 'ignored'})

    assert repository.get(first).is_available is False
    assert len(repository.find_by(doctor_id='doc-1')) == 2
    assert [slot.id for slot in repository.find_by(doctor_id='doc-1', is_available=False)] == [first]


def test_delete_removes_record(store_db) -> None:
    repository = SqlRepository(TimeSlot, store_db)
    slot_id = repository.create(slot_fields())

    repository.delete(slot_id)

    assert repository.get(slot_id) is None
    with pytest.raises(StoreError):
        repository.delete(slot_id)


def test_update_of_missing_record_is_a_store_error(store_db) -> None:
    with pytest.raises(StoreError):
        SqlRepository(TimeSlot, store_db).update('missing', {'is_available': False})


def test_database_errors_become_store_errors(store_db, monkeypatch: pytest.MonkeyPatch) -> None:
    repository = SqlRepository(TimeSlot, store_db)

    def broken_commit():
        raise OperationalError('COMMIT', {}, Exception('database is locked'))

    monkeypatch.setattr(store_db, 'commit', broken_commit)

    with pytest.raises(StoreError):
        repository.create(slot_fields())


def test_booking_lifecycle_against_sql_store(store_db) -> None:
    doctor = DoctorIdentity('doc-1', 'Dr. Rivera')
    slot_repository = SqlRepository(TimeSlot, store_db)
    bookings = BookingService(slot_repository, SqlRepository(Appointment, store_db))
    slot_ids = SlotService(slot_repository).create_from_range(doctor, '2026-03-02', '09:00', '10:00', 30)

    appointment_id = bookings.book(doctor, slot_ids[0], 'Ana Lopez', '555-0101')
    assert slot_repository.get(slot_ids[0]).is_available is False

    bookings.update_status(appointment_id, 'confirmed')
    assert slot_repository.get(slot_ids[0]).is_available is False

    bookings.update_status(appointment_id, 'cancelled')
    assert slot_repository.get(slot_ids[0]).is_available is True

    bookings.update_status(appointment_id, 'scheduled')
    bookings.delete(appointment_id)
    assert slot_repository.get(slot_ids[0]).is_available is True
    assert bookings.list_all() == []
