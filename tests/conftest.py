import os
from datetime import datetime
from types import SimpleNamespace

import pytest

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from clinic_admin.auth.identity import DoctorIdentity  # noqa: E402
from clinic_admin.errors import StoreError  # noqa: E402
from clinic_admin.store.repository import sanitize_updates  # noqa: E402


class InMemoryRepository:
    """Dict-backed stand-in for ``SqlRepository`` with failure injection."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.records: dict[str, SimpleNamespace] = {}
        self.writes: list[tuple] = []
        self._counter = 0
        self._failures: list[tuple] = []

    def fail_when(self, operation: str, predicate=lambda *args: True) -> None:
        self._failures.append((operation, predicate))

    def _check(self, operation: str, *args) -> None:
        for failing_operation, predicate in self._failures:
            if failing_operation == operation and predicate(*args):
                raise StoreError(f'{operation} rejected')

    def create(self, fields: dict) -> str:
        self._check('create', fields)
        self._counter += 1
        record_id = f'{self.prefix}-{self._counter}'
        self.records[record_id] = SimpleNamespace(
            id=record_id,
            created_at=datetime(2026, 1, 5, 8, 0),
            updated_at=None,
            **fields,
        )
        self.writes.append(('create', record_id))
        return record_id

    def get(self, record_id: str):
        return self.records.get(record_id)

    def update(self, record_id: str, fields: dict) -> None:
        self._check('update', record_id, fields)
        record = self.records.get(record_id)
        if record is None:
            raise StoreError(f'No record with id {record_id}.')
        values = sanitize_updates(fields)
        for name, value in values.items():
            setattr(record, name, value)
        self.writes.append(('update', record_id, values))

    def delete(self, record_id: str) -> None:
        self._check('delete', record_id)
        if self.records.pop(record_id, None) is None:
            raise StoreError(f'No record with id {record_id}.')
        self.writes.append(('delete', record_id))

    def find_by(self, **filters) -> list:
        return [
            record for record in self.records.values()
            if all(getattr(record, name, None) == value for name, value in filters.items())
        ]


@pytest.fixture
def slot_repo() -> InMemoryRepository:
    return InMemoryRepository('slot')


@pytest.fixture
def appointment_repo() -> InMemoryRepository:
    return InMemoryRepository('appt')


@pytest.fixture
def doctor() -> DoctorIdentity:
    return DoctorIdentity(doctor_id='doc-1', doctor_name='Dr. Rivera')
