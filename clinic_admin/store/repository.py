"""Narrow CRUD access to the ``slots`` and ``appointments`` collections.

Each call is its own unit of work: it commits (or fails) independently of
every other call, so two calls never form a transaction together.
"""

import logging
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_admin.errors import StoreError

logger = logging.getLogger(__name__)

# Fields the store owns; callers may never overwrite them through update().
PROTECTED_FIELDS = frozenset({'id', 'created_at', 'updated_at'})


class Repository(Protocol):
    def create(self, fields: dict[str, Any]) -> str: ...

    def get(self, record_id: str) -> Any | None: ...

    def update(self, record_id: str, fields: dict[str, Any]) -> None: ...

    def delete(self, record_id: str) -> None: ...

    def find_by(self, **filters: Any) -> list[Any]: ...


def sanitize_updates(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop store-owned fields and unset (``None``) values from a partial update."""
    return {
        name: value
        for name, value in fields.items()
        if name not in PROTECTED_FIELDS and value is not None
    }


class SqlRepository:
    """Repository over one SQLAlchemy model, bound to a session."""

    def __init__(self, model, db: Session):
        self.model = model
        self.db = db

    def _fail(self, action: str, exc: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        logger.error('Store %s on %s failed: %s', action, self.model.__tablename__, exc)
        return StoreError('Database unavailable. Verify DATABASE_URL and database credentials.')

    def create(self, fields: dict[str, Any]) -> str:
        record = self.model(**fields)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail('create', exc) from exc
        return record.id

    def get(self, record_id: str):
        try:
            return self.db.get(self.model, record_id)
        except SQLAlchemyError as exc:
            raise self._fail('get', exc) from exc

    def update(self, record_id: str, fields: dict[str, Any]) -> None:
        values = sanitize_updates(fields)
        try:
            record = self.db.get(self.model, record_id)
            if record is None:
                raise StoreError(f'No {self.model.__tablename__} record with id {record_id}.')
            for name, value in values.items():
                setattr(record, name, value)
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail('update', exc) from exc

    def delete(self, record_id: str) -> None:
        try:
            record = self.db.get(self.model, record_id)
            if record is None:
                raise StoreError(f'No {self.model.__tablename__} record with id {record_id}.')
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail('delete', exc) from exc

    def find_by(self, **filters: Any) -> list:
        try:
            query = self.db.query(self.model)
            for name, value in filters.items():
                query = query.filter(getattr(self.model, name) == value)
            return query.all()
        except SQLAlchemyError as exc:
            raise self._fail('query', exc) from exc
