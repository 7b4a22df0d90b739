"""Staff accounts: registration, password login and profile documents."""

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_admin.core import config
from clinic_admin.errors import (
    AccountValidationError,
    AuthenticationError,
    DuplicateAccountError,
    NotFoundError,
    StoreError,
)
from clinic_admin.models.user import User

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE_MESSAGE = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


# bcrypt only looks at the first 72 bytes and newer releases refuse longer input.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed_password: str) -> bool:
    if not hashed_password or len(password.encode()) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(password.encode(), hashed_password.encode())


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(STORE_UNAVAILABLE_MESSAGE) from exc

    def find_by_email(self, email: str) -> User | None:
        try:
            return self.db.query(User).filter(User.email == normalize_email(email)).first()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(STORE_UNAVAILABLE_MESSAGE) from exc

    def register(self, email: str, password: str, display_name: str | None = None) -> User:
        normalized = normalize_email(email)
        if not normalized or '@' not in normalized:
            raise AccountValidationError('A valid email address is required.')
        if len(password or '') < config.MIN_PASSWORD_LENGTH:
            raise AccountValidationError(
                f'Password must be at least {config.MIN_PASSWORD_LENGTH} characters.'
            )
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise AccountValidationError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes.')
        if self.find_by_email(normalized) is not None:
            raise DuplicateAccountError('An account with this email already exists.')

        user = User(
            email=normalized,
            hashed_password=hash_password(password),
            display_name=(display_name or '').strip() or None,
        )
        self.db.add(user)
        try:
            self._commit()
        except IntegrityError as exc:
            raise DuplicateAccountError('An account with this email already exists.') from exc
        self.db.refresh(user)
        logger.info('Registered user %s', user.id)
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.find_by_email(email)
        if user is None or not verify_password(password or '', user.hashed_password):
            raise AuthenticationError('Invalid email or password.')
        return user

    def get_profile(self, user_id: str) -> User:
        try:
            user = self.db.get(User, user_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(STORE_UNAVAILABLE_MESSAGE) from exc
        if user is None:
            raise NotFoundError('User', user_id)
        return user

    def update_profile(
        self,
        user_id: str,
        display_name: str | None = None,
        phone_number: str | None = None,
        photo_url: str | None = None,
    ) -> User:
        user = self.get_profile(user_id)
        updates = {
            'display_name': display_name,
            'phone_number': phone_number,
            'photo_url': photo_url,
        }
        for name, value in updates.items():
            if value is not None:
                setattr(user, name, value.strip() or None)
        self._commit()
        self.db.refresh(user)
        return user
