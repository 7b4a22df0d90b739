from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import field_validator
from sqlalchemy.orm import Session

from clinic_admin.auth import jwt_handler
from clinic_admin.auth.dependencies import get_current_user
from clinic_admin.errors import ClinicError
from clinic_admin.models.user import User
from clinic_admin.routes.common import CamelModel, get_db, to_http_exception
from clinic_admin.services.user_service import UserService, normalize_email

router = APIRouter(tags=['auth'])


class SignupRequest(CamelModel):
    email: str
    password: str
    display_name: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = normalize_email(value)
        if not normalized:
            raise ValueError('Email is required.')
        return normalized


class LoginRequest(CamelModel):
    email: str
    password: str


class UpdateProfileRequest(CamelModel):
    display_name: str | None = None
    phone_number: str | None = None
    photo_url: str | None = None


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = 'bearer'


class ProfileResponse(CamelModel):
    id: str
    email: str
    display_name: str | None = None
    phone_number: str | None = None
    photo_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def issue_token(user: User) -> TokenResponse:
    return TokenResponse(access_token=jwt_handler.create_access_token(subject=user.id))


@router.post('/signup', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    try:
        user = UserService(db).register(data.email, data.password, data.display_name)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc
    return issue_token(user)


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = UserService(db).authenticate(data.email, data.password)
    except ClinicError as exc:
        raise to_http_exception(exc) from exc
    return issue_token(user)


@router.get('/me', response_model=ProfileResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch('/me', response_model=ProfileResponse)
def update_me(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return UserService(db).update_profile(
            current_user.id,
            display_name=data.display_name,
            phone_number=data.phone_number,
            photo_url=data.photo_url,
        )
    except ClinicError as exc:
        raise to_http_exception(exc) from exc
