import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from clinic_admin.auth import jwt_handler
from clinic_admin.auth.dependencies import get_current_doctor, get_current_user
from clinic_admin.database import Base
from clinic_admin.models.user import User
from clinic_admin.routes.auth_routes import (
    LoginRequest,
    SignupRequest,
    UpdateProfileRequest,
    login,
    me,
    signup,
    update_me,
)
from clinic_admin.routes.common import DATABASE_UNAVAILABLE_DETAIL


@pytest.fixture
def auth_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[User.__table__])


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_signup_request_normalizes_email() -> None:
    request = SignupRequest(email=' Doctor@Clinic.Example ', password='longenough')

    assert request.email == 'doctor@clinic.example'


def test_signup_issues_token_for_new_user(auth_db) -> None:
    response = signup(SignupRequest(email='doctor@clinic.example', password='longenough'), db=auth_db)

    payload = jwt_handler.decode_access_token(response.access_token)
    user = auth_db.query(User).filter(User.email == 'doctor@clinic.example').first()
    assert payload['sub'] == user.id
    assert response.token_type == 'bearer'


def test_signup_with_existing_email_conflicts(auth_db) -> None:
    signup(SignupRequest(email='doctor@clinic.example', password='longenough'), db=auth_db)

    with pytest.raises(HTTPException) as exception_info:
        signup(SignupRequest(email='doctor@clinic.example', password='longenough'), db=auth_db)

    assert exception_info.value.status_code == 409


def test_login_rejects_wrong_password(auth_db) -> None:
    signup(SignupRequest(email='doctor@clinic.example', password='longenough'), db=auth_db)

    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email='doctor@clinic.example', password='incorrect'), db=auth_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid email or password.'


def test_token_resolves_to_current_user_and_doctor_identity(auth_db) -> None:
    token = signup(
        SignupRequest(email='doctor@clinic.example', password='longenough', display_name='Dr. Rivera'),
        db=auth_db,
    ).access_token

    user = get_current_user(credentials=bearer(token), db=auth_db)
    identity = get_current_doctor(current_user=user)

    assert me(current_user=user).email == 'doctor@clinic.example'
    assert identity.doctor_id == user.id
    assert identity.doctor_name == 'Dr. Rivera'


def test_doctor_name_falls_back_to_email(auth_db) -> None:
    token = signup(SignupRequest(email='doctor@clinic.example', password='longenough'), db=auth_db).access_token

    user = get_current_user(credentials=bearer(token), db=auth_db)

    assert get_current_doctor(current_user=user).doctor_name == 'doctor@clinic.example'


@pytest.mark.parametrize(
    ('token', 'detail'),
    [
        ('not-a-jwt', 'Invalid token'),
        (jwt_handler.create_access_token(subject=''), 'Invalid token subject'),
        (jwt_handler.create_access_token(subject='missing-user'), 'User not found'),
    ],
)
def test_get_current_user_rejects_bad_tokens(auth_db, token: str, detail: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=bearer(token), db=auth_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == detail


def test_update_me_merges_profile_fields(auth_db) -> None:
    token = signup(SignupRequest(email='doctor@clinic.example', password='longenough'), db=auth_db).access_token
    user = get_current_user(credentials=bearer(token), db=auth_db)

    updated = update_me(UpdateProfileRequest(display_name='Dr. Rivera'), current_user=user, db=auth_db)

    assert updated.display_name == 'Dr. Rivera'
    assert updated.email == 'doctor@clinic.example'


def broken_database(*args, **kwargs):
    raise OperationalError('SELECT', {}, Exception('could not connect to server'))


def test_login_during_database_outage_is_service_unavailable(auth_db, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(auth_db, 'query', broken_database)

    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email='doctor@clinic.example', password='longenough'), db=auth_db)

    assert exception_info.value.status_code == 503
    assert exception_info.value.detail == DATABASE_UNAVAILABLE_DETAIL


def test_token_lookup_during_database_outage_is_service_unavailable(
    auth_db, monkeypatch: pytest.MonkeyPatch
) -> None:
    token = jwt_handler.create_access_token(subject='some-user')
    monkeypatch.setattr(auth_db, 'get', broken_database)

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=bearer(token), db=auth_db)

    assert exception_info.value.status_code == 503
