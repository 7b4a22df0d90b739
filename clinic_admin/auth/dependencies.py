import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_admin.auth import jwt_handler
from clinic_admin.auth.identity import DoctorIdentity, identity_for_user
from clinic_admin.models.user import User
from clinic_admin.routes.common import DATABASE_UNAVAILABLE_DETAIL, get_db

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=503, detail=DATABASE_UNAVAILABLE_DETAIL) from exc
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_current_doctor(current_user: User = Depends(get_current_user)) -> DoctorIdentity:
    return identity_for_user(current_user)
