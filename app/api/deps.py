import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.security import decode_access_token
from app.models.households import User


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise _unauthorized("Unauthorized")

    scheme, _, param = auth_header.strip().partition(" ")
    if scheme.lower() != "bearer" or not param.strip():
        raise _unauthorized("Invalid authorization header")
    return param.strip()


def _authenticate_token(raw_token: str, db: Session, settings: Settings) -> User:
    try:
        payload = decode_access_token(raw_token, settings)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Session expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Unauthorized")

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise _unauthorized("Invalid token payload")

    user = db.get(User, sub)
    if not user:
        raise _unauthorized("Unauthorized")
    return user


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    return _authenticate_token(_extract_bearer_token(request), db, settings)
