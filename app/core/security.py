import hashlib
import secrets
from typing import Any

import jwt

from app.core.config import Settings

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp_code() -> str:
    """Draw a six digit code uniformly from [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def hash_code(raw_code: str) -> str:
    return hashlib.sha256(raw_code.encode("utf-8")).hexdigest()


def decode_access_token(raw_token: str, settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {"require": ["sub", "exp"]}
    if settings.jwt_audience is None:
        options["verify_aud"] = False
    return jwt.decode(
        raw_token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algo],
        audience=settings.jwt_audience,
        options=options,
    )
