"""Session credential helpers: JWT creation and validation.

Session credentials are the HS256 JWTs issued by the external auth service.
``create_session_token`` mints the same shape for local development
and tests.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

import jwt

from backend.app.core.settings import get_settings
from backend.app.core.time import utc_now


def create_session_token(user_id: str, email: Optional[str] = None, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    expire_delta = timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.session_token_expire_minutes
    )
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "aud": settings.session_jwt_audience,
        "role": "authenticated",
        "exp": utc_now() + expire_delta,
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.session_jwt_secret, algorithm=settings.session_jwt_algorithm)


def decode_session_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.session_jwt_secret,
            algorithms=[settings.session_jwt_algorithm],
            audience=settings.session_jwt_audience,
        )
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Expired token") from exc
    except jwt.InvalidTokenError as exc:
        raise ValueError("Invalid token") from exc
