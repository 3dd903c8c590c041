"""Validation of session credentials against the auth backend."""

import logging
from dataclasses import dataclass
from typing import Optional

from backend.app.core.security import decode_session_token
from backend.app.core.settings import Settings
from backend.app.services.supabase_client import build_anon_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: Optional[str] = None


class JwtSessionVerifier:
    """Checks the signature and claims of HS256 session JWTs locally."""

    def get_user(self, token: str) -> Optional[SessionUser]:
        try:
            payload = decode_session_token(token)
        except ValueError:
            return None
        subject = payload.get("sub")
        if not subject:
            return None
        return SessionUser(id=str(subject), email=payload.get("email"))


class SupabaseSessionVerifier:
    """Forwards the credential to Supabase Auth's get-user endpoint."""

    def __init__(self, client):
        self.client = client

    def get_user(self, token: str) -> Optional[SessionUser]:
        try:
            response = self.client.auth.get_user(token)
        except Exception:
            logger.info("Supabase rejected session credential", exc_info=True)
            return None
        user = getattr(response, "user", None)
        if user is None:
            return None
        return SessionUser(id=str(user.id), email=getattr(user, "email", None))


def build_session_verifier(settings: Settings):
    if settings.auth_backend == "supabase":
        client = build_anon_client(settings)
        if client is not None:
            return SupabaseSessionVerifier(client)
        logger.warning("AUTH_BACKEND=supabase but Supabase is not configured; falling back to local JWT checks.")
    return JwtSessionVerifier()
