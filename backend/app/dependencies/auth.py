"""Authentication dependencies: resolve the caller behind a bearer credential.

Two kinds of credential are accepted on the same ``Authorization`` header:

* session credentials, validated by the auth backend; the request gets a
  ``user`` scoped data handle;
* API tokens issued by ``/api-tokens``; the request gets a ``service`` scoped
  data handle plus the token context. Handlers must filter by owner id
  themselves on that path.

``require_token_permission`` only applies to API-token requests: a session
caller never carries token permissions and is rejected by it.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from backend.app.core.credentials import ApiTokenCredential, Credential, classify_credential, extract_bearer
from backend.app.core.errors import AuthenticationError, AuthErrorKind, AuthorizationError, AuthorizationErrorKind
from backend.app.crud.crud_api_token import api_token_crud
from backend.app.db.access import SERVICE_SCOPE, USER_SCOPE, DataAccess
from backend.app.db.session import get_db
from backend.app.dependencies.services import get_session_verifier
from backend.app.models.user import User
from backend.app.schemas.principal import ActiveToken, Principal

SESSION_METHOD = "session"
API_TOKEN_METHOD = "api_token"


@dataclass
class AuthContext:
    principal: Principal
    access: DataAccess
    method: str
    api_token: Optional[ActiveToken] = None


def _principal_from_user(user: User, *, include_business: bool) -> Principal:
    return Principal(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        business_id=user.business_id if include_business else None,
    )


def resolve_session(db: Session, token: str, verifier) -> AuthContext:
    session_user = verifier.get_user(token)
    if session_user is None:
        raise AuthenticationError(AuthErrorKind.INVALID_SESSION)
    user = db.query(User).filter(User.id == session_user.id).first()
    if user is None:
        raise AuthenticationError(AuthErrorKind.USER_NOT_FOUND)
    return AuthContext(
        principal=_principal_from_user(user, include_business=True),
        access=DataAccess(db=db, owner_id=user.id, scope=USER_SCOPE),
        method=SESSION_METHOD,
    )


def resolve_api_token(db: Session, secret: str) -> AuthContext:
    token = api_token_crud.find_by_secret(db, secret=secret)
    if token is None:
        raise AuthenticationError(AuthErrorKind.INVALID_OR_EXPIRED_TOKEN)
    api_token_crud.touch_last_used(db, token_id=token.id)
    user = db.query(User).filter(User.id == token.owner_id).first()
    if user is None:
        raise AuthenticationError(AuthErrorKind.USER_NOT_FOUND)
    return AuthContext(
        # API tokens are not business scoped
        principal=_principal_from_user(user, include_business=False),
        access=DataAccess(db=db, owner_id=user.id, scope=SERVICE_SCOPE),
        method=API_TOKEN_METHOD,
        api_token=ActiveToken(
            id=token.id,
            name=token.name,
            permissions=list(token.permissions or []),
            expires_at=token.expires_at,
        ),
    )


def resolve_credential(db: Session, credential: Credential, verifier) -> AuthContext:
    if isinstance(credential, ApiTokenCredential):
        return resolve_api_token(db, credential.secret)
    return resolve_session(db, credential.token, verifier)


def get_auth_context(
    request: Request,
    db: Session = Depends(get_db),
    verifier=Depends(get_session_verifier),
    authorization: str | None = Header(default=None),
) -> AuthContext:
    raw = extract_bearer(authorization)
    if raw is None:
        raise AuthenticationError(AuthErrorKind.MISSING_CREDENTIAL)
    context = resolve_credential(db, classify_credential(raw), verifier)
    request.state.principal = context.principal
    return context


def get_current_principal(context: AuthContext = Depends(get_auth_context)) -> Principal:
    return context.principal


def get_data_access(context: AuthContext = Depends(get_auth_context)) -> DataAccess:
    return context.access


def require_token_permission(permission: str):
    def dependency(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if context.api_token is None:
            raise AuthorizationError(
                AuthorizationErrorKind.MISSING_PERMISSION, "An API token is required for this operation"
            )
        if permission not in context.api_token.permissions:
            raise AuthorizationError(
                AuthorizationErrorKind.MISSING_PERMISSION, f"Permission '{permission}' required"
            )
        return context

    return dependency
