"""API token management routes.

Tokens are managed from a user session. A caller authenticated with an API
token may only manage tokens when that token carries the ``admin``
permission.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from backend.app.core.errors import AuthorizationError, AuthorizationErrorKind, NotFoundError
from backend.app.crud.crud_api_token import api_token_crud
from backend.app.dependencies.auth import AuthContext, get_auth_context
from backend.app.schemas.api_token import ApiTokenCreate, ApiTokenCreated, ApiTokenRead

router = APIRouter(prefix="/api-tokens", tags=["api-tokens"])


def get_token_manager(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if context.api_token is not None and "admin" not in context.api_token.permissions:
        raise AuthorizationError(
            AuthorizationErrorKind.MISSING_PERMISSION, "Permission 'admin' required to manage API tokens"
        )
    return context


@router.post("/", response_model=ApiTokenCreated, status_code=status.HTTP_201_CREATED)
async def create_api_token(payload: ApiTokenCreate, context: AuthContext = Depends(get_token_manager)):
    return api_token_crud.create(context.access.db, obj_in=payload, owner_id=context.principal.id)


@router.get("/", response_model=List[ApiTokenRead])
async def list_api_tokens(context: AuthContext = Depends(get_token_manager)):
    return api_token_crud.list_for_owner(context.access.db, owner_id=context.principal.id)


@router.post("/sweep")
async def sweep_expired_api_tokens(context: AuthContext = Depends(get_token_manager)):
    deactivated = api_token_crud.sweep_expired(context.access.db)
    return {"deactivated": deactivated}


@router.delete("/")
async def revoke_all_api_tokens(context: AuthContext = Depends(get_token_manager)):
    revoked = api_token_crud.revoke_all(context.access.db, owner_id=context.principal.id)
    return {"revoked": revoked}


@router.delete("/{token_id}", response_model=ApiTokenRead)
async def revoke_api_token(token_id: str, context: AuthContext = Depends(get_token_manager)):
    token = api_token_crud.revoke(context.access.db, token_id=token_id, owner_id=context.principal.id)
    if token is None:
        raise NotFoundError("API token not found")
    return token
