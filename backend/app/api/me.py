"""Endpoints describing the authenticated caller."""

from fastapi import APIRouter, Depends

from backend.app.dependencies.auth import AuthContext, get_auth_context
from backend.app.schemas.principal import PrincipalRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=PrincipalRead)
async def read_me(context: AuthContext = Depends(get_auth_context)):
    return PrincipalRead(
        **context.principal.model_dump(),
        auth_method=context.method,
        api_token=context.api_token,
    )
