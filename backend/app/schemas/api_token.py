"""API token schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

TOKEN_PERMISSIONS = ("read", "write", "delete", "admin")
DEFAULT_TOKEN_PERMISSIONS = ["read", "write"]


class ApiTokenCreate(BaseModel):
    name: Optional[str] = None
    duration_days: Optional[int] = None
    permissions: Optional[List[str]] = None
    description: Optional[str] = None


class ApiTokenRead(BaseModel):
    id: str
    name: str
    permissions: List[str]
    active: bool
    description: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    last_used_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ApiTokenCreated(ApiTokenRead):
    # Only returned once, at creation
    secret: str
