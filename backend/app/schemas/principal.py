"""Resolved caller identity attached to each authenticated request."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ActiveToken(BaseModel):
    id: str
    name: str
    permissions: List[str]
    expires_at: datetime


class Principal(BaseModel):
    id: str
    email: str
    display_name: Optional[str] = None
    business_id: Optional[str] = None


class PrincipalRead(Principal):
    auth_method: str
    api_token: Optional[ActiveToken] = None
