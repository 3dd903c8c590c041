"""Bearer credential classification.

API tokens issued by this service are 32 random bytes rendered as 64 hex
characters. Anything else presented as a bearer credential is treated as a
session credential and handed to the auth backend.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

API_TOKEN_LENGTH = 64
_API_TOKEN_RE = re.compile(r"^[a-f0-9]+$", re.IGNORECASE)


@dataclass(frozen=True)
class ApiTokenCredential:
    secret: str


@dataclass(frozen=True)
class SessionCredential:
    token: str


Credential = Union[ApiTokenCredential, SessionCredential]


def classify_credential(raw: str) -> Credential:
    if len(raw) == API_TOKEN_LENGTH and _API_TOKEN_RE.match(raw):
        return ApiTokenCredential(secret=raw)
    return SessionCredential(token=raw)


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Strip an optional ``Bearer `` prefix; return None when nothing usable is left."""
    if not authorization:
        return None
    value = authorization.strip()
    if value[:7].lower() == "bearer ":
        value = value[7:].strip()
    return value or None
