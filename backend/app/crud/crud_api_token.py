"""Storage and lifecycle operations for API tokens."""

import logging
import secrets
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import ValidationError
from backend.app.core.time import as_aware, utc_now
from backend.app.models.api_token import ApiToken
from backend.app.schemas.api_token import DEFAULT_TOKEN_PERMISSIONS, TOKEN_PERMISSIONS, ApiTokenCreate

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MIN_DURATION_DAYS = 1
MAX_DURATION_DAYS = 365


def validate_token_request(obj_in: ApiTokenCreate) -> List[str]:
    """Return every rule the request breaks, not just the first one."""
    errors = []
    name = obj_in.name
    if not name or not name.strip():
        errors.append("name is required")
    elif len(name.strip()) > MAX_NAME_LENGTH:
        errors.append(f"name must be at most {MAX_NAME_LENGTH} characters")

    days = obj_in.duration_days
    if days is None:
        errors.append("duration_days is required")
    elif not MIN_DURATION_DAYS <= days <= MAX_DURATION_DAYS:
        errors.append(f"duration_days must be an integer between {MIN_DURATION_DAYS} and {MAX_DURATION_DAYS}")

    if obj_in.permissions is not None:
        invalid = [p for p in obj_in.permissions if p not in TOKEN_PERMISSIONS]
        if invalid:
            errors.append(
                f"invalid permissions: {', '.join(invalid)}; allowed: {', '.join(TOKEN_PERMISSIONS)}"
            )

    if obj_in.description is not None and len(obj_in.description.strip()) > MAX_DESCRIPTION_LENGTH:
        errors.append(f"description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    return errors


def generate_secret() -> str:
    return secrets.token_bytes(32).hex()


class CRUDApiToken:
    def create(self, db: Session, *, obj_in: ApiTokenCreate, owner_id: str) -> ApiToken:
        """Persist a new token. The returned object is the only one that exposes ``secret`` to callers."""
        errors = validate_token_request(obj_in)
        if errors:
            raise ValidationError(errors)

        now = utc_now()
        permissions = obj_in.permissions if obj_in.permissions is not None else list(DEFAULT_TOKEN_PERMISSIONS)
        description = obj_in.description.strip() if obj_in.description else None
        token = ApiToken(
            owner_id=owner_id,
            name=obj_in.name.strip(),
            secret=generate_secret(),
            permissions=list(dict.fromkeys(permissions)),
            active=True,
            description=description or None,
            created_at=now,
            expires_at=now + timedelta(days=obj_in.duration_days),
            last_used_at=None,
        )
        db.add(token)
        db.commit()
        db.refresh(token)
        logger.info("Created API token %s for user %s", token.id, owner_id)
        return token

    def get(self, db: Session, *, token_id: str, owner_id: str) -> Optional[ApiToken]:
        return db.query(ApiToken).filter(ApiToken.id == token_id, ApiToken.owner_id == owner_id).first()

    def find_by_secret(self, db: Session, *, secret: str) -> Optional[ApiToken]:
        """Return the active, unexpired token for ``secret`` or None.

        An expired token found here is deactivated on the spot.
        """
        token = db.query(ApiToken).filter(ApiToken.secret == secret, ApiToken.active.is_(True)).first()
        if token is None:
            return None
        if as_aware(token.expires_at) <= utc_now():
            token.active = False
            db.commit()
            logger.info("API token %s expired; deactivated on lookup", token.id)
            return None
        return token

    def list_for_owner(self, db: Session, *, owner_id: str) -> List[ApiToken]:
        return (
            db.query(ApiToken)
            .filter(ApiToken.owner_id == owner_id)
            .order_by(ApiToken.created_at.desc())
            .all()
        )

    def touch_last_used(self, db: Session, *, token_id: str) -> None:
        try:
            db.query(ApiToken).filter(ApiToken.id == token_id).update(
                {ApiToken.last_used_at: utc_now()}, synchronize_session=False
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Could not update last_used_at for API token %s", token_id, exc_info=True)

    def revoke(self, db: Session, *, token_id: str, owner_id: str) -> Optional[ApiToken]:
        token = self.get(db, token_id=token_id, owner_id=owner_id)
        if token is None:
            return None
        token.active = False
        db.commit()
        db.refresh(token)
        logger.info("Revoked API token %s for user %s", token_id, owner_id)
        return token

    def revoke_all(self, db: Session, *, owner_id: str) -> int:
        count = (
            db.query(ApiToken)
            .filter(ApiToken.owner_id == owner_id, ApiToken.active.is_(True))
            .update({ApiToken.active: False}, synchronize_session=False)
        )
        db.commit()
        logger.info("Revoked %s API token(s) for user %s", count, owner_id)
        return count

    def sweep_expired(self, db: Session) -> int:
        count = (
            db.query(ApiToken)
            .filter(ApiToken.active.is_(True), ApiToken.expires_at <= utc_now())
            .update({ApiToken.active: False}, synchronize_session=False)
        )
        db.commit()
        if count:
            logger.info("Deactivated %s expired API token(s)", count)
        return count


api_token_crud = CRUDApiToken()
