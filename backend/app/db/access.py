"""Request-scoped data access handles.

A handle is created once per request by the auth dependency and wraps that
request's database session. Session-authenticated callers get a ``user``
scoped handle; API-token callers get a ``service`` handle, which carries no
end-user session, so every query made through it must be filtered by owner.
"""

from dataclasses import dataclass

from sqlalchemy.orm import Query, Session

USER_SCOPE = "user"
SERVICE_SCOPE = "service"


@dataclass
class DataAccess:
    db: Session
    owner_id: str
    scope: str = USER_SCOPE

    def owned(self, model) -> Query:
        """Query ``model`` restricted to rows belonging to the caller."""
        return self.db.query(model).filter(model.owner_id == self.owner_id)
