# Ledgerly billing backend entrypoint.

import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.api import api_tokens
from backend.app.api import integrations
from backend.app.api import invoices
from backend.app.api import me
from backend.app.api import public_invoices
from backend.app.core.errors import UpstreamError, register_exception_handlers
from backend.app.core.log_config import configure_logging
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import engine, get_db

configure_logging()
logger = logging.getLogger(__name__)

settings = get_settings()
app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(me.router)
app.include_router(api_tokens.router)
app.include_router(invoices.router)
app.include_router(integrations.router)
app.include_router(public_invoices.router)


@app.get("/")
def read_root():
    return {"app": "Ledgerly backend", "status": "ok"}


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise UpstreamError("Database unavailable") from exc
    return {"status": "ok"}


@app.on_event("startup")
def create_tables():
    # Local SQLite only; the hosted Postgres schema is managed outside the app
    if settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    logger.info("%s started (environment=%s)", settings.app_name, settings.environment)
