"""Factories for Supabase clients.

Two distinct clients exist: the anon-key client that validates end-user
session credentials, and the service-role client used for object storage.
Neither is created at import time; the dependencies in
``backend.app.dependencies.services`` build them on first use.
"""

import logging
from typing import Optional

from supabase import Client, create_client

from backend.app.core.settings import Settings

logger = logging.getLogger(__name__)


def build_anon_client(settings: Settings) -> Optional[Client]:
    if not settings.supabase_url or not settings.supabase_anon_key:
        logger.warning("SUPABASE_URL or SUPABASE_ANON_KEY not set; Supabase session validation unavailable.")
        return None
    return create_client(settings.supabase_url, settings.supabase_anon_key)


def build_service_client(settings: Settings) -> Optional[Client]:
    if not settings.supabase_url or not settings.supabase_service_role_key:
        logger.warning("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not set; object storage disabled.")
        return None
    return create_client(settings.supabase_url, settings.supabase_service_role_key)
