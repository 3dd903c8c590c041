"""Dependencies that hand out external-service adapters.

Adapters are built on first use and kept on ``app.state``; tests replace them
through ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends, Request

from backend.app.core.settings import get_settings
from backend.app.services.invoice_pdf import InvoicePdfPublisher
from backend.app.services.session_verifier import build_session_verifier
from backend.app.services.storage import SupabaseObjectStorage
from backend.app.services.supabase_client import build_service_client


def get_session_verifier(request: Request):
    verifier = getattr(request.app.state, "session_verifier", None)
    if verifier is None:
        verifier = build_session_verifier(get_settings())
        request.app.state.session_verifier = verifier
    return verifier


def build_object_storage(settings) -> Optional[SupabaseObjectStorage]:
    client = build_service_client(settings)
    if client is None:
        return None
    return SupabaseObjectStorage(client, settings.storage_bucket)


def get_object_storage(request: Request) -> Optional[SupabaseObjectStorage]:
    if not hasattr(request.app.state, "object_storage"):
        request.app.state.object_storage = build_object_storage(get_settings())
    return request.app.state.object_storage


def get_pdf_publisher(storage=Depends(get_object_storage)) -> Optional[InvoicePdfPublisher]:
    if storage is None:
        return None
    return InvoicePdfPublisher(storage)
