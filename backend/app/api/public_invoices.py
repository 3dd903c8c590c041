"""Unauthenticated invoice views addressed by public identifier."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from backend.app.core.errors import NotFoundError
from backend.app.db.access import SERVICE_SCOPE, DataAccess
from backend.app.db.session import get_db
from backend.app.dependencies.services import get_pdf_publisher
from backend.app.schemas.invoice import PublicInvoiceRead
from backend.app.services.invoices import InvoiceWorkflow, get_public_invoice

router = APIRouter(prefix="/public/invoices", tags=["public"])


@router.get("/{public_id}", response_model=PublicInvoiceRead)
async def read_public_invoice(public_id: str, db: Session = Depends(get_db)):
    return get_public_invoice(db, public_id)


@router.get("/{public_id}/pdf")
async def redirect_to_public_pdf(public_id: str, db: Session = Depends(get_db), publisher=Depends(get_pdf_publisher)):
    invoice = get_public_invoice(db, public_id)
    workflow = InvoiceWorkflow(DataAccess(db=db, owner_id=invoice.owner_id, scope=SERVICE_SCOPE), publisher)
    url = workflow.pdf_url(invoice)
    if url is None:
        raise NotFoundError("PDF not available")
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
