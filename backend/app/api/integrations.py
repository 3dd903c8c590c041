"""Invoice routes for API-token integrations.

Every route here is gated on a token permission; session callers are
rejected because they carry no token context.
"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, status

from backend.app.api.invoices import list_invoices_for, to_write_result
from backend.app.dependencies.auth import require_token_permission
from backend.app.dependencies.invoices import get_invoice_workflow
from backend.app.schemas.invoice import InvoiceCreate, InvoiceRead, InvoiceWriteResult
from backend.app.services.invoices import InvoiceWorkflow

router = APIRouter(prefix="/integrations/invoices", tags=["integrations"])


@router.get("/", response_model=List[InvoiceRead], dependencies=[Depends(require_token_permission("read"))])
async def list_invoices(
    client_id: str | None = None,
    status: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    workflow: InvoiceWorkflow = Depends(get_invoice_workflow),
):
    return list_invoices_for(workflow, client_id, status, date_from, date_to)


@router.post(
    "/",
    response_model=InvoiceWriteResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_token_permission("write"))],
)
async def create_invoice(payload: InvoiceCreate, workflow: InvoiceWorkflow = Depends(get_invoice_workflow)):
    return to_write_result(workflow.create(payload))


@router.delete("/{invoice_id}", dependencies=[Depends(require_token_permission("delete"))])
async def delete_invoice(invoice_id: str, workflow: InvoiceWorkflow = Depends(get_invoice_workflow)):
    workflow.delete(invoice_id)
    return {"success": True, "message": "Invoice deleted"}
