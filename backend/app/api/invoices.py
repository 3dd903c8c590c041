"""Invoice routes for business owners."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from backend.app.core.errors import NotFoundError, ValidationError
from backend.app.dependencies.invoices import get_invoice_workflow
from backend.app.models.invoice import INVOICE_STATUSES, format_invoice_number
from backend.app.schemas.invoice import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceUpdate,
    InvoiceWriteResult,
    NextInvoiceNumber,
)
from backend.app.services.invoices import InvoiceOutcome, InvoiceWorkflow

router = APIRouter(prefix="/invoices", tags=["invoices"])


def to_write_result(outcome: InvoiceOutcome) -> InvoiceWriteResult:
    result = InvoiceWriteResult.model_validate(outcome.invoice)
    return result.model_copy(update={"pdf_url": outcome.pdf.url})


def list_invoices_for(
    workflow: InvoiceWorkflow,
    client_id: Optional[str] = None,
    status_filter: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
):
    if status_filter is not None and status_filter not in INVOICE_STATUSES:
        raise ValidationError([f"status must be one of: {', '.join(INVOICE_STATUSES)}"])
    return workflow.list(client_id=client_id, status=status_filter, date_from=date_from, date_to=date_to)


@router.get("/", response_model=List[InvoiceRead])
async def list_invoices(
    client_id: str | None = None,
    status: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    workflow: InvoiceWorkflow = Depends(get_invoice_workflow),
):
    return list_invoices_for(workflow, client_id, status, date_from, date_to)


@router.post("/", response_model=InvoiceWriteResult, status_code=status.HTTP_201_CREATED)
async def create_invoice(payload: InvoiceCreate, workflow: InvoiceWorkflow = Depends(get_invoice_workflow)):
    return to_write_result(workflow.create(payload))


@router.get("/next-number", response_model=NextInvoiceNumber)
async def get_next_invoice_number(workflow: InvoiceWorkflow = Depends(get_invoice_workflow)):
    sequence_number = workflow.next_sequence_number()
    return NextInvoiceNumber(sequence_number=sequence_number, invoice_number=format_invoice_number(sequence_number))


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(invoice_id: str, workflow: InvoiceWorkflow = Depends(get_invoice_workflow)):
    return workflow.get(invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceWriteResult)
async def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    workflow: InvoiceWorkflow = Depends(get_invoice_workflow),
):
    return to_write_result(workflow.update(invoice_id, payload))


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: str, workflow: InvoiceWorkflow = Depends(get_invoice_workflow)):
    workflow.delete(invoice_id)
    return {"success": True, "message": "Invoice deleted"}


@router.post("/{invoice_id}/regenerate-pdf", response_model=InvoiceWriteResult)
async def regenerate_invoice_pdf(invoice_id: str, workflow: InvoiceWorkflow = Depends(get_invoice_workflow)):
    invoice = workflow.get(invoice_id)
    return to_write_result(InvoiceOutcome(invoice=invoice, pdf=workflow.publish_pdf(invoice)))


@router.get("/{invoice_id}/pdf")
async def redirect_to_invoice_pdf(invoice_id: str, workflow: InvoiceWorkflow = Depends(get_invoice_workflow)):
    invoice = workflow.get(invoice_id)
    url = workflow.pdf_url(invoice)
    if url is None:
        raise NotFoundError("PDF not available")
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
