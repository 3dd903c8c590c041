from typing import Optional

from fastapi import Depends

from backend.app.db.access import DataAccess
from backend.app.dependencies.auth import get_data_access
from backend.app.dependencies.services import get_pdf_publisher
from backend.app.services.invoice_pdf import InvoicePdfPublisher
from backend.app.services.invoices import InvoiceWorkflow


def get_invoice_workflow(
    access: DataAccess = Depends(get_data_access),
    publisher: Optional[InvoicePdfPublisher] = Depends(get_pdf_publisher),
) -> InvoiceWorkflow:
    return InvoiceWorkflow(access, publisher)
