"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict

from backend.app.schemas.invoice_item import InvoiceItemRead

MONEY_FIELDS = ("subtotal", "tax", "total", "deposit", "remaining_balance")


class InvoiceFields(BaseModel):
    """Raw invoice input.

    Values are kept as sent and parsed by the invoice workflow, so that type
    problems and business-rule problems are reported together in one
    validation error.
    """

    client_id: Any = None
    payment_method_id: Any = None
    status: Any = None
    issue_date: Any = None
    due_date: Any = None
    subtotal: Any = None
    tax: Any = None
    total: Any = None
    deposit: Any = None
    remaining_balance: Any = None
    note: Any = None
    terms: Any = None
    logo_url: Any = None
    signature_url: Any = None
    # List of {description, category, unit_price, quantity, line_total}
    items: Any = None


class InvoiceCreate(InvoiceFields):
    sequence_number: Any = None


class InvoiceUpdate(InvoiceFields):
    """Partial update: only fields present in the request body are applied.

    ``model_fields_set`` tells an omitted field apart from one explicitly set
    to null, and ``items`` present (even empty) replaces the item set.
    """


class ClientSummary(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    public_id: str
    owner_id: str
    client_id: str
    payment_method_id: Optional[str] = None

    sequence_number: int
    invoice_number: str
    status: str
    issue_date: date
    due_date: Optional[date] = None
    paid_date: Optional[date] = None

    subtotal: Decimal
    tax: Decimal
    total: Decimal
    deposit: Decimal
    remaining_balance: Decimal

    note: str
    terms: str
    logo_url: Optional[str] = None
    signature_url: Optional[str] = None

    client: Optional[ClientSummary] = None
    items: List[InvoiceItemRead] = []

    created_at: datetime
    updated_at: datetime


class InvoiceWriteResult(InvoiceRead):
    pdf_url: Optional[str] = None


class PublicInvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_number: str
    sequence_number: int
    status: str
    issue_date: date
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    deposit: Decimal
    remaining_balance: Decimal
    note: str
    terms: str
    logo_url: Optional[str] = None
    signature_url: Optional[str] = None
    client: Optional[ClientSummary] = None
    items: List[InvoiceItemRead] = []
    created_at: datetime


class NextInvoiceNumber(BaseModel):
    sequence_number: int
    invoice_number: str
