"""Invoice PDF rendering and publishing.

The invoice is first laid out as a small fixed HTML document, then rendered
to an A4 PDF with fpdf2's HTML support. Published files live at
``{owner_id}/{business}-{client}-{number}.pdf`` so that regenerating a PDF
overwrites the same object and old links keep resolving.
"""

import html
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

from fpdf import FPDF

from backend.app.core.time import utc_now
from backend.app.models.business_profile import BusinessProfile
from backend.app.models.client import Client
from backend.app.models.invoice import Invoice
from backend.app.services.billing import quantize_money

logger = logging.getLogger(__name__)

DEFAULT_BRAND_COLOR = "#1e3a8a"
PAID_COLOR = "#218838"
PENDING_COLOR = "#8a6d3b"
_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


@dataclass(frozen=True)
class PdfResult:
    """Outcome of a best-effort PDF publish: a URL or the reason there is none."""

    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None


def build_pdf_filename(invoice: Invoice, client: Optional[Client], profile: Optional[BusinessProfile]) -> str:
    business = _NON_ALNUM_RE.sub("", (profile.business_name if profile and profile.business_name else "Negocio")).lower()
    client_name = _NON_ALNUM_RE.sub("", (client.name if client and client.name else "Cliente")).lower()
    number = invoice.sequence_number or "000"
    return f"{business}-{client_name}-{number}.pdf"


def build_pdf_path(owner_id: str, filename: str) -> str:
    return f"{owner_id}/{filename}"


def with_cache_buster(url: str, now: Optional[datetime] = None) -> str:
    """Append ``t=<epoch millis>`` so browsers and CDNs fetch the latest render."""
    moment = now or utc_now()
    parts = urlsplit(url)
    stamp = urlencode({"t": int(moment.timestamp() * 1000)})
    query = f"{parts.query}&{stamp}" if parts.query else stamp
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _text(value) -> str:
    # Core PDF fonts only cover latin-1
    escaped = html.escape("" if value is None else str(value))
    return escaped.encode("latin-1", "replace").decode("latin-1")


def _money(value) -> str:
    return f"${quantize_money(value):,.2f}"


def _brand_color(profile: Optional[BusinessProfile]) -> str:
    color = profile.brand_color if profile else None
    if color and _HEX_COLOR_RE.match(color):
        return color
    return DEFAULT_BRAND_COLOR


def render_invoice_html(invoice: Invoice, client: Optional[Client], profile: Optional[BusinessProfile]) -> str:
    brand = _brand_color(profile)
    is_paid = invoice.status == "paid"
    badge_label = "PAID" if is_paid else (invoice.status or "pending").upper()
    badge_color = PAID_COLOR if is_paid else PENDING_COLOR

    business_name = profile.business_name if profile and profile.business_name else "Business Name"
    business_lines = [
        profile.address if profile else None,
        profile.phone if profile else None,
        profile.email if profile else None,
    ]
    client_lines = [
        client.address if client else None,
        client.email if client else None,
        client.phone if client else None,
    ]
    terms = invoice.terms or (profile.default_terms if profile else None) or ""
    note = invoice.note or (profile.default_note if profile else None) or ""

    rows = []
    for item in invoice.items:
        rows.append(
            "<tr>"
            f"<td>{_text(item.category or 'Service')}</td>"
            f"<td>{_text(item.description)}</td>"
            f'<td align="right">{item.quantity}</td>'
            f'<td align="right">{_money(item.unit_price)}</td>'
            f'<td align="right">{_money(item.line_total)}</td>'
            "</tr>"
        )

    parts = [
        f'<h1><font color="{brand}">INVOICE</font></h1>',
        f'<p><b>{_text(business_name)}</b><br>'
        + "<br>".join(_text(line) for line in business_lines if line)
        + "</p>",
        f'<font color="{brand}"><b>INVOICE DETAILS</b></font>',
        f"<p>Invoice #: {_text(invoice.invoice_number)}<br>"
        f"Date of Issue: {_text(invoice.issue_date)}<br>"
        f"Due Date: {_text(invoice.due_date or '-')}</p>",
        f'<font color="{brand}"><b>BILL TO</b></font>',
        f"<p>{_text(client.name if client else 'Customer')}<br>"
        + "<br>".join(_text(line) for line in client_lines if line)
        + "</p>",
        '<table border="1" width="100%">'
        "<tr>"
        '<th width="18%">ITEM/SERVICE</th>'
        '<th width="40%">DESCRIPTION</th>'
        '<th width="10%">QTY</th>'
        '<th width="16%">RATE</th>'
        '<th width="16%">AMOUNT</th>'
        "</tr>"
        + "".join(rows)
        + "</table>",
        '<p align="right">'
        f"Subtotal: {_money(invoice.subtotal)}<br>"
        f"Tax: {_money(invoice.tax)}<br>"
        f"<b>TOTAL: {_money(invoice.total)}</b><br>"
        f"Deposit: {_money(invoice.deposit)}<br>"
        f"<b>BALANCE: {_money(invoice.remaining_balance)}</b></p>",
        f'<p align="right"><font color="{badge_color}" size="16"><b>{badge_label}</b></font></p>',
    ]
    if terms:
        parts.append(f'<font color="{brand}"><b>TERMS</b></font><p>{_text(terms)}</p>')
    if note:
        parts.append(f'<font color="{brand}"><b>CONDITIONS/INSTRUCTIONS</b></font><p>{_text(note)}</p>')
    return "\n".join(parts)


def render_invoice_pdf(invoice: Invoice, client: Optional[Client], profile: Optional[BusinessProfile]) -> bytes:
    pdf = FPDF(unit="mm", format="A4")
    pdf.set_auto_page_break(True, margin=15)
    pdf.add_page()
    pdf.set_font("Helvetica", size=10)
    pdf.write_html(render_invoice_html(invoice, client, profile))
    return bytes(pdf.output())


class InvoicePdfPublisher:
    content_type = "application/pdf"

    def __init__(self, storage):
        self.storage = storage

    def publish(self, pdf_bytes: bytes, owner_id: str, filename: str) -> str:
        path = build_pdf_path(owner_id, filename)
        self.storage.upload(path, pdf_bytes, content_type=self.content_type)
        return self.storage.public_url(path)

    def public_url(self, owner_id: str, filename: str) -> str:
        return self.storage.public_url(build_pdf_path(owner_id, filename))

    def remove(self, owner_id: str, filename: str) -> None:
        self.storage.remove([build_pdf_path(owner_id, filename)])
