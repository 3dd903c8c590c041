"""Invoice workflow: numbering, persistence and PDF side effects.

Invoices and their line items are written in one transaction. PDF rendering
and upload run after the commit and never fail the surrounding operation;
their outcome is reported through ``PdfResult``.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import NotFoundError, UpstreamError, ValidationError
from backend.app.core.time import utc_today
from backend.app.db.access import DataAccess
from backend.app.models.business_profile import BusinessProfile
from backend.app.models.client import Client
from backend.app.models.invoice import INVOICE_STATUSES, SEQUENCE_CONSTRAINT, Invoice
from backend.app.models.invoice_item import InvoiceItem
from backend.app.schemas.invoice import MONEY_FIELDS, InvoiceCreate, InvoiceUpdate
from backend.app.services.billing import quantize_money, recalculate_invoice_totals
from backend.app.services.invoice_pdf import (
    InvoicePdfPublisher,
    PdfResult,
    build_pdf_filename,
    render_invoice_pdf,
    with_cache_buster,
)

logger = logging.getLogger(__name__)

MAX_NOTE_LENGTH = 1000
MAX_TERMS_LENGTH = 2000
MAX_URL_LENGTH = 1024
MAX_ITEM_DESCRIPTION_LENGTH = 500
MAX_ITEM_CATEGORY_LENGTH = 100
# Attempts at claiming the next sequence number when concurrent creates collide
SEQUENCE_RETRIES = 3

NON_NULLABLE_FIELDS = ("client_id", "status", "issue_date") + MONEY_FIELDS
TEXT_FIELD_LIMITS = {
    "note": MAX_NOTE_LENGTH,
    "terms": MAX_TERMS_LENGTH,
    "logo_url": MAX_URL_LENGTH,
    "signature_url": MAX_URL_LENGTH,
}


def _is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _parse_money(value: Any, label: str, errors: List[str]) -> Optional[Decimal]:
    number = None
    if not isinstance(value, bool):
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            number = None
    if number is None or not number.is_finite() or number < 0:
        errors.append(f"{label} must be a number greater than or equal to 0")
        return None
    return number


def _parse_positive_int(value: Any, message: str, errors: List[str]) -> Optional[int]:
    number = None
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value)
    if number is None or number <= 0:
        errors.append(message)
        return None
    return number


def _parse_date(value: Any, label: str, errors: List[str]) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    errors.append(f"{label} must be a date in YYYY-MM-DD format")
    return None


def _parse_text(value: Any, label: str, max_length: int, errors: List[str]) -> Optional[str]:
    if not isinstance(value, str):
        errors.append(f"{label} must be a string")
        return None
    if len(value) > max_length:
        errors.append(f"{label} must be at most {max_length} characters")
        return None
    return value


def _parse_field(name: str, raw: Any, errors: List[str]) -> Any:
    if name in ("client_id", "payment_method_id"):
        if not _is_uuid(raw):
            errors.append(f"{name} must be a valid UUID")
            return None
        return raw
    if name == "status":
        if not isinstance(raw, str) or raw not in INVOICE_STATUSES:
            errors.append(f"status must be one of: {', '.join(INVOICE_STATUSES)}")
            return None
        return raw
    if name in ("issue_date", "due_date"):
        return _parse_date(raw, name, errors)
    if name in MONEY_FIELDS:
        return _parse_money(raw, name, errors)
    if name in TEXT_FIELD_LIMITS:
        return _parse_text(raw, name, TEXT_FIELD_LIMITS[name], errors)
    if name == "sequence_number":
        return _parse_positive_int(raw, "sequence_number must be a positive integer", errors)
    return raw


def validate_invoice_fields(payload: InvoiceCreate | InvoiceUpdate, *, partial: bool) -> Tuple[dict, List[str]]:
    """Parse the invoice fields and check them against the invoice rules.

    Returns the parsed values together with every problem found. A partial
    update only parses, and only returns, the fields present in the request.
    """
    errors: List[str] = []
    values = {}
    provided = payload.model_fields_set
    for name in type(payload).model_fields:
        if name == "items" or (partial and name not in provided):
            continue
        raw = getattr(payload, name)
        if raw is None:
            if partial and name in NON_NULLABLE_FIELDS:
                errors.append(f"{name} cannot be null")
            elif name == "client_id":
                errors.append("client_id is required")
            values[name] = None
            continue
        values[name] = _parse_field(name, raw, errors)
    return values, errors


def validate_invoice_items(items: Any, *, allow_empty: bool) -> Tuple[List[dict], List[str]]:
    """Parse raw line items; every problem is reported with its ``items[i]`` path."""
    if items is None or (isinstance(items, list) and not items and not allow_empty):
        return [], ["items must contain at least one item"]
    if not isinstance(items, list):
        return [], ["items must be a list of items"]

    parsed = []
    errors: List[str] = []
    for index, item in enumerate(items):
        prefix = f"items[{index}]"
        if not isinstance(item, dict):
            errors.append(f"{prefix} must be an object")
            continue

        description = item.get("description")
        if not isinstance(description, str) or not description.strip():
            errors.append(f"{prefix}.description is required")
        elif len(description.strip()) > MAX_ITEM_DESCRIPTION_LENGTH:
            errors.append(f"{prefix}.description must be at most {MAX_ITEM_DESCRIPTION_LENGTH} characters")

        category = item.get("category")
        if category is not None:
            if not isinstance(category, str):
                errors.append(f"{prefix}.category must be a string")
            elif len(category.strip()) > MAX_ITEM_CATEGORY_LENGTH:
                errors.append(f"{prefix}.category must be at most {MAX_ITEM_CATEGORY_LENGTH} characters")

        parsed.append(
            {
                "description": description.strip() if isinstance(description, str) else None,
                "category": category.strip() if isinstance(category, str) and category.strip() else None,
                "unit_price": _parse_money(item.get("unit_price"), f"{prefix}.unit_price", errors),
                "quantity": _parse_positive_int(
                    item.get("quantity"), f"{prefix}.quantity must be an integer greater than 0", errors
                ),
                "line_total": _parse_money(item.get("line_total"), f"{prefix}.line_total", errors),
            }
        )
    return parsed, errors


def _build_items(items: List[dict]) -> List[InvoiceItem]:
    return [
        InvoiceItem(
            position=position,
            description=item["description"],
            category=item["category"],
            unit_price=quantize_money(item["unit_price"]),
            quantity=item["quantity"],
            line_total=quantize_money(item["line_total"]),
        )
        for position, item in enumerate(items)
    ]


def _is_sequence_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    # Postgres names the constraint; SQLite lists its columns instead
    return SEQUENCE_CONSTRAINT in message or "facturas.owner_id, facturas.sequence_number" in message


def get_public_invoice(db: Session, public_id: str) -> Invoice:
    """Look up an invoice by its public identifier, without any owner scope."""
    if not _is_uuid(public_id):
        raise ValidationError(["public_id must be a valid UUID"])
    invoice = (
        db.query(Invoice)
        .options(selectinload(Invoice.items), selectinload(Invoice.client))
        .filter(Invoice.public_id == public_id)
        .first()
    )
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


@dataclass
class InvoiceOutcome:
    invoice: Invoice
    pdf: PdfResult = field(default_factory=PdfResult)


class InvoiceWorkflow:
    def __init__(self, access: DataAccess, publisher: Optional[InvoicePdfPublisher] = None):
        self.access = access
        self.db = access.db
        self.owner_id = access.owner_id
        self.publisher = publisher

    # Lookups

    def next_sequence_number(self) -> int:
        current = (
            self.db.query(func.max(Invoice.sequence_number))
            .filter(Invoice.owner_id == self.owner_id)
            .scalar()
        )
        return (current or 0) + 1

    def sequence_number_exists(self, sequence_number: int) -> bool:
        return (
            self.access.owned(Invoice).filter(Invoice.sequence_number == sequence_number).first()
            is not None
        )

    def get(self, invoice_id: str) -> Invoice:
        invoice = None
        if _is_uuid(invoice_id):
            invoice = (
                self.access.owned(Invoice)
                .options(selectinload(Invoice.items), selectinload(Invoice.client))
                .filter(Invoice.id == invoice_id)
                .first()
            )
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    def list(
        self,
        *,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Invoice]:
        query = self.access.owned(Invoice).options(selectinload(Invoice.items), selectinload(Invoice.client))
        if client_id:
            query = query.filter(Invoice.client_id == client_id)
        if status:
            query = query.filter(Invoice.status == status)
        if date_from:
            query = query.filter(Invoice.issue_date >= date_from)
        if date_to:
            query = query.filter(Invoice.issue_date <= date_to)
        return query.order_by(Invoice.created_at.desc(), Invoice.sequence_number.desc()).all()

    def business_profile(self) -> Optional[BusinessProfile]:
        return self.access.owned(BusinessProfile).first()

    def _owned_client(self, client_id: str) -> Client:
        client = self.access.owned(Client).filter(Client.id == client_id).first()
        if client is None:
            raise NotFoundError("Client not found")
        return client

    # Mutations

    def create(self, payload: InvoiceCreate) -> InvoiceOutcome:
        fields, errors = validate_invoice_fields(payload, partial=False)
        items, item_errors = validate_invoice_items(payload.items, allow_empty=False)
        errors += item_errors
        if errors:
            raise ValidationError(errors)

        client = self._owned_client(fields["client_id"])
        explicit_number = fields.get("sequence_number")
        if explicit_number is not None and self.sequence_number_exists(explicit_number):
            raise ValidationError([f"invoice number {explicit_number} already exists"])

        profile = self.business_profile()
        values = self._creation_values(fields, items, profile)

        for attempt in range(1, SEQUENCE_RETRIES + 1):
            sequence_number = explicit_number or self.next_sequence_number()
            invoice = Invoice(owner_id=self.owner_id, client_id=client.id, sequence_number=sequence_number, **values)
            invoice.items = _build_items(items)
            try:
                self.db.add(invoice)
                self.db.flush()
                self.db.commit()
                break
            except IntegrityError as exc:
                self.db.rollback()
                if not _is_sequence_conflict(exc):
                    raise UpstreamError("Could not save invoice") from exc
                if explicit_number is not None:
                    raise ValidationError([f"invoice number {explicit_number} already exists"]) from exc
                if attempt == SEQUENCE_RETRIES:
                    raise UpstreamError("Could not allocate an invoice number") from exc
                logger.warning(
                    "Invoice number %s taken for user %s; retrying (%s/%s)",
                    sequence_number,
                    self.owner_id,
                    attempt,
                    SEQUENCE_RETRIES,
                )
            except SQLAlchemyError as exc:
                self.db.rollback()
                raise UpstreamError("Could not save invoice") from exc

        logger.info(
            "Created invoice %s (#%s) for user %s (%s scope)",
            invoice.id,
            invoice.sequence_number,
            self.owner_id,
            self.access.scope,
        )
        invoice = self.get(invoice.id)
        return InvoiceOutcome(invoice=invoice, pdf=self.publish_pdf(invoice, profile=profile))

    def _creation_values(self, fields: dict, items: List[dict], profile: Optional[BusinessProfile]) -> dict:
        status = fields.get("status") or "pending"
        totals = recalculate_invoice_totals(
            (item["line_total"] for item in items),
            **{name: fields.get(name) for name in MONEY_FIELDS},
        )
        note = fields.get("note")
        terms = fields.get("terms")
        return {
            "payment_method_id": fields.get("payment_method_id"),
            "status": status,
            "issue_date": fields.get("issue_date") or utc_today(),
            "due_date": fields.get("due_date"),
            "paid_date": utc_today() if status == "paid" else None,
            "note": note if note is not None else (profile.default_note if profile else None) or "",
            "terms": terms if terms is not None else (profile.default_terms if profile else None) or "",
            "logo_url": fields.get("logo_url") or (profile.logo_url if profile else None),
            "signature_url": fields.get("signature_url") or (profile.signature_url if profile else None),
            **totals,
        }

    def update(self, invoice_id: str, payload: InvoiceUpdate) -> InvoiceOutcome:
        replace_items = "items" in payload.model_fields_set
        changes, errors = validate_invoice_fields(payload, partial=True)
        items: List[dict] = []
        if replace_items:
            items, item_errors = validate_invoice_items(payload.items, allow_empty=True)
            errors += item_errors
        if errors:
            raise ValidationError(errors)

        invoice = self.get(invoice_id)
        if "client_id" in changes and changes["client_id"] != invoice.client_id:
            self._owned_client(changes["client_id"])

        profile = self.business_profile()
        previous_filename = build_pdf_filename(invoice, invoice.client, profile)

        if changes.get("status") == "paid":
            changes["paid_date"] = utc_today()
        for name in ("note", "terms"):
            if name in changes and changes[name] is None:
                changes[name] = ""
        for name in MONEY_FIELDS:
            if name in changes:
                changes[name] = quantize_money(changes[name])

        try:
            for name, value in changes.items():
                setattr(invoice, name, value)
            if replace_items:
                # delete-orphan cascade removes the old rows
                invoice.items = _build_items(items)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise UpstreamError("Could not update invoice") from exc

        logger.info(
            "Updated invoice %s for user %s (%s scope, fields=%s)",
            invoice.id,
            self.owner_id,
            self.access.scope,
            sorted(changes),
        )
        self.db.expire_all()
        invoice = self.get(invoice_id)
        result = self.publish_pdf(invoice, profile=profile)
        new_filename = build_pdf_filename(invoice, invoice.client, profile)
        if result.ok and new_filename != previous_filename:
            self._remove_pdf(previous_filename, invoice.id)
        return InvoiceOutcome(invoice=invoice, pdf=result)

    def delete(self, invoice_id: str) -> None:
        invoice = self.get(invoice_id)
        filename = build_pdf_filename(invoice, invoice.client, self.business_profile())
        try:
            # delete-orphan cascade removes the line items
            self.db.delete(invoice)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise UpstreamError("Could not delete invoice") from exc
        logger.info("Deleted invoice %s for user %s (%s scope)", invoice_id, self.owner_id, self.access.scope)
        self._remove_pdf(filename, invoice_id)

    # PDF side effects

    def publish_pdf(self, invoice: Invoice, profile: Optional[BusinessProfile] = None) -> PdfResult:
        if self.publisher is None:
            logger.warning("Object storage not configured; skipping PDF for invoice %s", invoice.id)
            return PdfResult(error="object storage is not configured")
        if profile is None:
            profile = self.business_profile()
        try:
            filename = build_pdf_filename(invoice, invoice.client, profile)
            pdf_bytes = render_invoice_pdf(invoice, invoice.client, profile)
            url = self.publisher.publish(pdf_bytes, invoice.owner_id, filename)
        except Exception as exc:
            logger.error("PDF generation failed for invoice %s", invoice.id, exc_info=True)
            return PdfResult(error=str(exc) or exc.__class__.__name__)
        return PdfResult(url=with_cache_buster(url))

    def pdf_url(self, invoice: Invoice) -> Optional[str]:
        if self.publisher is None:
            return None
        filename = build_pdf_filename(invoice, invoice.client, self.business_profile())
        return with_cache_buster(self.publisher.public_url(invoice.owner_id, filename))

    def _remove_pdf(self, filename: str, invoice_id: str) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher.remove(self.owner_id, filename)
        except Exception:
            logger.warning("Could not remove PDF %s for invoice %s", filename, invoice_id, exc_info=True)
