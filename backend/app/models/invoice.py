"""Invoice model for billing."""

import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.core.settings import get_settings
from backend.app.core.time import utc_now
from backend.app.db.base_class import Base

INVOICE_STATUSES = ("draft", "pending", "paid")
SEQUENCE_CONSTRAINT = "uq_facturas_owner_sequence"


def format_invoice_number(sequence_number: int) -> str:
    """Display number: configured prefix followed by the sequence number."""
    return f"{get_settings().invoice_number_prefix}{sequence_number}"


class Invoice(Base):
    __tablename__ = "facturas"
    __table_args__ = (UniqueConstraint("owner_id", "sequence_number", name=SEQUENCE_CONSTRAINT),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    public_id = Column(String(36), nullable=False, unique=True, index=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clientes.id"), nullable=False, index=True)
    payment_method_id = Column(String(36), nullable=True)

    sequence_number = Column(Integer, nullable=False)
    status = Column(String(16), default="pending", nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    paid_date = Column(Date, nullable=True)

    subtotal = Column(Numeric(12, 2), default=0, nullable=False)
    tax = Column(Numeric(12, 2), default=0, nullable=False)
    total = Column(Numeric(12, 2), default=0, nullable=False)
    deposit = Column(Numeric(12, 2), default=0, nullable=False)
    remaining_balance = Column(Numeric(12, 2), default=0, nullable=False)

    note = Column(Text, nullable=False, default="")
    terms = Column(Text, nullable=False, default="")
    logo_url = Column(String(1024), nullable=True)
    signature_url = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    client = relationship("Client", back_populates="invoices")
    owner = relationship("User", back_populates="invoices")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )

    @property
    def invoice_number(self) -> str:
        return format_invoice_number(self.sequence_number)
