"""Per-owner business profile used for invoice defaults and PDF branding."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class BusinessProfile(Base):
    __tablename__ = "negocio_config"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True, index=True)
    business_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    logo_url = Column(String(1024), nullable=True)
    signature_url = Column(String(1024), nullable=True)
    default_terms = Column(Text, nullable=True)
    default_note = Column(Text, nullable=True)
    brand_color = Column(String(16), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="business_profile")
