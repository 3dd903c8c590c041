"""Application-level user rows keyed by the external auth user id."""

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    # Same value as the auth service's user id (the JWT ``sub``)
    id = Column(String(36), primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String(255), nullable=True)
    business_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    api_tokens = relationship("ApiToken", back_populates="owner", cascade="all, delete-orphan")
    clients = relationship("Client", back_populates="owner", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="owner", cascade="all, delete-orphan")
    business_profile = relationship("BusinessProfile", back_populates="owner", cascade="all, delete-orphan", uselist=False)
