"""SQLAlchemy models for boleto payments and the clients that owe them."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List

from sqlalchemy import (
    String,
    Numeric,
    Date,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column
import enum


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class PaymentStatus(str, enum.Enum):
    """Local payment statuses."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    """Payment methods accepted at the store counter."""
    CREDIT = "credit"
    DEBIT = "debit"
    CASH = "cash"
    PIX = "pix"
    BANK_SLIP = "bank_slip"
    SICREDI_BOLETO = "sicredi_boleto"
    PROMISSORY_NOTE = "promissory_note"
    CHECK = "check"


def _money() -> Numeric:
    return Numeric(12, 2, asdecimal=True)


class Customer(Base):
    """Regular customer with an outstanding debt balance."""
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    debts: Mapped[Decimal] = mapped_column(_money(), nullable=False, default=Decimal("0"))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    payments: Mapped[List["Payment"]] = relationship("Payment", back_populates="customer")

    def to_dict(self) -> Dict[str, Any]:
        """Convert customer to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "debts": str(self.debts),
        }


class LegacyClient(Base):
    """Client imported from the previous system, tracked apart from customers."""
    __tablename__ = "legacy_clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    cpf: Mapped[Optional[str]] = mapped_column(String(14), nullable=True, unique=True)
    total_debt: Mapped[Decimal] = mapped_column(_money(), nullable=False, default=Decimal("0"))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    payments: Mapped[List["Payment"]] = relationship("Payment", back_populates="legacy_client")

    def to_dict(self) -> Dict[str, Any]:
        """Convert legacy client to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "cpf": self.cpf,
            "total_debt": str(self.total_debt),
        }


class Payment(Base):
    """Payment record, with the Sicredi boleto block flattened into columns."""
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    amount: Mapped[Decimal] = mapped_column(_money(), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    # Sicredi boleto data
    sicredi_nosso_numero: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    sicredi_codigo_barras: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    sicredi_linha_digitavel: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    sicredi_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    sicredi_data_vencimento: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # At most one of these is set
    customer_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("customers.id"), nullable=True)
    legacy_client_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("legacy_clients.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer: Mapped[Optional["Customer"]] = relationship("Customer", back_populates="payments")
    legacy_client: Mapped[Optional["LegacyClient"]] = relationship("LegacyClient", back_populates="payments")

    __table_args__ = (
        Index("ix_payments_status", "status"),
        Index("ix_payments_payment_method", "payment_method"),
        Index("ix_payments_customer_id", "customer_id"),
        Index("ix_payments_legacy_client_id", "legacy_client_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert payment to dictionary representation."""
        return {
            "id": self.id,
            "amount": str(self.amount),
            "payment_method": self.payment_method,
            "status": self.status,
            "sicredi": {
                "nosso_numero": self.sicredi_nosso_numero,
                "codigo_barras": self.sicredi_codigo_barras,
                "linha_digitavel": self.sicredi_linha_digitavel,
                "status": self.sicredi_status,
                "data_vencimento": (
                    self.sicredi_data_vencimento.isoformat()
                    if self.sicredi_data_vencimento else None
                ),
            },
            "customer_id": self.customer_id,
            "legacy_client_id": self.legacy_client_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
