"""Models for boleto status synchronization."""

import enum
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Union, Literal, Annotated
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

SICREDI_BOLETO = "sicredi_boleto"


class GatewayStatus(str, enum.Enum):
    """Boleto statuses reported by the Sicredi gateway."""
    REGISTRADO = "REGISTRADO"
    PAGO = "PAGO"
    VENCIDO = "VENCIDO"
    CANCELADO = "CANCELADO"


class LocalPaymentStatus(str, enum.Enum):
    """Status of the payment record in the store's own books."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SummaryBucket(str, enum.Enum):
    """Classification buckets of a sync pass."""
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    PENDING = "pending"


_BUCKETS = {
    GatewayStatus.PAGO.value: SummaryBucket.PAID,
    GatewayStatus.VENCIDO.value: SummaryBucket.OVERDUE,
    GatewayStatus.CANCELADO.value: SummaryBucket.CANCELLED,
}


def classify_gateway_status(status: Optional[str]) -> SummaryBucket:
    """Map a gateway status onto a summary bucket; anything unknown is pending."""
    return _BUCKETS.get(status or "", SummaryBucket.PENDING)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CustomerRef(BaseModel):
    kind: Literal["customer"] = "customer"
    id: str


class LegacyClientRef(BaseModel):
    kind: Literal["legacy"] = "legacy"
    id: str


ClientRef = Annotated[Union[CustomerRef, LegacyClientRef], Field(discriminator="kind")]


def resolve_client_ref(
    customer_id: Optional[str],
    legacy_client_id: Optional[str],
    payment_id: Optional[str] = None,
) -> Optional[Union[CustomerRef, LegacyClientRef]]:
    """Resolve the two optional owner columns of a payment into one reference.

    Returns None when the payment has no owner. When both are set the regular
    customer wins.
    """
    if customer_id and legacy_client_id:
        logger.warning(
            f"Payment {payment_id} references both customer {customer_id} "
            f"and legacy client {legacy_client_id}; using the customer"
        )
    if customer_id:
        return CustomerRef(id=customer_id)
    if legacy_client_id:
        return LegacyClientRef(id=legacy_client_id)
    return None


class SicrediBoleto(BaseModel):
    """Gateway-specific block of a boleto payment."""
    nosso_numero: Optional[str] = Field(None, description="Sicredi external reference number")
    codigo_barras: Optional[str] = Field(None, description="Barcode")
    linha_digitavel: Optional[str] = Field(None, description="Human-readable digit line")
    status: Optional[str] = Field(None, description="Last known gateway status")
    data_vencimento: Optional[date] = Field(None, description="Due date")


class BoletoPayment(BaseModel):
    """A locally stored payment as seen by the sync engine."""
    id: str = Field(..., description="Internal payment ID")
    amount: Decimal = Field(..., description="Payment amount in reais")
    payment_method: str = Field(default=SICREDI_BOLETO)
    status: LocalPaymentStatus = Field(default=LocalPaymentStatus.PENDING)
    sicredi: Optional[SicrediBoleto] = None
    client: Optional[ClientRef] = None

    @property
    def nosso_numero(self) -> Optional[str]:
        return self.sicredi.nosso_numero if self.sicredi else None

    @property
    def gateway_status(self) -> Optional[str]:
        return self.sicredi.status if self.sicredi else None


class Customer(BaseModel):
    id: str
    name: str = ""
    debts: Decimal = Decimal("0")


class LegacyClient(BaseModel):
    id: str
    name: str = ""
    total_debt: Decimal = Decimal("0")


class PaymentFilter(BaseModel):
    """Filters accepted by the payment listing collaborator."""
    payment_method: Optional[str] = None
    status: Optional[LocalPaymentStatus] = None
    customer_id: Optional[str] = None


class PaymentPage(BaseModel):
    items: List[BoletoPayment] = Field(default_factory=list)
    total: int = 0


class BoletoStatus(CamelModel):
    """Gateway's current view of one boleto."""
    status: str
    amount_paid: Optional[Decimal] = None
    payment_date: Optional[date] = None


class GatewayStatusResult(CamelModel):
    """Outcome of asking the gateway about one payment."""
    success: bool
    data: Optional[BoletoStatus] = None
    error: Optional[str] = None


class SyncItemError(CamelModel):
    payment_id: str
    error: str
    code: Optional[str] = None


class SyncSummary(CamelModel):
    """Per-pass classification histogram."""
    paid: int = 0
    overdue: int = 0
    cancelled: int = 0
    pending: int = 0

    def count(self, bucket: SummaryBucket) -> None:
        setattr(self, bucket.value, getattr(self, bucket.value) + 1)

    def total(self) -> int:
        return self.paid + self.overdue + self.cancelled + self.pending


class SyncResult(CamelModel):
    """Result of one reconciliation pass."""
    total_processed: int = 0
    updated_payments: int = 0
    updated_debts: int = 0
    errors: List[SyncItemError] = Field(default_factory=list)
    summary: SyncSummary = Field(default_factory=SyncSummary)
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    duration_ms: Optional[int] = None

    def finish(self) -> "SyncResult":
        self.finished_at = datetime.utcnow()
        self.duration_ms = int((self.finished_at - self.started_at).total_seconds() * 1000)
        return self


class SyncStats(CamelModel):
    """Gateway status histogram over every stored Sicredi boleto."""
    total_sicredi_payments: int = 0
    pending_payments: int = 0
    paid_payments: int = 0
    overdue_payments: int = 0
    cancelled_payments: int = 0
