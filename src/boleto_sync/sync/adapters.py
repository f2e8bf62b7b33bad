"""SQLAlchemy-backed collaborators for the sync engine.

Each call runs in its own session and commits on return, the way the
payment, customer and legacy client services do for any other caller.
"""

import logging
from decimal import Decimal
from typing import Optional

from ..database import (
    DatabaseManager,
    Payment,
    PaymentRepository,
    CustomerRepository,
    LegacyClientRepository,
)
from ..gateway import BoletoGatewayBase, GatewayError
from .models import (
    BoletoPayment,
    BoletoStatus,
    Customer,
    GatewayStatusResult,
    LegacyClient,
    LocalPaymentStatus,
    PaymentFilter,
    PaymentPage,
    SicrediBoleto,
    resolve_client_ref,
)
from .ports import CustomerDirectory, LegacyClientDirectory, PaymentDirectory
from .service import SyncService

logger = logging.getLogger(__name__)


def to_boleto_payment(payment: Payment) -> BoletoPayment:
    """Convert a stored payment row into the sync engine's view of it."""
    sicredi = None
    if payment.sicredi_nosso_numero or payment.sicredi_status or payment.sicredi_codigo_barras:
        sicredi = SicrediBoleto(
            nosso_numero=payment.sicredi_nosso_numero,
            codigo_barras=payment.sicredi_codigo_barras,
            linha_digitavel=payment.sicredi_linha_digitavel,
            status=payment.sicredi_status,
            data_vencimento=payment.sicredi_data_vencimento,
        )
    return BoletoPayment(
        id=payment.id,
        amount=payment.amount,
        payment_method=payment.payment_method,
        status=LocalPaymentStatus(payment.status),
        sicredi=sicredi,
        client=resolve_client_ref(payment.customer_id, payment.legacy_client_id, payment.id),
    )


class SqlPaymentDirectory(PaymentDirectory):
    """Payments stored in SQL; gateway lookups go through a boleto gateway client."""

    def __init__(self, db: DatabaseManager, gateway: BoletoGatewayBase):
        self.db = db
        self.gateway = gateway

    async def list_payments(self, page: int, limit: int, filters: PaymentFilter) -> PaymentPage:
        async with self.db.session() as session:
            rows, total = await PaymentRepository(session).list_payments(
                page=page,
                limit=limit,
                payment_method=filters.payment_method,
                status=filters.status.value if filters.status else None,
                customer_id=filters.customer_id,
            )
            return PaymentPage(items=[to_boleto_payment(p) for p in rows], total=total)

    async def check_gateway_status(self, payment_id: str) -> GatewayStatusResult:
        async with self.db.session() as session:
            payment = await PaymentRepository(session).get_by_id(payment_id)
            nosso_numero = payment.sicredi_nosso_numero if payment else None

        if payment is None:
            return GatewayStatusResult(success=False, error=f"Payment {payment_id} not found")
        if not nosso_numero:
            return GatewayStatusResult(success=False, error="Payment has no Sicredi nosso número")

        try:
            response = await self.gateway.fetch_status(nosso_numero)
        except GatewayError as e:
            logger.error(f"Gateway lookup of boleto {nosso_numero} failed: {e.message}")
            return GatewayStatusResult(success=False, error=e.message)

        return GatewayStatusResult(
            success=True,
            data=BoletoStatus(
                status=response.status,
                amount_paid=response.valor_pago,
                payment_date=response.data_pagamento,
            ),
        )

    async def record_gateway_status(
        self,
        payment_id: str,
        gateway_status: str,
        local_status: Optional[LocalPaymentStatus] = None,
    ) -> None:
        async with self.db.session() as session:
            repo = PaymentRepository(session)
            payment = await repo.get_by_id(payment_id)
            if payment is None:
                raise LookupError(f"Payment {payment_id} not found")
            await repo.update_gateway_status(
                payment,
                gateway_status,
                local_status.value if local_status else None,
            )


class SqlCustomerDirectory(CustomerDirectory):
    def __init__(self, db: DatabaseManager):
        self.db = db

    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        async with self.db.session() as session:
            row = await CustomerRepository(session).get_by_id(customer_id)
            if row is None:
                return None
            return Customer(id=row.id, name=row.name, debts=row.debts)

    async def update_customer(self, customer_id: str, debts: Decimal) -> Optional[Customer]:
        async with self.db.session() as session:
            repo = CustomerRepository(session)
            row = await repo.get_by_id(customer_id)
            if row is None:
                return None
            await repo.update_debts(row, debts)
            return Customer(id=row.id, name=row.name, debts=row.debts)


class SqlLegacyClientDirectory(LegacyClientDirectory):
    def __init__(self, db: DatabaseManager):
        self.db = db

    async def get_legacy_client(self, client_id: str) -> Optional[LegacyClient]:
        async with self.db.session() as session:
            row = await LegacyClientRepository(session).get_by_id(client_id)
            if row is None:
                return None
            return LegacyClient(id=row.id, name=row.name, total_debt=row.total_debt)

    async def update_legacy_client(self, client_id: str, total_debt: Decimal) -> Optional[LegacyClient]:
        async with self.db.session() as session:
            repo = LegacyClientRepository(session)
            row = await repo.get_by_id(client_id)
            if row is None:
                return None
            await repo.update_total_debt(row, total_debt)
            return LegacyClient(id=row.id, name=row.name, total_debt=row.total_debt)


def build_sync_service(db: DatabaseManager, gateway: BoletoGatewayBase, **kwargs) -> SyncService:
    """Wire a SyncService onto the SQL collaborators."""
    return SyncService(
        payments=SqlPaymentDirectory(db, gateway),
        customers=SqlCustomerDirectory(db),
        legacy_clients=SqlLegacyClientDirectory(db),
        **kwargs,
    )
