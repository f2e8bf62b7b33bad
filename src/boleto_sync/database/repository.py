"""Repository layer for payment, customer and legacy client persistence."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    Payment,
    Customer,
    LegacyClient,
    PaymentStatus,
    PaymentMethod,
)

logger = logging.getLogger(__name__)


class PaymentRepository:
    """Repository for Payment operations."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    async def create(
        self,
        amount: Decimal,
        payment_method: str = PaymentMethod.SICREDI_BOLETO.value,
        status: str = PaymentStatus.PENDING.value,
        customer_id: Optional[str] = None,
        legacy_client_id: Optional[str] = None,
        nosso_numero: Optional[str] = None,
        codigo_barras: Optional[str] = None,
        linha_digitavel: Optional[str] = None,
        sicredi_status: Optional[str] = None,
        data_vencimento: Optional[date] = None,
    ) -> Payment:
        """Create a new payment record.

        Args:
            amount: Payment amount in reais.
            payment_method: Payment method name.
            status: Initial local payment status.
            customer_id: Regular customer owning the payment.
            legacy_client_id: Legacy client owning the payment.
            nosso_numero: Sicredi external reference number.
            codigo_barras: Boleto barcode.
            linha_digitavel: Boleto digit line.
            sicredi_status: Last known gateway status.
            data_vencimento: Boleto due date.

        Returns:
            Created Payment instance.
        """
        payment = Payment(
            amount=amount,
            payment_method=payment_method,
            status=status,
            customer_id=customer_id,
            legacy_client_id=legacy_client_id,
            sicredi_nosso_numero=nosso_numero,
            sicredi_codigo_barras=codigo_barras,
            sicredi_linha_digitavel=linha_digitavel,
            sicredi_status=sicredi_status,
            sicredi_data_vencimento=data_vencimento,
        )
        self.session.add(payment)
        await self.session.flush()

        logger.info(f"Created payment {payment.id} ({payment_method}) with status {status}")
        return payment

    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        """Get a payment by its ID.

        Args:
            payment_id: Payment ID.

        Returns:
            Payment instance if found, None otherwise.
        """
        result = await self.session.execute(
            select(Payment).where(Payment.id == payment_id)
        )
        return result.scalar_one_or_none()

    async def list_payments(
        self,
        page: int = 1,
        limit: int = 100,
        payment_method: Optional[str] = None,
        status: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> Tuple[List[Payment], int]:
        """List payments matching the given filters.

        Args:
            page: 1-based page number.
            limit: Page size.
            payment_method: Optional payment method filter.
            status: Optional local status filter.
            customer_id: Optional customer filter.

        Returns:
            Tuple of (payments on the page, total matching count).
        """
        conditions = []
        if payment_method:
            conditions.append(Payment.payment_method == payment_method)
        if status:
            conditions.append(Payment.status == status)
        if customer_id:
            conditions.append(Payment.customer_id == customer_id)

        total = await self.session.scalar(
            select(func.count()).select_from(Payment).where(*conditions)
        )
        result = await self.session.execute(
            select(Payment)
            .where(*conditions)
            .order_by(Payment.created_at)
            .limit(limit)
            .offset((max(page, 1) - 1) * limit)
        )
        return list(result.scalars().all()), total or 0

    async def update_gateway_status(
        self,
        payment: Payment,
        gateway_status: str,
        local_status: Optional[str] = None,
    ) -> Payment:
        """Store the gateway status seen for a payment.

        Args:
            payment: Payment instance to update.
            gateway_status: Status reported by the bank gateway.
            local_status: Optional new local status.

        Returns:
            Updated Payment instance.
        """
        previous = payment.sicredi_status
        payment.sicredi_status = gateway_status
        if local_status is not None:
            payment.status = local_status
        payment.updated_at = datetime.utcnow()

        await self.session.flush()
        logger.info(
            f"Updated payment {payment.id} gateway status {previous} -> {gateway_status}"
            + (f", local status -> {local_status}" if local_status else "")
        )
        return payment


class CustomerRepository:
    """Repository for Customer operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        debts: Decimal = Decimal("0"),
        email: Optional[str] = None,
    ) -> Customer:
        """Create a new customer."""
        customer = Customer(name=name, debts=debts, email=email)
        self.session.add(customer)
        await self.session.flush()
        return customer

    async def get_by_id(self, customer_id: str) -> Optional[Customer]:
        """Get a customer by ID, or None."""
        return await self.session.get(Customer, customer_id)

    async def update_debts(self, customer: Customer, debts: Decimal) -> Customer:
        """Set the customer's debt balance."""
        customer.debts = debts
        customer.updated_at = datetime.utcnow()
        await self.session.flush()
        return customer


class LegacyClientRepository:
    """Repository for LegacyClient operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        total_debt: Decimal = Decimal("0"),
        cpf: Optional[str] = None,
    ) -> LegacyClient:
        """Create a new legacy client."""
        client = LegacyClient(name=name, total_debt=total_debt, cpf=cpf)
        self.session.add(client)
        await self.session.flush()
        return client

    async def get_by_id(self, client_id: str) -> Optional[LegacyClient]:
        """Get a legacy client by ID, or None."""
        return await self.session.get(LegacyClient, client_id)

    async def update_total_debt(self, client: LegacyClient, total_debt: Decimal) -> LegacyClient:
        """Set the legacy client's debt balance."""
        client.total_debt = total_debt
        client.updated_at = datetime.utcnow()
        await self.session.flush()
        return client
