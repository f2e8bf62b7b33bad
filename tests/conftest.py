"""Shared test fixtures and configuration."""

import os
import pytest
from decimal import Decimal
from typing import Dict, List, Optional

# Set up test environment variables before importing modules
os.environ.setdefault("API_KEY", "test_api_key_12345")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from boleto_sync.database import DatabaseManager
from boleto_sync.sync import (
    BoletoPayment,
    BoletoStatus,
    Customer,
    CustomerDirectory,
    CustomerRef,
    GatewayStatusResult,
    LegacyClient,
    LegacyClientDirectory,
    LegacyClientRef,
    LocalPaymentStatus,
    PaymentDirectory,
    PaymentFilter,
    PaymentPage,
    SicrediBoleto,
    SyncService,
)


class InMemoryPayments(PaymentDirectory):
    """Payment collaborator backed by a dict, with a scripted gateway."""

    def __init__(self, payments: Optional[List[BoletoPayment]] = None):
        self.payments: Dict[str, BoletoPayment] = {p.id: p for p in payments or []}
        self.gateway: Dict[str, GatewayStatusResult] = {}
        self.list_error: Optional[Exception] = None
        self.list_calls: List[tuple] = []
        self.gateway_calls: List[str] = []
        self.recorded: List[tuple] = []

    def add(self, payment: BoletoPayment) -> BoletoPayment:
        self.payments[payment.id] = payment
        return payment

    def bank_reports(self, payment_id: str, status: str, amount_paid=None) -> None:
        self.gateway[payment_id] = GatewayStatusResult(
            success=True,
            data=BoletoStatus(
                status=status,
                amount_paid=Decimal(str(amount_paid)) if amount_paid is not None else None,
            ),
        )

    def bank_fails(self, payment_id: str, error: str) -> None:
        self.gateway[payment_id] = GatewayStatusResult(success=False, error=error)

    async def list_payments(self, page: int, limit: int, filters: PaymentFilter) -> PaymentPage:
        self.list_calls.append((page, limit, filters))
        if self.list_error:
            raise self.list_error

        items = []
        for p in self.payments.values():
            if filters.payment_method and p.payment_method != filters.payment_method:
                continue
            if filters.status and p.status != filters.status:
                continue
            if filters.customer_id and not (
                isinstance(p.client, CustomerRef) and p.client.id == filters.customer_id
            ):
                continue
            items.append(p)

        start = (page - 1) * limit
        return PaymentPage(items=items[start:start + limit], total=len(items))

    async def check_gateway_status(self, payment_id: str) -> GatewayStatusResult:
        self.gateway_calls.append(payment_id)
        return self.gateway.get(
            payment_id,
            GatewayStatusResult(success=False, error="Boleto not found at the bank"),
        )

    async def record_gateway_status(self, payment_id, gateway_status, local_status=None) -> None:
        self.recorded.append((payment_id, gateway_status, local_status))
        payment = self.payments[payment_id]
        payment.sicredi.status = gateway_status
        if local_status is not None:
            payment.status = local_status


class InMemoryCustomers(CustomerDirectory):
    def __init__(self, customers: Optional[List[Customer]] = None):
        self.customers: Dict[str, Customer] = {c.id: c for c in customers or []}
        self.update_error: Optional[Exception] = None
        self.updates: List[tuple] = []

    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self.customers.get(customer_id)

    async def update_customer(self, customer_id: str, debts: Decimal) -> Optional[Customer]:
        if self.update_error:
            raise self.update_error
        self.updates.append((customer_id, debts))
        customer = self.customers.get(customer_id)
        if customer is None:
            return None
        customer.debts = debts
        return customer


class InMemoryLegacyClients(LegacyClientDirectory):
    def __init__(self, clients: Optional[List[LegacyClient]] = None):
        self.clients: Dict[str, LegacyClient] = {c.id: c for c in clients or []}
        self.updates: List[tuple] = []

    async def get_legacy_client(self, client_id: str) -> Optional[LegacyClient]:
        return self.clients.get(client_id)

    async def update_legacy_client(self, client_id: str, total_debt: Decimal) -> Optional[LegacyClient]:
        self.updates.append((client_id, total_debt))
        client = self.clients.get(client_id)
        if client is None:
            return None
        client.total_debt = total_debt
        return client


def boleto_payment(
    payment_id: str,
    nosso_numero: Optional[str] = "NN-0001",
    gateway_status: Optional[str] = "REGISTRADO",
    customer_id: Optional[str] = None,
    legacy_client_id: Optional[str] = None,
    amount: str = "150.50",
    status: LocalPaymentStatus = LocalPaymentStatus.PENDING,
) -> BoletoPayment:
    """Build a Sicredi boleto payment for tests."""
    client = None
    if customer_id:
        client = CustomerRef(id=customer_id)
    elif legacy_client_id:
        client = LegacyClientRef(id=legacy_client_id)
    return BoletoPayment(
        id=payment_id,
        amount=Decimal(amount),
        status=status,
        sicredi=SicrediBoleto(nosso_numero=nosso_numero, status=gateway_status),
        client=client,
    )


@pytest.fixture
def make_payment():
    """Factory for Sicredi boleto payments."""
    return boleto_payment


@pytest.fixture
def payments():
    return InMemoryPayments()


@pytest.fixture
def customers():
    return InMemoryCustomers([
        Customer(id="cust_1", name="Maria Souza", debts=Decimal("300.00")),
    ])


@pytest.fixture
def legacy_clients():
    return InMemoryLegacyClients([
        LegacyClient(id="legacy_1", name="João Lima", total_debt=Decimal("500.00")),
    ])


@pytest.fixture
def sync_service(payments, customers, legacy_clients):
    return SyncService(payments, customers, legacy_clients)


# Database fixtures for integration tests
@pytest.fixture
async def db():
    """An initialized in-memory SQLite database."""
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.initialize()
    yield manager
    await manager.shutdown()
