"""Tests for the database layer."""

import pytest
from datetime import date
from decimal import Decimal

from boleto_sync.database import (
    CustomerRepository,
    DatabaseManager,
    LegacyClientRepository,
    PaymentRepository,
    PaymentStatus,
)
from boleto_sync.database.session import get_database_url


class TestGetDatabaseUrl:
    def test_default_sqlite(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert get_database_url() == "sqlite+aiosqlite:///./boleto_sync.db"

    @pytest.mark.parametrize("url", [
        "postgresql://user:pw@db/boletos",
        "postgres://user:pw@db/boletos",
    ])
    def test_postgres_uses_asyncpg(self, monkeypatch, url):
        monkeypatch.setenv("DATABASE_URL", url)
        assert get_database_url() == "postgresql+asyncpg://user:pw@db/boletos"


class TestDatabaseManager:
    async def test_session_before_initialize(self):
        manager = DatabaseManager("sqlite+aiosqlite:///:memory:")

        with pytest.raises(RuntimeError):
            async with manager.session():
                pass

    async def test_session_rolls_back_on_error(self, db):
        with pytest.raises(ValueError):
            async with db.session() as session:
                await PaymentRepository(session).create(amount=Decimal("1"), nosso_numero="NN-X")
                raise ValueError("abort")

        async with db.session() as session:
            rows, total = await PaymentRepository(session).list_payments()
        assert total == 0


class TestPaymentRepository:
    """Tests for PaymentRepository."""

    async def test_create_and_get(self, db):
        async with db.session() as session:
            customer = await CustomerRepository(session).create(name="Maria", debts=Decimal("300.00"))
            payment = await PaymentRepository(session).create(
                amount=Decimal("150.50"),
                customer_id=customer.id,
                nosso_numero="NN-1",
                sicredi_status="REGISTRADO",
                data_vencimento=date(2026, 11, 5),
            )
            payment_id = payment.id

        async with db.session() as session:
            stored = await PaymentRepository(session).get_by_id(payment_id)

        assert stored.amount == Decimal("150.50")
        assert stored.payment_method == "sicredi_boleto"
        assert stored.status == PaymentStatus.PENDING.value
        assert stored.sicredi_nosso_numero == "NN-1"
        assert stored.to_dict()["sicredi"]["data_vencimento"] == "2026-11-05"

    async def test_get_missing(self, db):
        async with db.session() as session:
            assert await PaymentRepository(session).get_by_id("nope") is None

    async def test_list_filters(self, db):
        async with db.session() as session:
            customers = CustomerRepository(session)
            first = await customers.create(name="A")
            second = await customers.create(name="B")
            repo = PaymentRepository(session)
            await repo.create(amount=Decimal("10"), customer_id=first.id, nosso_numero="NN-1")
            await repo.create(amount=Decimal("20"), customer_id=second.id, nosso_numero="NN-2")
            await repo.create(amount=Decimal("30"), customer_id=first.id, status="completed")
            await repo.create(amount=Decimal("40"), payment_method="pix", customer_id=first.id)
            first_id = first.id

        async with db.session() as session:
            repo = PaymentRepository(session)
            _, pending_boletos = await repo.list_payments(payment_method="sicredi_boleto", status="pending")
            _, first_boletos = await repo.list_payments(
                payment_method="sicredi_boleto", customer_id=first_id
            )
            page, total = await repo.list_payments(page=2, limit=3)

        assert pending_boletos == 2
        assert first_boletos == 2
        assert total == 4
        assert len(page) == 1

    async def test_update_gateway_status(self, db):
        async with db.session() as session:
            repo = PaymentRepository(session)
            payment = await repo.create(amount=Decimal("10"), nosso_numero="NN-1", sicredi_status="REGISTRADO")
            await repo.update_gateway_status(payment, "PAGO", "completed")
            payment_id = payment.id

        async with db.session() as session:
            stored = await PaymentRepository(session).get_by_id(payment_id)

        assert stored.sicredi_status == "PAGO"
        assert stored.status == "completed"

    async def test_update_gateway_status_keeps_local_status(self, db):
        async with db.session() as session:
            repo = PaymentRepository(session)
            payment = await repo.create(amount=Decimal("10"), nosso_numero="NN-1")
            await repo.update_gateway_status(payment, "VENCIDO")

        assert payment.status == "pending"
        assert payment.sicredi_status == "VENCIDO"


class TestClientRepositories:
    async def test_customer_debts(self, db):
        async with db.session() as session:
            repo = CustomerRepository(session)
            customer = await repo.create(name="Maria", debts=Decimal("300.00"))
            await repo.update_debts(customer, Decimal("149.50"))
            customer_id = customer.id

        async with db.session() as session:
            stored = await CustomerRepository(session).get_by_id(customer_id)

        assert stored.debts == Decimal("149.50")

    async def test_legacy_client_total_debt(self, db):
        async with db.session() as session:
            repo = LegacyClientRepository(session)
            client = await repo.create(name="João", total_debt=Decimal("500.00"), cpf="123.456.789-00")
            await repo.update_total_debt(client, Decimal("400.00"))
            client_id = client.id

        async with db.session() as session:
            stored = await LegacyClientRepository(session).get_by_id(client_id)

        assert stored.total_debt == Decimal("400.00")
        assert stored.to_dict()["cpf"] == "123.456.789-00"

    async def test_missing_clients(self, db):
        async with db.session() as session:
            assert await CustomerRepository(session).get_by_id("nope") is None
            assert await LegacyClientRepository(session).get_by_id("nope") is None
