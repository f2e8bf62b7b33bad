"""Collaborator interfaces the sync engine depends on."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from .models import (
    Customer,
    GatewayStatusResult,
    LegacyClient,
    LocalPaymentStatus,
    PaymentFilter,
    PaymentPage,
)


class PaymentDirectory(ABC):
    """Owner of payment records and the only route to the bank gateway."""

    @abstractmethod
    async def list_payments(
        self,
        page: int,
        limit: int,
        filters: PaymentFilter,
    ) -> PaymentPage:
        """List payments matching ``filters``.

        Args:
            page: 1-based page number.
            limit: Page size.
            filters: Payment method, local status and customer filters.

        Returns:
            PaymentPage with the items and the total match count.
        """
        raise NotImplementedError

    @abstractmethod
    async def check_gateway_status(self, payment_id: str) -> GatewayStatusResult:
        """Ask the bank gateway for the current status of a payment's boleto.

        Gateway failures are reported as ``success=False`` with an error
        message rather than raised.
        """
        raise NotImplementedError

    @abstractmethod
    async def record_gateway_status(
        self,
        payment_id: str,
        gateway_status: str,
        local_status: Optional[LocalPaymentStatus] = None,
    ) -> None:
        """Store the gateway status observed for a payment, optionally moving its local status."""
        raise NotImplementedError


class CustomerDirectory(ABC):
    """Owner of regular customers."""

    @abstractmethod
    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        raise NotImplementedError

    @abstractmethod
    async def update_customer(self, customer_id: str, debts: Decimal) -> Optional[Customer]:
        raise NotImplementedError


class LegacyClientDirectory(ABC):
    """Owner of legacy clients."""

    @abstractmethod
    async def get_legacy_client(self, client_id: str) -> Optional[LegacyClient]:
        raise NotImplementedError

    @abstractmethod
    async def update_legacy_client(self, client_id: str, total_debt: Decimal) -> Optional[LegacyClient]:
        raise NotImplementedError
