"""Client debt updates applied when a boleto is paid."""

import logging
from decimal import Decimal

from .errors import PaymentSyncError, MISSING_CLIENT, DEBT_UPDATE_ERROR
from .models import BoletoPayment, CustomerRef, LegacyClientRef
from .ports import CustomerDirectory, LegacyClientDirectory

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class DebtLedgerUpdater:
    """Decreases a customer's or legacy client's debt by a paid amount, floored at zero."""

    def __init__(
        self,
        customers: CustomerDirectory,
        legacy_clients: LegacyClientDirectory,
    ):
        self.customers = customers
        self.legacy_clients = legacy_clients

    async def apply_payment(self, payment: BoletoPayment, amount_paid: Decimal) -> bool:
        """Apply a paid amount to the debt of the payment's client.

        Args:
            payment: Payment whose client owes the debt.
            amount_paid: Amount confirmed by the gateway.

        Returns:
            True if a debt balance was persisted, False if the client could
            not be found and the update was skipped.

        Raises:
            PaymentSyncError: If the payment has no client, or the client
                collaborator failed while loading or saving.
        """
        ref = payment.client
        if ref is None:
            raise PaymentSyncError("Payment has no associated client", code=MISSING_CLIENT)

        amount = Decimal(amount_paid)
        logger.info(f"Updating debt of {ref.kind} {ref.id} by R$ {amount} (payment {payment.id})")

        try:
            if isinstance(ref, CustomerRef):
                return await self._apply_to_customer(payment, ref, amount)
            if isinstance(ref, LegacyClientRef):
                return await self._apply_to_legacy_client(payment, ref, amount)
        except PaymentSyncError:
            raise
        except Exception as e:
            logger.error(f"Failed to update debt of {ref.kind} {ref.id}: {e}")
            raise PaymentSyncError(
                "Failed to update client debt",
                code=DEBT_UPDATE_ERROR,
                cause=e,
            ) from e
        raise PaymentSyncError(f"Unsupported client reference: {ref!r}", code=MISSING_CLIENT)

    async def _apply_to_customer(
        self,
        payment: BoletoPayment,
        ref: CustomerRef,
        amount: Decimal,
    ) -> bool:
        customer = await self.customers.get_customer(ref.id)
        if customer is None:
            logger.warning(
                f"Customer {ref.id} of payment {payment.id} not found; debt update skipped"
            )
            return False

        current = customer.debts or ZERO
        new_debt = max(ZERO, current - amount)
        await self.customers.update_customer(ref.id, debts=new_debt)

        logger.info(f"Debt of customer {customer.name or ref.id} updated from R$ {current} to R$ {new_debt}")
        return True

    async def _apply_to_legacy_client(
        self,
        payment: BoletoPayment,
        ref: LegacyClientRef,
        amount: Decimal,
    ) -> bool:
        client = await self.legacy_clients.get_legacy_client(ref.id)
        if client is None:
            logger.warning(
                f"Legacy client {ref.id} of payment {payment.id} not found; debt update skipped"
            )
            return False

        current = client.total_debt or ZERO
        new_debt = max(ZERO, current - amount)
        await self.legacy_clients.update_legacy_client(ref.id, total_debt=new_debt)

        logger.info(f"Debt of legacy client {client.name or ref.id} updated from R$ {current} to R$ {new_debt}")
        return True
