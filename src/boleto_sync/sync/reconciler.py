"""Reconciliation of one boleto payment against the bank gateway."""

import logging
from decimal import Decimal
from typing import Optional

from .errors import (
    PaymentSyncError,
    MISSING_GATEWAY_REFERENCE,
    GATEWAY_ERROR,
    STATUS_UPDATE_ERROR,
)
from .ledger import DebtLedgerUpdater
from .models import (
    BoletoPayment,
    GatewayStatus,
    LocalPaymentStatus,
    SyncResult,
    classify_gateway_status,
)
from .ports import PaymentDirectory

logger = logging.getLogger(__name__)


class PaymentReconciler:
    """Brings one payment in line with the gateway's view of its boleto.

    Counters of the running pass are updated in place on the ``SyncResult``
    handed in, in this order: the summary bucket as soon as the gateway status
    is known, ``updated_payments`` when that status differs from the last one
    stored locally, and ``updated_debts`` when a debt decrement was persisted.

    Only payments still pending locally are charged against a debt or moved to
    a closing local status; completed and cancelled ones are classified and
    have their gateway status refreshed, nothing more.
    """

    # Gateway statuses that close the payment in the local books
    LOCAL_STATUS_TRANSITIONS = {
        GatewayStatus.PAGO.value: LocalPaymentStatus.COMPLETED,
        GatewayStatus.CANCELADO.value: LocalPaymentStatus.CANCELLED,
    }

    def __init__(self, payments: PaymentDirectory, ledger: DebtLedgerUpdater):
        self.payments = payments
        self.ledger = ledger

    async def reconcile(self, payment: BoletoPayment, result: SyncResult) -> None:
        """Reconcile ``payment`` and record the outcome in ``result``.

        Raises:
            PaymentSyncError: If the payment has no nosso número, the gateway
                reports a failure, or the debt/status update fails.
        """
        if not payment.nosso_numero:
            raise PaymentSyncError(
                "Payment has no Sicredi nosso número",
                code=MISSING_GATEWAY_REFERENCE,
            )

        status_result = await self.payments.check_gateway_status(payment.id)
        if not status_result.success or status_result.data is None:
            raise PaymentSyncError(
                status_result.error or "Failed to query boleto status",
                code=GATEWAY_ERROR,
            )

        new_status = status_result.data.status
        amount_paid = status_result.data.amount_paid

        result.summary.count(classify_gateway_status(new_status))

        changed = payment.gateway_status != new_status
        if changed:
            logger.info(
                f"Payment {payment.id} gateway status changed: "
                f"{payment.gateway_status} -> {new_status}"
            )
            result.updated_payments += 1

        # Settled payments were charged when they closed; only open ones move debt
        is_open = payment.status == LocalPaymentStatus.PENDING

        if (
            is_open
            and new_status == GatewayStatus.PAGO.value
            and amount_paid
            and amount_paid > 0
        ):
            applied = await self.ledger.apply_payment(payment, Decimal(amount_paid))
            if applied:
                result.updated_debts += 1

        local_status = self.LOCAL_STATUS_TRANSITIONS.get(new_status) if is_open else None
        if changed or local_status is not None:
            await self._record(payment, new_status, local_status)

    async def _record(
        self,
        payment: BoletoPayment,
        gateway_status: str,
        local_status: Optional[LocalPaymentStatus],
    ) -> None:
        try:
            await self.payments.record_gateway_status(payment.id, gateway_status, local_status)
        except Exception as e:
            raise PaymentSyncError(
                f"Failed to store gateway status {gateway_status}",
                code=STATUS_UPDATE_ERROR,
                cause=e,
            ) from e
