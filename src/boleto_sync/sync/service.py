"""Service layer for boleto status synchronization."""

import asyncio
import logging
from typing import List, Optional

from .errors import (
    SyncError,
    PaymentSyncError,
    SYNC_ERROR,
    CLIENT_SYNC_ERROR,
    STATS_ERROR,
    UNEXPECTED_ERROR,
)
from .ledger import DebtLedgerUpdater
from .models import (
    BoletoPayment,
    LocalPaymentStatus,
    PaymentFilter,
    SICREDI_BOLETO,
    SummaryBucket,
    SyncItemError,
    SyncResult,
    SyncStats,
    classify_gateway_status,
)
from .ports import CustomerDirectory, LegacyClientDirectory, PaymentDirectory
from .reconciler import PaymentReconciler

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 1000
DEFAULT_STATS_LIMIT = 10000


class SyncService:
    """Runs reconciliation passes over Sicredi boleto payments.

    Only one pass runs at a time per service: ``perform_sync`` and
    ``sync_client_payments`` share a lock, so a manual trigger issued while a
    scheduled pass is in flight waits for it to finish.
    """

    def __init__(
        self,
        payments: PaymentDirectory,
        customers: CustomerDirectory,
        legacy_clients: LegacyClientDirectory,
        batch_limit: int = DEFAULT_BATCH_LIMIT,
        stats_limit: int = DEFAULT_STATS_LIMIT,
        reconciler: Optional[PaymentReconciler] = None,
    ):
        """Initialize the sync service.

        Args:
            payments: Payment collaborator (listing, gateway lookups, status writes).
            customers: Regular customer collaborator.
            legacy_clients: Legacy client collaborator.
            batch_limit: Maximum payments reconciled per pass.
            stats_limit: Maximum payments read when computing stats.
            reconciler: Optional reconciler. Built from the collaborators if not provided.
        """
        self.payments = payments
        self.batch_limit = batch_limit
        self.stats_limit = stats_limit
        self.reconciler = reconciler or PaymentReconciler(
            payments,
            DebtLedgerUpdater(customers, legacy_clients),
        )
        self._lock = asyncio.Lock()

    @property
    def is_syncing(self) -> bool:
        """True while a pass holds the lock."""
        return self._lock.locked()

    async def perform_sync(self) -> SyncResult:
        """Reconcile every pending Sicredi boleto.

        Returns:
            SyncResult for the pass.

        Raises:
            SyncError: If the pending payments could not be listed.
        """
        async with self._exclusive("full sync"):
            try:
                page = await self.payments.list_payments(
                    1,
                    self.batch_limit,
                    PaymentFilter(
                        payment_method=SICREDI_BOLETO,
                        status=LocalPaymentStatus.PENDING,
                    ),
                )
            except Exception as e:
                logger.error(f"Sicredi sync failed while listing pending payments: {e}")
                raise SyncError("Sicredi synchronization failed", code=SYNC_ERROR, cause=e) from e

            logger.info(f"Starting Sicredi sync of {len(page.items)} pending payments")
            result = await self._process(page.items)

            logger.info(
                f"Sicredi sync completed in {result.duration_ms}ms: "
                f"{result.total_processed} processed, "
                f"{result.updated_payments} payments updated, "
                f"{result.updated_debts} debts updated, "
                f"{len(result.errors)} errors"
            )
            return result

    async def sync_client_payments(self, client_id: str) -> SyncResult:
        """Reconcile every Sicredi boleto of one customer.

        Args:
            client_id: Customer identifier, taken as an opaque string.

        Returns:
            SyncResult for the pass.

        Raises:
            ValueError: If ``client_id`` is empty.
            SyncError: If the client's payments could not be listed.
        """
        if not client_id:
            raise ValueError("client_id is required")

        async with self._exclusive(f"sync of client {client_id}"):
            try:
                page = await self.payments.list_payments(
                    1,
                    self.batch_limit,
                    PaymentFilter(payment_method=SICREDI_BOLETO, customer_id=client_id),
                )
            except Exception as e:
                logger.error(f"Failed to list payments of client {client_id}: {e}")
                raise SyncError(
                    f"Failed to synchronize client {client_id}",
                    code=CLIENT_SYNC_ERROR,
                    cause=e,
                ) from e

            logger.info(f"Found {len(page.items)} Sicredi payments for client {client_id}")
            result = await self._process(page.items)

            logger.info(
                f"Client {client_id} synchronized: {result.updated_payments} payments updated, "
                f"{result.updated_debts} debts updated"
            )
            return result

    async def get_sync_stats(self) -> SyncStats:
        """Bucket every stored Sicredi boleto by its last known gateway status.

        Reads only; nothing is reconciled.

        Raises:
            SyncError: If the payments could not be listed.
        """
        try:
            page = await self.payments.list_payments(
                1,
                self.stats_limit,
                PaymentFilter(payment_method=SICREDI_BOLETO),
            )
        except Exception as e:
            logger.error(f"Failed to compute Sicredi sync stats: {e}")
            raise SyncError("Failed to compute sync statistics", code=STATS_ERROR, cause=e) from e

        stats = SyncStats(total_sicredi_payments=len(page.items))
        for payment in page.items:
            bucket = classify_gateway_status(payment.gateway_status)
            if bucket == SummaryBucket.PAID:
                stats.paid_payments += 1
            elif bucket == SummaryBucket.OVERDUE:
                stats.overdue_payments += 1
            elif bucket == SummaryBucket.CANCELLED:
                stats.cancelled_payments += 1
            else:
                stats.pending_payments += 1
        return stats

    def _exclusive(self, label: str) -> asyncio.Lock:
        if self._lock.locked():
            logger.info(f"Sicredi sync already in progress; {label} waits for it to finish")
        return self._lock

    async def _process(self, payments: List[BoletoPayment]) -> SyncResult:
        result = SyncResult(total_processed=len(payments))

        for payment in payments:
            classified = result.summary.total()
            try:
                await self.reconciler.reconcile(payment, result)
            except PaymentSyncError as e:
                logger.error(f"Error while syncing payment {payment.id}: [{e.code}] {e}")
                self._record_error(result, payment, e, e.code, classified)
            except Exception as e:
                logger.exception(f"Unexpected error while syncing payment {payment.id}")
                self._record_error(result, payment, e, UNEXPECTED_ERROR, classified)

        return result.finish()

    @staticmethod
    def _record_error(
        result: SyncResult,
        payment: BoletoPayment,
        error: Exception,
        code: Optional[str],
        classified_before: int,
    ) -> None:
        # An item that never reached classification still fills its slot
        if result.summary.total() == classified_before:
            result.summary.count(SummaryBucket.PENDING)
        result.errors.append(SyncItemError(
            payment_id=payment.id or "unknown",
            error=str(error) or type(error).__name__,
            code=code,
        ))
