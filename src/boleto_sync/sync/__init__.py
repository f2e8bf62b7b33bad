"""Sicredi boleto status synchronization.

This module keeps locally stored boleto payments in step with the Sicredi
bank gateway and applies paid amounts to client debts.

Features:
- Scheduled and on-demand reconciliation passes over pending boletos
- Per-payment error capture that never aborts a pass
- Debt decrements floored at zero for customers and legacy clients
- Gateway status statistics over every stored boleto
"""

from .errors import SyncError, PaymentSyncError
from .models import (
    GatewayStatus,
    LocalPaymentStatus,
    SummaryBucket,
    CustomerRef,
    LegacyClientRef,
    ClientRef,
    SicrediBoleto,
    BoletoPayment,
    Customer,
    LegacyClient,
    PaymentFilter,
    PaymentPage,
    BoletoStatus,
    GatewayStatusResult,
    SyncItemError,
    SyncSummary,
    SyncResult,
    SyncStats,
    classify_gateway_status,
    resolve_client_ref,
)
from .ports import PaymentDirectory, CustomerDirectory, LegacyClientDirectory
from .ledger import DebtLedgerUpdater
from .reconciler import PaymentReconciler
from .service import SyncService
from .scheduler import SyncScheduler, SyncSession
from .adapters import (
    SqlPaymentDirectory,
    SqlCustomerDirectory,
    SqlLegacyClientDirectory,
    build_sync_service,
)

__all__ = [
    # Errors
    "SyncError",
    "PaymentSyncError",
    # Models
    "GatewayStatus",
    "LocalPaymentStatus",
    "SummaryBucket",
    "CustomerRef",
    "LegacyClientRef",
    "ClientRef",
    "SicrediBoleto",
    "BoletoPayment",
    "Customer",
    "LegacyClient",
    "PaymentFilter",
    "PaymentPage",
    "BoletoStatus",
    "GatewayStatusResult",
    "SyncItemError",
    "SyncSummary",
    "SyncResult",
    "SyncStats",
    "classify_gateway_status",
    "resolve_client_ref",
    # Collaborator ports
    "PaymentDirectory",
    "CustomerDirectory",
    "LegacyClientDirectory",
    # Core Components
    "DebtLedgerUpdater",
    "PaymentReconciler",
    "SyncService",
    "SyncScheduler",
    "SyncSession",
    # SQL collaborators
    "SqlPaymentDirectory",
    "SqlCustomerDirectory",
    "SqlLegacyClientDirectory",
    "build_sync_service",
]
