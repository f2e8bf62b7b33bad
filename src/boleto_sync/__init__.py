# boleto_sync package
__version__ = "0.1.0"

from .database import (
    Payment,
    Customer,
    LegacyClient,
    PaymentStatus,
    PaymentMethod,
    DatabaseManager,
)
from .gateway import (
    BoletoGatewayBase,
    SimulatorBoletoGateway,
    GatewayError,
    get_gateway,
)

# Sync exports
from .sync import (
    SyncService,
    SyncScheduler,
    SyncResult,
    SyncStats,
    SyncError,
    PaymentSyncError,
    build_sync_service,
)
