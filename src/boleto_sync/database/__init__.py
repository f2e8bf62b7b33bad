"""Database module for boleto sync persistence."""

from .models import (
    Base,
    Payment,
    Customer,
    LegacyClient,
    PaymentStatus,
    PaymentMethod,
)
from .session import (
    get_database_url,
    create_async_engine,
    get_async_session_factory,
    DatabaseManager,
)
from .repository import (
    PaymentRepository,
    CustomerRepository,
    LegacyClientRepository,
)

__all__ = [
    # Models
    "Base",
    "Payment",
    "Customer",
    "LegacyClient",
    "PaymentStatus",
    "PaymentMethod",
    # Session management
    "get_database_url",
    "create_async_engine",
    "get_async_session_factory",
    "DatabaseManager",
    # Repositories
    "PaymentRepository",
    "CustomerRepository",
    "LegacyClientRepository",
]
