"""Exceptions raised by the sync engine."""

from typing import Optional


class SyncError(Exception):
    """A reconciliation failure carrying a machine-readable code and its cause.

    Raised directly for pass-level failures (the payment listing itself could
    not be read), which abort the pass and reach the caller.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.cause = cause

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class PaymentSyncError(SyncError):
    """Failure confined to one payment; recorded in the pass result."""


# Pass-level codes
SYNC_ERROR = "SYNC_ERROR"
CLIENT_SYNC_ERROR = "CLIENT_SYNC_ERROR"
STATS_ERROR = "STATS_ERROR"

# Item-level codes
MISSING_GATEWAY_REFERENCE = "MISSING_GATEWAY_REFERENCE"
GATEWAY_ERROR = "GATEWAY_ERROR"
MISSING_CLIENT = "MISSING_CLIENT"
DEBT_UPDATE_ERROR = "DEBT_UPDATE_ERROR"
STATUS_UPDATE_ERROR = "STATUS_UPDATE_ERROR"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
