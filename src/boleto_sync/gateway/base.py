from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional, Dict, Any
from pydantic import BaseModel


class GatewayError(Exception):
    """Raised by a gateway client when the bank cannot answer a request."""

    def __init__(self, message: str, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


# Canonical models
class BoletoStatusResponse(BaseModel):
    nosso_numero: str
    status: str  # REGISTRADO|PAGO|VENCIDO|CANCELADO
    valor: Optional[Decimal] = None
    valor_pago: Optional[Decimal] = None
    data_vencimento: Optional[date] = None
    data_pagamento: Optional[date] = None
    raw_response: Optional[Dict[str, Any]] = None


class BoletoGatewayBase(ABC):
    """
    Minimal bank gateway interface. Implementations own their transport,
    authentication and per-call timeouts.
    """

    name: str = "base"

    @abstractmethod
    async def fetch_status(self, nosso_numero: str) -> BoletoStatusResponse:
        """
        Return the bank's current view of a boleto. Raises GatewayError when
        the bank cannot be reached or does not know the slip.
        """
        raise NotImplementedError

    async def health_check(self) -> Dict[str, Any]:
        return {"ok": True, "provider": self.name}
