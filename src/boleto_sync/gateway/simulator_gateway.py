"""Simulator gateway for exercising boleto sync without calling the bank."""

import asyncio
import random
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from .base import BoletoGatewayBase, BoletoStatusResponse, GatewayError

logger = logging.getLogger(__name__)


@dataclass
class SimulatedBoleto:
    """In-memory representation of a boleto registered at the simulated bank."""
    nosso_numero: str
    valor: Decimal
    status: str = "REGISTRADO"
    data_vencimento: Optional[date] = None
    valor_pago: Optional[Decimal] = None
    data_pagamento: Optional[date] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SimulatorConfig:
    """Configuration for simulator behavior."""
    failure_rate: float = 0.0  # 0.0 to 1.0
    delay_ms: int = 0  # Simulated response delay in ms
    seed: Optional[int] = None  # Random seed for reproducibility


class SimulatorBoletoGateway(BoletoGatewayBase):
    """
    Simulated Sicredi boleto gateway.

    Features:
    - In-memory boleto registry
    - Manual status transitions (paid, overdue, cancelled)
    - Forced per-boleto failures and a random failure rate
    - Delayed response simulation
    """

    name = "simulator"

    def __init__(self, config: Optional[SimulatorConfig] = None):
        """Initialize the simulator with optional configuration."""
        self.config = config or SimulatorConfig()
        self._boletos: Dict[str, SimulatedBoleto] = {}
        self._rng = random.Random(self.config.seed)
        self.calls = 0
        logger.info("SimulatorBoletoGateway initialized")

    async def _apply_delay(self) -> None:
        if self.config.delay_ms > 0:
            await asyncio.sleep(self.config.delay_ms / 1000.0)

    def register(
        self,
        nosso_numero: str,
        valor: Decimal,
        data_vencimento: Optional[date] = None,
    ) -> SimulatedBoleto:
        """Register a boleto at the simulated bank."""
        boleto = SimulatedBoleto(
            nosso_numero=nosso_numero,
            valor=Decimal(valor),
            data_vencimento=data_vencimento,
        )
        self._boletos[nosso_numero] = boleto
        return boleto

    def _get(self, nosso_numero: str) -> SimulatedBoleto:
        boleto = self._boletos.get(nosso_numero)
        if boleto is None:
            raise KeyError(f"Boleto {nosso_numero} is not registered")
        return boleto

    def mark_paid(
        self,
        nosso_numero: str,
        valor_pago: Optional[Decimal] = None,
        data_pagamento: Optional[date] = None,
    ) -> SimulatedBoleto:
        """Settle a boleto, by default for its full amount."""
        boleto = self._get(nosso_numero)
        boleto.status = "PAGO"
        boleto.valor_pago = Decimal(valor_pago) if valor_pago is not None else boleto.valor
        boleto.data_pagamento = data_pagamento or date.today()
        return boleto

    def mark_overdue(self, nosso_numero: str) -> SimulatedBoleto:
        boleto = self._get(nosso_numero)
        boleto.status = "VENCIDO"
        return boleto

    def cancel(self, nosso_numero: str) -> SimulatedBoleto:
        boleto = self._get(nosso_numero)
        boleto.status = "CANCELADO"
        return boleto

    def set_status(self, nosso_numero: str, status: str) -> SimulatedBoleto:
        """Force an arbitrary status string, including ones the bank never sends."""
        boleto = self._get(nosso_numero)
        boleto.status = status
        return boleto

    def fail_with(self, nosso_numero: str, message: Optional[str]) -> None:
        """Make lookups of one boleto fail with ``message`` (None clears it)."""
        self._get(nosso_numero).error = message

    async def fetch_status(self, nosso_numero: str) -> BoletoStatusResponse:
        """Return the simulated bank's view of a boleto."""
        self.calls += 1
        await self._apply_delay()

        boleto = self._boletos.get(nosso_numero)
        if boleto is None:
            raise GatewayError(f"Boleto {nosso_numero} not found", code="NOT_FOUND")
        if boleto.error:
            raise GatewayError(boleto.error, code="SIMULATED_ERROR")
        if self._rng.random() < self.config.failure_rate:
            raise GatewayError("Simulated gateway failure", code="SIMULATED_ERROR")

        return BoletoStatusResponse(
            nosso_numero=boleto.nosso_numero,
            status=boleto.status,
            valor=boleto.valor,
            valor_pago=boleto.valor_pago,
            data_vencimento=boleto.data_vencimento,
            data_pagamento=boleto.data_pagamento,
            raw_response={"simulator": True},
        )

    def clear(self) -> None:
        """Forget every registered boleto (for test cleanup)."""
        self._boletos.clear()
        self.calls = 0

    async def health_check(self) -> Dict[str, Any]:
        """Return health status of the simulator."""
        return {
            "ok": True,
            "provider": self.name,
            "boleto_count": len(self._boletos),
            "config": {
                "failure_rate": self.config.failure_rate,
                "delay_ms": self.config.delay_ms,
            },
        }
