"""Bank gateway clients."""

from typing import Optional

from .base import (
    BoletoGatewayBase,
    BoletoStatusResponse,
    GatewayError,
)
from .simulator_gateway import (
    SimulatorBoletoGateway,
    SimulatorConfig,
    SimulatedBoleto,
)


def get_gateway(provider: str = "simulator", config: Optional[SimulatorConfig] = None) -> BoletoGatewayBase:
    """Factory function to get the gateway client for a provider.

    Raises:
        ValueError: If the provider is not supported.
    """
    gateways = {
        "simulator": SimulatorBoletoGateway,
    }

    gateway_class = gateways.get(provider.lower())
    if not gateway_class:
        raise ValueError(f"Unsupported boleto gateway: {provider}")

    return gateway_class(config=config)


__all__ = [
    "BoletoGatewayBase",
    "BoletoStatusResponse",
    "GatewayError",
    "SimulatorBoletoGateway",
    "SimulatorConfig",
    "SimulatedBoleto",
    "get_gateway",
]
