"""Blockchain integration for DRIP."""

from .client import FusionClient
from .keeper import ConnectionKeeper, GatewayUnavailableError
from .networks import FSN_MAINNET, FSN_TESTNET, Network, resolve_network

__all__ = [
    "FSN_MAINNET",
    "FSN_TESTNET",
    "ConnectionKeeper",
    "FusionClient",
    "GatewayUnavailableError",
    "Network",
    "resolve_network",
]
