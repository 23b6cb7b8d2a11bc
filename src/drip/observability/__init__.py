"""Observability module for DRIP faucet."""

from .health import ClaimStoreCheck, GatewayCheck, HealthCheck, HealthServer, HealthStatus
from .logging import clear_request_id, configure_logging, get_logger, set_request_id
from .metrics import (
    GAS_DISTRIBUTED,
    GATEWAY_CONNECTED,
    GATEWAY_RECONNECTS,
    PAYOUTS,
    RATE_LIMITED,
    REQUEST_DURATION,
    REQUESTS,
    TRANSACTION_DURATION,
)

__all__ = [
    # Health
    "ClaimStoreCheck",
    "GatewayCheck",
    "HealthCheck",
    "HealthServer",
    "HealthStatus",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "set_request_id",
    # Metrics
    "GAS_DISTRIBUTED",
    "GATEWAY_CONNECTED",
    "GATEWAY_RECONNECTS",
    "PAYOUTS",
    "RATE_LIMITED",
    "REQUEST_DURATION",
    "REQUESTS",
    "TRANSACTION_DURATION",
]
