"""Prometheus metrics for DRIP faucet.

Metrics:
- drip_requests_total: Counter of retrieve requests by outcome status
- drip_payouts_total: Counter of broadcast payouts
- drip_gas_distributed_gwei_total: Counter of gas sent, in gwei
- drip_rate_limited_total: Counter of requests rejected by the rate limiter
- drip_gateway_connected: Gauge, 1 while the gateway socket is live
- drip_gateway_reconnects_total: Counter of reconnect attempts
- drip_request_duration_seconds: Histogram of request duration
- drip_transaction_duration_seconds: Histogram of payout submission duration
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
REQUESTS = Counter(
    "drip_requests_total",
    "Total number of faucet retrieve requests",
    ["status"],
)

PAYOUTS = Counter(
    "drip_payouts_total",
    "Total payouts broadcast",
)

GAS_DISTRIBUTED = Counter(
    "drip_gas_distributed_gwei_total",
    "Total gas distributed in gwei",
)

RATE_LIMITED = Counter(
    "drip_rate_limited_total",
    "Total requests rejected by the rate limiter",
)

GATEWAY_RECONNECTS = Counter(
    "drip_gateway_reconnects_total",
    "Total gateway reconnect attempts",
)

# Gauges
GATEWAY_CONNECTED = Gauge(
    "drip_gateway_connected",
    "Whether the gateway connection is live (1) or not (0)",
)

# Histograms
REQUEST_DURATION = Histogram(
    "drip_request_duration_seconds",
    "Retrieve request processing duration",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

TRANSACTION_DURATION = Histogram(
    "drip_transaction_duration_seconds",
    "Payout build, sign and broadcast duration",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
