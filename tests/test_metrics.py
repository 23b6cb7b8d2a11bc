"""Tests for Prometheus metrics."""

from prometheus_client import REGISTRY

from drip.observability.metrics import (
    GAS_DISTRIBUTED,
    GATEWAY_CONNECTED,
    GATEWAY_RECONNECTS,
    RATE_LIMITED,
    REQUEST_DURATION,
    REQUESTS,
    TRANSACTION_DURATION,
)


class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_requests_counter_labels(self):
        """REQUESTS counter has a status label."""
        REQUESTS.labels(status="invalid_address").inc()

        sample = REGISTRY.get_sample_value(
            "drip_requests_total",
            {"status": "invalid_address"},
        )
        assert sample is not None
        assert sample >= 1

    def test_gas_distributed_counter(self):
        """GAS_DISTRIBUTED counter tracks gwei sent."""
        initial = REGISTRY.get_sample_value("drip_gas_distributed_gwei_total") or 0

        GAS_DISTRIBUTED.inc(2)

        assert REGISTRY.get_sample_value("drip_gas_distributed_gwei_total") == initial + 2

    def test_rate_limited_counter(self):
        """RATE_LIMITED counter increments."""
        initial = REGISTRY.get_sample_value("drip_rate_limited_total") or 0

        RATE_LIMITED.inc()

        assert REGISTRY.get_sample_value("drip_rate_limited_total") == initial + 1

    def test_gateway_gauges(self):
        """Gateway connection state and reconnects are exported."""
        initial = REGISTRY.get_sample_value("drip_gateway_reconnects_total") or 0

        GATEWAY_CONNECTED.set(1)
        GATEWAY_RECONNECTS.inc()

        assert REGISTRY.get_sample_value("drip_gateway_connected") == 1
        assert REGISTRY.get_sample_value("drip_gateway_reconnects_total") == initial + 1
        GATEWAY_CONNECTED.set(0)

    def test_request_duration_histogram(self):
        """REQUEST_DURATION histogram tracks timing."""
        initial = REGISTRY.get_sample_value("drip_request_duration_seconds_count") or 0

        REQUEST_DURATION.observe(0.5)

        assert REGISTRY.get_sample_value("drip_request_duration_seconds_count") == initial + 1

    def test_transaction_duration_histogram(self):
        """TRANSACTION_DURATION histogram tracks timing."""
        TRANSACTION_DURATION.observe(5.0)

        sample = REGISTRY.get_sample_value("drip_transaction_duration_seconds_count")
        assert sample is not None
        assert sample >= 1
