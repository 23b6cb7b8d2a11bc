"""Tests for the gateway connection keeper."""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import REGISTRY

from drip.blockchain.keeper import ConnectionKeeper, GatewayUnavailableError

GATEWAY = "wss://gateway.example.com:10001"


def make_web3(connected: bool = True) -> MagicMock:
    """Create a mock AsyncWeb3 with a controllable provider."""
    w3 = MagicMock()
    w3.provider.connect = AsyncMock()
    w3.provider.disconnect = AsyncMock()
    w3.is_connected = AsyncMock(return_value=connected)
    return w3


class Web3Factory:
    """Hands out queued mock web3 instances, then healthy ones."""

    def __init__(self, *web3s: MagicMock):
        self._queue = list(web3s)
        self.created: list[MagicMock] = []
        self.gateways: list[str] = []

    def __call__(self, gateway: str) -> MagicMock:
        w3 = self._queue.pop(0) if self._queue else make_web3()
        self.created.append(w3)
        self.gateways.append(gateway)
        return w3


async def wait_for(predicate, timeout: float = 2.0) -> bool:
    """Poll a predicate until it holds or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.005)
    return predicate()


@pytest.fixture
async def keeper_factory():
    """Build keepers with short timings and stop them afterwards."""
    keepers: list[ConnectionKeeper] = []

    def build(factory: Web3Factory, reconnect_delay: float = 0.05) -> ConnectionKeeper:
        keeper = ConnectionKeeper(
            GATEWAY,
            reconnect_delay=reconnect_delay,
            probe_interval=0.01,
            web3_factory=factory,
        )
        keepers.append(keeper)
        return keeper

    yield build

    for keeper in keepers:
        await keeper.stop()


class TestConnectionKeeper:
    """Tests for ConnectionKeeper."""

    def test_not_live_before_start(self):
        """A new keeper is not live and has no handle."""
        keeper = ConnectionKeeper(GATEWAY, web3_factory=Web3Factory())

        assert keeper.is_live is False
        assert keeper.is_running is False
        with pytest.raises(GatewayUnavailableError):
            _ = keeper.web3

    @pytest.mark.asyncio
    async def test_connects_on_start(self, keeper_factory):
        """start() connects and marks the keeper live."""
        factory = Web3Factory()
        keeper = keeper_factory(factory)

        await keeper.start()

        assert await keeper.wait_until_live(timeout=1.0) is True
        assert keeper.is_live is True
        assert keeper.web3 is factory.created[0]
        assert factory.gateways == [GATEWAY]
        factory.created[0].provider.connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_already_running(self, keeper_factory):
        """start() is idempotent when already running."""
        factory = Web3Factory()
        keeper = keeper_factory(factory)

        await keeper.start()
        await keeper.start()
        await keeper.wait_until_live(timeout=1.0)

        assert len(factory.created) == 1

    @pytest.mark.asyncio
    async def test_reconnects_after_drop(self, keeper_factory):
        """A failed liveness probe disconnects and reconnects."""
        dropping = make_web3()
        factory = Web3Factory(dropping)
        keeper = keeper_factory(factory)

        await keeper.start()
        await keeper.wait_until_live(timeout=1.0)

        # Simulate the socket going away
        dropping.is_connected.return_value = False

        assert await wait_for(lambda: len(factory.created) == 2 and keeper.is_live)
        dropping.provider.disconnect.assert_awaited()
        assert keeper.web3 is factory.created[1]

    @pytest.mark.asyncio
    async def test_reconnects_within_retry_interval(self, keeper_factory):
        """Reconnect happens after the fixed delay, without backoff."""
        dropping = make_web3()
        factory = Web3Factory(dropping)
        keeper = keeper_factory(factory, reconnect_delay=0.1)

        await keeper.start()
        await keeper.wait_until_live(timeout=1.0)

        dropping.is_connected.return_value = False
        assert await wait_for(lambda: not keeper.is_live, timeout=1.0)
        dropped_at = time.monotonic()

        assert await wait_for(lambda: keeper.is_live, timeout=1.0)
        elapsed = time.monotonic() - dropped_at
        assert elapsed < 0.1 + 0.5

    @pytest.mark.asyncio
    async def test_probe_error_triggers_disconnect(self, keeper_factory):
        """An exception from the probe is handled as an error."""
        failing = make_web3()
        factory = Web3Factory(failing)
        keeper = keeper_factory(factory)

        await keeper.start()
        await keeper.wait_until_live(timeout=1.0)
        failing.is_connected.side_effect = OSError("socket closed")

        assert await wait_for(lambda: len(factory.created) == 2 and keeper.is_live)
        failing.provider.disconnect.assert_awaited()

    @pytest.mark.asyncio
    async def test_retries_failed_connect_forever(self, keeper_factory):
        """Connection failures are retried until one succeeds."""
        refused = [make_web3() for _ in range(3)]
        for w3 in refused:
            w3.provider.connect.side_effect = ConnectionRefusedError("refused")
        factory = Web3Factory(*refused)
        keeper = keeper_factory(factory, reconnect_delay=0.01)

        await keeper.start()

        assert await keeper.wait_until_live(timeout=2.0) is True
        assert len(factory.created) == 4
        assert keeper.web3 is factory.created[3]

    @pytest.mark.asyncio
    async def test_disconnect_failure_is_tolerated(self, keeper_factory):
        """A failing disconnect on a broken socket does not stop the loop."""
        broken = make_web3()
        broken.provider.disconnect.side_effect = RuntimeError("already closed")
        factory = Web3Factory(broken)
        keeper = keeper_factory(factory)

        await keeper.start()
        await keeper.wait_until_live(timeout=1.0)
        broken.is_connected.return_value = False

        assert await wait_for(lambda: len(factory.created) == 2 and keeper.is_live)

    @pytest.mark.asyncio
    async def test_stop(self, keeper_factory):
        """stop() cancels the loop and closes the connection."""
        factory = Web3Factory()
        keeper = keeper_factory(factory)

        await keeper.start()
        await keeper.wait_until_live(timeout=1.0)
        await keeper.stop()

        assert keeper.is_live is False
        assert keeper.is_running is False
        factory.created[0].provider.disconnect.assert_awaited()
        with pytest.raises(GatewayUnavailableError):
            _ = keeper.web3

    @pytest.mark.asyncio
    async def test_wait_until_live_timeout(self, keeper_factory):
        """wait_until_live returns False if nothing connects."""
        never = make_web3()
        never.provider.connect.side_effect = OSError("unreachable")
        keeper = keeper_factory(Web3Factory(never), reconnect_delay=10)

        await keeper.start()

        assert await keeper.wait_until_live(timeout=0.05) is False

    @pytest.mark.asyncio
    async def test_connected_gauge(self, keeper_factory):
        """The connected gauge follows the connection state."""
        keeper = keeper_factory(Web3Factory())

        await keeper.start()
        await keeper.wait_until_live(timeout=1.0)
        assert REGISTRY.get_sample_value("drip_gateway_connected") == 1

        await keeper.stop()
        assert REGISTRY.get_sample_value("drip_gateway_connected") == 0
