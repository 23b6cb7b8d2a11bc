"""Gateway connection keeper for DRIP.

Keeps exactly one WebSocket connection to the network gateway:
- connect marks the keeper live
- an error forces a disconnect, which leads to the end path
- the end path marks the keeper not live and reconnects after a fixed delay

Reconnects run forever with no backoff growth, retry limit or jitter.
"""

import asyncio
import logging
from collections.abc import Callable

from web3 import AsyncWeb3, WebSocketProvider

from drip.observability.metrics import GATEWAY_CONNECTED, GATEWAY_RECONNECTS

logger = logging.getLogger(__name__)


class GatewayUnavailableError(ConnectionError):
    """Raised when the gateway handle is needed while disconnected."""


def create_web3(gateway: str) -> AsyncWeb3:
    """Create an unconnected AsyncWeb3 bound to a WebSocket gateway."""
    # One attempt per connect; the keeper owns the retry loop.
    return AsyncWeb3(WebSocketProvider(gateway, max_connection_retries=1))


class ConnectionKeeper:
    """Maintains a live connection to the blockchain gateway.

    Parameters
    ----------
    gateway : str
        WebSocket RPC gateway URL.
    reconnect_delay : float
        Seconds to wait after a drop before reconnecting.
    probe_interval : float
        Seconds between liveness probes on an open connection.
    web3_factory : Callable[[str], AsyncWeb3] | None
        Builds a fresh, unconnected AsyncWeb3 for each connection attempt.
    """

    def __init__(
        self,
        gateway: str,
        reconnect_delay: float = 0.5,
        probe_interval: float = 5.0,
        web3_factory: Callable[[str], AsyncWeb3] | None = None,
    ):
        self._gateway = gateway
        self._reconnect_delay = reconnect_delay
        self._probe_interval = probe_interval
        self._web3_factory = web3_factory or create_web3
        self._w3: AsyncWeb3 | None = None
        self._live = False
        self._live_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def gateway(self) -> str:
        """The gateway URL this keeper connects to."""
        return self._gateway

    @property
    def is_live(self) -> bool:
        """True while the gateway connection is open."""
        return self._live

    @property
    def is_running(self) -> bool:
        """True while the reconnect loop is active."""
        return self._task is not None and not self._task.done()

    @property
    def web3(self) -> AsyncWeb3:
        """The shared web3 handle.

        Raises
        ------
        GatewayUnavailableError
            If the gateway is currently disconnected.
        """
        if not self._live or self._w3 is None:
            raise GatewayUnavailableError("Not connected to the blockchain gateway")
        return self._w3

    async def start(self) -> None:
        """Start the connect/reconnect loop in the background."""
        if self.is_running:
            logger.warning("Connection keeper already running")
            return
        self._task = asyncio.create_task(self._run(), name="drip-gateway-keeper")
        logger.info("Connection keeper started", extra={"gateway": self._gateway})

    async def stop(self) -> None:
        """Stop the loop and close the connection."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

        await self._disconnect()
        self._mark_down()
        logger.info("Connection keeper stopped")

    async def wait_until_live(self, timeout: float | None = None) -> bool:
        """Wait for the connection to come up.

        Returns
        -------
        bool
            True if live, False if the timeout passed first.
        """
        try:
            await asyncio.wait_for(self._live_event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run(self) -> None:
        while True:
            try:
                await self._connect()
                await self._watch()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(
                    "Gateway connection error",
                    extra={"gateway": self._gateway, "error": str(e)},
                )
                await self._disconnect()

            self._on_end()
            await asyncio.sleep(self._reconnect_delay)

    async def _connect(self) -> None:
        self._w3 = self._web3_factory(self._gateway)
        await self._w3.provider.connect()
        self._live = True
        self._live_event.set()
        GATEWAY_CONNECTED.set(1)
        logger.info("Gateway connected", extra={"gateway": self._gateway})

    async def _watch(self) -> None:
        """Probe the open connection until it fails."""
        while True:
            await asyncio.sleep(self._probe_interval)
            if not await self._w3.is_connected():
                raise GatewayUnavailableError("Gateway liveness probe failed")

    async def _disconnect(self) -> None:
        if self._w3 is None:
            return
        try:
            await self._w3.provider.disconnect()
        except Exception as e:
            # Socket is already broken; nothing left to close.
            logger.debug("Gateway disconnect failed", extra={"error": str(e)})

    def _mark_down(self) -> None:
        self._live = False
        self._live_event.clear()
        GATEWAY_CONNECTED.set(0)

    def _on_end(self) -> None:
        self._mark_down()
        GATEWAY_RECONNECTS.inc()
        logger.info(
            "Gateway connection ended, reconnecting",
            extra={"gateway": self._gateway, "delay_seconds": self._reconnect_delay},
        )
