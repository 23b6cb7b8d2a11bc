"""Gas distributor for DRIP faucet.

Sends a fixed amount of native FSN from the faucet wallet:
- Build, sign and broadcast a single native transfer
- No retry; a failed broadcast is reported to the caller

Addresses arrive already validated and normalized by the eligibility checks.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum

from web3 import Web3

from drip.blockchain import FusionClient
from drip.observability.metrics import GAS_DISTRIBUTED, PAYOUTS, TRANSACTION_DURATION

logger = logging.getLogger(__name__)


class DistributionStatus(str, Enum):
    """Distribution result status."""

    SUCCESS = "success"
    TRANSACTION_FAILED = "transaction_failed"


@dataclass
class DistributionResult:
    """Result of a distribution attempt."""

    success: bool
    status: DistributionStatus
    tx_hash: str | None
    amount_gwei: int
    message: str


class GasDistributor:
    """Sends the faucet's fixed gas amount to an address.

    Parameters
    ----------
    client : FusionClient
        Fusion blockchain client.
    amount_gwei : int
        Amount sent per payout, in gwei.
    """

    def __init__(self, client: FusionClient, amount_gwei: int = 2):
        self._client = client
        self._amount_gwei = amount_gwei

    @property
    def amount_gwei(self) -> int:
        """Payout amount in gwei."""
        return self._amount_gwei

    @property
    def amount_wei(self) -> int:
        """Payout amount in wei."""
        return Web3.to_wei(self._amount_gwei, "gwei")

    async def distribute(self, address: str) -> DistributionResult:
        """Send gas to an address.

        Parameters
        ----------
        address : str
            Recipient address.

        Returns
        -------
        DistributionResult
            Result of the distribution attempt.
        """
        started = time.perf_counter()
        try:
            tx_hash = await self._client.transfer_native(address, self.amount_wei)
        except Exception as e:
            logger.error(
                "Gas distribution failed",
                extra={"recipient": address, "amount_gwei": self._amount_gwei, "error": str(e)},
                exc_info=True,
            )
            return DistributionResult(
                success=False,
                status=DistributionStatus.TRANSACTION_FAILED,
                tx_hash=None,
                amount_gwei=self._amount_gwei,
                message=f"Sending faucet gas failed: {e}",
            )
        finally:
            TRANSACTION_DURATION.observe(time.perf_counter() - started)

        PAYOUTS.inc()
        GAS_DISTRIBUTED.inc(self._amount_gwei)
        logger.info(
            "Gas distributed",
            extra={"tx_hash": tx_hash, "recipient": address, "amount_gwei": self._amount_gwei},
        )
        return DistributionResult(
            success=True,
            status=DistributionStatus.SUCCESS,
            tx_hash=tx_hash,
            amount_gwei=self._amount_gwei,
            message=f"Successfully sent {self._amount_gwei} gwei",
        )
