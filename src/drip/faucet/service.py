"""Faucet Service for DRIP.

Coordinates all faucet components:
- Eligibility checker
- Claim store reservation and recording
- Gas distributor
"""

import logging
from dataclasses import dataclass

from .claims import ClaimStore, ReservationStatus
from .distributor import GasDistributor
from .eligibility import (
    EligibilityChecker,
    EligibilityResult,
    EligibilityStatus,
    normalize_address,
)

logger = logging.getLogger(__name__)

_RESERVATION_CONFLICTS = {
    ReservationStatus.WALLET_TAKEN: EligibilityStatus.WALLET_ALREADY_CLAIMED,
    ReservationStatus.IP_TAKEN: EligibilityStatus.IP_RECENTLY_CLAIMED,
}


@dataclass
class FaucetResult:
    """Result of a faucet request."""

    success: bool
    status: str
    tx_hash: str | None
    message: str


class FaucetService:
    """Main faucet service orchestrating all components.

    Parameters
    ----------
    claims : ClaimStore
        Store of previous claims.
    checker : EligibilityChecker
        Eligibility rules.
    distributor : GasDistributor
        Sends the payout.
    """

    def __init__(
        self,
        claims: ClaimStore,
        checker: EligibilityChecker,
        distributor: GasDistributor,
    ):
        self._claims = claims
        self._checker = checker
        self._distributor = distributor

    async def check(self, wallet_address: str, ip_address: str) -> EligibilityResult:
        """Run the eligibility checks without paying out.

        Parameters
        ----------
        wallet_address : str
            Wallet address as submitted.
        ip_address : str
            Requester IP address.

        Returns
        -------
        EligibilityResult
            Outcome of the checks.
        """
        return await self._checker.check(normalize_address(wallet_address), ip_address)

    async def retrieve(self, wallet_address: str, ip_address: str) -> FaucetResult:
        """Handle a gas request.

        The wallet and IP are reserved atomically before payout, so two
        concurrent requests cannot both be paid. A failed payout releases
        the reservation; a successful one upserts the claim record.

        Parameters
        ----------
        wallet_address : str
            Wallet address as submitted.
        ip_address : str
            Requester IP address.

        Returns
        -------
        FaucetResult
            Result of the request.
        """
        wallet = normalize_address(wallet_address)

        eligibility = await self._checker.check(wallet, ip_address)
        if not eligibility.eligible:
            return self._rejected(eligibility)

        reservation = await self._claims.reserve(wallet, ip_address)
        if reservation != ReservationStatus.RESERVED:
            logger.info(
                "Claim reservation conflict",
                extra={"wallet": wallet, "ip": ip_address, "conflict": reservation.value},
            )
            return self._rejected(EligibilityResult.of(_RESERVATION_CONFLICTS[reservation]))

        result = await self._distributor.distribute(wallet)
        if not result.success:
            await self._claims.release(wallet, ip_address)
            return FaucetResult(
                success=False,
                status=result.status.value,
                tx_hash=None,
                message=result.message,
            )

        await self._claims.record(wallet, ip_address)
        logger.info(
            "Sending gas",
            extra={"wallet": wallet, "ip": ip_address, "tx_hash": result.tx_hash},
        )

        return FaucetResult(
            success=True,
            status=result.status.value,
            tx_hash=result.tx_hash,
            message=f"Success. Gas will be sent to {wallet} shortly.",
        )

    @staticmethod
    def _rejected(eligibility: EligibilityResult) -> FaucetResult:
        return FaucetResult(
            success=False,
            status=eligibility.status.value,
            tx_hash=None,
            message=eligibility.message,
        )
