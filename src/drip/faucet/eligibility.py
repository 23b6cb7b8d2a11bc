"""Eligibility checks for DRIP faucet.

An address may claim only if, in this order:
1. it is a well-formed address
2. it has never claimed before
3. the requesting IP has not claimed within the claim window
4. it has never sent a transaction
5. it holds no balance

Checks short-circuit, so later lookups are skipped once one fails.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum

from drip.blockchain import FusionClient

from .claims import ClaimStore

logger = logging.getLogger(__name__)


class EligibilityStatus(str, Enum):
    """Eligibility outcome."""

    ELIGIBLE = "eligible"
    INVALID_ADDRESS = "invalid_address"
    WALLET_ALREADY_CLAIMED = "wallet_already_claimed"
    IP_RECENTLY_CLAIMED = "ip_recently_claimed"
    ADDRESS_USED = "address_used"
    NONZERO_BALANCE = "nonzero_balance"


MESSAGES = {
    EligibilityStatus.ELIGIBLE: "Address is eligible.",
    EligibilityStatus.INVALID_ADDRESS: "Wallet address does not appear to be valid.",
    EligibilityStatus.WALLET_ALREADY_CLAIMED: "Address has already claimed gas.",
    EligibilityStatus.IP_RECENTLY_CLAIMED: (
        "Your IP has already claimed gas for an address recently."
    ),
    EligibilityStatus.ADDRESS_USED: "Must be a new, unused address.",
    EligibilityStatus.NONZERO_BALANCE: "Address has a non-zero balance: {balance}",
}

_BARE_HEX_ADDRESS = re.compile(r"^[0-9a-f]{40}$")


def normalize_address(address: str) -> str:
    """Normalize an address for storage and lookup.

    Lowercases, and adds the ``0x`` prefix to a bare 40-hex address so
    that every accepted address has one canonical form.
    """
    address = address.strip().lower()
    if _BARE_HEX_ADDRESS.match(address):
        return f"0x{address}"
    return address


@dataclass
class EligibilityResult:
    """Result of an eligibility check."""

    status: EligibilityStatus
    message: str

    @property
    def eligible(self) -> bool:
        """True if the address may claim."""
        return self.status == EligibilityStatus.ELIGIBLE

    @classmethod
    def of(cls, status: EligibilityStatus, **fields: str) -> "EligibilityResult":
        """Build a result carrying the status's standard message.

        ``fields`` fill the message template, e.g. ``balance`` for
        NONZERO_BALANCE.
        """
        return cls(status=status, message=MESSAGES[status].format(**fields))


class EligibilityChecker:
    """Runs the faucet's eligibility rules.

    Parameters
    ----------
    client : FusionClient
        Source of on-chain transaction count and balance.
    claims : ClaimStore
        Source of previous claims.
    claim_window : timedelta
        How long an IP is blocked after a claim.
    """

    def __init__(
        self,
        client: FusionClient,
        claims: ClaimStore,
        claim_window: timedelta = timedelta(hours=24),
    ):
        self._client = client
        self._claims = claims
        self._claim_window = claim_window

    async def check(self, wallet_address: str, ip_address: str) -> EligibilityResult:
        """Check whether a wallet may claim from an IP.

        Parameters
        ----------
        wallet_address : str
            Normalized wallet address.
        ip_address : str
            Requester IP address.

        Returns
        -------
        EligibilityResult
            The first failed rule, or ELIGIBLE.
        """
        if not self._client.is_address(wallet_address):
            return EligibilityResult.of(EligibilityStatus.INVALID_ADDRESS)

        if await self._claims.find_by_wallet(wallet_address):
            return EligibilityResult.of(EligibilityStatus.WALLET_ALREADY_CLAIMED)

        since = datetime.now(timezone.utc) - self._claim_window
        if await self._claims.find_recent_by_ip(ip_address, since):
            return EligibilityResult.of(EligibilityStatus.IP_RECENTLY_CLAIMED)

        if await self._client.get_transaction_count(wallet_address) != 0:
            return EligibilityResult.of(EligibilityStatus.ADDRESS_USED)

        balance = await self._client.get_balance(wallet_address)
        if balance != Decimal("0"):
            return EligibilityResult.of(EligibilityStatus.NONZERO_BALANCE, balance=f"{balance:f}")

        logger.debug(
            "Address eligible",
            extra={"wallet": wallet_address, "ip": ip_address},
        )
        return EligibilityResult.of(EligibilityStatus.ELIGIBLE)
