"""Faucet components for DRIP."""

from .claims import ClaimRecord, ClaimStore, ReservationStatus
from .distributor import DistributionResult, DistributionStatus, GasDistributor
from .eligibility import EligibilityChecker, EligibilityResult, EligibilityStatus
from .rate_limiter import RateLimiter, RateLimitResult
from .service import FaucetResult, FaucetService

__all__ = [
    "ClaimRecord",
    "ClaimStore",
    "DistributionResult",
    "DistributionStatus",
    "EligibilityChecker",
    "EligibilityResult",
    "EligibilityStatus",
    "FaucetResult",
    "FaucetService",
    "GasDistributor",
    "RateLimitResult",
    "RateLimiter",
    "ReservationStatus",
]
