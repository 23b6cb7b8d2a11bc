"""Claim store for DRIP faucet.

Features:
- One claim record per (wallet, IP) pair, upserted on every payout
- Atomic insert-if-absent reservation of wallet and IP before payout
- Redis persistence with in-memory fallback for development
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)


@dataclass
class ClaimRecord:
    """One address's faucet usage from one IP."""

    wallet_address: str
    ip_address: str
    last_visit: datetime

    def to_mapping(self) -> dict[str, str]:
        """Serialize for a Redis hash."""
        return {
            "wallet_address": self.wallet_address,
            "ip_address": self.ip_address,
            "last_visit": self.last_visit.isoformat(),
        }

    @classmethod
    def from_mapping(cls, data: dict[str, str]) -> "ClaimRecord":
        """Deserialize from a Redis hash."""
        return cls(
            wallet_address=data["wallet_address"],
            ip_address=data["ip_address"],
            last_visit=datetime.fromisoformat(data["last_visit"]),
        )


class ReservationStatus(str, Enum):
    """Outcome of a claim reservation."""

    RESERVED = "reserved"
    WALLET_TAKEN = "wallet_taken"
    IP_TAKEN = "ip_taken"


class ClaimStore:
    """Persists claim records.

    Uses Redis for persistence in production, with in-memory fallback
    for development/testing.

    Parameters
    ----------
    redis_url : str | None
        Redis connection URL. If None, uses in-memory storage.
    claim_window_hours : int
        How long an IP stays blocked after a claim.
    """

    def __init__(self, redis_url: str | None = None, claim_window_hours: int = 24):
        self._window_seconds = claim_window_hours * 3600
        self._redis = None  # Redis instance or None

        # In-memory fallback storage
        self._memory_records: dict[tuple[str, str], ClaimRecord] = {}
        self._memory_wallets: dict[str, str] = {}  # wallet -> ip
        self._memory_ips: dict[str, float] = {}  # ip -> reserved at

        if redis_url:
            self._init_redis(redis_url)

    def _init_redis(self, redis_url: str) -> None:
        """Initialize Redis connection."""
        try:
            from redis import Redis

            self._redis = Redis.from_url(redis_url, decode_responses=True)
            self._redis.ping()
            logger.info("Redis connected for claim store", extra={"url": redis_url})
        except Exception as e:
            logger.warning(
                "Redis connection failed, using in-memory claim store",
                extra={"error": str(e)},
            )
            self._redis = None

    @property
    def backend(self) -> str:
        """Name of the active storage backend."""
        return "redis" if self._redis else "memory"

    @property
    def claim_window_seconds(self) -> int:
        """Seconds an IP stays blocked after a claim."""
        return self._window_seconds

    def _claim_key(self, wallet: str, ip: str) -> str:
        return f"drip:claim:{wallet}:{ip}"

    def _wallet_key(self, wallet: str) -> str:
        return f"drip:wallet:{wallet}"

    def _ip_key(self, ip: str) -> str:
        return f"drip:ip:{ip}"

    async def find_by_wallet(self, wallet: str) -> ClaimRecord | None:
        """Find the claim record for a wallet, whenever it was made.

        Parameters
        ----------
        wallet : str
            Normalized wallet address.

        Returns
        -------
        ClaimRecord | None
            The most recent record for the wallet, or None.
        """
        if self._redis:
            ip = self._redis.get(self._wallet_key(wallet))
            if not ip:
                return None
            data = self._redis.hgetall(self._claim_key(wallet, ip))
            return ClaimRecord.from_mapping(data) if data else None

        records = [r for r in self._memory_records.values() if r.wallet_address == wallet]
        return max(records, key=lambda r: r.last_visit, default=None)

    async def find_recent_by_ip(self, ip: str, since: datetime) -> ClaimRecord | None:
        """Find a claim made from an IP at or after ``since``.

        Parameters
        ----------
        ip : str
            Requester IP address.
        since : datetime
            Start of the lookback window (UTC).

        Returns
        -------
        ClaimRecord | None
            The IP's most recent record inside the window, or None.
        """
        if self._redis:
            wallet = self._redis.get(self._ip_key(ip))
            if not wallet:
                return None
            data = self._redis.hgetall(self._claim_key(wallet, ip))
            if not data:
                return None
            record = ClaimRecord.from_mapping(data)
            return record if record.last_visit >= since else None

        records = [
            r
            for r in self._memory_records.values()
            if r.ip_address == ip and r.last_visit >= since
        ]
        return max(records, key=lambda r: r.last_visit, default=None)

    async def reserve(self, wallet: str, ip: str) -> ReservationStatus:
        """Atomically reserve a wallet and an IP for a payout.

        The wallet is inserted only if absent and never expires; the IP is
        inserted only if absent and expires with the claim window. If the IP
        is taken, the wallet reservation is rolled back.

        Returns
        -------
        ReservationStatus
            RESERVED, or which side was already taken.
        """
        if self._redis:
            return self._reserve_redis(wallet, ip)
        return self._reserve_memory(wallet, ip)

    def _reserve_redis(self, wallet: str, ip: str) -> ReservationStatus:
        wallet_key = self._wallet_key(wallet)
        if not self._redis.set(wallet_key, ip, nx=True):
            return ReservationStatus.WALLET_TAKEN
        if not self._redis.set(self._ip_key(ip), wallet, nx=True, ex=self._window_seconds):
            self._redis.delete(wallet_key)
            return ReservationStatus.IP_TAKEN
        return ReservationStatus.RESERVED

    def _reserve_memory(self, wallet: str, ip: str) -> ReservationStatus:
        now = time.time()
        if wallet in self._memory_wallets:
            return ReservationStatus.WALLET_TAKEN
        reserved_at = self._memory_ips.get(ip)
        if reserved_at is not None and now - reserved_at < self._window_seconds:
            return ReservationStatus.IP_TAKEN
        self._memory_wallets[wallet] = ip
        self._memory_ips[ip] = now
        return ReservationStatus.RESERVED

    async def release(self, wallet: str, ip: str) -> None:
        """Undo a reservation after a failed payout."""
        if self._redis:
            wallet_key = self._wallet_key(wallet)
            ip_key = self._ip_key(ip)
            if self._redis.get(wallet_key) == ip:
                self._redis.delete(wallet_key)
            if self._redis.get(ip_key) == wallet:
                self._redis.delete(ip_key)
        else:
            if self._memory_wallets.get(wallet) == ip:
                del self._memory_wallets[wallet]
            self._memory_ips.pop(ip, None)

        logger.info("Claim reservation released", extra={"wallet": wallet, "ip": ip})

    async def record(self, wallet: str, ip: str, when: datetime | None = None) -> ClaimRecord:
        """Upsert the claim record for a (wallet, IP) pair.

        Parameters
        ----------
        wallet : str
            Normalized wallet address.
        ip : str
            Requester IP address.
        when : datetime | None
            Claim time, defaults to now (UTC).

        Returns
        -------
        ClaimRecord
            The stored record.
        """
        record = ClaimRecord(
            wallet_address=wallet,
            ip_address=ip,
            last_visit=when or datetime.now(timezone.utc),
        )

        if self._redis:
            pipe = self._redis.pipeline()
            pipe.hset(self._claim_key(wallet, ip), mapping=record.to_mapping())
            pipe.set(self._wallet_key(wallet), ip)
            pipe.set(self._ip_key(ip), wallet, ex=self._window_seconds)
            pipe.execute()
        else:
            self._memory_records[(wallet, ip)] = record
            self._memory_wallets[wallet] = ip
            self._memory_ips[ip] = record.last_visit.timestamp()

        logger.debug("Claim recorded", extra={"wallet": wallet, "ip": ip})
        return record

    async def ping(self) -> bool:
        """Check that the backend is reachable."""
        if self._redis:
            return bool(self._redis.ping())
        return True
