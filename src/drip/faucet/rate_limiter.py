"""Rate Limiter for DRIP HTTP API.

Features:
- Per-IP request cap over a fixed window
- Counts every request, allowed or not
- In-memory fallback for development
"""

import logging
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


@dataclass
class RateLimitResult:
    """Result of a rate limit hit."""

    allowed: bool
    limit: int
    remaining: int  # Requests left in the current window
    reset_seconds: int  # Seconds until the window resets


class RateLimiter:
    """Fixed-window request limiter keyed by client IP.

    Uses Redis for persistence in production, with in-memory fallback
    for development/testing.

    Parameters
    ----------
    max_requests : int
        Maximum requests per key per window.
    window_minutes : int
        Window length in minutes.
    redis_url : str | None
        Redis connection URL. If None, uses in-memory storage.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_minutes: int = 15,
        redis_url: str | None = None,
    ):
        self._max_requests = max_requests
        self._window_seconds = window_minutes * 60
        self._redis = None  # Redis instance or None

        # In-memory fallback storage: key -> (window start, count)
        self._memory_windows: dict[str, tuple[float, int]] = {}

        if redis_url:
            self._init_redis(redis_url)

    def _init_redis(self, redis_url: str) -> None:
        """Initialize Redis connection."""
        try:
            from redis import Redis

            self._redis = Redis.from_url(redis_url, decode_responses=True)
            self._redis.ping()
            logger.info("Redis connected for rate limiting", extra={"url": redis_url})
        except Exception as e:
            logger.warning(
                "Redis connection failed, using in-memory rate limiting",
                extra={"error": str(e)},
            )
            self._redis = None

    def _get_key(self, client: str) -> str:
        """Get Redis key for a client's request counter."""
        return f"drip:ratelimit:{client}"

    async def hit(self, client: str) -> RateLimitResult:
        """Count a request and report whether it is allowed.

        Parameters
        ----------
        client : str
            Client identifier (IP address).

        Returns
        -------
        RateLimitResult
            Whether the request is allowed and window info.
        """
        if self._redis:
            count, reset_seconds = self._hit_redis(client)
        else:
            count, reset_seconds = self._hit_memory(client)

        return RateLimitResult(
            allowed=count <= self._max_requests,
            limit=self._max_requests,
            remaining=max(0, self._max_requests - count),
            reset_seconds=reset_seconds,
        )

    def _hit_redis(self, client: str) -> tuple[int, int]:
        """Increment the client's counter in Redis."""
        key = self._get_key(client)

        pipe = self._redis.pipeline()
        pipe.incr(key)
        pipe.ttl(key)
        count, ttl = pipe.execute()

        # First hit of a window, or a key that lost its expiry
        if ttl < 0:
            self._redis.expire(key, self._window_seconds)
            ttl = self._window_seconds

        return int(count), int(ttl)

    def _hit_memory(self, client: str) -> tuple[int, int]:
        """Increment the client's counter in memory."""
        now = time.time()
        start, count = self._memory_windows.get(client, (now, 0))
        if now - start >= self._window_seconds:
            start, count = now, 0

        count += 1
        self._memory_windows[client] = (start, count)

        # Drop windows that have ended
        self._memory_windows = {
            k: v for k, v in self._memory_windows.items() if now - v[0] < self._window_seconds
        }

        return count, max(0, int(start + self._window_seconds - now))

    def reset(self, client: str) -> None:
        """Reset the counter for a client (admin function).

        Parameters
        ----------
        client : str
            Client identifier.
        """
        if self._redis:
            self._redis.delete(self._get_key(client))
        else:
            self._memory_windows.pop(client, None)

        logger.info("Rate limit reset for client", extra={"client": client})
