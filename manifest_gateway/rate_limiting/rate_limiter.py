"""
Rate Limiter

Fixed-window request counter per client, stored in the key-value backend.

Features:
- One counter per client under ``ratelimit:<client_id>``
- Window resets the first time a request arrives after it has elapsed
- Counters expire on their own (store TTL = window length)
- Fails open when the backing store is unreachable

Algorithm:
1. Read the counter (count, start)
2. Start a new window if none exists or ``now - start > window``
3. Increment, write back with the window TTL
4. Allow while ``count <= limit``

Trade-off: read-modify-write without a lock, so concurrent requests from one
client can slip slightly past the limit. This is soft limiting; the fail-open
policy likewise favours availability over strict quota enforcement.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

import orjson
from fastapi import Request
from slowapi.util import get_remote_address

from manifest_gateway.core.config.constants import RATE_LIMIT_KEY_PREFIX, Stage
from manifest_gateway.core.exceptions import CacheError
from manifest_gateway.core.interfaces.cache import CacheBackend
from manifest_gateway.core.logging import get_logger, log_stage

logger = get_logger(__name__)

PROXY_IP_HEADERS = ("CF-Connecting-IP", "X-Real-IP")


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of one rate limit check.

    remaining is -1 when the limiter failed open and could not count.
    reset_at is epoch milliseconds.
    """

    allowed: bool
    remaining: int
    limit: int
    reset_at: int
    failed_open: bool = False

    def retry_after_seconds(self, now_ms: int) -> int:
        return max(1, math.ceil((self.reset_at - now_ms) / 1000))


class WindowRateLimiter:
    """
    Usage:
        limiter = WindowRateLimiter(MemoryBackend(), limit=100, window_ms=60_000)
        decision = await limiter.check("203.0.113.7")
        if not decision.allowed:
            ...
    """

    def __init__(
        self,
        backend: CacheBackend,
        limit: int = 100,
        window_ms: int = 60_000,
        clock: Callable[[], float] | None = None,
    ):
        self._backend = backend
        self._limit = limit
        self._window_ms = window_ms
        self._ttl_seconds = math.ceil(window_ms / 1000)
        self._clock = clock or time.time

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    @staticmethod
    def key_for(client_id: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{client_id}"

    async def check(self, client_id: str) -> RateLimitDecision:
        """
        Count one request for a client and decide whether it may proceed.

        STAGE-3.0: Rate limiting
        """
        key = self.key_for(client_id)
        now = self.now_ms()

        try:
            raw = await self._backend.get(key)
            count, start = 0, now
            if raw is not None:
                counter = self._decode(raw)
                if counter is not None and now - counter[1] <= self._window_ms:
                    count, start = counter

            count += 1
            await self._backend.set(
                key, orjson.dumps({"count": count, "start": start}), self._ttl_seconds
            )
        except CacheError as e:
            log_stage(
                logger, Stage.RATE_LIMITING, "Rate limit store unavailable, allowing request",
                level="warning", client=client_id, error=str(e),
            )
            return RateLimitDecision(
                allowed=True, remaining=-1, limit=self._limit,
                reset_at=now + self._window_ms, failed_open=True,
            )

        allowed = count <= self._limit
        if not allowed:
            log_stage(
                logger, Stage.RATE_LIMITING, "Rate limit exceeded",
                level="warning", client=client_id, count=count, limit=self._limit,
            )
        return RateLimitDecision(
            allowed=allowed,
            remaining=max(0, self._limit - count),
            limit=self._limit,
            reset_at=start + self._window_ms,
        )

    @staticmethod
    def _decode(raw: bytes) -> tuple[int, int] | None:
        try:
            data = orjson.loads(raw)
            return int(data["count"]), int(data["start"])
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError):
            return None


def get_client_identifier(request: Request, trust_proxy_headers: bool = True) -> str:
    """
    Identify the client for rate limiting.

    Priority (when proxy headers are trusted): CF-Connecting-IP > X-Real-IP >
    first hop of X-Forwarded-For > socket peer address.
    """
    if trust_proxy_headers:
        for header in PROXY_IP_HEADERS:
            value = request.headers.get(header)
            if value and value.strip():
                return value.strip()
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop

    return get_remote_address(request) or "unknown"
