"""Redis-backed score store.

Each chat owns one sorted set, `<prefix><chat_id>`, mapping usernames to XP.
Redis provides atomic increments and ordering; this class only wraps the
commands the bot needs and bounds each call with a timeout.
"""

import asyncio
import logging
from typing import Awaitable, List, Optional, Tuple, TypeVar

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from ..errors import ScoreNotFound, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScoreStore:
    """Async adapter over the per-chat XP sorted sets."""

    def __init__(self, client: aioredis.Redis, prefix: str = "XPBOT_", timeout: float = 3.0):
        self.client = client
        self.prefix = prefix
        self.timeout = timeout

    @classmethod
    def from_url(cls, url: str, prefix: str = "XPBOT_", timeout: float = 3.0) -> "ScoreStore":
        """Create a store with its own connection pool."""
        client = aioredis.Redis.from_url(url, decode_responses=True)
        return cls(client, prefix=prefix, timeout=timeout)

    # ---- helpers ----

    def key(self, chat_id: int) -> str:
        """Sorted-set key for a chat."""
        return f"{self.prefix}{chat_id}"

    def cooldown_key(self, chat_id: int, username: str) -> str:
        return f"{self.prefix}{chat_id}_COOLDOWN_{username}"

    async def _call(self, op: str, awaitable: Awaitable[T]) -> T:
        """Await a Redis call under the store timeout, mapping failures to StoreError."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise StoreError(f"{op} timed out after {self.timeout}s") from e
        except RedisError as e:
            raise StoreError(f"{op} failed: {type(e).__name__}: {e}") from e

    # ---- lifecycle ----

    async def ping(self) -> None:
        """Health check. Raises StoreError if Redis is unreachable."""
        await self._call("PING", self.client.ping())

    async def close(self) -> None:
        """Close the connection pool."""
        await self.client.aclose()

    # ---- scores ----

    async def increment(self, chat_id: int, username: str, delta: int) -> int:
        """Atomically add delta to a user's score and return the new score.

        Missing users start at zero, so the first call stores `delta`.
        """
        score = await self._call(
            "ZINCRBY", self.client.zincrby(self.key(chat_id), delta, username)
        )
        return int(score)

    async def score_rank_total(self, chat_id: int, username: str) -> Tuple[int, int, int]:
        """Return (score, 1-based rank, participant count) from one transaction.

        The three reads run in a single MULTI/EXEC so the rank and the total
        always describe the same leaderboard.

        Raises:
            ScoreNotFound: if the user has never been scored in this chat
            StoreError: on Redis failure or timeout
        """
        key = self.key(chat_id)

        async def read() -> list:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.zscore(key, username)
                pipe.zrevrank(key, username)
                pipe.zcard(key)
                return await pipe.execute()

        score, rank, total = await self._call("score/rank/total", read())
        if score is None or rank is None:
            raise ScoreNotFound(chat_id, username)
        return int(score), int(rank) + 1, int(total)

    async def top(self, chat_id: int, n: int) -> List[Tuple[str, int]]:
        """Return up to n (username, score) pairs, highest score first."""
        if n <= 0:
            return []
        rows = await self._call(
            "ZREVRANGE",
            self.client.zrevrange(self.key(chat_id), 0, n - 1, withscores=True),
        )
        return [(member, int(score)) for member, score in rows]

    async def acquire_cooldown(self, chat_id: int, username: str, seconds: int) -> bool:
        """Claim the passive-XP cooldown slot for a user.

        Returns True if the user was not on cooldown (and now is), False
        otherwise. A non-positive window disables the cooldown.
        """
        if seconds <= 0:
            return True
        acquired: Optional[bool] = await self._call(
            "SET NX",
            self.client.set(self.cooldown_key(chat_id, username), 1, nx=True, ex=seconds),
        )
        return bool(acquired)
