"""Store package for Redis-backed XP scores."""

import logging

from ..config import Config
from .redis_store import ScoreStore

__all__ = [
    "ScoreStore",
    "init_store",
]

logger = logging.getLogger(__name__)


async def init_store(config: Config) -> ScoreStore:
    """Create the store and check that Redis answers.

    Raises:
        StoreError: if Redis cannot be reached within the store timeout
    """
    store = ScoreStore.from_url(
        config.redis_url,
        prefix=config.redis_prefix,
        timeout=config.store_timeout,
    )
    try:
        await store.ping()
    except Exception:
        await store.close()
        raise
    logger.info(f"Connected to Redis (key prefix {config.redis_prefix!r})")
    return store
