"""Redis-backed store for finished scan results.

Writes only; reads and short-circuiting happen in front of the scanner.
``save`` never raises.
"""

import json

from loguru import logger
from redis.asyncio import Redis

KEY_PREFIX = "scan:"


class ScanCache:
    def __init__(self, redis_url: str, ttl_sec: int = 21600) -> None:
        self._redis_url = redis_url
        self._ttl_sec = ttl_sec
        self._redis: Redis | None = None

    def _client(self) -> Redis:
        if self._redis is None:
            self._redis = Redis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    async def save(self, address: str, result: dict) -> bool:
        key = f"{KEY_PREFIX}{address.lower()}"
        try:
            await self._client().set(key, json.dumps(result, default=str), ex=self._ttl_sec)
        except Exception as e:
            logger.warning(f"[CACHE] Save failed for {address[:12]}: {type(e).__name__}: {e}")
            return False
        logger.debug(f"[CACHE] Saved {key} (ttl={self._ttl_sec}s)")
        return True

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
