"""
Price cache for competitor lookups.

Entries expire by time only; there is no invalidation API, a stale entry is
simply overwritten on the next miss. ``get_or_fetch`` holds a per-key lock so
concurrent callers asking for the same uncached key share one fetch.
"""

import asyncio
import contextlib
import json
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol

import redis.asyncio as redis

from config.config import BATCH_TTL_SECONDS, INTERACTIVE_TTL_SECONDS
from models.competitive import CacheEntry, RawPriceRecord

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[list[RawPriceRecord]]]

__all__ = [
    "BATCH_TTL_SECONDS",
    "INTERACTIVE_TTL_SECONDS",
    "KeyLocks",
    "PriceCache",
    "PriceCacheBackend",
    "RedisPriceCache",
    "make_cache_key",
]

_WHITESPACE = re.compile(r"\s+")


def _normalize(text: str | None) -> str:
    return _WHITESPACE.sub(" ", (text or "").strip().lower())


class KeyLocks:
    """Per-key asyncio locks, dropped once no caller holds or waits on them."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextlib.asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


def make_cache_key(query: str, category: str | None) -> str:
    """Normalized query term plus category, e.g. ``"hendricks gin|spirits"``."""
    return f"{_normalize(query)}|{_normalize(category)}"


class PriceCacheBackend(Protocol):
    async def get_or_fetch(
        self, query: str, category: str | None, fetch: Fetcher, ttl_seconds: float
    ) -> list[RawPriceRecord]: ...


class PriceCache:
    """In-memory TTL cache with an injectable clock and per-key single-flight."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._locks = KeyLocks()
        self.hits = 0
        self.misses = 0
        self.fetches = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> list[RawPriceRecord] | None:
        """Return the cached payload if fresh, otherwise None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            logger.debug(f"Cache entry '{key}' is stale (fetched {entry.fetched_at})")
            return None
        entry.hits += 1
        return list(entry.payload)

    def set(self, key: str, payload: list[RawPriceRecord], ttl_seconds: float) -> CacheEntry:
        entry = CacheEntry(key=key, payload=list(payload), fetched_at=self._clock(), ttl_seconds=ttl_seconds)
        self._entries[key] = entry
        return entry

    def entry(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    async def get_or_fetch(
        self,
        query: str,
        category: str | None,
        fetch: Fetcher,
        ttl_seconds: float = BATCH_TTL_SECONDS,
    ) -> list[RawPriceRecord]:
        """
        Return the cached payload for ``(query, category)`` or fetch and store it.

        Empty payloads are returned but not stored, so a later retry can still
        find data. Exceptions from ``fetch`` propagate and leave the cache as it was.
        """
        key = make_cache_key(query, category)
        cached = self.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug(f"Cache hit for '{key}'")
            return cached

        async with self._locks.hold(key):
            # Another caller may have populated the key while we waited
            cached = self.get(key)
            if cached is not None:
                self.hits += 1
                return cached

            self.misses += 1
            self.fetches += 1
            payload = await fetch()
            if payload:
                self.set(key, payload, ttl_seconds)
                logger.debug(f"Cached {len(payload)} records for '{key}' (ttl={ttl_seconds}s)")
            return list(payload)


class RedisPriceCache:
    """
    Redis-backed cache with the same interface. Expiry is delegated to Redis
    (``SET ... EX``); any Redis error degrades to a miss so harvesting continues.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "ci:prices:"):
        self.client = client
        self.key_prefix = key_prefix
        self._locks = KeyLocks()
        self.hits = 0
        self.misses = 0
        self.fetches = 0

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "ci:prices:") -> "RedisPriceCache":
        return cls(redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    async def _read(self, key: str) -> list[RawPriceRecord] | None:
        try:
            raw = await self.client.get(self.key_prefix + key)
        except Exception as e:
            logger.error(f"Error reading price cache key '{key}' from Redis: {e}")
            return None
        if raw is None:
            return None
        try:
            return [RawPriceRecord.model_validate(item) for item in json.loads(raw)]
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache payload for '{key}': {e}")
            return None

    async def _write(self, key: str, payload: list[RawPriceRecord], ttl_seconds: float) -> None:
        data = json.dumps([record.model_dump() for record in payload])
        try:
            await self.client.set(self.key_prefix + key, data, ex=max(1, int(ttl_seconds)))
        except Exception as e:
            logger.error(f"Error writing price cache key '{key}' to Redis: {e}")

    async def get_or_fetch(
        self,
        query: str,
        category: str | None,
        fetch: Fetcher,
        ttl_seconds: float = BATCH_TTL_SECONDS,
    ) -> list[RawPriceRecord]:
        key = make_cache_key(query, category)
        async with self._locks.hold(key):
            cached = await self._read(key)
            if cached is not None:
                self.hits += 1
                return cached
            self.misses += 1
            self.fetches += 1
            payload = await fetch()
            if payload:
                await self._write(key, payload, ttl_seconds)
            return list(payload)

    async def close(self) -> None:
        await self.client.aclose()
