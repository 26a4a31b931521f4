"""
Analysis Cache for MisIntel.
Stores URL analysis results so repeat checks of the same article are instant.
In-memory store with optional JSON persistence, or a diskcache backend.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

import diskcache

from config import Settings, get_settings, CACHE_TTLS, CACHE_KEY_PREFIX

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str) -> str:
    """
    Canonical form of a URL for cache lookups.

    Lowercases scheme and host, drops a default port, the trailing slash of
    the path and the fragment. The query string is kept.
    """
    url = url.strip()
    try:
        parts = urlsplit(url)
        scheme = parts.scheme.lower()
        host = (parts.hostname or "").lower()
        port = parts.port
    except ValueError:
        return url
    if not scheme or not host:
        return url

    netloc = host
    if port and _DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{host}:{port}"
    path = parts.path.rstrip("/")
    query = f"?{parts.query}" if parts.query else ""
    return f"{scheme}://{netloc}{path}{query}"


def cache_key(url: str) -> str:
    return f"{CACHE_KEY_PREFIX}{normalize_url(url)}"


def choose_ttl(confidence: int, safe: bool, base_ttl: int = CACHE_TTLS.BASE) -> int:
    """
    TTL in seconds for a freshly computed result.

    Unsafe URLs expire after 6 hours regardless of confidence. Otherwise
    confident verdicts (>= 90) live 14 days and shaky ones (< 70) 12 hours.
    """
    if not safe:
        return CACHE_TTLS.UNSAFE
    if confidence >= CACHE_TTLS.HIGH_CONFIDENCE_FROM:
        return CACHE_TTLS.HIGH_CONFIDENCE
    if confidence < CACHE_TTLS.LOW_CONFIDENCE_BELOW:
        return CACHE_TTLS.LOW_CONFIDENCE
    return base_ttl


class AnalysisCache(ABC):
    """Async key/value store for analysis results, keyed by normalized URL."""

    @abstractmethod
    async def get(self, url: str) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, url: str, value: dict[str, Any], ttl_seconds: int) -> None:
        ...

    @abstractmethod
    async def delete(self, url: str) -> None:
        ...

    @abstractmethod
    async def ttl(self, url: str) -> Optional[int]:
        """Seconds left before the entry for ``url`` expires, or None."""


class MemoryAnalysisCache(AnalysisCache):
    """
    In-process cache with per-entry expiry.

    Features:
    - TTL chosen per entry at write time
    - Oldest-first eviction past ``max_size``
    - Optional JSON persistence
    """

    def __init__(
        self,
        persist_path: Optional[str] = None,
        max_size: int = 1000,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the cache.

        Args:
            persist_path: Path to JSON file for persistence (optional)
            max_size: Maximum number of entries to keep in memory
            clock: Time source in epoch seconds (defaults to ``time.time``)
        """
        self.persist_path = Path(persist_path) if persist_path else None
        self.max_size = max_size
        self._clock = clock or time.time

        self._entries: dict[str, dict] = {}
        self._lock = Lock()

        if self.persist_path and self.persist_path.exists():
            self._load_from_disk()

    def _is_expired(self, entry: dict) -> bool:
        return self._clock() >= entry["expires_at"]

    def _cleanup_expired(self):
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
            for key in expired:
                del self._entries[key]

    def _enforce_size_limit(self):
        with self._lock:
            if len(self._entries) > self.max_size:
                oldest = sorted(self._entries.items(), key=lambda x: x[1]["stored_at"])
                for key, _ in oldest[: len(self._entries) - self.max_size]:
                    del self._entries[key]

    def _load_from_disk(self):
        try:
            with open(self.persist_path, "r", encoding="utf-8") as f:
                self._entries = json.load(f).get("entries", {})
            self._cleanup_expired()
        except (OSError, json.JSONDecodeError, AttributeError) as e:
            logger.warning("Error loading analysis cache: %s", e)
            self._entries = {}

    def _save_to_disk(self):
        if not self.persist_path:
            return
        try:
            self.persist_path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock:
                snapshot = dict(self._entries)
            with open(self.persist_path, "w", encoding="utf-8") as f:
                json.dump({"entries": snapshot}, f, default=str)
        except (OSError, TypeError) as e:
            logger.warning("Error saving analysis cache: %s", e)

    async def get(self, url: str) -> Optional[dict[str, Any]]:
        key = cache_key(url)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry):
                del self._entries[key]
                return None
            return dict(entry["value"])

    async def set(self, url: str, value: dict[str, Any], ttl_seconds: int) -> None:
        now = self._clock()
        with self._lock:
            self._entries[cache_key(url)] = {
                "value": value,
                "stored_at": now,
                "expires_at": now + ttl_seconds,
            }
        self._cleanup_expired()
        self._enforce_size_limit()
        self._save_to_disk()

    async def delete(self, url: str) -> None:
        with self._lock:
            self._entries.pop(cache_key(url), None)
        self._save_to_disk()

    async def ttl(self, url: str) -> Optional[int]:
        with self._lock:
            entry = self._entries.get(cache_key(url))
        if entry is None or self._is_expired(entry):
            return None
        return int(entry["expires_at"] - self._clock())

class DiskAnalysisCache(AnalysisCache):
    """
    ``diskcache``-backed store; expiry is handled by diskcache itself.
    SQLite calls run in worker threads to keep the event loop free.
    """

    def __init__(self, directory: str):
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        self.cache = diskcache.Cache(str(path))

    async def get(self, url: str) -> Optional[dict[str, Any]]:
        value = await asyncio.to_thread(self.cache.get, cache_key(url))
        return dict(value) if isinstance(value, dict) else None

    async def set(self, url: str, value: dict[str, Any], ttl_seconds: int) -> None:
        await asyncio.to_thread(self.cache.set, cache_key(url), value, expire=ttl_seconds)

    async def delete(self, url: str) -> None:
        await asyncio.to_thread(self.cache.delete, cache_key(url))

    async def ttl(self, url: str) -> Optional[int]:
        value, expire_time = await asyncio.to_thread(self.cache.get, cache_key(url), expire_time=True)
        if value is None or expire_time is None:
            return None
        return max(int(expire_time - time.time()), 0)

    def close(self):
        self.cache.close()


async def read_cached_result(cache: AnalysisCache, url: str) -> Optional[dict[str, Any]]:
    """Cache lookup that treats any store failure as a miss."""
    try:
        cached = await cache.get(url)
    except Exception as e:
        logger.warning("Cache GET error: %s", e)
        return None
    if cached:
        logger.info("Cache HIT for URL: %s", url)
    else:
        logger.info("Cache MISS for URL: %s", url)
    return cached


async def write_cached_result(
    cache: AnalysisCache,
    url: str,
    result: dict[str, Any],
    ttl_seconds: int,
) -> None:
    """Store ``result`` stamped with ``cachedAt``; store failures are only logged."""
    value = {**result, "cachedAt": datetime.now(timezone.utc).isoformat()}
    try:
        await cache.set(url, value, ttl_seconds)
        logger.info("Cached analysis for URL (TTL: %ss): %s", ttl_seconds, url)
    except Exception as e:
        logger.warning("Cache SET error: %s", e)


def get_analysis_cache(settings: Optional[Settings] = None) -> AnalysisCache:
    """Build the cache backend selected by ``CACHE_BACKEND``."""
    settings = settings or get_settings()
    if settings.cache_backend == "disk":
        return DiskAnalysisCache(settings.cache_dir)
    return MemoryAnalysisCache()
