"""
Response Cache

Caches provider resolutions per normalized domain to cut API costs across
scans. The cache is an explicitly owned object: whoever builds the aggregator
decides whether to pass one in, and tests inject a fake clock to expire
entries without waiting.

Writes are idempotent upserts, so concurrent scans that recompute the same
entry simply overwrite each other.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from src.utils.domain import normalize_domain

logger = logging.getLogger(__name__)


Clock = Callable[[], float]


@dataclass
class CacheEntry:
    """Cache entry with metadata."""
    key: str
    data: Any
    created_at: float
    expires_at: float
    hit_count: int = 0

    def is_expired(self, now: float) -> bool:
        """Check if entry has expired."""
        return now >= self.expires_at

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "hit_count": self.hit_count,
        }


class ResponseCache:
    """
    In-memory TTL cache keyed by (namespace, normalized domain, version).

    Usage:
        cache = ResponseCache(ttl=3600)
        cache.set("backlinks", "www.Shop.co.th", metrics)
        cache.get("backlinks", "shop.co.th")   # -> metrics
    """

    # Default TTL by namespace (seconds)
    DEFAULT_TTLS = {
        "keywords": 12 * 3600,      # Rankings more volatile
        "backlinks": 24 * 3600,     # Link graph changes slowly
        "authority": 24 * 3600,
        "default": 12 * 3600,
    }

    def __init__(
        self,
        ttl: Optional[float] = None,
        clock: Optional[Clock] = None,
        enabled: bool = True,
    ):
        """
        Initialize cache.

        Args:
            ttl: Fixed TTL in seconds for every namespace (None = per-namespace defaults)
            clock: Monotonic time source in seconds (defaults to time.monotonic)
            enabled: Whether caching is enabled
        """
        self.ttl = ttl
        self.clock = clock or time.monotonic
        self.enabled = enabled
        self._entries: Dict[Tuple[str, str, str], CacheEntry] = {}

        # Stats
        self._hits = 0
        self._misses = 0
        self._writes = 0

    @staticmethod
    def make_key(namespace: str, domain: str, version: Optional[str] = None) -> Tuple[str, str, str]:
        """Generate cache key from request parameters."""
        return (namespace, normalize_domain(domain) or domain.strip().lower(), version or "")

    def _get_ttl(self, namespace: str) -> float:
        if self.ttl is not None:
            return self.ttl
        return self.DEFAULT_TTLS.get(namespace, self.DEFAULT_TTLS["default"])

    def get(self, namespace: str, domain: str, version: Optional[str] = None) -> Optional[Any]:
        """
        Get cached value if available and not expired.

        Returns:
            Cached value or None
        """
        if not self.enabled:
            return None

        key = self.make_key(namespace, domain, version)
        entry = self._entries.get(key)

        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self.clock()):
            del self._entries[key]
            self._misses += 1
            logger.debug(f"Cache expired: {key}")
            return None

        entry.hit_count += 1
        self._hits += 1
        logger.debug(f"Cache hit: {key}")
        return entry.data

    def set(
        self,
        namespace: str,
        domain: str,
        value: Any,
        version: Optional[str] = None,
        ttl: Optional[float] = None,
    ) -> None:
        """Store value (overwrites any existing entry)."""
        if not self.enabled:
            return

        key = self.make_key(namespace, domain, version)
        now = self.clock()
        self._entries[key] = CacheEntry(
            key="|".join(key),
            data=value,
            created_at=now,
            expires_at=now + (ttl if ttl is not None else self._get_ttl(namespace)),
        )
        self._writes += 1

    def invalidate(self, namespace: str, domain: str, version: Optional[str] = None) -> bool:
        """Remove one entry. Returns True if something was removed."""
        return self._entries.pop(self.make_key(namespace, domain, version), None) is not None

    def invalidate_domain(self, domain: str) -> int:
        """Remove every entry for a domain across namespaces and versions."""
        host = self.make_key("", domain)[1]
        keys = [key for key in self._entries if key[1] == host]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def clear_expired(self) -> int:
        """Remove expired entries. Returns number removed."""
        now = self.clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.info(f"Cleared {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> int:
        """Clear all cache entries."""
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared {count} cache entries")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self._hits + self._misses
        hit_rate = self._hits / total_requests if total_requests > 0 else 0

        return {
            "enabled": self.enabled,
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "writes": self._writes,
            "hit_rate": round(hit_rate * 100, 1),
        }

    def __len__(self) -> int:
        return len(self._entries)
