"""
Persistence Layer

The only shared mutable state in a scan: the provider response cache.
"""

from .cache import ResponseCache, CacheEntry

__all__ = [
    "ResponseCache",
    "CacheEntry",
]
