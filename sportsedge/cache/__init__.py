"""
TTL cache with per-category policies and request coalescing.
"""
from .core import CacheEntry, DataCategory
from .ttl_policies import (
    TTL_CONFIG,
    LIVE_MATCHES_TTL,
    build_cache_key,
    get_ttl_for_category,
)
from .coalescer import RequestCoalescer
from .manager import CacheManager

__all__ = [
    # Core types
    "CacheEntry",
    "DataCategory",
    # TTL policies
    "TTL_CONFIG",
    "LIVE_MATCHES_TTL",
    "build_cache_key",
    "get_ttl_for_category",
    # Coalescing
    "RequestCoalescer",
    # Manager
    "CacheManager",
]
