"""
TTL configuration per data category and cache key construction.
"""
from typing import Any, Dict, Optional

from .core import DataCategory


# TTL configuration by category (in seconds)
TTL_CONFIG: Dict[DataCategory, int] = {
    DataCategory.ODDS: 60,               # 1 minute
    DataCategory.MATCHES: 120,           # 2 minutes
    DataCategory.EVENTS: 300,            # 5 minutes
    DataCategory.INJURIES: 900,          # 15 minutes
    DataCategory.TEAM_STATS: 900,        # 15 minutes
    DataCategory.RECENT_GAMES: 600,      # 10 minutes
    DataCategory.H2H: 3600,              # 1 hour
    DataCategory.TEAM_DIRECTORY: 21600,  # 6 hours
}

# Matches with a live game in them go stale within seconds
LIVE_MATCHES_TTL = 15


def get_ttl_for_category(
    category: Optional[DataCategory],
    default_ttl: int = 300,
    has_live_match: bool = False,
) -> int:
    """
    Get the TTL for a data category.

    Args:
        category: The data category, None for the default policy
        default_ttl: TTL used when the category has no entry
        has_live_match: True when the cached value contains a live match

    Returns:
        TTL in seconds
    """
    if category is None:
        return default_ttl
    if category == DataCategory.MATCHES and has_live_match:
        return LIVE_MATCHES_TTL
    return TTL_CONFIG.get(category, default_ttl)


def build_cache_key(namespace: str, operation: str, **params: Any) -> str:
    """
    Build a deterministic cache key.

    None-valued params are dropped and the rest sorted, so the same query
    always lands on the same key regardless of argument order:

        build_cache_key("basketball", "stats", team="145", season="2025-2026")
        -> "basketball:stats:season=2025-2026|team=145"
    """
    parts = [
        f"{name}={str(value).lower()}"
        for name, value in sorted(params.items())
        if value is not None
    ]
    return f"{namespace}:{operation}:{'|'.join(parts)}"
