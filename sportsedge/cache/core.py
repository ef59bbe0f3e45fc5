"""
Core cache data structures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any


class DataCategory(Enum):
    """Categories of data with different freshness requirements."""
    ODDS = "odds"                       # prices move quickly
    MATCHES = "matches"                 # fixtures and live scores
    EVENTS = "events"                   # upcoming odds-provider events
    INJURIES = "injuries"               # daily-ish updates
    TEAM_STATS = "team_stats"           # season aggregates
    RECENT_GAMES = "recent_games"
    H2H = "h2h"                         # historical, rarely changes
    TEAM_DIRECTORY = "team_directory"   # team lists, fighter profiles


@dataclass
class CacheEntry:
    """
    A cached value with the clock reading at store time.

    `stored_at` comes from the manager's clock (monotonic by default), so
    entries are compared against that same clock, never wall time.
    """
    value: Any
    stored_at: float
    ttl_seconds: float
    category: DataCategory = DataCategory.MATCHES

    def age_seconds(self, now: float) -> float:
        return now - self.stored_at

    def is_expired(self, now: float) -> bool:
        """An entry at or past its TTL is treated as absent."""
        return self.age_seconds(now) >= self.ttl_seconds
