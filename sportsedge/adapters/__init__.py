"""
Sport adapters: one uniform data-access contract per sport.
"""
from .base import AdapterRegistry, SportAdapter, summarize_h2h, summarize_recent
from .espn_injuries import EspnInjurySource
from .api_sports import ApiSportsAdapter, GamesApiAdapter
from .soccer import SoccerAdapter
from .basketball import BasketballAdapter
from .hockey import HockeyAdapter
from .mma import MmaAdapter

__all__ = [
    # Contract
    "SportAdapter",
    "AdapterRegistry",
    "summarize_recent",
    "summarize_h2h",
    # Sources
    "EspnInjurySource",
    # Adapters
    "ApiSportsAdapter",
    "GamesApiAdapter",
    "SoccerAdapter",
    "BasketballAdapter",
    "HockeyAdapter",
    "MmaAdapter",
]
