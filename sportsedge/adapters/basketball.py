"""
Basketball adapter (API-Sports basketball, ESPN injuries).

League context is the NBA (id 12, seasons written "2025-2026") or the
Euroleague (id 120, seasons written as the starting year). Both roll over
in October.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from config.settings import compute_season_start_year, settings
from sportsedge.adapters.api_sports import GamesApiAdapter
from sportsedge.adapters.espn_injuries import EspnInjurySource
from sportsedge.cache import CacheManager
from sportsedge.clients.api_sports import BasketballClient, RawSeasonStats, RawStanding
from sportsedge.models import MatchStatus, Sport

logger = logging.getLogger("adapters.basketball")

NBA_LEAGUE_ID = 12
EUROLEAGUE_LEAGUE_ID = 120
SEASON_FIRST_MONTH = 10

STATUS_MAP = {
    "NS": MatchStatus.SCHEDULED,
    "Q1": MatchStatus.LIVE,
    "Q2": MatchStatus.LIVE,
    "Q3": MatchStatus.LIVE,
    "Q4": MatchStatus.LIVE,
    "OT": MatchStatus.LIVE,
    "BT": MatchStatus.LIVE,
    "HT": MatchStatus.LIVE,
    "LIVE": MatchStatus.LIVE,
    "FT": MatchStatus.FINISHED,
    "AOT": MatchStatus.FINISHED,
    "AWD": MatchStatus.FINISHED,
    "POST": MatchStatus.POSTPONED,
    "SUSP": MatchStatus.POSTPONED,
    "CANC": MatchStatus.CANCELLED,
    "ABD": MatchStatus.CANCELLED,
}


class BasketballAdapter(GamesApiAdapter):
    sport = Sport.BASKETBALL
    STATUS_MAP = STATUS_MAP

    def __init__(
        self,
        client: BasketballClient,
        cache: CacheManager,
        league_id: Optional[int] = None,
        injuries: Optional[EspnInjurySource] = None,
        clock=datetime.now,
    ):
        super().__init__(
            client,
            cache,
            league_id if league_id is not None else settings.default_basketball_league_id,
            injuries,
        )
        self._clock = clock

    @property
    def is_euroleague(self) -> bool:
        return self.league_id == EUROLEAGUE_LEAGUE_ID

    @property
    def league_name(self) -> str:
        return "Euroleague" if self.is_euroleague else "NBA"

    @property
    def espn_league(self) -> Optional[str]:
        return None if self.is_euroleague else "nba"

    def _season(self, start_year: int) -> str:
        if self.is_euroleague:
            return str(start_year)
        return f"{start_year}-{start_year + 1}"

    def current_season(self) -> str:
        return self._season(compute_season_start_year(self._clock(), first_month=SEASON_FIRST_MONTH))

    def previous_season(self) -> str:
        return self._season(compute_season_start_year(self._clock(), first_month=SEASON_FIRST_MONTH) - 1)

    def extended_stats(self, stats: RawSeasonStats, standing: Optional[RawStanding]) -> Dict[str, Any]:
        return {
            "homeFor": stats.home_for,
            "homeAgainst": stats.home_against,
            "awayFor": stats.away_for,
            "awayAgainst": stats.away_against,
        }
