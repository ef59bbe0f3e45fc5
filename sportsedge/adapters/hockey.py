"""
Hockey adapter (API-Sports hockey, ESPN injuries).

Games are decided in overtime or a shootout, so the record never carries
draws. Overtime games come from the standings' overtime win/loss columns.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from config.settings import compute_season_start_year, settings
from sportsedge.adapters.api_sports import GamesApiAdapter
from sportsedge.adapters.espn_injuries import EspnInjurySource
from sportsedge.cache import CacheManager
from sportsedge.clients.api_sports import HockeyClient, RawSeasonStats, RawStanding
from sportsedge.models import MatchStatus, Sport

logger = logging.getLogger("adapters.hockey")

SEASON_FIRST_MONTH = 10

STATUS_MAP = {
    "NS": MatchStatus.SCHEDULED,
    "P1": MatchStatus.LIVE,
    "P2": MatchStatus.LIVE,
    "P3": MatchStatus.LIVE,
    "OT": MatchStatus.LIVE,
    "PT": MatchStatus.LIVE,
    "BT": MatchStatus.LIVE,
    "LIVE": MatchStatus.LIVE,
    "FT": MatchStatus.FINISHED,
    "AOT": MatchStatus.FINISHED,
    "AP": MatchStatus.FINISHED,
    "AWD": MatchStatus.FINISHED,
    "POST": MatchStatus.POSTPONED,
    "INTR": MatchStatus.POSTPONED,
    "CANC": MatchStatus.CANCELLED,
    "ABD": MatchStatus.CANCELLED,
}


class HockeyAdapter(GamesApiAdapter):
    sport = Sport.HOCKEY
    STATUS_MAP = STATUS_MAP
    league_name = "NHL"
    espn_league = "nhl"
    needs_standing = True

    def __init__(
        self,
        client: HockeyClient,
        cache: CacheManager,
        league_id: Optional[int] = None,
        injuries: Optional[EspnInjurySource] = None,
        clock=datetime.now,
    ):
        super().__init__(
            client,
            cache,
            league_id if league_id is not None else settings.default_hockey_league_id,
            injuries,
        )
        self._clock = clock

    def current_season(self) -> str:
        return str(compute_season_start_year(self._clock(), first_month=SEASON_FIRST_MONTH))

    def previous_season(self) -> str:
        return str(compute_season_start_year(self._clock(), first_month=SEASON_FIRST_MONTH) - 1)

    def extended_stats(self, stats: RawSeasonStats, standing: Optional[RawStanding]) -> Dict[str, Any]:
        if standing is None:
            return {}
        if standing.overtime_wins is None and standing.overtime_losses is None:
            return {}
        return {"overtimeGames": (standing.overtime_wins or 0) + (standing.overtime_losses or 0)}
