"""
Soccer adapter (API-Football v3).

The only three-way sport: draws are counted everywhere. Team resolution
tries the default league's directory first and falls back to the provider's
name search for clubs outside it.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from config.settings import compute_season_start_year, settings
from sportsedge.adapters.api_sports import ApiSportsAdapter, matches_ttl
from sportsedge.adapters.base import newest_finished, summarize_h2h, summarize_recent
from sportsedge.cache import CacheManager, DataCategory
from sportsedge.clients.api_sports import FootballClient, RawInjury
from sportsedge.models import (
    H2HQuery,
    InjuryStatus,
    MatchQuery,
    MatchStatus,
    NormalizedH2H,
    NormalizedInjury,
    NormalizedMatch,
    NormalizedRecentGames,
    NormalizedTeam,
    NormalizedTeamStats,
    Sport,
    StatsQuery,
    TeamQuery,
)
from sportsedge.resolver import expand_alias
from sportsedge.results import DataResult, ErrorCode
from sportsedge.utils.helpers import safe_lower

logger = logging.getLogger("adapters.soccer")

SEASON_FIRST_MONTH = 8
MIN_SEARCH_LENGTH = 3

STATUS_MAP = {
    "TBD": MatchStatus.SCHEDULED,
    "NS": MatchStatus.SCHEDULED,
    "1H": MatchStatus.LIVE,
    "HT": MatchStatus.LIVE,
    "2H": MatchStatus.LIVE,
    "ET": MatchStatus.LIVE,
    "BT": MatchStatus.LIVE,
    "P": MatchStatus.LIVE,
    "INT": MatchStatus.LIVE,
    "LIVE": MatchStatus.LIVE,
    "FT": MatchStatus.FINISHED,
    "AET": MatchStatus.FINISHED,
    "PEN": MatchStatus.FINISHED,
    "AWD": MatchStatus.FINISHED,
    "WO": MatchStatus.FINISHED,
    "PST": MatchStatus.POSTPONED,
    "SUSP": MatchStatus.POSTPONED,
    "CANC": MatchStatus.CANCELLED,
    "ABD": MatchStatus.CANCELLED,
}

INJURY_STATUS = {
    "missing fixture": InjuryStatus.OUT,
    "questionable": InjuryStatus.QUESTIONABLE,
}


class SoccerAdapter(ApiSportsAdapter):
    sport = Sport.SOCCER
    provider = "api-football"
    STATUS_MAP = STATUS_MAP

    def __init__(
        self,
        client: FootballClient,
        cache: CacheManager,
        league_id: Optional[int] = None,
        clock=datetime.now,
    ):
        super().__init__(client, cache)
        self.league_id = league_id if league_id is not None else settings.default_soccer_league_id
        self._clock = clock

    def current_season(self) -> str:
        return str(compute_season_start_year(self._clock(), first_month=SEASON_FIRST_MONTH))

    def _league(self, league: Optional[str]) -> int:
        return int(league) if league and str(league).isdigit() else self.league_id

    def teams(self, league: int, season: str) -> List[NormalizedTeam]:
        raw = self._cached_list(
            "teams",
            DataCategory.TEAM_DIRECTORY,
            lambda: self.client.list_teams(league, int(season)),
            league=league,
            season=season,
        )
        return [self.map_team(t) for t in raw]

    def search(self, name: str) -> List[NormalizedTeam]:
        term = expand_alias(name, self.sport)
        if len(term) < MIN_SEARCH_LENGTH:
            return []
        raw = self._cached_list(
            "search", DataCategory.TEAM_DIRECTORY, lambda: self.client.search_teams(term), term=term
        )
        return [self.map_team(t) for t in raw]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _find_team(self, query: TeamQuery) -> DataResult[NormalizedTeam]:
        if query.id:
            external = self.external_id(query.id)
            if not external.isdigit():
                return self._error(ErrorCode.INVALID_QUERY, f"Invalid team id: {query.id}")
            raw = self.client.get_team(int(external))
            if raw is None:
                return self._error(ErrorCode.NOT_FOUND, f"No team with id {query.id}")
            return self._success(self.map_team(raw))

        team = self._resolve_team(query.name, self.teams(self._league(query.league), self.current_season()))
        if team is None:
            team = self._resolve_team(query.name, self.search(query.name))
        if team is None:
            return self._error(ErrorCode.NOT_FOUND, f"Could not find team: {query.name}")
        return self._success(team)

    def _get_matches(self, query: MatchQuery) -> DataResult[List[NormalizedMatch]]:
        team = None
        if query.team:
            resolved = self._team_param(query.team)
            if not resolved.success:
                return resolved
            team = resolved.data
        season = query.season or self.current_season()
        day = query.date.isoformat() if query.date else None

        def fetch() -> DataResult:
            raw = self.client.get_fixtures(league=self.league_id, season=season, date=day, team=team)
            fixtures = sorted((self.map_game(g) for g in raw), key=lambda m: m.date.timestamp() if m.date else 0)
            return self._success(fixtures)

        result = self._cached(
            "matches", DataCategory.MATCHES, fetch, ttl_for=matches_ttl,
            league=self.league_id, season=season, date=day, team=team,
        )
        if result.success and query.limit:
            return replace(result, data=result.data[:query.limit])
        return result

    def _get_team_stats(self, query: StatsQuery) -> DataResult[NormalizedTeamStats]:
        external = self.external_id(query.team_id)
        if not external.isdigit():
            return self._error(ErrorCode.INVALID_QUERY, f"Invalid team id: {query.team_id}")
        season = query.season or self.current_season()

        def fetch() -> DataResult:
            stats = self.client.get_team_statistics(int(external), self.league_id, int(season))
            if stats is None or stats.is_empty:
                return self._error(
                    ErrorCode.NOT_FOUND, f"No statistics for team {query.team_id} in season {season}"
                )
            extended = {
                "cleanSheets": stats.clean_sheets,
                "failedToScore": stats.failed_to_score,
                "biggestWinStreak": stats.biggest_win_streak,
            }
            return self._success(
                self._build_stats(self.team_id(external), season, str(self.league_id), stats, extended)
            )

        return self._cached(
            "stats", DataCategory.TEAM_STATS, fetch,
            team=external, league=self.league_id, season=season,
        )

    def _get_recent_games(self, team_id: str, limit: int) -> DataResult[NormalizedRecentGames]:
        external = self.external_id(team_id)
        if not external.isdigit():
            return self._error(ErrorCode.INVALID_QUERY, f"Invalid team id: {team_id}")

        def fetch() -> DataResult:
            raw = self.client.get_fixtures(team=int(external), last=limit)
            games = newest_finished([self.map_game(g) for g in raw], limit)
            return self._success(
                NormalizedRecentGames(
                    team_id=self.team_id(external),
                    sport=self.sport,
                    games=games,
                    summary=summarize_recent(games, external),
                    provider=self.provider,
                )
            )

        return self._cached("recent", DataCategory.RECENT_GAMES, fetch, team=external, limit=limit)

    def _get_h2h(self, query: H2HQuery) -> DataResult[NormalizedH2H]:
        pair = self._resolve_pair(query)
        if not pair.success:
            return pair
        team1, team2 = pair.data

        first, second = sorted((team1.external_id, team2.external_id))
        raw = self._cached_list(
            "h2h",
            DataCategory.H2H,
            lambda: self.client.get_head_to_head(int(first), int(second)),
            pair=f"{first}-{second}",
        )
        matches = newest_finished([self.map_game(g) for g in raw], query.limit)
        return self._success(
            NormalizedH2H(
                team1_id=team1.id,
                team2_id=team2.id,
                sport=self.sport,
                summary=summarize_h2h(matches, team1.external_id),
                matches=matches,
                provider=self.provider,
            )
        )

    def _get_injuries(self, team: str) -> DataResult[List[NormalizedInjury]]:
        resolved = self.find_team(TeamQuery(name=team))
        if not resolved.success:
            return resolved
        club = resolved.data
        season = self.current_season()

        def fetch() -> DataResult:
            raw = self.client.get_injuries(int(club.external_id), int(season))
            return self._success(self.map_injuries(raw, club.name))

        return self._cached("injuries", DataCategory.INJURIES, fetch, team=club.external_id, season=season)

    def map_injuries(self, raw: List[RawInjury], team_name: str) -> List[NormalizedInjury]:
        """
        The provider lists a player once per missed fixture; keep the entry
        for the most recent fixture only.
        """
        latest: Dict[str, RawInjury] = {}
        for item in sorted(raw, key=lambda i: i.fixture_date or "", reverse=True):
            key = str(item.player_id) if item.player_id is not None else item.player_name
            latest.setdefault(key, item)

        return [
            NormalizedInjury(
                player_name=item.player_name,
                team_name=item.team_name or team_name,
                status=INJURY_STATUS.get(safe_lower(item.type).strip(), InjuryStatus.DAY_TO_DAY),
                type=item.reason or "Unspecified",
                description=f"{item.type}: {item.reason}" if item.type else item.reason,
                provider=self.provider,
                expected_return=None,
                player_id=str(item.player_id) if item.player_id is not None else None,
            )
            for item in latest.values()
        ]
