"""
Shared mapping for API-Sports products (football, basketball, hockey).

ApiSportsAdapter maps the vendor's raw team and game shapes into the
canonical model. GamesApiAdapter adds the team directory, statistics with a
standings fallback, recent games and H2H that basketball and hockey share.
"""
import logging
from abc import abstractmethod
from dataclasses import replace
from typing import Any, Dict, List, Optional

from sportsedge.adapters.base import (
    SportAdapter,
    finished_or_unknown,
    newest_finished,
    summarize_h2h,
    summarize_recent,
)
from sportsedge.adapters.espn_injuries import EspnInjurySource
from sportsedge.cache import CacheManager, DataCategory, get_ttl_for_category
from sportsedge.clients.api_sports import (
    ApiSportsClient,
    GamesApiClient,
    RawGame,
    RawSeasonStats,
    RawStanding,
    RawTeam,
)
from sportsedge.clients.base import ProviderError
from sportsedge.models import (
    H2HQuery,
    MatchQuery,
    MatchStatus,
    NormalizedH2H,
    NormalizedInjury,
    NormalizedMatch,
    NormalizedRecentGames,
    NormalizedTeam,
    NormalizedTeamStats,
    Score,
    ScoringStats,
    StatsQuery,
    TeamQuery,
    TeamRecord,
)
from sportsedge.results import DataResult, ErrorCode
from sportsedge.utils.helpers import parse_datetime

logger = logging.getLogger("adapters.api_sports")


def win_percentage(wins: int, games: int) -> float:
    return round(wins / games * 100, 1) if games else 0.0


def per_game(total: float, games: int) -> float:
    return round(total / games, 1) if games else 0.0


def matches_ttl(result: DataResult) -> float:
    """Lists holding a live game expire within seconds."""
    live = any(m.status is MatchStatus.LIVE for m in (result.data or []))
    return get_ttl_for_category(DataCategory.MATCHES, has_live_match=live)


class ApiSportsAdapter(SportAdapter):
    """Team and game mapping common to every API-Sports product."""

    provider = "api-sports"
    STATUS_MAP: Dict[str, MatchStatus] = {}

    def __init__(self, client: ApiSportsClient, cache: CacheManager):
        super().__init__(cache)
        self.client = client

    def is_available(self) -> bool:
        return self.client.is_configured

    @abstractmethod
    def current_season(self) -> str:
        """Provider season code used when a query names none."""

    def map_status(self, status_short: str) -> MatchStatus:
        return self.STATUS_MAP.get(status_short, MatchStatus.UNKNOWN)

    def map_team(self, raw: RawTeam, league: str = "") -> NormalizedTeam:
        return NormalizedTeam(
            id=self.team_id(raw.id),
            external_id=str(raw.id),
            name=raw.name,
            short_name=raw.code or raw.name.split()[-1],
            sport=self.sport,
            league=league,
            venue=raw.venue,
            logo=raw.logo,
            country=raw.country,
        )

    def map_game(self, raw: RawGame) -> NormalizedMatch:
        score = None
        if raw.home_score is not None and raw.away_score is not None:
            score = Score(home=raw.home_score, away=raw.away_score, periods=tuple(raw.periods))
        status = finished_or_unknown(self.map_status(raw.status_short), score)
        return NormalizedMatch(
            id=f"{self.sport.value}-match-{raw.id}",
            external_id=str(raw.id),
            sport=self.sport,
            league=raw.league_name,
            season=raw.season,
            home_team=self.map_team(raw.home, raw.league_name),
            away_team=self.map_team(raw.away, raw.league_name),
            status=status,
            date=parse_datetime(raw.date) or parse_datetime(raw.timestamp),
            provider=self.provider,
            score=score,
            venue=raw.venue,
        )

    def _team_param(self, team: str) -> DataResult:
        """A numeric or provider-scoped id passes through; a name is resolved."""
        external = self.external_id(team)
        if external.isdigit():
            return self._success(external)
        result = self.find_team(TeamQuery(name=team))
        if not result.success:
            return result
        return self._success(result.data.external_id)

    def _build_stats(
        self,
        team_id: str,
        season: str,
        league: str,
        stats: RawSeasonStats,
        extended: Dict[str, Any],
    ) -> NormalizedTeamStats:
        games = stats.played or (stats.wins + stats.losses + stats.draws)
        return NormalizedTeamStats(
            team_id=team_id,
            season=season,
            league=league,
            sport=self.sport,
            record=TeamRecord(
                wins=stats.wins,
                losses=stats.losses,
                draws=stats.draws if self.sport.has_draw else 0,
                win_percentage=win_percentage(stats.wins, games),
            ),
            scoring=ScoringStats(
                total_for=stats.points_for,
                total_against=stats.points_against,
                average_for=stats.average_for or per_game(stats.points_for, games),
                average_against=stats.average_against or per_game(stats.points_against, games),
            ),
            provider=self.provider,
            form=stats.form,
            games_played=games,
            extended={k: v for k, v in extended.items() if v is not None},
        )


class GamesApiAdapter(ApiSportsAdapter):
    """
    Basketball and hockey: league-scoped team directory, /games listings,
    statistics with a standings fallback, ESPN injuries.
    """

    league_name = ""
    espn_league: Optional[str] = None
    # fetch the standings row alongside statistics (extended keys need it)
    needs_standing = False

    def __init__(
        self,
        client: GamesApiClient,
        cache: CacheManager,
        league_id: int,
        injuries: Optional[EspnInjurySource] = None,
    ):
        super().__init__(client, cache)
        self.league_id = league_id
        self.injuries = injuries

    @abstractmethod
    def previous_season(self) -> str:
        """Fallback season when the current one has no finished games yet."""

    def extended_stats(self, stats: RawSeasonStats, standing: Optional[RawStanding]) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    def teams(self, season: Optional[str] = None) -> List[NormalizedTeam]:
        season = season or self.current_season()
        raw = self._cached_list(
            "teams",
            DataCategory.TEAM_DIRECTORY,
            lambda: self.client.list_teams(self.league_id, season),
            league=self.league_id,
            season=season,
        )
        return [self.map_team(t, self.league_name) for t in raw]

    def standings(self, season: str) -> List[RawStanding]:
        return self._cached_list(
            "standings",
            DataCategory.TEAM_STATS,
            lambda: self.client.get_standings(self.league_id, season),
            league=self.league_id,
            season=season,
        )

    def standing_for(self, external_id: str, season: str) -> Optional[RawStanding]:
        for row in self.standings(season):
            if str(row.team.id) == external_id:
                return row
        return None

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
            return self._success(self.map_team(raw, self.league_name))

        team = self._resolve_team(query.name, self.teams())
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
            raw = self.client.get_games(league=self.league_id, season=season, date=day, team=team)
            games = sorted((self.map_game(g) for g in raw), key=lambda m: m.date.timestamp() if m.date else 0)
            return self._success(games)

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
            stats = self.client.get_statistics(int(external), self.league_id, season)
            standing = None
            if stats is None or stats.is_empty:
                logger.info(f"[{self.sport.value}] No statistics for {external} in {season}, trying standings")
                standing = self.standing_for(external, season)
                if standing is None:
                    return self._error(
                        ErrorCode.NOT_FOUND, f"No statistics for team {query.team_id} in season {season}"
                    )
                stats = RawSeasonStats(
                    played=standing.played,
                    wins=standing.wins,
                    losses=standing.losses,
                    points_for=standing.points_for,
                    points_against=standing.points_against,
                    form=standing.form,
                )
            elif self.needs_standing:
                try:
                    standing = self.standing_for(external, season)
                except ProviderError as e:
                    logger.warning(f"[{self.sport.value}] Standings unavailable for {external}: {e}")
            return self._success(
                self._build_stats(
                    self.team_id(external), season, self.league_name, stats,
                    self.extended_stats(stats, standing),
                )
            )

        return self._cached(
            "stats", DataCategory.TEAM_STATS, fetch,
            team=external, league=self.league_id, season=season,
        )

    def _fetch_finished(self, external: str, season: str) -> List[NormalizedMatch]:
        raw = self.client.get_games(team=int(external), league=self.league_id, season=season)
        return [self.map_game(g) for g in raw]

    def _get_recent_games(self, team_id: str, limit: int) -> DataResult[NormalizedRecentGames]:
        external = self.external_id(team_id)
        if not external.isdigit():
            return self._error(ErrorCode.INVALID_QUERY, f"Invalid team id: {team_id}")

        def fetch() -> DataResult:
            season = self.current_season()
            games = newest_finished(self._fetch_finished(external, season), limit)
            if not games:
                previous = self.previous_season()
                logger.info(f"[{self.sport.value}] No finished games in {season}, trying {previous}")
                games = newest_finished(self._fetch_finished(external, previous), limit)
            return self._success(
                NormalizedRecentGames(
                    team_id=self.team_id(external),
                    sport=self.sport,
                    games=games,
                    summary=summarize_recent(games, external, allow_draws=self.sport.has_draw),
                    provider=self.provider,
                )
            )

        return self._cached(
            "recent", DataCategory.RECENT_GAMES, fetch,
            team=external, league=self.league_id, limit=limit,
        )

    def _get_h2h(self, query: H2HQuery) -> DataResult[NormalizedH2H]:
        pair = self._resolve_pair(query)
        if not pair.success:
            return pair
        team1, team2 = pair.data

        first, second = sorted((team1.external_id, team2.external_id))
        raw = self._cached_list(
            "h2h",
            DataCategory.H2H,
            lambda: self.client.get_h2h(int(first), int(second), league=self.league_id),
            pair=f"{first}-{second}",
            league=self.league_id,
        )
        matches = newest_finished([self.map_game(g) for g in raw], query.limit)
        return self._success(
            NormalizedH2H(
                team1_id=team1.id,
                team2_id=team2.id,
                sport=self.sport,
                summary=summarize_h2h(matches, team1.external_id, allow_draws=self.sport.has_draw),
                matches=matches,
                provider=self.provider,
            )
        )

    def _get_injuries(self, team: str) -> DataResult[List[NormalizedInjury]]:
        if self.injuries is None or not self.injuries.supports(self.espn_league):
            return self._success([])
        injuries = self.injuries.team_injuries(self.espn_league, team)
        return DataResult.ok(injuries, provider=self.injuries.provider)
