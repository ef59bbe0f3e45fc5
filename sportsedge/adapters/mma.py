"""
MMA adapter (API-Sports MMA).

Fighters stand in for teams and fights for matches: the first fighter is
the "home" side. There is no injury feed, so injuries are always an empty
success.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import List

from sportsedge.adapters.api_sports import matches_ttl
from sportsedge.adapters.base import (
    SportAdapter,
    finished_or_unknown,
    newest_finished,
    summarize_h2h,
    summarize_recent,
)
from sportsedge.cache import CacheManager, DataCategory
from sportsedge.clients.mma import MmaClient, RawFight, RawFighter, RawFighterRecord
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
    Sport,
    StatsQuery,
    TeamQuery,
    TeamRecord,
)
from sportsedge.results import DataResult, ErrorCode
from sportsedge.utils.helpers import parse_datetime

logger = logging.getLogger("adapters.mma")

DEFAULT_LEAGUE = "UFC"

STATUS_MAP = {
    "NS": MatchStatus.SCHEDULED,
    "IN": MatchStatus.LIVE,
    "PF": MatchStatus.LIVE,
    "LIVE": MatchStatus.LIVE,
    "EOR": MatchStatus.LIVE,
    "WO": MatchStatus.LIVE,
    "FT": MatchStatus.FINISHED,
    "CANC": MatchStatus.CANCELLED,
    "PST": MatchStatus.POSTPONED,
}


def rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


class MmaAdapter(SportAdapter):
    sport = Sport.MMA
    provider = "api-mma"

    def __init__(self, client: MmaClient, cache: CacheManager, clock=datetime.now):
        super().__init__(cache)
        self.client = client
        self._clock = clock

    def is_available(self) -> bool:
        return self.client.is_configured

    def current_season(self) -> str:
        return str(self._clock().year)

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def map_fighter(self, raw: RawFighter) -> NormalizedTeam:
        return NormalizedTeam(
            id=self.team_id(raw.id),
            external_id=str(raw.id),
            name=raw.name,
            short_name=raw.nickname or raw.name.split()[-1],
            sport=self.sport,
            league=raw.category or DEFAULT_LEAGUE,
            venue=raw.camp,
            logo=raw.image,
            country=raw.nationality,
        )

    def map_fight(self, raw: RawFight) -> NormalizedMatch:
        score = Score(home=raw.first_result, away=raw.second_result) if raw.has_result else None
        date = parse_datetime(raw.timestamp) or parse_datetime(raw.date)
        return NormalizedMatch(
            id=f"{self.sport.value}-fight-{raw.id}",
            external_id=str(raw.id),
            sport=self.sport,
            league=raw.category or DEFAULT_LEAGUE,
            season=str(date.year) if date else self.current_season(),
            home_team=self.map_fighter(raw.first),
            away_team=self.map_fighter(raw.second),
            status=finished_or_unknown(STATUS_MAP.get(raw.status_short, MatchStatus.UNKNOWN), score),
            date=date,
            provider=self.provider,
            score=score,
            venue=raw.category,
        )

    def map_record(self, record: RawFighterRecord, season: str) -> NormalizedTeamStats:
        wins = record.wins
        total = record.total_fights
        finishes = record.ko_wins + record.sub_wins
        return NormalizedTeamStats(
            team_id=self.team_id(record.fighter_id),
            season=season,
            league=DEFAULT_LEAGUE,
            sport=self.sport,
            record=TeamRecord(
                wins=wins,
                losses=record.losses,
                draws=record.draws,
                win_percentage=rate(wins, total),
            ),
            # finishes stand in for points scored
            scoring=ScoringStats(
                total_for=finishes,
                total_against=record.ko_losses + record.sub_losses,
                average_for=rate(finishes, wins),
                average_against=0.0,
            ),
            provider=self.provider,
            games_played=total,
            extended={
                "koWins": record.ko_wins,
                "koLosses": record.ko_losses,
                "subWins": record.sub_wins,
                "subLosses": record.sub_losses,
                "decWins": record.dec_wins,
                "decLosses": record.dec_losses,
                "noContests": record.no_contests,
                "totalFights": total,
                "finishRate": rate(finishes, wins),
                "koRate": rate(record.ko_wins, wins),
                "subRate": rate(record.sub_wins, wins),
            },
        )

    def fighters(self, name: str) -> List[NormalizedTeam]:
        raw = self._cached_list(
            "fighters", DataCategory.TEAM_DIRECTORY, lambda: self.client.search_fighters(name),
            search=name.strip(),
        )
        return [self.map_fighter(f) for f in raw]

    def _fighter_param(self, value: str) -> DataResult:
        external = self.external_id(value)
        if external.isdigit():
            return self._success(external)
        result = self.find_team(TeamQuery(name=value))
        if not result.success:
            return result
        return self._success(result.data.external_id)

    def _fights_for(self, external: str) -> List[NormalizedMatch]:
        raw = self._cached_list(
            "fights", DataCategory.RECENT_GAMES,
            lambda: self.client.get_fights(fighter=int(external)),
            fighter=external,
        )
        return [self.map_fight(f) for f in raw]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _find_team(self, query: TeamQuery) -> DataResult[NormalizedTeam]:
        if query.id:
            external = self.external_id(query.id)
            if not external.isdigit():
                return self._error(ErrorCode.INVALID_QUERY, f"Invalid fighter id: {query.id}")
            raw = self.client.get_fighter(int(external))
            if raw is None:
                return self._error(ErrorCode.NOT_FOUND, f"No fighter with id {query.id}")
            return self._success(self.map_fighter(raw))

        fighter = self._resolve_team(query.name, self.fighters(query.name))
        if fighter is None:
            return self._error(ErrorCode.NOT_FOUND, f"Could not find fighter: {query.name}")
        return self._success(fighter)

    def _get_matches(self, query: MatchQuery) -> DataResult[List[NormalizedMatch]]:
        fighter = None
        if query.team:
            resolved = self._fighter_param(query.team)
            if not resolved.success:
                return resolved
            fighter = resolved.data
        day = query.date.isoformat() if query.date else None
        season = query.season or (None if day or fighter else self.current_season())

        def fetch() -> DataResult:
            raw = self.client.get_fights(date=day, fighter=fighter, season=season)
            fights = sorted((self.map_fight(f) for f in raw), key=lambda m: m.date.timestamp() if m.date else 0)
            return self._success(fights)

        result = self._cached(
            "matches", DataCategory.MATCHES, fetch, ttl_for=matches_ttl,
            date=day, fighter=fighter, season=season,
        )
        if result.success and query.limit:
            return replace(result, data=result.data[:query.limit])
        return result

    def _get_team_stats(self, query: StatsQuery) -> DataResult[NormalizedTeamStats]:
        external = self.external_id(query.team_id)
        if not external.isdigit():
            return self._error(ErrorCode.INVALID_QUERY, f"Invalid fighter id: {query.team_id}")
        season = query.season or self.current_season()

        def fetch() -> DataResult:
            record = self.client.get_fighter_record(int(external))
            if record is None:
                return self._error(ErrorCode.NOT_FOUND, f"Fighter record not found: {query.team_id}")
            return self._success(self.map_record(record, season))

        return self._cached("stats", DataCategory.TEAM_STATS, fetch, fighter=external, season=season)

    def _get_recent_games(self, team_id: str, limit: int) -> DataResult[NormalizedRecentGames]:
        external = self.external_id(team_id)
        if not external.isdigit():
            return self._error(ErrorCode.INVALID_QUERY, f"Invalid fighter id: {team_id}")
        fights = newest_finished(self._fights_for(external), limit)
        return self._success(
            NormalizedRecentGames(
                team_id=self.team_id(external),
                sport=self.sport,
                games=fights,
                summary=summarize_recent(fights, external),
                provider=self.provider,
            )
        )

    def _get_h2h(self, query: H2HQuery) -> DataResult[NormalizedH2H]:
        pair = self._resolve_pair(query)
        if not pair.success:
            return pair
        first, second = pair.data

        # no h2h endpoint: filter the first fighter's fights by opponent
        shared = [f for f in self._fights_for(first.external_id) if f.involves(second.external_id)]
        fights = newest_finished(shared, query.limit)
        return self._success(
            NormalizedH2H(
                team1_id=first.id,
                team2_id=second.id,
                sport=self.sport,
                summary=summarize_h2h(fights, first.external_id),
                matches=fights,
                provider=self.provider,
            )
        )

    def _get_injuries(self, team: str) -> DataResult[List[NormalizedInjury]]:
        return self._success([])
