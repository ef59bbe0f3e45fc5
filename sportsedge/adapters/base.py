"""
Sport adapter contract.

Every adapter exposes the same operations and answers each with a
DataResult. Public methods are thin wrappers: they check availability, run
the sport-specific `_operation`, and turn any exception into API_ERROR, so a
raw provider failure never reaches the caller.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from sportsedge.cache import CacheManager, DataCategory, build_cache_key
from sportsedge.clients.base import ProviderError, ProviderNotConfiguredError
from sportsedge.models import (
    H2HQuery,
    H2HSummary,
    MatchQuery,
    MatchStatus,
    NormalizedH2H,
    NormalizedInjury,
    NormalizedMatch,
    NormalizedRecentGames,
    NormalizedTeam,
    NormalizedTeamStats,
    RecentGamesSummary,
    Score,
    Sport,
    StatsQuery,
    TeamQuery,
)
from sportsedge.resolver import rank_candidates
from sportsedge.results import DataResult, ErrorCode

logger = logging.getLogger("adapters.base")


def team_names(team: NormalizedTeam) -> List[str]:
    """Names a team is known by, for the resolver."""
    names = [team.name]
    if team.short_name and team.short_name != team.name:
        names.append(team.short_name)
    return names


def finished_or_unknown(status: MatchStatus, score: Optional[Score]) -> MatchStatus:
    """A finished match without a score cannot be trusted as finished."""
    if status is MatchStatus.FINISHED and score is None:
        return MatchStatus.UNKNOWN
    return status


# =============================================================================
# Summaries
# =============================================================================

def _outcome(scored: int, conceded: int, allow_draws: bool) -> str:
    if scored > conceded:
        return "win"
    if scored == conceded and allow_draws:
        return "draw"
    return "loss"


def summarize_recent(
    games: Sequence[NormalizedMatch],
    team_external_id: str,
    allow_draws: bool = True,
) -> RecentGamesSummary:
    """
    Recompute W/D/L from the games themselves; provider totals are not trusted.

    Only finished games count. For sports without draws a level score is a loss.
    """
    counts = {"win": 0, "draw": 0, "loss": 0}
    points_for = points_against = 0
    for game in games:
        if not game.is_finished:
            continue
        scored, conceded = game.points_for(team_external_id)
        points_for += scored
        points_against += conceded
        counts[_outcome(scored, conceded, allow_draws)] += 1
    return RecentGamesSummary(
        wins=counts["win"],
        losses=counts["loss"],
        draws=counts["draw"],
        points_for=points_for,
        points_against=points_against,
    )


def summarize_h2h(
    matches: Sequence[NormalizedMatch],
    team1_external_id: str,
    allow_draws: bool = True,
) -> H2HSummary:
    team1_wins = team2_wins = draws = 0
    team1_points = team2_points = 0
    finished = [m for m in matches if m.is_finished]
    for match in finished:
        scored, conceded = match.points_for(team1_external_id)
        team1_points += scored
        team2_points += conceded
        result = _outcome(scored, conceded, allow_draws)
        if result == "win":
            team1_wins += 1
        elif result == "draw":
            draws += 1
        else:
            team2_wins += 1
    return H2HSummary(
        total_games=len(finished),
        team1_wins=team1_wins,
        team2_wins=team2_wins,
        draws=draws,
        team1_points=team1_points,
        team2_points=team2_points,
    )


def newest_finished(games: Sequence[NormalizedMatch], limit: int) -> List[NormalizedMatch]:
    finished = [g for g in games if g.is_finished]
    finished.sort(key=lambda g: g.date.timestamp() if g.date else 0, reverse=True)
    return finished[:limit]


# =============================================================================
# Adapter
# =============================================================================

class SportAdapter(ABC):
    """
    Base class for sport adapters.

    Subclasses implement the underscore operations and may raise freely;
    the public operations never raise.
    """

    sport: Sport
    provider: str = "unknown"

    def __init__(self, cache: CacheManager):
        self.cache = cache

    @abstractmethod
    def is_available(self) -> bool:
        """Configuration check only, never a network call."""

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def find_team(self, query: TeamQuery) -> DataResult[NormalizedTeam]:
        if not (query.name and query.name.strip()) and not query.id:
            return self._error(ErrorCode.INVALID_QUERY, "Team query needs a name or an id")
        return self._run("find_team", self._find_team, query)

    def get_matches(self, query: MatchQuery) -> DataResult[List[NormalizedMatch]]:
        return self._run("get_matches", self._get_matches, query)

    def get_team_stats(self, query: StatsQuery) -> DataResult[NormalizedTeamStats]:
        if not query.team_id:
            return self._error(ErrorCode.INVALID_QUERY, "team_id is required")
        return self._run("get_team_stats", self._get_team_stats, query)

    def get_recent_games(self, team_id: str, limit: int = 5) -> DataResult[NormalizedRecentGames]:
        if not team_id:
            return self._error(ErrorCode.INVALID_QUERY, "team_id is required")
        if limit < 1:
            return self._error(ErrorCode.INVALID_QUERY, f"limit must be positive, got {limit}")
        return self._run("get_recent_games", self._get_recent_games, team_id, limit)

    def get_h2h(self, query: H2HQuery) -> DataResult[NormalizedH2H]:
        if not query.team1 or not query.team2:
            return self._error(ErrorCode.INVALID_QUERY, "Both team names are required")
        return self._run("get_h2h", self._get_h2h, query)

    def get_injuries(self, team: str) -> DataResult[List[NormalizedInjury]]:
        if not team:
            return self._error(ErrorCode.INVALID_QUERY, "Team name is required")
        return self._run("get_injuries", self._get_injuries, team)

    # ------------------------------------------------------------------
    # Sport-specific operations
    # ------------------------------------------------------------------

    @abstractmethod
    def _find_team(self, query: TeamQuery) -> DataResult[NormalizedTeam]:
        ...

    @abstractmethod
    def _get_matches(self, query: MatchQuery) -> DataResult[List[NormalizedMatch]]:
        ...

    @abstractmethod
    def _get_team_stats(self, query: StatsQuery) -> DataResult[NormalizedTeamStats]:
        ...

    @abstractmethod
    def _get_recent_games(self, team_id: str, limit: int) -> DataResult[NormalizedRecentGames]:
        ...

    @abstractmethod
    def _get_h2h(self, query: H2HQuery) -> DataResult[NormalizedH2H]:
        ...

    @abstractmethod
    def _get_injuries(self, team: str) -> DataResult[List[NormalizedInjury]]:
        ...

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run(self, operation: str, fn: Callable[..., DataResult], *args: Any) -> DataResult:
        if not self.is_available():
            return self._error(ErrorCode.UNAVAILABLE, f"{self.provider} is not configured")
        try:
            return fn(*args)
        except ProviderNotConfiguredError as e:
            return self._error(ErrorCode.UNAVAILABLE, str(e))
        except ProviderError as e:
            logger.error(f"[{self.sport.value}] {operation} failed at {e.provider}: {e}")
            return self._error(ErrorCode.API_ERROR, str(e))
        except Exception as e:
            logger.exception(f"[{self.sport.value}] {operation} failed unexpectedly")
            return self._error(ErrorCode.API_ERROR, f"{type(e).__name__}: {e}")

    def _success(self, data: Any) -> DataResult:
        return DataResult.ok(data, provider=self.provider)

    def _error(self, code: ErrorCode, message: str) -> DataResult:
        return DataResult.fail(code, message, provider=self.provider)

    def _key(self, operation: str, **params: Any) -> str:
        return build_cache_key(self.sport.value, operation, **params)

    def _cached(
        self,
        operation: str,
        category: DataCategory,
        fetch: Callable[[], DataResult],
        ttl_for: Optional[Callable[[DataResult], float]] = None,
        **params: Any,
    ) -> DataResult:
        """Serve `fetch` through the cache. Only successful results are stored."""
        result, cached = self.cache.get_or_fetch(
            self._key(operation, **params),
            fetch,
            category=category,
            should_store=lambda r: r.success,
            ttl_for=ttl_for,
        )
        return replace(result, cached=True) if cached else result

    def _cached_list(self, operation: str, category: DataCategory,
                     fetch: Callable[[], list], **params: Any) -> list:
        """Cache a raw list; empty lists are not stored."""
        value, _ = self.cache.get_or_fetch(
            self._key(operation, **params), fetch, category=category, should_store=bool
        )
        return value

    def _resolve_team(self, name: str, candidates: Sequence[NormalizedTeam]) -> Optional[NormalizedTeam]:
        ranked = rank_candidates(name, candidates, team_names, self.sport)
        if not ranked:
            logger.info(f"[{self.sport.value}] No team matches '{name}' among {len(candidates)} candidates")
            return None
        best = ranked[0]
        logger.info(
            f"[{self.sport.value}] Resolved '{name}' -> {best.candidate.name} "
            f"(score={best.score:.0f}, via '{best.matched_name}')"
        )
        return best.candidate

    def _resolve_pair(self, query: H2HQuery) -> DataResult:
        """Resolve both sides of an H2H query; NOT_FOUND names the side that failed."""
        teams = []
        for name in (query.team1, query.team2):
            result = self.find_team(TeamQuery(name=name))
            if not result.success:
                if result.code is ErrorCode.NOT_FOUND:
                    return self._error(ErrorCode.NOT_FOUND, f"Could not find team: {name}")
                return result
            teams.append(result.data)
        return self._success(tuple(teams))

    def external_id(self, team_id: str) -> str:
        """Accept either a provider-scoped id ("basketball-145") or the raw id."""
        prefix = f"{self.sport.value}-"
        return team_id[len(prefix):] if team_id.startswith(prefix) else team_id

    def team_id(self, external_id: Any) -> str:
        return f"{self.sport.value}-{external_id}"


# =============================================================================
# Registry
# =============================================================================

class AdapterRegistry:
    """
    Adapters per sport, in preference order. The facade tries them in turn.
    """

    def __init__(self):
        self._adapters: Dict[Sport, List[SportAdapter]] = {}

    def register(self, adapter: SportAdapter) -> None:
        self._adapters.setdefault(adapter.sport, []).append(adapter)
        logger.info(f"Registered {adapter.provider} for {adapter.sport.value}")

    def for_sport(self, sport: Sport) -> List[SportAdapter]:
        return list(self._adapters.get(sport, []))

    def available(self, sport: Sport) -> List[SportAdapter]:
        return [a for a in self._adapters.get(sport, []) if a.is_available()]

    def sports(self) -> List[Sport]:
        return list(self._adapters)

    def describe(self) -> List[Dict[str, Any]]:
        return [
            {
                "sport": sport.value,
                "providers": [a.provider for a in adapters],
                "available": any(a.is_available() for a in adapters),
            }
            for sport, adapters in self._adapters.items()
        ]
