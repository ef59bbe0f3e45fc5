"""
Data layer facade: the single entry point for presentation code.

Picks the adapter for a sport, falls back to the next registered adapter
when one fails upstream, and stamps the failing sport and operation on every
error. Odds and market intel are served from here too, since they span
providers rather than belonging to one sport adapter.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from config.settings import settings as default_settings
from sportsedge import edge
from sportsedge.adapters import (
    AdapterRegistry,
    BasketballAdapter,
    EspnInjurySource,
    HockeyAdapter,
    MmaAdapter,
    SoccerAdapter,
    SportAdapter,
)
from sportsedge.cache import CacheManager, DataCategory, build_cache_key
from sportsedge.clients import (
    BasketballClient,
    EspnClient,
    FootballClient,
    HockeyClient,
    MmaClient,
    OddsApiClient,
)
from sportsedge.clients.base import ProviderError
from sportsedge.clients.odds_api import DEFAULT_MARKETS
from sportsedge.models import (
    BookmakerOdds,
    EnrichedMatchData,
    H2HQuery,
    ImpliedProbability,
    MarketIntel,
    MatchQuery,
    MoneylineOdds,
    NormalizedH2H,
    NormalizedInjury,
    NormalizedMatch,
    NormalizedRecentGames,
    NormalizedTeam,
    NormalizedTeamStats,
    ProbabilityTriple,
    Sport,
    StatsQuery,
    TeamQuery,
    UpcomingEvent,
    ValueEdge,
)
from sportsedge.odds import InvalidOddsError, find_event, map_event_odds, normalize_moneyline
from sportsedge.results import DataResult, ErrorCode
from sportsedge.utils.helpers import parse_datetime

logger = logging.getLogger("data_layer")

SPORT_ODDS_KEYS = {
    Sport.SOCCER: "soccer_epl",
    Sport.BASKETBALL: "basketball_nba",
    Sport.HOCKEY: "icehockey_nhl",
    Sport.AMERICAN_FOOTBALL: "americanfootball_nfl",
    Sport.MMA: "mma_mixed_martial_arts",
}

FALLBACK_CODES = (ErrorCode.API_ERROR, ErrorCode.UNAVAILABLE)

SportArg = Union[str, Sport]


class DataLayer:
    """
    Facade over sport adapters, the odds provider and the edge engine.

    Every public method returns a DataResult and never raises.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        cache: CacheManager,
        odds_client: Optional[OddsApiClient] = None,
        edge_threshold: Optional[float] = None,
        max_workers: int = 8,
    ):
        self.registry = registry
        self.cache = cache
        self.odds_client = odds_client
        self.edge_threshold = edge_threshold
        self.max_workers = max_workers

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(
        self,
        sport: SportArg,
        operation: str,
        call: Callable[[SportAdapter], DataResult],
    ) -> DataResult:
        parsed = Sport.parse(sport)
        if parsed is None:
            return DataResult.fail(ErrorCode.INVALID_QUERY, f"Unknown sport: {sport}").with_context(
                str(sport), operation
            )

        adapters = self.registry.available(parsed)
        if not adapters:
            registered = self.registry.for_sport(parsed)
            message = (
                f"No configured adapter for {parsed.value}"
                if registered else f"No adapter registered for {parsed.value}"
            )
            return DataResult.fail(ErrorCode.UNAVAILABLE, message).with_context(parsed.value, operation)

        result = None
        for adapter in adapters:
            result = call(adapter)
            if result.success or result.code not in FALLBACK_CODES:
                break
            logger.warning(
                f"{adapter.provider} failed {operation} for {parsed.value} "
                f"({result.code.value}: {result.error.message}), trying next adapter"
            )
        return result.with_context(parsed.value, operation)

    # ------------------------------------------------------------------
    # Sport data
    # ------------------------------------------------------------------

    def resolve_team(self, sport: SportArg, name: str, league: Optional[str] = None) -> DataResult[NormalizedTeam]:
        return self._dispatch(sport, "resolve_team", lambda a: a.find_team(TeamQuery(name=name, league=league)))

    def get_matches(
        self,
        sport: SportArg,
        date: Optional[date] = None,
        team: Optional[str] = None,
        season: Optional[str] = None,
        limit: int = 20,
    ) -> DataResult[List[NormalizedMatch]]:
        query = MatchQuery(date=date, team=team, season=season, limit=limit)
        return self._dispatch(sport, "get_matches", lambda a: a.get_matches(query))

    def get_team_stats(
        self, sport: SportArg, team_id: str, season: Optional[str] = None
    ) -> DataResult[NormalizedTeamStats]:
        query = StatsQuery(team_id=team_id, season=season)
        return self._dispatch(sport, "get_team_stats", lambda a: a.get_team_stats(query))

    def get_recent_form(self, sport: SportArg, team_id: str, limit: int = 5) -> DataResult[NormalizedRecentGames]:
        return self._dispatch(sport, "get_recent_form", lambda a: a.get_recent_games(team_id, limit))

    def get_head_to_head(
        self, sport: SportArg, name1: str, name2: str, limit: int = 10
    ) -> DataResult[NormalizedH2H]:
        query = H2HQuery(team1=name1, team2=name2, limit=limit)
        return self._dispatch(sport, "get_head_to_head", lambda a: a.get_h2h(query))

    def get_injuries(self, sport: SportArg, team_name: str) -> DataResult[List[NormalizedInjury]]:
        return self._dispatch(sport, "get_injuries", lambda a: a.get_injuries(team_name))

    # ------------------------------------------------------------------
    # Odds
    # ------------------------------------------------------------------

    def _odds_context(self, sport: SportArg, operation: str, sport_key: Optional[str] = None) -> DataResult:
        """Validate sport and odds configuration; the data is (Sport, sport_key)."""
        parsed = Sport.parse(sport)
        if parsed is None:
            return DataResult.fail(ErrorCode.INVALID_QUERY, f"Unknown sport: {sport}").with_context(
                str(sport), operation
            )
        if self.odds_client is None or not self.odds_client.is_configured:
            return DataResult.fail(ErrorCode.UNAVAILABLE, "Odds provider is not configured").with_context(
                parsed.value, operation
            )
        key = sport_key or SPORT_ODDS_KEYS.get(parsed)
        if key is None:
            return DataResult.fail(
                ErrorCode.INVALID_QUERY, f"No odds market for {parsed.value}"
            ).with_context(parsed.value, operation)
        return DataResult.ok((parsed, key))

    def get_odds(
        self,
        sport: SportArg,
        home_team: str,
        away_team: str,
        markets: Sequence[str] = DEFAULT_MARKETS,
    ) -> DataResult[List[BookmakerOdds]]:
        """Every bookmaker's quotes for the event whose home and away names both match."""
        operation = "get_odds"
        if not home_team or not away_team:
            return DataResult.fail(ErrorCode.INVALID_QUERY, "Both team names are required").with_context(
                str(sport), operation
            )
        context = self._odds_context(sport, operation)
        if not context.success:
            return context
        parsed, sport_key = context.data
        provider = self.odds_client.name
        markets = tuple(sorted(markets))

        try:
            events, cached = self.cache.get_or_fetch(
                build_cache_key("odds", "events", sport=sport_key, markets=",".join(markets)),
                lambda: self.odds_client.get_odds(sport_key, markets=markets),
                category=DataCategory.ODDS,
            )
            event = find_event(events, home_team, away_team, parsed)
            odds = map_event_odds(event, parsed) if event is not None else []
        except ProviderError as e:
            logger.error(f"Odds fetch failed for {sport_key}: {e}")
            return DataResult.fail(ErrorCode.API_ERROR, str(e), provider).with_context(parsed.value, operation)
        except Exception as e:
            logger.error(f"Unexpected error fetching odds for {sport_key}: {type(e).__name__}: {e}")
            return DataResult.fail(
                ErrorCode.API_ERROR, f"{type(e).__name__}: {e}", provider
            ).with_context(parsed.value, operation)

        if event is None:
            logger.info(f"No {sport_key} event for {home_team} vs {away_team} among {len(events)}")
            return DataResult.fail(
                ErrorCode.NOT_FOUND, f"No odds event for {home_team} vs {away_team}", provider
            ).with_context(parsed.value, operation)
        if not odds:
            return DataResult.fail(
                ErrorCode.NOT_FOUND, f"No bookmaker prices for {event.home_team} vs {event.away_team}", provider
            ).with_context(parsed.value, operation)
        logger.info(f"Odds for {event.home_team} vs {event.away_team}: {len(odds)} bookmakers")
        return DataResult.ok(odds, provider=provider, cached=cached)

    def get_upcoming_events(
        self, sport: SportArg, sport_key: Optional[str] = None
    ) -> DataResult[List[UpcomingEvent]]:
        """Odds-provider events without prices; does not spend odds quota."""
        operation = "get_upcoming_events"
        context = self._odds_context(sport, operation, sport_key)
        if not context.success:
            return context
        parsed, key = context.data

        try:
            events, cached = self.cache.get_or_fetch(
                build_cache_key("odds", "upcoming", sport=key),
                lambda: self.odds_client.get_events(key),
                category=DataCategory.EVENTS,
            )
            upcoming = [
                UpcomingEvent(
                    id=e.id,
                    sport=parsed,
                    sport_key=e.sport_key or key,
                    home_team=e.home_team,
                    away_team=e.away_team,
                    commence_time=parse_datetime(e.commence_time),
                )
                for e in events
            ]
        except ProviderError as e:
            logger.error(f"Event listing failed for {key}: {e}")
            return DataResult.fail(ErrorCode.API_ERROR, str(e), self.odds_client.name).with_context(
                parsed.value, operation
            )
        except Exception as e:
            logger.error(f"Unexpected error listing events for {key}: {type(e).__name__}: {e}")
            return DataResult.fail(
                ErrorCode.API_ERROR, f"{type(e).__name__}: {e}", self.odds_client.name
            ).with_context(parsed.value, operation)
        return DataResult.ok(upcoming, provider=self.odds_client.name, cached=cached)

    # ------------------------------------------------------------------
    # Edge
    # ------------------------------------------------------------------

    def compute_edge(
        self,
        model_probability: Optional[ProbabilityTriple],
        implied_probability: Optional[Union[ImpliedProbability, ProbabilityTriple]],
        quality_factor: float = 1.0,
    ) -> DataResult[ValueEdge]:
        result = edge.compute_edge(model_probability, implied_probability, quality_factor, self.edge_threshold)
        return result.with_context("any", "compute_edge")

    def analyze_market(
        self,
        sport: SportArg,
        home_team: str,
        away_team: str,
        model_probability: Optional[ProbabilityTriple],
        previous_odds: Optional[MoneylineOdds] = None,
        confidence: Optional[float] = None,
        policy: str = "weighted",
    ) -> DataResult[MarketIntel]:
        """Odds fetch, bookmaker consensus, edge and line movement in one call."""
        operation = "analyze_market"
        if model_probability is None:
            return DataResult.fail(ErrorCode.INVALID_QUERY, "Model probability is missing").with_context(
                str(sport), operation
            )
        if policy not in edge.CONSENSUS_POLICIES:
            return DataResult.fail(ErrorCode.INVALID_QUERY, f"Unknown consensus policy: {policy}").with_context(
                str(sport), operation
            )
        if previous_odds is not None:
            try:
                normalize_moneyline(previous_odds)
            except InvalidOddsError as e:
                return DataResult.fail(ErrorCode.INVALID_QUERY, f"Previous odds: {e}").with_context(
                    str(sport), operation
                )

        odds = self.get_odds(sport, home_team, away_team, markets=("h2h",))
        if not odds.success:
            return odds.with_context(odds.error.sport, operation)

        parsed = Sport.parse(sport)
        consensus = edge.consensus_implied(odds.data, policy=policy)
        if consensus is None:
            return DataResult.fail(
                ErrorCode.NOT_FOUND, "No usable moneyline prices", odds.provider
            ).with_context(parsed.value, operation)

        sharpest = edge.sharpest_book(odds.data)
        intel = edge.build_market_intel(
            model_probability,
            consensus,
            previous_odds=previous_odds,
            current_odds=sharpest.moneyline if sharpest else None,
            confidence=confidence,
            threshold=self.edge_threshold,
        )
        if intel.success:
            return DataResult.ok(intel.data, provider=odds.provider, cached=odds.cached)
        return intel.with_context(parsed.value, operation)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def get_enriched_match_data(
        self,
        sport: SportArg,
        home_team: str,
        away_team: str,
        recent_limit: int = 5,
    ) -> DataResult[EnrichedMatchData]:
        """
        Resolve both sides, then fetch stats, recent games and injuries for
        each plus the H2H concurrently. Waits for every sub-fetch; anything
        that failed is None and named in `missing`.
        """
        operation = "get_enriched_match_data"
        parsed = Sport.parse(sport)
        if parsed is None:
            return DataResult.fail(ErrorCode.INVALID_QUERY, f"Unknown sport: {sport}").with_context(
                str(sport), operation
            )

        with ThreadPoolExecutor(max_workers=2) as executor:
            home_future = executor.submit(self.resolve_team, parsed, home_team)
            away_future = executor.submit(self.resolve_team, parsed, away_team)
            home, away = home_future.result(), away_future.result()

        if not home.success and not away.success:
            if home.code is ErrorCode.NOT_FOUND and away.code is ErrorCode.NOT_FOUND:
                return DataResult.fail(
                    ErrorCode.NOT_FOUND, f"Could not find either team: {home_team}, {away_team}"
                ).with_context(parsed.value, operation)
            failed = home if home.code is not ErrorCode.NOT_FOUND else away
            return failed.with_context(parsed.value, operation)

        tasks: Dict[str, Callable[[], DataResult]] = {}
        for side, resolved in (("home", home), ("away", away)):
            if not resolved.success:
                continue
            team = resolved.data
            tasks[f"{side}_stats"] = lambda t=team: self.get_team_stats(parsed, t.id)
            tasks[f"{side}_recent"] = lambda t=team: self.get_recent_form(parsed, t.id, recent_limit)
            tasks[f"{side}_injuries"] = lambda t=team: self.get_injuries(parsed, t.name)
        if home.success and away.success:
            tasks["h2h"] = lambda: self.get_head_to_head(parsed, home.data.name, away.data.name)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {name: executor.submit(fn) for name, fn in tasks.items()}
            results = {name: future.result() for name, future in futures.items()}

        parts: Dict[str, Any] = {}
        missing = []
        if not home.success:
            missing.append("home_team")
        if not away.success:
            missing.append("away_team")
        for name in ("home_stats", "away_stats", "home_recent", "away_recent",
                     "home_injuries", "away_injuries", "h2h"):
            result = results.get(name)
            if result is not None and result.success:
                parts[name] = result.data
                continue
            missing.append(name)
            if result is not None:
                logger.warning(f"Enriched {parsed.value} data missing {name}: {result.error.message}")

        return DataResult.ok(
            EnrichedMatchData(
                sport=parsed,
                home_team=home.data if home.success else None,
                away_team=away.data if away.success else None,
                missing=missing,
                **parts,
            ),
            provider="composite",
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def sports(self) -> List[Dict[str, Any]]:
        described = {d["sport"]: d for d in self.registry.describe()}
        odds_ready = self.odds_client is not None and self.odds_client.is_configured
        listing = []
        for sport in Sport:
            entry = described.get(sport.value, {"sport": sport.value, "providers": [], "available": False})
            listing.append({**entry, "odds": odds_ready and sport in SPORT_ODDS_KEYS})
        return listing

    def cache_stats(self) -> Dict[str, Any]:
        stats = self.cache.get_stats()
        if self.odds_client is not None:
            stats["odds_quota"] = dict(self.odds_client.quota)
        return stats


def build_data_layer(config=None, session: Optional[Any] = None) -> DataLayer:
    """Wire clients, cache and adapters from settings."""
    config = config or default_settings
    cache = CacheManager(enabled=config.cache_enabled, default_ttl=config.cache_default_ttl_seconds)
    client_options = {
        "session": session,
        "timeout": config.request_timeout_seconds,
        "max_concurrent": config.max_concurrent_requests,
        "rate_limit_retries": config.rate_limit_retries,
    }

    espn = EspnInjurySource(EspnClient(config.espn_base_url, **client_options), cache)

    registry = AdapterRegistry()
    registry.register(
        SoccerAdapter(
            FootballClient(config.api_football_base_url, config.api_sports_key, **client_options),
            cache,
            league_id=config.default_soccer_league_id,
        )
    )
    registry.register(
        BasketballAdapter(
            BasketballClient(config.api_basketball_base_url, config.api_sports_key, **client_options),
            cache,
            league_id=config.default_basketball_league_id,
            injuries=espn,
        )
    )
    registry.register(
        HockeyAdapter(
            HockeyClient(config.api_hockey_base_url, config.api_sports_key, **client_options),
            cache,
            league_id=config.default_hockey_league_id,
            injuries=espn,
        )
    )
    registry.register(
        MmaAdapter(MmaClient(config.api_mma_base_url, config.api_sports_key, **client_options), cache)
    )

    odds_client = OddsApiClient(
        config.odds_api_base_url, config.odds_api_key, regions=config.odds_regions, **client_options
    )
    return DataLayer(registry, cache, odds_client, edge_threshold=config.edge_min_threshold)
