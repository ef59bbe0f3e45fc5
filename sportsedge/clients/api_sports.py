"""
API-Sports clients (football, basketball, hockey).

All three products share one key, one header and one response envelope:

    {"get": "...", "parameters": {...}, "errors": [] | {...},
     "results": 3, "response": [...]}

Raw payloads are parsed here into explicit Raw* shapes; adapters map those
into the canonical model.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sportsedge.clients.base import (
    ProviderClient,
    ProviderPayloadError,
    ProviderRateLimitError,
)
from sportsedge.utils.helpers import (
    safe_dict,
    safe_float,
    safe_int,
    safe_list,
    safe_optional_int,
    safe_str,
)

logger = logging.getLogger("clients.api_sports")


# =============================================================================
# Raw shapes
# =============================================================================

@dataclass
class RawTeam:
    id: int
    name: str
    code: Optional[str] = None
    logo: Optional[str] = None
    country: Optional[str] = None
    venue: Optional[str] = None

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawTeam"]:
        """Accepts the football {"team": ..., "venue": ...} wrapper or a flat team."""
        item = safe_dict(item)
        team = safe_dict(item.get("team")) or item
        team_id = safe_optional_int(team.get("id"))
        name = safe_str(team.get("name")).strip()
        if team_id is None or not name:
            return None
        country = team.get("country")
        if isinstance(country, dict):
            country = country.get("name")
        return cls(
            id=team_id,
            name=name,
            code=team.get("code"),
            logo=team.get("logo"),
            country=country,
            venue=safe_dict(item.get("venue")).get("name"),
        )


@dataclass
class RawGame:
    id: int
    status_short: str
    league_id: Optional[int]
    league_name: str
    season: str
    home: RawTeam
    away: RawTeam
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    timestamp: Optional[int] = None
    date: Optional[str] = None
    periods: List[Tuple[int, int]] = field(default_factory=list)
    venue: Optional[str] = None

    @staticmethod
    def _teams(item: Dict[str, Any]) -> Optional[Tuple[RawTeam, RawTeam]]:
        teams = safe_dict(item.get("teams"))
        home = RawTeam.from_payload(teams.get("home"))
        away = RawTeam.from_payload(teams.get("away"))
        if home is None or away is None:
            return None
        return home, away

    @classmethod
    def from_football(cls, item: Any) -> Optional["RawGame"]:
        item = safe_dict(item)
        fixture = safe_dict(item.get("fixture"))
        league = safe_dict(item.get("league"))
        goals = safe_dict(item.get("goals"))
        teams = cls._teams(item)
        game_id = safe_optional_int(fixture.get("id"))
        if teams is None or game_id is None:
            return None
        halftime = safe_dict(safe_dict(item.get("score")).get("halftime"))
        periods = []
        if halftime.get("home") is not None and halftime.get("away") is not None:
            periods.append((safe_int(halftime.get("home")), safe_int(halftime.get("away"))))
        return cls(
            id=game_id,
            status_short=safe_str(safe_dict(fixture.get("status")).get("short")).upper(),
            league_id=safe_optional_int(league.get("id")),
            league_name=safe_str(league.get("name")),
            season=safe_str(league.get("season")),
            home=teams[0],
            away=teams[1],
            home_score=safe_optional_int(goals.get("home")),
            away_score=safe_optional_int(goals.get("away")),
            timestamp=safe_optional_int(fixture.get("timestamp")),
            date=fixture.get("date"),
            periods=periods,
            venue=safe_dict(fixture.get("venue")).get("name"),
        )

    @classmethod
    def from_basketball(cls, item: Any) -> Optional["RawGame"]:
        item = safe_dict(item)
        league = safe_dict(item.get("league"))
        scores = safe_dict(item.get("scores"))
        home_scores = safe_dict(scores.get("home"))
        away_scores = safe_dict(scores.get("away"))
        teams = cls._teams(item)
        game_id = safe_optional_int(item.get("id"))
        if teams is None or game_id is None:
            return None
        periods = []
        for quarter in ("quarter_1", "quarter_2", "quarter_3", "quarter_4", "over_time"):
            home_q = safe_optional_int(home_scores.get(quarter))
            away_q = safe_optional_int(away_scores.get(quarter))
            if home_q is not None and away_q is not None:
                periods.append((home_q, away_q))
        return cls(
            id=game_id,
            status_short=safe_str(safe_dict(item.get("status")).get("short")).upper(),
            league_id=safe_optional_int(league.get("id")),
            league_name=safe_str(league.get("name")),
            season=safe_str(league.get("season")),
            home=teams[0],
            away=teams[1],
            home_score=safe_optional_int(home_scores.get("total")),
            away_score=safe_optional_int(away_scores.get("total")),
            timestamp=safe_optional_int(item.get("timestamp")),
            date=item.get("date"),
            periods=periods,
        )

    @classmethod
    def from_hockey(cls, item: Any) -> Optional["RawGame"]:
        item = safe_dict(item)
        league = safe_dict(item.get("league"))
        scores = safe_dict(item.get("scores"))
        teams = cls._teams(item)
        game_id = safe_optional_int(item.get("id"))
        if teams is None or game_id is None:
            return None
        periods = []
        for name in ("first", "second", "third", "overtime", "penalties"):
            period = _parse_period(safe_dict(item.get("periods")).get(name))
            if period is not None:
                periods.append(period)
        return cls(
            id=game_id,
            status_short=safe_str(safe_dict(item.get("status")).get("short")).upper(),
            league_id=safe_optional_int(league.get("id")),
            league_name=safe_str(league.get("name")),
            season=safe_str(league.get("season")),
            home=teams[0],
            away=teams[1],
            home_score=safe_optional_int(scores.get("home")),
            away_score=safe_optional_int(scores.get("away")),
            timestamp=safe_optional_int(item.get("timestamp")),
            date=item.get("date"),
            periods=periods,
        )


def _parse_period(value: Any) -> Optional[Tuple[int, int]]:
    """Hockey periods come either as {"home": 1, "away": 0} or as "1-0"."""
    if isinstance(value, dict):
        home = safe_optional_int(value.get("home"))
        away = safe_optional_int(value.get("away"))
        if home is None or away is None:
            return None
        return home, away
    if isinstance(value, str) and "-" in value:
        home, _, away = value.partition("-")
        home_int, away_int = safe_optional_int(home.strip()), safe_optional_int(away.strip())
        if home_int is None or away_int is None:
            return None
        return home_int, away_int
    return None


@dataclass
class RawSeasonStats:
    played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    win_percentage: Optional[float] = None
    points_for: float = 0
    points_against: float = 0
    average_for: float = 0.0
    average_against: float = 0.0
    form: Optional[str] = None
    home_for: Optional[int] = None
    home_against: Optional[int] = None
    away_for: Optional[int] = None
    away_against: Optional[int] = None
    clean_sheets: Optional[int] = None
    failed_to_score: Optional[int] = None
    biggest_win_streak: Optional[int] = None
    overtime_games: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.played == 0 and self.wins == 0 and self.losses == 0

    @classmethod
    def from_football(cls, response: Any) -> Optional["RawSeasonStats"]:
        data = _first_dict(response)
        if not data:
            return None
        fixtures = safe_dict(data.get("fixtures"))
        goals = safe_dict(data.get("goals"))
        goals_for = safe_dict(goals.get("for"))
        goals_against = safe_dict(goals.get("against"))
        return cls(
            played=safe_int(safe_dict(fixtures.get("played")).get("total")),
            wins=safe_int(safe_dict(fixtures.get("wins")).get("total")),
            losses=safe_int(safe_dict(fixtures.get("loses")).get("total")),
            draws=safe_int(safe_dict(fixtures.get("draws")).get("total")),
            points_for=safe_int(safe_dict(goals_for.get("total")).get("total")),
            points_against=safe_int(safe_dict(goals_against.get("total")).get("total")),
            average_for=safe_float(safe_dict(goals_for.get("average")).get("total")),
            average_against=safe_float(safe_dict(goals_against.get("average")).get("total")),
            form=data.get("form") or None,
            home_for=safe_optional_int(safe_dict(goals_for.get("total")).get("home")),
            home_against=safe_optional_int(safe_dict(goals_against.get("total")).get("home")),
            away_for=safe_optional_int(safe_dict(goals_for.get("total")).get("away")),
            away_against=safe_optional_int(safe_dict(goals_against.get("total")).get("away")),
            clean_sheets=safe_optional_int(safe_dict(data.get("clean_sheet")).get("total")),
            failed_to_score=safe_optional_int(safe_dict(data.get("failed_to_score")).get("total")),
            biggest_win_streak=safe_optional_int(
                safe_dict(safe_dict(data.get("biggest")).get("streak")).get("wins")
            ),
        )

    @classmethod
    def from_games_api(cls, response: Any, scoring_key: str) -> Optional["RawSeasonStats"]:
        """
        Basketball (/statistics, scoring_key="points") and hockey
        (/teams/statistics, scoring_key="goals") share one layout.
        """
        data = _first_dict(response)
        if not data:
            return None
        games = safe_dict(data.get("games"))
        # hockey nests wins/loses at the top level, basketball under games
        wins = safe_dict(games.get("wins")) or safe_dict(data.get("wins"))
        loses = safe_dict(games.get("loses")) or safe_dict(data.get("loses"))
        scoring = safe_dict(data.get(scoring_key))
        scoring_for = safe_dict(scoring.get("for"))
        scoring_against = safe_dict(scoring.get("against"))
        for_total = safe_dict(scoring_for.get("total"))
        against_total = safe_dict(scoring_against.get("total"))
        win_pct = safe_dict(wins.get("all")).get("percentage")
        return cls(
            played=safe_int(safe_dict(games.get("played")).get("all")),
            wins=safe_int(safe_dict(wins.get("all")).get("total")),
            losses=safe_int(safe_dict(loses.get("all")).get("total")),
            win_percentage=safe_float(win_pct) if win_pct is not None else None,
            points_for=safe_int(for_total.get("all")),
            points_against=safe_int(against_total.get("all")),
            average_for=safe_float(safe_dict(scoring_for.get("average")).get("all")),
            average_against=safe_float(safe_dict(scoring_against.get("average")).get("all")),
            home_for=safe_optional_int(for_total.get("home")),
            home_against=safe_optional_int(against_total.get("home")),
            away_for=safe_optional_int(for_total.get("away")),
            away_against=safe_optional_int(against_total.get("away")),
        )


@dataclass
class RawStanding:
    team: RawTeam
    played: int = 0
    wins: int = 0
    losses: int = 0
    win_percentage: Optional[float] = None
    points_for: int = 0
    points_against: int = 0
    form: Optional[str] = None
    overtime_wins: Optional[int] = None
    overtime_losses: Optional[int] = None

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawStanding"]:
        """Basketball keeps win/lose under "games" with "points"; hockey at the top with "goals"."""
        item = safe_dict(item)
        team = RawTeam.from_payload(item.get("team"))
        if team is None:
            return None
        games = safe_dict(item.get("games"))
        win = safe_dict(games.get("win")) or safe_dict(item.get("win"))
        lose = safe_dict(games.get("lose")) or safe_dict(item.get("lose"))
        scoring = safe_dict(item.get("points")) or safe_dict(item.get("goals"))
        win_pct = win.get("percentage")
        return cls(
            team=team,
            played=safe_int(games.get("played")),
            wins=safe_int(win.get("total")),
            losses=safe_int(lose.get("total")),
            win_percentage=safe_float(win_pct) if win_pct is not None else None,
            points_for=safe_int(scoring.get("for")),
            points_against=safe_int(scoring.get("against")),
            form=item.get("form") or None,
            overtime_wins=safe_optional_int(win.get("overtime")),
            overtime_losses=safe_optional_int(lose.get("overtime")),
        )


@dataclass
class RawInjury:
    player_name: str
    team_name: str
    type: str
    reason: str
    player_id: Optional[int] = None
    fixture_date: Optional[str] = None

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawInjury"]:
        item = safe_dict(item)
        player = safe_dict(item.get("player"))
        name = safe_str(player.get("name")).strip()
        if not name:
            return None
        return cls(
            player_name=name,
            team_name=safe_str(safe_dict(item.get("team")).get("name")),
            type=safe_str(player.get("type")),
            reason=safe_str(player.get("reason")),
            player_id=safe_optional_int(player.get("id")),
            fixture_date=safe_dict(item.get("fixture")).get("date"),
        )


def _first_dict(response: Any) -> Dict[str, Any]:
    if isinstance(response, list):
        response = response[0] if response else {}
    return safe_dict(response)


def parse_all(items: Any, parser) -> list:
    parsed = []
    for item in safe_list(items):
        value = parser(item)
        if value is None:
            logger.warning(f"Skipping malformed item: {str(item)[:120]}")
            continue
        parsed.append(value)
    return parsed


# =============================================================================
# Clients
# =============================================================================

class ApiSportsClient(ProviderClient):
    """Envelope and auth shared by every API-Sports product."""

    name = "api-sports"

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "x-apisports-key": self.api_key or ""}

    def _on_response(self, response: Any) -> None:
        remaining = (getattr(response, "headers", None) or {}).get("x-ratelimit-requests-remaining")
        if remaining is not None:
            logger.debug(f"[{self.name}] Daily requests remaining: {remaining}")

    def _unwrap(self, payload: Any) -> Any:
        if not isinstance(payload, dict):
            raise ProviderPayloadError(f"{self.name} returned an unexpected payload", self.name)
        errors = payload.get("errors")
        if errors:
            if isinstance(errors, dict) and "rateLimit" in errors:
                raise ProviderRateLimitError(f"{self.name}: {errors['rateLimit']}", self.name)
            raise ProviderPayloadError(f"{self.name} returned errors: {errors}", self.name)
        return payload.get("response")


class FootballClient(ApiSportsClient):
    """API-Football v3."""

    name = "api-football"

    def search_teams(self, name: str) -> List[RawTeam]:
        return parse_all(self.get("/teams", {"search": name}), RawTeam.from_payload)

    def list_teams(self, league: int, season: int) -> List[RawTeam]:
        return parse_all(self.get("/teams", {"league": league, "season": season}), RawTeam.from_payload)

    def get_team(self, team_id: int) -> Optional[RawTeam]:
        teams = parse_all(self.get("/teams", {"id": team_id}), RawTeam.from_payload)
        return teams[0] if teams else None

    def get_fixtures(self, **params: Any) -> List[RawGame]:
        return parse_all(self.get("/fixtures", params), RawGame.from_football)

    def get_team_statistics(self, team: int, league: int, season: int) -> Optional[RawSeasonStats]:
        response = self.get("/teams/statistics", {"team": team, "league": league, "season": season})
        return RawSeasonStats.from_football(response)

    def get_head_to_head(self, team1: int, team2: int, last: Optional[int] = None) -> List[RawGame]:
        params = {"h2h": f"{team1}-{team2}", "last": last}
        return parse_all(self.get("/fixtures/headtohead", params), RawGame.from_football)

    def get_injuries(self, team: int, season: int) -> List[RawInjury]:
        response = self.get("/injuries", {"team": team, "season": season})
        return parse_all(response, RawInjury.from_payload)


class GamesApiClient(ApiSportsClient, ABC):
    """
    Basketball and hockey APIs: /teams, /games, /standings plus a team
    statistics endpoint and an h2h lookup whose paths differ per product.
    """

    statistics_path = "/statistics"
    h2h_path = "/games"
    scoring_key = "points"

    @abstractmethod
    def _parse_game(self, item: Any) -> Optional[RawGame]:
        """Map one /games item, or None when it is unusable."""

    def list_teams(self, league: int, season: str) -> List[RawTeam]:
        return parse_all(self.get("/teams", {"league": league, "season": season}), RawTeam.from_payload)

    def get_team(self, team_id: int) -> Optional[RawTeam]:
        teams = parse_all(self.get("/teams", {"id": team_id}), RawTeam.from_payload)
        return teams[0] if teams else None

    def get_games(self, **params: Any) -> List[RawGame]:
        return parse_all(self.get("/games", params), self._parse_game)

    def get_statistics(self, team: int, league: int, season: str) -> Optional[RawSeasonStats]:
        response = self.get(self.statistics_path, {"team": team, "league": league, "season": season})
        return RawSeasonStats.from_games_api(response, self.scoring_key)

    def get_standings(self, league: int, season: str) -> List[RawStanding]:
        response = self.get("/standings", {"league": league, "season": season})
        # standings arrive grouped (conference/division): a list of lists
        flat = []
        for group in safe_list(response):
            flat.extend(group if isinstance(group, list) else [group])
        return parse_all(flat, RawStanding.from_payload)

    def get_h2h(self, team1: int, team2: int, league: Optional[int] = None,
                season: Optional[str] = None) -> List[RawGame]:
        params = {"h2h": f"{team1}-{team2}", "league": league, "season": season}
        return parse_all(self.get(self.h2h_path, params), self._parse_game)


class BasketballClient(GamesApiClient):
    name = "api-basketball"

    def _parse_game(self, item: Any) -> Optional[RawGame]:
        return RawGame.from_basketball(item)


class HockeyClient(GamesApiClient):
    name = "api-hockey"
    statistics_path = "/teams/statistics"
    h2h_path = "/games/h2h"
    scoring_key = "goals"

    def _parse_game(self, item: Any) -> Optional[RawGame]:
        return RawGame.from_hockey(item)
