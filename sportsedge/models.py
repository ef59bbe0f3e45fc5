"""
Canonical data model shared by every adapter.

Provider payloads are mapped into these dataclasses at the adapter boundary;
nothing provider-specific travels past it. Instances are treated as
immutable snapshots: a refetch builds new objects and replaces the cache
entry wholesale.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from sportsedge.utils.helpers import utcnow


class Sport(Enum):
    """Sports with a registered adapter (or a reserved slot for one)."""
    SOCCER = "soccer"
    BASKETBALL = "basketball"
    HOCKEY = "hockey"
    AMERICAN_FOOTBALL = "american_football"
    MMA = "mma"

    @property
    def has_draw(self) -> bool:
        """Only soccer prices a draw as a separate outcome."""
        return self is Sport.SOCCER

    @classmethod
    def parse(cls, value: Union[str, "Sport"]) -> Optional["Sport"]:
        """Look up a sport by value ("nba" and "nhl" style aliases accepted)."""
        if isinstance(value, Sport):
            return value
        key = (value or "").strip().lower().replace("-", "_").replace(" ", "_")
        key = SPORT_ALIASES.get(key, key)
        for sport in cls:
            if sport.value == key:
                return sport
        return None


SPORT_ALIASES = {
    "football": "soccer",
    "nba": "basketball",
    "euroleague": "basketball",
    "nhl": "hockey",
    "icehockey": "hockey",
    "nfl": "american_football",
    "americanfootball": "american_football",
    "ufc": "mma",
}


class MatchStatus(Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"
    UNKNOWN = "unknown"


class InjuryStatus(Enum):
    OUT = "out"
    DOUBTFUL = "doubtful"
    QUESTIONABLE = "questionable"
    PROBABLE = "probable"
    DAY_TO_DAY = "day-to-day"


class Outcome(Enum):
    HOME = "home"
    DRAW = "draw"
    AWAY = "away"
    NONE = "none"


class EdgeStrength(Enum):
    """Graded value signal. Ordering follows `rank`."""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _STRENGTH_RANK[self]


_STRENGTH_RANK = {
    EdgeStrength.NONE: 0,
    EdgeStrength.LOW: 1,
    EdgeStrength.MEDIUM: 2,
    EdgeStrength.HIGH: 3,
}


# =============================================================================
# Entities
# =============================================================================

@dataclass(frozen=True)
class NormalizedTeam:
    """
    A team (or, for combat sports, a fighter) as one provider knows it.

    `id` is provider-scoped ("basketball-145"); `external_id` is the raw id
    the provider expects back in follow-up calls.
    """
    id: str
    external_id: str
    name: str
    short_name: str
    sport: Sport
    league: str = ""
    venue: Optional[str] = None
    logo: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class Score:
    home: int
    away: int
    periods: Tuple[Tuple[int, int], ...] = ()

    @property
    def is_draw(self) -> bool:
        return self.home == self.away


@dataclass(frozen=True)
class NormalizedMatch:
    """
    A fixture, game or fight.

    A finished match always carries a score.
    """
    id: str
    external_id: str
    sport: Sport
    league: str
    season: str
    home_team: NormalizedTeam
    away_team: NormalizedTeam
    status: MatchStatus
    date: Optional[datetime]
    provider: str
    score: Optional[Score] = None
    venue: Optional[str] = None
    fetched_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.status is MatchStatus.FINISHED and self.score is None:
            raise ValueError(f"Finished match {self.id} has no score")

    @property
    def is_finished(self) -> bool:
        return self.status is MatchStatus.FINISHED

    def involves(self, team_external_id: str) -> bool:
        return team_external_id in (self.home_team.external_id, self.away_team.external_id)

    def points_for(self, team_external_id: str) -> Tuple[int, int]:
        """(scored, conceded) from the perspective of one side."""
        if self.score is None:
            return 0, 0
        if self.home_team.external_id == team_external_id:
            return self.score.home, self.score.away
        return self.score.away, self.score.home


# =============================================================================
# Statistics
# =============================================================================

@dataclass(frozen=True)
class TeamRecord:
    wins: int = 0
    losses: int = 0
    draws: int = 0
    win_percentage: float = 0.0

    @property
    def games(self) -> int:
        return self.wins + self.losses + self.draws


@dataclass(frozen=True)
class ScoringStats:
    total_for: float = 0
    total_against: float = 0
    average_for: float = 0.0
    average_against: float = 0.0


ExtendedValue = Union[int, float, str]


@dataclass(frozen=True)
class NormalizedTeamStats:
    """
    Per-team, per-season aggregate.

    `extended` holds sport-specific metrics that do not generalize:
      soccer      cleanSheets, failedToScore, biggestWinStreak
      basketball  homeFor, homeAgainst, awayFor, awayAgainst
      hockey      overtimeGames
      mma         koWins, koLosses, subWins, subLosses, decWins, decLosses,
                  noContests, totalFights, finishRate, koRate, subRate
    """
    team_id: str
    season: str
    league: str
    sport: Sport
    record: TeamRecord
    scoring: ScoringStats
    provider: str
    form: Optional[str] = None
    games_played: int = 0
    extended: Dict[str, ExtendedValue] = field(default_factory=dict)
    fetched_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class RecentGamesSummary:
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def total(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def form(self) -> str:
        return f"{self.wins}-{self.draws}-{self.losses}"


@dataclass(frozen=True)
class NormalizedRecentGames:
    team_id: str
    sport: Sport
    games: List[NormalizedMatch]
    summary: RecentGamesSummary
    provider: str
    fetched_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class H2HSummary:
    total_games: int = 0
    team1_wins: int = 0
    team2_wins: int = 0
    draws: int = 0
    team1_points: int = 0
    team2_points: int = 0


@dataclass(frozen=True)
class NormalizedH2H:
    team1_id: str
    team2_id: str
    sport: Sport
    summary: H2HSummary
    matches: List[NormalizedMatch]
    provider: str
    fetched_at: datetime = field(default_factory=utcnow)

    @property
    def pair_key(self) -> Tuple[str, str]:
        """Order-independent identity of the pairing."""
        return tuple(sorted((self.team1_id, self.team2_id)))


@dataclass(frozen=True)
class NormalizedInjury:
    player_name: str
    team_name: str
    status: InjuryStatus
    type: str
    description: str
    provider: str
    expected_return: Optional[datetime] = None
    player_id: Optional[str] = None
    fetched_at: datetime = field(default_factory=utcnow)


# =============================================================================
# Odds and market intel
# =============================================================================

@dataclass(frozen=True)
class MoneylineOdds:
    """Decimal prices for the match-winner market."""
    home: float
    away: float
    draw: Optional[float] = None


@dataclass(frozen=True)
class LineOdds:
    line: float
    odds: float


@dataclass(frozen=True)
class SpreadOdds:
    home: LineOdds
    away: LineOdds


@dataclass(frozen=True)
class TotalOdds:
    over: LineOdds
    under: LineOdds


@dataclass(frozen=True)
class BookmakerOdds:
    """One bookmaker's quotes for one match, all prices decimal."""
    match_id: str
    sport: Sport
    bookmaker: str
    bookmaker_key: str
    provider: str
    last_update: Optional[datetime] = None
    moneyline: Optional[MoneylineOdds] = None
    spread: Optional[SpreadOdds] = None
    total: Optional[TotalOdds] = None
    fetched_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ProbabilityTriple:
    """
    Home/draw/away probabilities as fractions in [0, 1].

    `draw` is None for two-outcome sports, never zero as a placeholder.
    """
    home: float
    away: float
    draw: Optional[float] = None

    @classmethod
    def from_percentages(
        cls, home: float, away: float, draw: Optional[float] = None
    ) -> "ProbabilityTriple":
        return cls(
            home=home / 100.0,
            away=away / 100.0,
            draw=draw / 100.0 if draw is not None else None,
        )

    @property
    def has_draw(self) -> bool:
        return self.draw is not None

    @property
    def total(self) -> float:
        return self.home + self.away + (self.draw or 0.0)

    def outcomes(self) -> Dict[Outcome, float]:
        result = {Outcome.HOME: self.home}
        if self.draw is not None:
            result[Outcome.DRAW] = self.draw
        result[Outcome.AWAY] = self.away
        return result


@dataclass(frozen=True)
class MarketImplied:
    """Vig-free distribution for any market (moneyline, spread, totals)."""
    market: str
    probabilities: Dict[str, float]
    raw: Dict[str, float]
    margin: float
    line: Optional[float] = None


@dataclass(frozen=True)
class ImpliedProbability:
    """Moneyline implied distribution, before and after vig removal."""
    normalized: ProbabilityTriple
    raw: ProbabilityTriple
    margin: float
    bookmaker: Optional[str] = None


@dataclass(frozen=True)
class ValueEdge:
    outcome: Outcome
    edge_percent: float
    strength: EdgeStrength
    label: str = "No clear value"


@dataclass(frozen=True)
class LineMovement:
    direction: str  # toward_home | toward_away | stable
    magnitude: str  # slight | moderate | sharp
    interpretation: str
    suspicious: bool = False


@dataclass(frozen=True)
class MarketIntel:
    model_probability: ProbabilityTriple
    implied_probability: ImpliedProbability
    value_edge: ValueEdge
    recommendation: str
    summary: str
    bookmakers_used: List[str] = field(default_factory=list)
    line_movement: Optional[LineMovement] = None
    conflict_explanation: Optional[str] = None


@dataclass(frozen=True)
class EnrichedMatchData:
    """
    Multi-source composition for one pairing.

    Every sub-fetch that did not produce data is None here and named in
    `missing`, so partial results are never silent.
    A side that could not be resolved is None as well.
    """
    sport: Sport
    home_team: Optional[NormalizedTeam]
    away_team: Optional[NormalizedTeam]
    home_stats: Optional[NormalizedTeamStats] = None
    away_stats: Optional[NormalizedTeamStats] = None
    home_recent: Optional[NormalizedRecentGames] = None
    away_recent: Optional[NormalizedRecentGames] = None
    home_injuries: Optional[List[NormalizedInjury]] = None
    away_injuries: Optional[List[NormalizedInjury]] = None
    h2h: Optional[NormalizedH2H] = None
    missing: List[str] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=utcnow)


# =============================================================================
# Queries
# =============================================================================

@dataclass(frozen=True)
class TeamQuery:
    name: Optional[str] = None
    id: Optional[str] = None
    league: Optional[str] = None


@dataclass(frozen=True)
class MatchQuery:
    date: Optional[date] = None
    team: Optional[str] = None
    season: Optional[str] = None
    limit: int = 20


@dataclass(frozen=True)
class StatsQuery:
    team_id: str
    season: Optional[str] = None


@dataclass(frozen=True)
class H2HQuery:
    team1: str
    team2: str
    limit: int = 10


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class UpcomingEvent:
    """An odds-provider event, listed without prices."""
    id: str
    sport: Sport
    sport_key: str
    home_team: str
    away_team: str
    commence_time: Optional[datetime] = None
