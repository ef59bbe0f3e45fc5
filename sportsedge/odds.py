"""
Odds normalization.

Converts bookmaker prices into implied probabilities and strips the
bookmaker margin ("vig") so each market's distribution sums to 1. Also maps
the odds provider's raw events into BookmakerOdds.
"""
import logging
import math
from fractions import Fraction
from typing import Dict, List, Optional, Sequence, Union

from sportsedge.clients.odds_api import RawBookmaker, RawOddsEvent, RawOutcome
from sportsedge.models import (
    BookmakerOdds,
    ImpliedProbability,
    LineOdds,
    MarketImplied,
    MoneylineOdds,
    ProbabilityTriple,
    SpreadOdds,
    Sport,
    TotalOdds,
)
from sportsedge.resolver import normalize_name, rank_candidates
from sportsedge.utils.helpers import parse_datetime

logger = logging.getLogger("odds")

PROVIDER = "the-odds-api"


class InvalidOddsError(ValueError):
    """A price that cannot be turned into a probability."""


# =============================================================================
# Price formats
# =============================================================================

def validate_decimal(odds: float) -> float:
    if odds is None or not math.isfinite(odds) or odds <= 1.0:
        raise InvalidOddsError(f"Decimal odds must be greater than 1.0, got {odds}")
    return float(odds)


def american_to_decimal(american: float) -> float:
    """+150 -> 2.5, -200 -> 1.5"""
    if not math.isfinite(american) or -100 < american < 100:
        raise InvalidOddsError(f"Invalid American odds: {american}")
    if american > 0:
        return american / 100.0 + 1.0
    return 100.0 / abs(american) + 1.0


def decimal_to_american(decimal: float) -> int:
    decimal = validate_decimal(decimal)
    if decimal >= 2.0:
        return round((decimal - 1.0) * 100)
    return round(-100.0 / (decimal - 1.0))


def fractional_to_decimal(fractional: Union[str, Fraction]) -> float:
    """"5/2" -> 3.5, "evens" -> 2.0"""
    if isinstance(fractional, str):
        text = fractional.strip().lower()
        if text in ("evens", "evs", "even"):
            return 2.0
        try:
            fractional = Fraction(text)
        except (ValueError, ZeroDivisionError) as e:
            raise InvalidOddsError(f"Invalid fractional odds: {fractional!r}") from e
    if not math.isfinite(fractional) or fractional <= 0:
        raise InvalidOddsError(f"Invalid fractional odds: {fractional}")
    return float(fractional) + 1.0


def implied_probability(decimal: float) -> float:
    """Raw implied probability 1/o, always in (0, 1) for valid odds."""
    return 1.0 / validate_decimal(decimal)


def calculate_margin(*prices: Optional[float]) -> float:
    """Bookmaker overround in percent: (sum(1/o) - 1) * 100, None prices ignored."""
    total = sum(implied_probability(p) for p in prices if p is not None)
    return round((total - 1.0) * 100.0, 1)


# =============================================================================
# Market normalization
# =============================================================================

def normalize_market(
    prices: Dict[str, float],
    market: str = "moneyline",
    line: Optional[float] = None,
) -> MarketImplied:
    """
    Vig-free distribution for any set of mutually exclusive outcomes.

    Raises:
        InvalidOddsError: fewer than two outcomes or any price <= 1.0
    """
    if len(prices) < 2:
        raise InvalidOddsError(f"{market} needs at least two outcomes, got {len(prices)}")
    raw = {outcome: implied_probability(price) for outcome, price in prices.items()}
    total = sum(raw.values())
    return MarketImplied(
        market=market,
        probabilities={outcome: p / total for outcome, p in raw.items()},
        raw=raw,
        margin=round((total - 1.0) * 100.0, 1),
        line=line,
    )


def normalize_moneyline(odds: MoneylineOdds, bookmaker: Optional[str] = None) -> ImpliedProbability:
    prices = {"home": odds.home, "away": odds.away}
    if odds.draw is not None:
        prices["draw"] = odds.draw
    market = normalize_market(prices, "moneyline")
    return ImpliedProbability(
        normalized=_triple(market.probabilities),
        raw=_triple(market.raw),
        margin=market.margin,
        bookmaker=bookmaker,
    )


def normalize_spread(spread: SpreadOdds) -> MarketImplied:
    """Two-way handicap market; `line` is the home side's handicap."""
    return normalize_market(
        {"home": spread.home.odds, "away": spread.away.odds}, "spread", line=spread.home.line
    )


def normalize_totals(total: TotalOdds) -> MarketImplied:
    return normalize_market(
        {"over": total.over.odds, "under": total.under.odds}, "totals", line=total.over.line
    )


def normalize_bookmaker(odds: BookmakerOdds) -> Dict[str, MarketImplied]:
    """Every market the bookmaker quoted, normalized independently."""
    markets = {}
    if odds.moneyline is not None:
        prices = {"home": odds.moneyline.home, "away": odds.moneyline.away}
        if odds.moneyline.draw is not None:
            prices["draw"] = odds.moneyline.draw
        markets["moneyline"] = normalize_market(prices, "moneyline")
    if odds.spread is not None:
        markets["spread"] = normalize_spread(odds.spread)
    if odds.total is not None:
        markets["totals"] = normalize_totals(odds.total)
    return markets


def _triple(values: Dict[str, float]) -> ProbabilityTriple:
    return ProbabilityTriple(home=values["home"], away=values["away"], draw=values.get("draw"))


# =============================================================================
# Provider event mapping
# =============================================================================

def find_event(
    events: Sequence[RawOddsEvent],
    home_team: str,
    away_team: str,
    sport: Optional[Sport] = None,
) -> Optional[RawOddsEvent]:
    """
    The event whose home and away names both match. Highest combined score
    wins; provider order breaks ties.
    """
    best, best_score = None, 0.0
    for event in events:
        home = rank_candidates(home_team, [event.home_team], lambda n: [n], sport)
        away = rank_candidates(away_team, [event.away_team], lambda n: [n], sport)
        if not home or not away:
            continue
        score = home[0].score + away[0].score
        if score > best_score:
            best, best_score = event, score
    return best


def _outcome_for(outcomes: List[RawOutcome], team: str, sport: Optional[Sport]) -> Optional[RawOutcome]:
    ranked = rank_candidates(team, outcomes, lambda o: [o.name], sport)
    return ranked[0].candidate if ranked else None


def _named(outcomes: List[RawOutcome], name: str) -> Optional[RawOutcome]:
    for outcome in outcomes:
        if normalize_name(outcome.name) == name:
            return outcome
    return None


def _usable(price: float) -> bool:
    return math.isfinite(price) and price > 1


def map_bookmaker(
    event: RawOddsEvent,
    bookmaker: RawBookmaker,
    sport: Sport,
) -> Optional[BookmakerOdds]:
    """
    One bookmaker's markets for an event. Outcome names are matched against
    the event's own team names; a market with a missing side is dropped.
    """
    moneyline = spread = total = None

    h2h = bookmaker.markets.get("h2h", [])
    if h2h:
        home = _outcome_for(h2h, event.home_team, sport)
        away = _outcome_for(h2h, event.away_team, sport)
        draw = _named(h2h, "draw")
        if home and away and home is not away and _usable(home.price) and _usable(away.price):
            moneyline = MoneylineOdds(
                home=home.price,
                away=away.price,
                draw=draw.price if draw and _usable(draw.price) else None,
            )

    spreads = bookmaker.markets.get("spreads", [])
    if spreads:
        home = _outcome_for(spreads, event.home_team, sport)
        away = _outcome_for(spreads, event.away_team, sport)
        if home and away and home is not away and _usable(home.price) and _usable(away.price):
            spread = SpreadOdds(
                home=LineOdds(line=home.point or 0.0, odds=home.price),
                away=LineOdds(line=away.point or 0.0, odds=away.price),
            )

    totals = bookmaker.markets.get("totals", [])
    if totals:
        over = _named(totals, "over")
        under = _named(totals, "under")
        if over and under and _usable(over.price) and _usable(under.price):
            total = TotalOdds(
                over=LineOdds(line=over.point or 0.0, odds=over.price),
                under=LineOdds(line=under.point or 0.0, odds=under.price),
            )

    if moneyline is None and spread is None and total is None:
        return None

    return BookmakerOdds(
        match_id=event.id,
        sport=sport,
        bookmaker=bookmaker.title,
        bookmaker_key=bookmaker.key,
        provider=PROVIDER,
        last_update=parse_datetime(bookmaker.last_update),
        moneyline=moneyline,
        spread=spread,
        total=total,
    )


def map_event_odds(event: RawOddsEvent, sport: Sport) -> List[BookmakerOdds]:
    mapped = []
    for bookmaker in event.bookmakers:
        odds = map_bookmaker(event, bookmaker, sport)
        if odds is None:
            logger.debug(f"No usable markets from {bookmaker.key} for event {event.id}")
            continue
        mapped.append(odds)
    return mapped
