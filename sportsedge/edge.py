"""
Edge detection: where the model disagrees with the market.

Compares a model probability triple with the vig-free implied distribution
and grades the divergence. A false value signal is worse than none, so
anything at or below the threshold is reported as no edge.

All probabilities are fractions in [0, 1]; edges are percentage points.
"""
import logging
import re
import statistics
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from config.settings import settings
from sportsedge.models import (
    BookmakerOdds,
    EdgeStrength,
    ImpliedProbability,
    LineMovement,
    MarketIntel,
    MoneylineOdds,
    Outcome,
    ProbabilityTriple,
    ValueEdge,
)
from sportsedge.odds import InvalidOddsError, normalize_moneyline
from sportsedge.results import DataResult, ErrorCode

logger = logging.getLogger("edge")

# Sharp books first. Prices from sharper books count more in the consensus.
BOOKMAKER_QUALITY = {
    "pinnacle": 1.0,
    "betfair_ex_eu": 0.98,
    "betfair_ex_uk": 0.98,
    "betfair": 0.95,
    "matchbook": 0.92,
    "betonlineag": 0.85,
    "bovada": 0.82,
    "mybookieag": 0.80,
    "williamhill": 0.80,
    "williamhill_us": 0.80,
    "bet365": 0.78,
    "unibet": 0.75,
    "unibet_eu": 0.75,
    "unibet_uk": 0.75,
    "draftkings": 0.75,
    "fanduel": 0.75,
    "betmgm": 0.72,
    "caesars": 0.72,
    "pointsbetus": 0.70,
    "wynnbet": 0.70,
    "betrivers": 0.68,
    "superbook": 0.65,
    "twinspires": 0.65,
    "barstool": 0.62,
    "lowvig": 0.60,
    "betus": 0.55,
}
DEFAULT_BOOKMAKER_QUALITY = 0.7

# Strength buckets (percentage points, upper bounds inclusive)
LOW_EDGE_MAX = 5.0
MEDIUM_EDGE_MAX = 10.0

# Model/implied distributions may be off by rounding
SUM_TOLERANCE = 0.02

# Line movement thresholds on the home decimal price
MOVEMENT_STABLE = 0.05
MOVEMENT_MODERATE = 0.08
MOVEMENT_SHARP = 0.15
MOVEMENT_SUSPICIOUS = 0.20

OVERPRICED_EDGE = -5.0
LOW_CONFIDENCE = 40.0

CONSENSUS_POLICIES = ("weighted", "median", "best")


def get_bookmaker_quality(bookmaker: Optional[str]) -> float:
    """Quality weight for a bookmaker key or title ("Betfair Ex EU" -> betfair_ex_eu)."""
    key = re.sub(r"[^a-z0-9_]", "", (bookmaker or "").lower().replace(" ", "_"))
    return BOOKMAKER_QUALITY.get(key, DEFAULT_BOOKMAKER_QUALITY)


def _pct(value: Optional[float]) -> Optional[float]:
    return round(value * 100.0, 1) if value is not None else None


# =============================================================================
# Edge
# =============================================================================

def classify_strength(edge_percent: float, threshold: Optional[float] = None) -> EdgeStrength:
    threshold = settings.edge_min_threshold if threshold is None else threshold
    if edge_percent <= threshold:
        return EdgeStrength.NONE
    if edge_percent <= LOW_EDGE_MAX:
        return EdgeStrength.LOW
    if edge_percent <= MEDIUM_EDGE_MAX:
        return EdgeStrength.MEDIUM
    return EdgeStrength.HIGH


def _validate(triple: Optional[ProbabilityTriple], name: str) -> Optional[str]:
    if triple is None:
        return f"{name} probability is missing"
    if triple.home is None or triple.away is None:
        return f"{name} probability needs both home and away"
    for outcome, value in triple.outcomes().items():
        if not 0.0 <= value <= 1.0:
            return f"{name} {outcome.value} probability {value} is outside [0, 1]"
    if abs(triple.total - 1.0) > SUM_TOLERANCE:
        return f"{name} probabilities sum to {triple.total:.3f}, expected 1"
    return None


def compute_edge(
    model: Optional[ProbabilityTriple],
    implied: Optional[Union[ImpliedProbability, ProbabilityTriple]],
    quality_factor: float = 1.0,
    threshold: Optional[float] = None,
) -> DataResult[ValueEdge]:
    """
    Grade the largest positive divergence between model and market.

    Args:
        model: Model distribution; may omit the draw
        implied: Vig-free implied distribution (or the ImpliedProbability holding it)
        quality_factor: Scales the edge down for softer books (1.0 = sharp)
        threshold: Edge in points at or below which no value side is reported

    Returns:
        DataResult[ValueEdge]; INVALID_QUERY when either side is missing or malformed
    """
    if isinstance(implied, ImpliedProbability):
        implied = implied.normalized

    if quality_factor is None or not 0.0 < quality_factor <= 1.0:
        return DataResult.fail(
            ErrorCode.INVALID_QUERY, f"Quality factor must be in (0, 1], got {quality_factor}"
        )

    for triple, name in ((model, "Model"), (implied, "Implied")):
        problem = _validate(triple, name)
        if problem:
            return DataResult.fail(ErrorCode.INVALID_QUERY, problem)

    if implied.has_draw and not model.has_draw:
        return DataResult.fail(
            ErrorCode.INVALID_QUERY, "Market prices a draw but the model gives no draw probability"
        )
    if model.has_draw and not implied.has_draw:
        # two-way market: compare home/away with the draw mass redistributed
        two_way = model.home + model.away
        model = ProbabilityTriple(home=model.home / two_way, away=model.away / two_way)

    model_outcomes = model.outcomes()
    best_outcome, best_diff = Outcome.NONE, None
    for outcome, implied_prob in implied.outcomes().items():
        diff = (model_outcomes[outcome] - implied_prob) * 100.0
        if best_diff is None or diff > best_diff:
            best_outcome, best_diff = outcome, diff

    edge_percent = round(best_diff * quality_factor, 1)
    strength = classify_strength(edge_percent, threshold)
    if strength is EdgeStrength.NONE:
        return DataResult.ok(ValueEdge(outcome=Outcome.NONE, edge_percent=edge_percent, strength=strength))

    label = f"{best_outcome.value.title()} +{edge_percent}% Value"
    return DataResult.ok(
        ValueEdge(outcome=best_outcome, edge_percent=edge_percent, strength=strength, label=label)
    )


# =============================================================================
# Multi-book consensus
# =============================================================================

@dataclass(frozen=True)
class Consensus:
    implied: ImpliedProbability
    quality: float
    bookmakers: List[str] = field(default_factory=list)


def _combine(values: Sequence[Optional[float]], weights: Sequence[float], policy: str) -> Optional[float]:
    if any(v is None for v in values):
        return None
    if policy == "median":
        return statistics.median(values)
    return sum(v * w for v, w in zip(values, weights)) / sum(weights)


def _renormalize(home: float, away: float, draw: Optional[float]) -> ProbabilityTriple:
    total = home + away + (draw or 0.0)
    return ProbabilityTriple(
        home=home / total,
        away=away / total,
        draw=draw / total if draw is not None else None,
    )


def consensus_implied(
    odds: Sequence[BookmakerOdds],
    policy: str = "weighted",
    has_draw: Optional[bool] = None,
) -> Optional[Consensus]:
    """
    One implied distribution from many bookmakers.

    Policies:
        weighted  quality-weighted mean of each book's vig-free distribution
        median    per-outcome median, renormalized
        best      highest price per outcome across books, then normalized

    Books without a moneyline, with invalid prices, or whose draw/no-draw
    shape differs from `has_draw` (default: the sport's) are skipped.
    Returns None when no book is usable.
    """
    if policy not in CONSENSUS_POLICIES:
        raise ValueError(f"Unknown consensus policy '{policy}'")

    books = []
    for book in odds:
        if book.moneyline is None:
            continue
        expects_draw = book.sport.has_draw if has_draw is None else has_draw
        if (book.moneyline.draw is not None) != expects_draw:
            continue
        try:
            implied = normalize_moneyline(book.moneyline, book.bookmaker)
        except InvalidOddsError as e:
            logger.warning(f"Skipping {book.bookmaker_key}: {e}")
            continue
        books.append((book, implied))

    if not books:
        return None

    if policy == "best":
        best = {}
        for side in ("home", "away", "draw"):
            priced = [(getattr(b.moneyline, side), b) for b, _ in books if getattr(b.moneyline, side)]
            if priced:
                best[side] = max(priced, key=lambda p: p[0])
        prices = MoneylineOdds(
            home=best["home"][0],
            away=best["away"][0],
            draw=best["draw"][0] if "draw" in best else None,
        )
        sources = []
        for _, book in best.values():
            if book.bookmaker not in sources:
                sources.append(book.bookmaker)
        quality = sum(get_bookmaker_quality(b.bookmaker_key) for _, b in best.values()) / len(best)
        return Consensus(
            implied=normalize_moneyline(prices, "consensus:best"),
            quality=round(quality, 3),
            bookmakers=sources,
        )

    weights = [get_bookmaker_quality(book.bookmaker_key) for book, _ in books]
    normalized = [implied.normalized for _, implied in books]
    raw = [implied.raw for _, implied in books]

    norm_home = _combine([p.home for p in normalized], weights, policy)
    norm_away = _combine([p.away for p in normalized], weights, policy)
    norm_draw = _combine([p.draw for p in normalized], weights, policy)
    margin = _combine([implied.margin for _, implied in books], weights, policy)

    implied = ImpliedProbability(
        normalized=_renormalize(norm_home, norm_away, norm_draw),
        raw=ProbabilityTriple(
            home=_combine([p.home for p in raw], weights, policy),
            away=_combine([p.away for p in raw], weights, policy),
            draw=_combine([p.draw for p in raw], weights, policy),
        ),
        margin=round(margin, 1),
        bookmaker=books[0][0].bookmaker if len(books) == 1 else f"consensus:{policy}",
    )
    return Consensus(
        implied=implied,
        quality=round(sum(weights) / len(weights), 3),
        bookmakers=[book.bookmaker for book, _ in books],
    )


def sharpest_book(odds: Sequence[BookmakerOdds]) -> Optional[BookmakerOdds]:
    """Highest-quality book quoting a moneyline; provider order breaks ties."""
    priced = [book for book in odds if book.moneyline is not None]
    if not priced:
        return None
    return max(priced, key=lambda b: get_bookmaker_quality(b.bookmaker_key))


# =============================================================================
# Market intel
# =============================================================================

def detect_line_movement(previous: MoneylineOdds, current: MoneylineOdds) -> LineMovement:
    """
    Classify the move in the home price. A shortening home price means money
    came in on the home side.
    """
    home_diff = previous.home - current.home
    size = abs(home_diff)

    direction = "stable"
    if home_diff > MOVEMENT_STABLE:
        direction = "toward_home"
    elif home_diff < -MOVEMENT_STABLE:
        direction = "toward_away"

    magnitude = "slight"
    if size > MOVEMENT_SHARP:
        magnitude = "sharp"
    elif size > MOVEMENT_MODERATE:
        magnitude = "moderate"

    interpretation = {
        "toward_home": "Money coming for Home",
        "toward_away": "Money coming for Away",
    }.get(direction, "Line stable")

    return LineMovement(
        direction=direction,
        magnitude=magnitude,
        interpretation=interpretation,
        suspicious=size > MOVEMENT_SUSPICIOUS,
    )


def recommend(edge: ValueEdge, confidence: Optional[float] = None) -> str:
    if edge.strength is EdgeStrength.HIGH:
        return "strong_value"
    if edge.strength is EdgeStrength.MEDIUM:
        return "slight_value"
    if edge.edge_percent < OVERPRICED_EDGE:
        return "overpriced"
    if confidence is not None and confidence < LOW_CONFIDENCE:
        return "avoid"
    return "fair_price"


def _conflict(model: ProbabilityTriple, implied: ProbabilityTriple, edge: ValueEdge) -> Optional[str]:
    """Explain a value side that is not the model's favourite."""
    favoured = Outcome.HOME if model.home > model.away else Outcome.AWAY
    if edge.outcome in (Outcome.NONE, favoured):
        return None
    model_probs: Dict[Outcome, float] = model.outcomes()
    implied_probs: Dict[Outcome, float] = implied.outcomes()
    return (
        f"{favoured.value.title()} is the stronger team ({_pct(model_probs[favoured])}% model probability), "
        f"but the market has overpriced them. {edge.outcome.value.title()} offers +{edge.edge_percent}% value "
        f"because the market implies only {_pct(implied_probs.get(edge.outcome))}% vs our "
        f"{_pct(model_probs.get(edge.outcome))}% model estimate. This is a contrarian value play."
    )


def build_market_intel(
    model: ProbabilityTriple,
    consensus: Consensus,
    previous_odds: Optional[MoneylineOdds] = None,
    current_odds: Optional[MoneylineOdds] = None,
    confidence: Optional[float] = None,
    threshold: Optional[float] = None,
) -> DataResult[MarketIntel]:
    """Edge, recommendation, summary and (given two snapshots) line movement."""
    edge_result = compute_edge(model, consensus.implied, consensus.quality, threshold)
    if not edge_result.success:
        return edge_result
    edge = edge_result.data
    implied = consensus.implied.normalized

    if edge.outcome is Outcome.NONE:
        summary = f"Fair price. Model and market align around {_pct(model.home)}% home probability."
        conflict = None
    else:
        summary = (
            f"Model sees {edge.label}. Market implies {_pct(implied.home)}% home, "
            f"we calculate {_pct(model.home)}%."
        )
        conflict = _conflict(model, implied, edge)

    movement = None
    if previous_odds is not None and current_odds is not None:
        movement = detect_line_movement(previous_odds, current_odds)

    return DataResult.ok(
        MarketIntel(
            model_probability=model,
            implied_probability=consensus.implied,
            value_edge=edge,
            recommendation=recommend(edge, confidence),
            summary=summary,
            bookmakers_used=list(consensus.bookmakers),
            line_movement=movement,
            conflict_explanation=conflict,
        )
    )
