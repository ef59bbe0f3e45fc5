"""
Tests for the edge detection engine, bookmaker consensus and market intel.
"""
import pytest

from sportsedge.edge import (
    Consensus,
    build_market_intel,
    classify_strength,
    compute_edge,
    consensus_implied,
    detect_line_movement,
    get_bookmaker_quality,
    recommend,
    sharpest_book,
)
from sportsedge.models import (
    BookmakerOdds,
    EdgeStrength,
    ImpliedProbability,
    MoneylineOdds,
    Outcome,
    ProbabilityTriple,
    Sport,
    ValueEdge,
)
from sportsedge.odds import normalize_moneyline
from sportsedge.results import ErrorCode


def book(key, home, away, draw=None, sport=Sport.BASKETBALL, title=None):
    return BookmakerOdds(
        match_id="evt-1",
        sport=sport,
        bookmaker=title or key.title(),
        bookmaker_key=key,
        provider="the-odds-api",
        moneyline=MoneylineOdds(home=home, away=away, draw=draw),
    )


@pytest.fixture
def scenario_implied():
    return normalize_moneyline(MoneylineOdds(home=1.80, away=2.10))


@pytest.fixture
def scenario_model():
    return ProbabilityTriple(home=0.62, away=0.38)


# =============================================================================
# compute_edge
# =============================================================================

class TestComputeEdge:
    def test_scenario_home_medium(self, scenario_model, scenario_implied):
        result = compute_edge(scenario_model, scenario_implied)
        assert result.success
        edge = result.data
        assert edge.outcome is Outcome.HOME
        assert edge.edge_percent == 8.2
        assert edge.strength is EdgeStrength.MEDIUM
        assert edge.label == "Home +8.2% Value"

    def test_idempotent(self, scenario_model, scenario_implied):
        first = compute_edge(scenario_model, scenario_implied)
        second = compute_edge(scenario_model, scenario_implied)
        assert first.data == second.data

    def test_equal_distributions_have_no_edge(self):
        triple = ProbabilityTriple(home=0.45, away=0.30, draw=0.25)
        edge = compute_edge(triple, triple).data
        assert edge.outcome is Outcome.NONE
        assert edge.strength is EdgeStrength.NONE

    def test_small_divergence_is_no_edge(self):
        edge = compute_edge(
            ProbabilityTriple(home=0.52, away=0.48), ProbabilityTriple(home=0.50, away=0.50)
        ).data
        assert edge.outcome is Outcome.NONE
        assert edge.label == "No clear value"

    def test_monotonic_strength(self):
        implied = ProbabilityTriple(home=0.5, away=0.5)
        ranks = []
        for step in range(0, 26):
            home = 0.5 + step / 100.0
            edge = compute_edge(ProbabilityTriple(home=home, away=1.0 - home), implied).data
            ranks.append(edge.strength.rank)
        assert ranks == sorted(ranks)
        assert ranks[0] == EdgeStrength.NONE.rank
        assert ranks[-1] == EdgeStrength.HIGH.rank

    def test_three_way_picks_largest(self):
        model = ProbabilityTriple(home=0.47, away=0.25, draw=0.28)
        implied = ProbabilityTriple(home=0.40, away=0.32, draw=0.28)
        edge = compute_edge(model, implied).data
        assert edge.outcome is Outcome.HOME
        assert edge.edge_percent == 7.0
        assert edge.strength is EdgeStrength.MEDIUM

    def test_draw_value(self):
        model = ProbabilityTriple(home=0.35, away=0.30, draw=0.35)
        implied = ProbabilityTriple(home=0.40, away=0.35, draw=0.25)
        edge = compute_edge(model, implied).data
        assert edge.outcome is Outcome.DRAW
        assert edge.strength is EdgeStrength.MEDIUM

    def test_model_draw_against_two_way_market(self):
        model = ProbabilityTriple(home=0.50, away=0.30, draw=0.20)
        edge = compute_edge(model, ProbabilityTriple(home=0.5, away=0.5)).data
        assert edge.outcome is Outcome.HOME
        assert edge.edge_percent == 12.5
        assert edge.strength is EdgeStrength.HIGH

    def test_quality_factor_scales_edge(self, scenario_model, scenario_implied):
        edge = compute_edge(scenario_model, scenario_implied, quality_factor=0.5).data
        assert edge.edge_percent == 4.1
        assert edge.strength is EdgeStrength.LOW

    def test_threshold_override(self, scenario_model, scenario_implied):
        edge = compute_edge(scenario_model, scenario_implied, threshold=10.0).data
        assert edge.strength is EdgeStrength.NONE


class TestComputeEdgeInvalid:
    @pytest.mark.parametrize("model, implied", [
        (None, ProbabilityTriple(home=0.5, away=0.5)),
        (ProbabilityTriple(home=0.5, away=0.5), None),
        (ProbabilityTriple(home=0.7, away=0.4), ProbabilityTriple(home=0.5, away=0.5)),
        (ProbabilityTriple(home=-0.1, away=1.1), ProbabilityTriple(home=0.5, away=0.5)),
        (ProbabilityTriple(home=0.5, away=0.5), ProbabilityTriple(home=0.4, away=0.3, draw=0.3)),
        (ProbabilityTriple(home=0.5, away=0.5), ProbabilityTriple(home=float("nan"), away=0.5)),
    ])
    def test_invalid_query(self, model, implied):
        result = compute_edge(model, implied)
        assert not result.success
        assert result.code is ErrorCode.INVALID_QUERY
        assert result.data is None

    @pytest.mark.parametrize("quality", [0.0, -0.5, 1.5, None])
    def test_quality_factor_out_of_range(self, scenario_model, scenario_implied, quality):
        result = compute_edge(scenario_model, scenario_implied, quality_factor=quality)
        assert result.code is ErrorCode.INVALID_QUERY
        assert "Quality factor" in result.error.message


class TestClassifyStrength:
    @pytest.mark.parametrize("edge, expected", [
        (-4.0, EdgeStrength.NONE),
        (3.0, EdgeStrength.NONE),
        (3.1, EdgeStrength.LOW),
        (5.0, EdgeStrength.LOW),
        (5.1, EdgeStrength.MEDIUM),
        (10.0, EdgeStrength.MEDIUM),
        (10.1, EdgeStrength.HIGH),
    ])
    def test_buckets(self, edge, expected):
        assert classify_strength(edge, threshold=3.0) is expected


# =============================================================================
# Consensus
# =============================================================================

class TestConsensus:
    def test_bookmaker_quality(self):
        assert get_bookmaker_quality("pinnacle") == 1.0
        assert get_bookmaker_quality("Betfair Ex EU") == 0.98
        assert get_bookmaker_quality("corner-shop-bets") == 0.7
        assert get_bookmaker_quality(None) == 0.7

    def test_single_book(self, scenario_implied):
        consensus = consensus_implied([book("pinnacle", 1.80, 2.10)])
        assert consensus.quality == 1.0
        assert consensus.bookmakers == ["Pinnacle"]
        assert consensus.implied.normalized.home == pytest.approx(scenario_implied.normalized.home)

    def test_weighted_leans_to_sharp_book(self):
        consensus = consensus_implied([book("pinnacle", 1.80, 2.10), book("betus", 2.10, 1.80)])
        assert consensus.implied.normalized.home > 0.5
        assert consensus.implied.normalized.total == pytest.approx(1.0)
        assert consensus.quality == pytest.approx((1.0 + 0.55) / 2, abs=1e-3)

    def test_median(self):
        odds = [book("a", 1.80, 2.10), book("b", 1.90, 2.00), book("c", 2.50, 1.55)]
        consensus = consensus_implied(odds, policy="median")
        expected = normalize_moneyline(MoneylineOdds(home=1.90, away=2.00)).normalized.home
        assert consensus.implied.normalized.total == pytest.approx(1.0)
        assert consensus.implied.normalized.home == pytest.approx(expected, abs=0.01)

    def test_best_takes_highest_price_per_side(self):
        odds = [book("pinnacle", 1.80, 2.10), book("bet365", 1.85, 2.00)]
        consensus = consensus_implied(odds, policy="best")
        assert consensus.implied.raw.home == pytest.approx(1 / 1.85)
        assert consensus.implied.raw.away == pytest.approx(1 / 2.10)
        assert set(consensus.bookmakers) == {"Pinnacle", "Bet365"}

    def test_shape_mismatch_skipped(self):
        odds = [book("pinnacle", 2.0, 3.8, sport=Sport.SOCCER)]
        assert consensus_implied(odds) is None

    def test_invalid_prices_skipped(self):
        odds = [book("pinnacle", 1.0, 2.10), book("bet365", 1.80, 2.10)]
        consensus = consensus_implied(odds)
        assert consensus.bookmakers == ["Bet365"]

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            consensus_implied([book("pinnacle", 1.8, 2.1)], policy="mean")

    def test_sharpest_book(self):
        odds = [book("draftkings", 1.8, 2.1), book("pinnacle", 1.85, 2.05), book("betus", 1.9, 2.0)]
        assert sharpest_book(odds).bookmaker_key == "pinnacle"
        assert sharpest_book([]) is None


# =============================================================================
# Market intel
# =============================================================================

class TestLineMovement:
    def test_shortening_home_price(self):
        movement = detect_line_movement(MoneylineOdds(2.10, 1.80), MoneylineOdds(1.80, 2.10))
        assert movement.direction == "toward_home"
        assert movement.magnitude == "sharp"
        assert movement.suspicious is True
        assert movement.interpretation == "Money coming for Home"

    def test_drifting_home_price(self):
        movement = detect_line_movement(MoneylineOdds(2.00, 1.90), MoneylineOdds(2.10, 1.80))
        assert movement.direction == "toward_away"
        assert movement.magnitude == "moderate"
        assert movement.suspicious is False

    def test_stable(self):
        movement = detect_line_movement(MoneylineOdds(1.90, 1.95), MoneylineOdds(1.93, 1.92))
        assert movement.direction == "stable"
        assert movement.magnitude == "slight"
        assert movement.interpretation == "Line stable"


class TestRecommendation:
    @pytest.mark.parametrize("edge, confidence, expected", [
        (ValueEdge(Outcome.HOME, 12.0, EdgeStrength.HIGH), None, "strong_value"),
        (ValueEdge(Outcome.HOME, 7.0, EdgeStrength.MEDIUM), None, "slight_value"),
        (ValueEdge(Outcome.HOME, 4.0, EdgeStrength.LOW), None, "fair_price"),
        (ValueEdge(Outcome.NONE, -6.0, EdgeStrength.NONE), None, "overpriced"),
        (ValueEdge(Outcome.NONE, 1.0, EdgeStrength.NONE), 30.0, "avoid"),
    ])
    def test_recommend(self, edge, confidence, expected):
        assert recommend(edge, confidence) == expected


class TestMarketIntel:
    def test_value_summary(self, scenario_model):
        consensus = consensus_implied([book("pinnacle", 1.80, 2.10)])
        intel = build_market_intel(scenario_model, consensus).data
        assert intel.value_edge.outcome is Outcome.HOME
        assert intel.recommendation == "slight_value"
        assert "Home +8.2% Value" in intel.summary
        assert intel.conflict_explanation is None
        assert intel.line_movement is None
        assert intel.bookmakers_used == ["Pinnacle"]

    def test_contrarian_value(self):
        implied = ProbabilityTriple(home=0.75, away=0.25)
        consensus = Consensus(
            implied=ImpliedProbability(normalized=implied, raw=implied, margin=0.0), quality=1.0
        )
        intel = build_market_intel(ProbabilityTriple(home=0.60, away=0.40), consensus).data
        assert intel.value_edge.outcome is Outcome.AWAY
        assert "contrarian" in intel.conflict_explanation

    def test_fair_price(self):
        consensus = consensus_implied([book("pinnacle", 1.80, 2.10)])
        model = consensus.implied.normalized
        intel = build_market_intel(model, consensus).data
        assert intel.recommendation == "fair_price"
        assert intel.summary.startswith("Fair price")

    def test_line_movement_included(self, scenario_model):
        consensus = consensus_implied([book("pinnacle", 1.80, 2.10)])
        intel = build_market_intel(
            scenario_model, consensus,
            previous_odds=MoneylineOdds(2.10, 1.80), current_odds=MoneylineOdds(1.80, 2.10),
        ).data
        assert intel.line_movement.direction == "toward_home"

    def test_invalid_model(self):
        consensus = consensus_implied([book("pinnacle", 1.80, 2.10)])
        result = build_market_intel(None, consensus)
        assert result.code is ErrorCode.INVALID_QUERY
