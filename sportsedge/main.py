"""
Sports Edge - FastAPI surface over the data layer.

JSON only. Every route answers HTTP 200 with the DataResult envelope; the
envelope, not the status code, carries the error.
"""
import logging
from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Query
from pydantic import BaseModel, Field

from sportsedge import __version__
from sportsedge.data_layer import DataLayer, build_data_layer
from sportsedge.models import MoneylineOdds, ProbabilityTriple
from sportsedge.odds import InvalidOddsError, normalize_moneyline
from sportsedge.results import DataResult, ErrorCode

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("main")

APP_NAME = "Sports Edge"

app = FastAPI(
    title=APP_NAME,
    description="Multi-sport data layer with odds normalization and value-edge detection",
    version=__version__,
)


@lru_cache()
def get_data_layer() -> DataLayer:
    """One data layer per process; tests override this dependency."""
    return build_data_layer()


# =============================================================================
# Request bodies
# =============================================================================

class ProbabilityIn(BaseModel):
    """Outcome probabilities as fractions in [0, 1]; omit draw for two-way sports."""
    home: float
    away: float
    draw: Optional[float] = None

    def to_triple(self) -> ProbabilityTriple:
        return ProbabilityTriple(home=self.home, away=self.away, draw=self.draw)


class MoneylineIn(BaseModel):
    """Decimal prices."""
    home: float
    away: float
    draw: Optional[float] = None


class EdgeRequest(BaseModel):
    model: Optional[ProbabilityIn] = None
    implied: Optional[ProbabilityIn] = None
    odds: Optional[MoneylineIn] = None
    bookmaker: Optional[str] = None
    quality_factor: float = Field(1.0, gt=0, le=1, description="Edge scale for softer books (1.0 = sharp)")


class MarketRequest(BaseModel):
    sport: str
    home_team: str
    away_team: str
    model: Optional[ProbabilityIn] = None
    previous_odds: Optional[MoneylineIn] = None
    confidence: Optional[float] = None
    policy: str = "weighted"


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse YYYY-MM-DD. Raises ValueError on anything else."""
    if not value:
        return None
    return date.fromisoformat(value)


# =============================================================================
# Service
# =============================================================================

@app.get("/health")
def health_check():
    """Health check endpoint."""
    return DataResult.ok({"status": "ok", "name": APP_NAME, "version": __version__}).to_dict()


@app.get("/sports")
def list_sports(layer: DataLayer = Depends(get_data_layer)):
    """Sports, their providers and whether each is configured."""
    return DataResult.ok({"sports": layer.sports()}).to_dict()


@app.get("/cache/stats")
def cache_stats(layer: DataLayer = Depends(get_data_layer)):
    """Get cache statistics."""
    return DataResult.ok(layer.cache_stats()).to_dict()


# =============================================================================
# Sport data
# =============================================================================

@app.get("/teams/resolve")
def resolve_team(
    sport: str = Query(..., description="soccer, basketball, hockey, mma (nba/nhl/ufc aliases accepted)"),
    name: str = Query(..., description="Free-text team or fighter name"),
    league: Optional[str] = Query(None, description="League id override"),
    layer: DataLayer = Depends(get_data_layer),
):
    return layer.resolve_team(sport, name, league).to_dict()


@app.get("/matches")
def get_matches(
    sport: str = Query(..., description="Sport"),
    date: Optional[str] = Query(None, description="Date in YYYY-MM-DD format"),
    team: Optional[str] = Query(None, description="Team id or name"),
    season: Optional[str] = Query(None, description="Provider season code"),
    limit: int = Query(20, description="Max results"),
    layer: DataLayer = Depends(get_data_layer),
):
    try:
        day = parse_date(date)
    except ValueError:
        return DataResult.fail(ErrorCode.INVALID_QUERY, f"Invalid date: {date}").with_context(
            sport, "get_matches"
        ).to_dict()
    return layer.get_matches(sport, date=day, team=team, season=season, limit=limit).to_dict()


@app.get("/teams/{team_id}/stats")
def get_team_stats(
    team_id: str,
    sport: str = Query(..., description="Sport"),
    season: Optional[str] = Query(None, description="Provider season code"),
    layer: DataLayer = Depends(get_data_layer),
):
    return layer.get_team_stats(sport, team_id, season).to_dict()


@app.get("/teams/{team_id}/recent")
def get_recent_form(
    team_id: str,
    sport: str = Query(..., description="Sport"),
    limit: int = Query(5, description="Number of finished games"),
    layer: DataLayer = Depends(get_data_layer),
):
    return layer.get_recent_form(sport, team_id, limit).to_dict()


@app.get("/h2h")
def get_head_to_head(
    sport: str = Query(..., description="Sport"),
    team1: str = Query(..., description="First team name"),
    team2: str = Query(..., description="Second team name"),
    limit: int = Query(10, description="Max meetings"),
    layer: DataLayer = Depends(get_data_layer),
):
    return layer.get_head_to_head(sport, team1, team2, limit).to_dict()


@app.get("/injuries")
def get_injuries(
    sport: str = Query(..., description="Sport"),
    team: str = Query(..., description="Team name"),
    layer: DataLayer = Depends(get_data_layer),
):
    return layer.get_injuries(sport, team).to_dict()


@app.get("/matchup")
def get_matchup(
    sport: str = Query(..., description="Sport"),
    home: str = Query(..., description="Home team name"),
    away: str = Query(..., description="Away team name"),
    recent: int = Query(5, description="Recent games per side"),
    layer: DataLayer = Depends(get_data_layer),
):
    """Stats, recent form, injuries and H2H for both sides in one call."""
    return layer.get_enriched_match_data(sport, home, away, recent_limit=recent).to_dict()


# =============================================================================
# Odds and edge
# =============================================================================

@app.get("/odds")
def get_odds(
    sport: str = Query(..., description="Sport"),
    home: str = Query(..., description="Home team name"),
    away: str = Query(..., description="Away team name"),
    markets: str = Query("h2h,spreads,totals", description="Comma-separated markets"),
    layer: DataLayer = Depends(get_data_layer),
):
    wanted = [m.strip() for m in markets.split(",") if m.strip()]
    return layer.get_odds(sport, home, away, markets=wanted).to_dict()


@app.get("/events")
def get_upcoming_events(
    sport: str = Query(..., description="Sport"),
    sport_key: Optional[str] = Query(None, description="Odds provider sport key override"),
    layer: DataLayer = Depends(get_data_layer),
):
    return layer.get_upcoming_events(sport, sport_key).to_dict()


@app.post("/edge")
def compute_edge(request: EdgeRequest, layer: DataLayer = Depends(get_data_layer)):
    """
    Value edge of a model distribution against the market.

    The market side is either `implied` probabilities or raw decimal `odds`,
    which are normalized first.
    """
    implied = request.implied.to_triple() if request.implied else None
    if implied is None and request.odds is not None:
        odds = MoneylineOdds(home=request.odds.home, away=request.odds.away, draw=request.odds.draw)
        try:
            implied = normalize_moneyline(odds, request.bookmaker)
        except InvalidOddsError as e:
            return DataResult.fail(ErrorCode.INVALID_QUERY, str(e)).with_context("any", "compute_edge").to_dict()

    model = request.model.to_triple() if request.model else None
    return layer.compute_edge(model, implied, request.quality_factor).to_dict()


@app.post("/market")
def analyze_market(request: MarketRequest, layer: DataLayer = Depends(get_data_layer)):
    """Consensus odds, edge, recommendation and line movement for one matchup."""
    previous = None
    if request.previous_odds is not None:
        previous = MoneylineOdds(
            home=request.previous_odds.home,
            away=request.previous_odds.away,
            draw=request.previous_odds.draw,
        )
    return layer.analyze_market(
        request.sport,
        request.home_team,
        request.away_team,
        request.model.to_triple() if request.model else None,
        previous_odds=previous,
        confidence=request.confidence,
        policy=request.policy,
    ).to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
