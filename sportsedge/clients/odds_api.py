"""
The Odds API v4 client.

Odds are requested in decimal format. Usage quota comes back in response
headers and is kept on the client for diagnostics.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sportsedge.clients.base import ProviderClient, ProviderPayloadError
from sportsedge.utils.helpers import safe_dict, safe_float, safe_list, safe_optional_int, safe_str

logger = logging.getLogger("clients.odds_api")

DEFAULT_MARKETS = ("h2h", "spreads", "totals")


@dataclass
class RawOutcome:
    name: str
    price: float
    point: Optional[float] = None

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawOutcome"]:
        item = safe_dict(item)
        name = safe_str(item.get("name")).strip()
        price = safe_float(item.get("price"), default=0.0)
        if not name or price <= 0:
            return None
        point = item.get("point")
        return cls(name=name, price=price, point=safe_float(point) if point is not None else None)


@dataclass
class RawBookmaker:
    key: str
    title: str
    last_update: Optional[str] = None
    markets: Dict[str, List[RawOutcome]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawBookmaker"]:
        item = safe_dict(item)
        key = safe_str(item.get("key")).strip()
        if not key:
            return None
        markets = {}
        for market in safe_list(item.get("markets")):
            market = safe_dict(market)
            outcomes = [
                outcome
                for outcome in (RawOutcome.from_payload(o) for o in safe_list(market.get("outcomes")))
                if outcome is not None
            ]
            if market.get("key") and outcomes:
                markets[market["key"]] = outcomes
        return cls(
            key=key,
            title=safe_str(item.get("title")) or key,
            last_update=item.get("last_update"),
            markets=markets,
        )


@dataclass
class RawOddsEvent:
    id: str
    sport_key: str
    home_team: str
    away_team: str
    commence_time: Optional[str] = None
    sport_title: Optional[str] = None
    bookmakers: List[RawBookmaker] = field(default_factory=list)

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawOddsEvent"]:
        item = safe_dict(item)
        event_id = safe_str(item.get("id"))
        home = safe_str(item.get("home_team")).strip()
        away = safe_str(item.get("away_team")).strip()
        if not event_id or not home or not away:
            return None
        bookmakers = [
            bookmaker
            for bookmaker in (RawBookmaker.from_payload(b) for b in safe_list(item.get("bookmakers")))
            if bookmaker is not None
        ]
        return cls(
            id=event_id,
            sport_key=safe_str(item.get("sport_key")),
            home_team=home,
            away_team=away,
            commence_time=item.get("commence_time"),
            sport_title=item.get("sport_title"),
            bookmakers=bookmakers,
        )


class OddsApiClient(ProviderClient):
    name = "the-odds-api"

    def __init__(self, *args, regions: str = "eu,us", **kwargs):
        super().__init__(*args, **kwargs)
        self.regions = regions
        self.quota: Dict[str, Optional[int]] = {"remaining": None, "used": None}

    def _auth_params(self) -> Dict[str, Any]:
        return {"apiKey": self.api_key}

    def _on_response(self, response: Any) -> None:
        headers = getattr(response, "headers", None) or {}
        remaining = safe_optional_int(headers.get("x-requests-remaining"))
        used = safe_optional_int(headers.get("x-requests-used"))
        if remaining is not None or used is not None:
            self.quota = {"remaining": remaining, "used": used}
            logger.debug(f"Odds API quota: used={used} remaining={remaining}")

    def _events(self, payload: Any) -> List[RawOddsEvent]:
        if not isinstance(payload, list):
            raise ProviderPayloadError("Odds API returned a non-list payload", self.name)
        events = []
        for item in payload:
            event = RawOddsEvent.from_payload(item)
            if event is None:
                logger.warning(f"Skipping malformed odds event: {str(item)[:120]}")
                continue
            events.append(event)
        return events

    def get_odds(self, sport_key: str, markets=DEFAULT_MARKETS,
                 regions: Optional[str] = None) -> List[RawOddsEvent]:
        """Bookmaker quotes for every upcoming event of a sport. Costs quota."""
        params = {
            "regions": regions or self.regions,
            "markets": ",".join(markets),
            "oddsFormat": "decimal",
            "dateFormat": "iso",
        }
        return self._events(self.get(f"/sports/{sport_key}/odds", params))

    def get_events(self, sport_key: str) -> List[RawOddsEvent]:
        """Upcoming events without prices. Does not count against quota."""
        return self._events(self.get(f"/sports/{sport_key}/events", {"dateFormat": "iso"}))
