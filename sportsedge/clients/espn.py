"""
ESPN public site API client.

Unauthenticated and not contractually stable: everything is parsed
defensively and a malformed team block is skipped, not fatal.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sportsedge.clients.base import ProviderClient, ProviderPayloadError
from sportsedge.utils.helpers import safe_dict, safe_list, safe_str

logger = logging.getLogger("clients.espn")

# league key -> "{sport}/{league}" path segment
LEAGUE_PATHS = {
    "nba": "basketball/nba",
    "nhl": "hockey/nhl",
    "nfl": "football/nfl",
}


@dataclass
class RawEspnInjury:
    player_name: str
    status: str
    short_comment: str = ""
    long_comment: str = ""
    injury_type: Optional[str] = None
    return_date: Optional[str] = None
    player_id: Optional[str] = None

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawEspnInjury"]:
        item = safe_dict(item)
        athlete = safe_dict(item.get("athlete"))
        name = safe_str(athlete.get("displayName")).strip()
        if not name:
            return None
        details = safe_dict(item.get("details"))
        return cls(
            player_name=name,
            status=safe_str(item.get("status")),
            short_comment=safe_str(item.get("shortComment")),
            long_comment=safe_str(item.get("longComment")),
            injury_type=details.get("type") or None,
            return_date=details.get("returnDate") or None,
            player_id=safe_str(item.get("id")) or None,
        )


@dataclass
class RawEspnTeamInjuries:
    team_name: str
    injuries: List[RawEspnInjury] = field(default_factory=list)

    @classmethod
    def from_payload(cls, item: Any) -> Optional["RawEspnTeamInjuries"]:
        item = safe_dict(item)
        name = safe_str(item.get("displayName")).strip()
        if not name:
            return None
        injuries = []
        for raw in safe_list(item.get("injuries")):
            injury = RawEspnInjury.from_payload(raw)
            if injury is not None:
                injuries.append(injury)
        return cls(team_name=name, injuries=injuries)


class EspnClient(ProviderClient):
    name = "espn"
    requires_key = False

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "User-Agent": "Mozilla/5.0 (compatible; sportsedge)"}

    def get_injuries(self, league: str) -> List[RawEspnTeamInjuries]:
        """League-wide injury report, one block per team."""
        path = LEAGUE_PATHS.get(league)
        if path is None:
            raise ProviderPayloadError(f"ESPN has no injury feed for league '{league}'", self.name)

        payload = self.get(f"/{path}/injuries")
        if not isinstance(payload, dict) or not isinstance(payload.get("injuries"), list):
            raise ProviderPayloadError("ESPN injury payload has no 'injuries' list", self.name)

        teams = []
        for item in payload["injuries"]:
            team = RawEspnTeamInjuries.from_payload(item)
            if team is None:
                logger.warning(f"Skipping malformed ESPN injury block: {str(item)[:120]}")
                continue
            teams.append(team)
        logger.info(f"ESPN {league} injury report: {len(teams)} teams")
        return teams
