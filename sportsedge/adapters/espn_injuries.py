"""
Injury reports from ESPN's public site API.

ESPN publishes one league-wide report; this source fetches it once per TTL
and picks the requested team's block out of it. Team names differ slightly
between providers ("Los Angeles Clippers" vs "LA Clippers"), so matching
goes through an override table and then the resolver.
"""
import logging
import re
from typing import List, Optional, Sequence

from sportsedge.cache import CacheManager, DataCategory, build_cache_key
from sportsedge.clients.espn import EspnClient, RawEspnInjury, RawEspnTeamInjuries
from sportsedge.models import InjuryStatus, NormalizedInjury, Sport
from sportsedge.resolver import normalize_name, rank_candidates
from sportsedge.utils.helpers import parse_datetime, safe_lower

logger = logging.getLogger("adapters.espn_injuries")

PROVIDER = "espn"

LEAGUE_SPORTS = {
    "nba": Sport.BASKETBALL,
    "nhl": Sport.HOCKEY,
    "nfl": Sport.AMERICAN_FOOTBALL,
}

# Odds/statistics provider name -> ESPN display name, per league
ESPN_NAME_OVERRIDES = {
    "nba": {
        "los angeles clippers": "la clippers",
    },
    "nhl": {
        "utah hockey club": "utah mammoth",
    },
    "nfl": {},
}

INJURY_KEYWORDS = [
    "ACL", "MCL", "Achilles", "hamstring", "ankle", "knee", "groin",
    "concussion", "shoulder", "back", "hip", "calf", "quad", "foot",
    "wrist", "elbow", "finger", "illness", "rest", "personal",
]

STATUS_MAP = {
    "out": InjuryStatus.OUT,
    "doubtful": InjuryStatus.DOUBTFUL,
    "questionable": InjuryStatus.QUESTIONABLE,
    "probable": InjuryStatus.PROBABLE,
}


def map_injury_status(value: Optional[str]) -> InjuryStatus:
    """Anything ESPN reports beyond the four named statuses is day-to-day."""
    return STATUS_MAP.get(safe_lower(value).strip(), InjuryStatus.DAY_TO_DAY)


def extract_injury_type(text: Optional[str]) -> str:
    """First known body part or reason mentioned in a free-text comment."""
    for keyword in INJURY_KEYWORDS:
        if re.search(rf"\b{re.escape(keyword)}\b", text or "", flags=re.IGNORECASE):
            return keyword
    return "Unspecified"


def match_team_report(
    team_name: str,
    reports: Sequence[RawEspnTeamInjuries],
    league: str,
) -> Optional[RawEspnTeamInjuries]:
    """
    The report block for `team_name`: override table first, then an exact
    normalized name, then the resolver's best fuzzy match.
    """
    query = normalize_name(team_name)
    overrides = {normalize_name(k): v for k, v in ESPN_NAME_OVERRIDES.get(league, {}).items()}
    target = normalize_name(overrides.get(query, query))

    for report in reports:
        if normalize_name(report.team_name) == target:
            return report

    ranked = rank_candidates(target, reports, lambda r: [r.team_name], LEAGUE_SPORTS.get(league))
    return ranked[0].candidate if ranked else None


def to_injury(raw: RawEspnInjury, team_name: str) -> NormalizedInjury:
    description = raw.short_comment or raw.long_comment
    return NormalizedInjury(
        player_name=raw.player_name,
        team_name=team_name,
        status=map_injury_status(raw.status),
        type=raw.injury_type or extract_injury_type(description),
        description=description,
        provider=PROVIDER,
        expected_return=parse_datetime(raw.return_date),
        player_id=raw.player_id or f"espn_{raw.player_name.replace(' ', '_')}",
    )


class EspnInjurySource:
    """League injury reports, cached per league."""

    provider = PROVIDER

    def __init__(self, client: EspnClient, cache: CacheManager):
        self.client = client
        self.cache = cache

    def supports(self, league: Optional[str]) -> bool:
        return league in LEAGUE_SPORTS

    def league_report(self, league: str) -> List[RawEspnTeamInjuries]:
        """
        Raises:
            ProviderError: the report could not be fetched or parsed
        """
        report, _ = self.cache.get_or_fetch(
            build_cache_key(PROVIDER, "injuries", league=league),
            lambda: self.client.get_injuries(league),
            category=DataCategory.INJURIES,
            should_store=bool,
        )
        return report

    def team_injuries(self, league: str, team_name: str) -> List[NormalizedInjury]:
        """Injuries for one team; an unknown team has none."""
        report = match_team_report(team_name, self.league_report(league), league)
        if report is None:
            logger.info(f"No {league} injury report for '{team_name}'")
            return []
        logger.info(f"Found {len(report.injuries)} injuries for {report.team_name}")
        return [to_injury(raw, report.team_name) for raw in report.injuries]
