"""
Entity resolution: map free-text team or fighter names to provider entities.

Pure functions only. Adapters pass in the candidates they fetched plus a
function returning the names each candidate is known by, and get back a
ranked list. Resolution is deterministic: equal scores keep provider order.
"""
import re
import unicodedata
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from sportsedge.models import Sport

T = TypeVar("T")

# Score tiers
EXACT_SCORE = 100.0
CONTAINMENT_BASE = 60.0
TOKEN_BASE = 20.0
MAX_LENGTH_BONUS = 30

MIN_TOKEN_LENGTH = 3
# a token must be at least this long to match inside another ("wolves" in "timberwolves")
MIN_PARTIAL_TOKEN = 5

# Club markers and generic words that never identify a team on their own
CLUB_MARKERS = {"fc", "cf", "sc", "ac", "afc", "cd", "ud", "rc", "rcd", "fk", "sk", "the"}
GENERIC_TOKENS = {"real", "athletic", "atletico", "united", "city", "town"}


# =============================================================================
# Alias tables
# =============================================================================

NBA_ALIASES = {
    "76ers": "Philadelphia 76ers",
    "sixers": "Philadelphia 76ers",
    "lakers": "Los Angeles Lakers",
    "la lakers": "Los Angeles Lakers",
    "clippers": "Los Angeles Clippers",
    "la clippers": "Los Angeles Clippers",
    "celtics": "Boston Celtics",
    "nets": "Brooklyn Nets",
    "knicks": "New York Knicks",
    "warriors": "Golden State Warriors",
    "gsw": "Golden State Warriors",
    "dubs": "Golden State Warriors",
    "bulls": "Chicago Bulls",
    "heat": "Miami Heat",
    "nuggets": "Denver Nuggets",
    "suns": "Phoenix Suns",
    "bucks": "Milwaukee Bucks",
    "mavs": "Dallas Mavericks",
    "rockets": "Houston Rockets",
    "spurs": "San Antonio Spurs",
    "jazz": "Utah Jazz",
    "okc": "Oklahoma City Thunder",
    "grizzlies": "Memphis Grizzlies",
    "pelicans": "New Orleans Pelicans",
    "wolves": "Minnesota Timberwolves",
    "blazers": "Portland Trail Blazers",
    "kings": "Sacramento Kings",
    "magic": "Orlando Magic",
    "hawks": "Atlanta Hawks",
    "hornets": "Charlotte Hornets",
    "pistons": "Detroit Pistons",
    "pacers": "Indiana Pacers",
    "cavs": "Cleveland Cavaliers",
    "raptors": "Toronto Raptors",
    "wizards": "Washington Wizards",
}

NFL_ALIASES = {
    "chiefs": "Kansas City Chiefs",
    "pats": "New England Patriots",
    "ny jets": "New York Jets",
    "jags": "Jacksonville Jaguars",
    "lv raiders": "Las Vegas Raiders",
    "la chargers": "Los Angeles Chargers",
    "ny giants": "New York Giants",
    "bucs": "Tampa Bay Buccaneers",
    "niners": "San Francisco 49ers",
    "la rams": "Los Angeles Rams",
}

NHL_ALIASES = {
    "ny rangers": "New York Rangers",
    "pens": "Pittsburgh Penguins",
    "caps": "Washington Capitals",
    "isles": "New York Islanders",
    "habs": "Montreal Canadiens",
    "sens": "Ottawa Senators",
    "leafs": "Toronto Maple Leafs",
    "bolts": "Tampa Bay Lightning",
    "canes": "Carolina Hurricanes",
    "preds": "Nashville Predators",
    "cbj": "Columbus Blue Jackets",
    "wings": "Detroit Red Wings",
    "avs": "Colorado Avalanche",
    "yotes": "Arizona Coyotes",
    "la kings": "Los Angeles Kings",
    "vgk": "Vegas Golden Knights",
    "st louis blues": "St. Louis Blues",
    "utah hockey club": "Utah Mammoth",
}

SOCCER_ALIASES = {
    "man u": "Manchester United",
    "man utd": "Manchester United",
    "manchester utd": "Manchester United",
    "mufc": "Manchester United",
    "man city": "Manchester City",
    "mcfc": "Manchester City",
    "spurs": "Tottenham",
    "thfc": "Tottenham",
    "lfc": "Liverpool",
    "cfc": "Chelsea",
    "nufc": "Newcastle",
    "whu": "West Ham",
    "avfc": "Aston Villa",
    "nffc": "Nottingham Forest",
    "wolves": "Wolverhampton",
    "barca": "Barcelona",
    "psg": "Paris Saint Germain",
    "atleti": "Atletico Madrid",
    "bayern": "Bayern Munich",
    "bvb": "Borussia Dortmund",
}

TEAM_ALIASES: Dict[Sport, Dict[str, str]] = {
    Sport.BASKETBALL: NBA_ALIASES,
    Sport.AMERICAN_FOOTBALL: NFL_ALIASES,
    Sport.HOCKEY: NHL_ALIASES,
    Sport.SOCCER: SOCCER_ALIASES,
}


# =============================================================================
# Normalization
# =============================================================================

def normalize_name(text: Optional[str]) -> str:
    """
    Lower-case, strip diacritics, collapse every non-alphanumeric run to one space.

        "Dallas-Mavericks" -> "dallas mavericks"
        "Montréal Canadiens" -> "montreal canadiens"
        "St. Louis Blues" -> "st louis blues"
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", " ", text.lower())
    return text.strip()


def salient_tokens(text: str) -> List[str]:
    """Tokens that can identify a team: no club markers, no generic words, no short tokens."""
    tokens = normalize_name(text).split()
    salient = [
        t for t in tokens
        if t not in CLUB_MARKERS and t not in GENERIC_TOKENS and len(t) >= MIN_TOKEN_LENGTH
    ]
    return salient


def nickname(text: str) -> str:
    """Trailing salient token ("Oklahoma City Thunder" -> "thunder")."""
    tokens = salient_tokens(text)
    if tokens:
        return tokens[-1]
    return normalize_name(text).split(" ")[-1]


def expand_alias(query: str, sport: Optional[Sport] = None) -> str:
    """
    Expand a nickname or abbreviation to its canonical normalized name.

    Exact alias hits win; otherwise an alias of four or more characters
    appearing as whole words inside the query is expanded.
    """
    normalized = normalize_name(query)
    aliases = TEAM_ALIASES.get(sport, {}) if sport is not None else {}
    if not aliases or not normalized:
        return normalized

    if normalized in aliases:
        return normalize_name(aliases[normalized])

    padded = f" {normalized} "
    for alias, canonical in aliases.items():
        if len(alias) >= 4 and f" {alias} " in padded:
            return normalize_name(canonical)
    return normalized


# =============================================================================
# Scoring
# =============================================================================

def _bonus(length: int) -> float:
    return float(min(length, MAX_LENGTH_BONUS))


def score_name(query: str, candidate: str) -> float:
    """
    Score one already-normalized query against one candidate name.

    Tiers: exact match, then whole-word containment in either direction,
    then a nickname overlap. Within a tier the longer overlap wins. Zero
    means no match.
    """
    candidate = normalize_name(candidate)
    if not query or not candidate:
        return 0.0
    if query == candidate:
        return EXACT_SCORE

    shorter, longer = sorted((query, candidate), key=len)
    if len(shorter) >= MIN_TOKEN_LENGTH and f" {shorter} " in f" {longer} ":
        if any(t not in GENERIC_TOKENS and t not in CLUB_MARKERS for t in shorter.split()):
            return CONTAINMENT_BASE + _bonus(len(shorter))

    query_tokens = salient_tokens(query)
    candidate_tokens = salient_tokens(candidate)
    best = 0
    pairs = []
    if candidate_tokens:
        pairs.extend((candidate_tokens[-1], t) for t in query_tokens)
    if query_tokens:
        pairs.extend((query_tokens[-1], t) for t in candidate_tokens)
    for a, b in pairs:
        if a == b or (min(len(a), len(b)) >= MIN_PARTIAL_TOKEN and (a in b or b in a)):
            best = max(best, min(len(a), len(b)))
    if best:
        return TOKEN_BASE + _bonus(best)
    return 0.0


@dataclass(frozen=True)
class RankedCandidate(Generic[T]):
    candidate: T
    score: float
    matched_name: str


def rank_candidates(
    query: str,
    candidates: Sequence[T],
    names: Callable[[T], Sequence[str]],
    sport: Optional[Sport] = None,
) -> List[RankedCandidate]:
    """
    Rank candidates by how well any of their names match `query`.

    The query is tried both as given and alias-expanded. Candidates scoring
    zero are dropped; the sort is stable so provider order breaks ties.
    """
    queries = []
    for q in (normalize_name(query), expand_alias(query, sport)):
        if q and q not in queries:
            queries.append(q)
    if not queries:
        return []

    ranked = []
    for candidate in candidates:
        best_score, best_name = 0.0, ""
        for name in names(candidate):
            for q in queries:
                score = score_name(q, name)
                if score > best_score:
                    best_score, best_name = score, name
        if best_score > 0:
            ranked.append(RankedCandidate(candidate=candidate, score=best_score, matched_name=best_name))

    return sorted(ranked, key=lambda r: -r.score)


def resolve(
    query: str,
    candidates: Sequence[T],
    names: Callable[[T], Sequence[str]],
    sport: Optional[Sport] = None,
) -> Optional[T]:
    """Best candidate for `query`, or None. No best-guess fallback."""
    ranked = rank_candidates(query, candidates, names, sport)
    return ranked[0].candidate if ranked else None


def names_match(name: str, other: str, sport: Optional[Sport] = None) -> bool:
    """True when two free-text names plausibly denote the same team."""
    return bool(rank_candidates(name, [other], lambda n: [n], sport))
