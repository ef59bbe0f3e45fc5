"""
Tests for entity resolution: normalization, alias expansion and ranking.
"""
import pytest

from sportsedge.models import Sport
from sportsedge.resolver import (
    expand_alias,
    names_match,
    nickname,
    normalize_name,
    rank_candidates,
    resolve,
    salient_tokens,
    score_name,
)


@pytest.fixture
def nba_teams():
    return [
        "Oklahoma City Thunder",
        "Dallas Mavericks",
        "Los Angeles Lakers",
        "Los Angeles Clippers",
        "Minnesota Timberwolves",
        "Golden State Warriors",
    ]


def by_name(name):
    return [name]


# =============================================================================
# Normalization
# =============================================================================

class TestNormalization:
    def test_lowercase_and_punctuation(self):
        assert normalize_name("Dallas-Mavericks") == "dallas mavericks"
        assert normalize_name("  St. Louis   Blues ") == "st louis blues"

    def test_diacritics_stripped(self):
        assert normalize_name("Montréal Canadiens") == "montreal canadiens"

    def test_none_is_empty(self):
        assert normalize_name(None) == ""

    def test_salient_tokens_drop_markers(self):
        assert salient_tokens("Real Madrid CF") == ["madrid"]
        assert salient_tokens("Manchester United FC") == ["manchester"]

    def test_nickname_is_trailing_token(self):
        assert nickname("Oklahoma City Thunder") == "thunder"


# =============================================================================
# Aliases
# =============================================================================

class TestAliases:
    def test_exact_alias(self):
        assert expand_alias("mavs", Sport.BASKETBALL) == "dallas mavericks"
        assert expand_alias("habs", Sport.HOCKEY) == "montreal canadiens"

    def test_alias_is_sport_scoped(self):
        assert expand_alias("spurs", Sport.BASKETBALL) == "san antonio spurs"
        assert expand_alias("spurs", Sport.SOCCER) == "tottenham"

    def test_no_sport_no_expansion(self):
        assert expand_alias("mavs") == "mavs"

    def test_alias_inside_query(self):
        assert expand_alias("the okc", Sport.BASKETBALL) == "the okc"
        assert expand_alias("man city fc", Sport.SOCCER) == "manchester city"


# =============================================================================
# Scoring and ranking
# =============================================================================

class TestRanking:
    def test_exact_beats_containment(self):
        assert score_name("dallas mavericks", "Dallas Mavericks") > score_name("mavericks", "Dallas Mavericks")

    def test_no_overlap_scores_zero(self):
        assert score_name("celtics", "Dallas Mavericks") == 0.0

    def test_case_and_punctuation_insensitive(self, nba_teams):
        a = resolve("Dallas Mavericks", nba_teams, by_name, Sport.BASKETBALL)
        b = resolve("dallas-mavericks", nba_teams, by_name, Sport.BASKETBALL)
        assert a == b == "Dallas Mavericks"

    def test_alias_resolves(self, nba_teams):
        assert resolve("OKC", nba_teams, by_name, Sport.BASKETBALL) == "Oklahoma City Thunder"
        assert resolve("wolves", nba_teams, by_name, Sport.BASKETBALL) == "Minnesota Timberwolves"

    def test_nickname_resolves(self, nba_teams):
        assert resolve("Warriors", nba_teams, by_name, Sport.BASKETBALL) == "Golden State Warriors"

    def test_unknown_name_is_none(self, nba_teams):
        assert resolve("Unknown FC", nba_teams, by_name, Sport.BASKETBALL) is None

    def test_generic_token_alone_never_matches(self):
        assert resolve("United", ["Manchester United", "Newcastle United"], by_name, Sport.SOCCER) is None

    def test_ties_keep_provider_order(self, nba_teams):
        ranked = rank_candidates("Los Angeles", nba_teams, by_name, Sport.BASKETBALL)
        assert [r.candidate for r in ranked[:2]] == ["Los Angeles Lakers", "Los Angeles Clippers"]
        assert ranked[0].score == ranked[1].score

    def test_ranking_is_deterministic(self, nba_teams):
        first = rank_candidates("Los Angeles", nba_teams, by_name)
        second = rank_candidates("Los Angeles", nba_teams, by_name)
        assert first == second

    def test_names_match(self):
        assert names_match("LA Clippers", "Los Angeles Clippers", Sport.BASKETBALL)
        assert not names_match("Boston Celtics", "Los Angeles Clippers", Sport.BASKETBALL)
