"""
Tests for sport adapters over fake provider sessions.

Adapters get real clients wired to a FakeSession, so parsing, mapping,
caching and error translation are exercised together.
"""
from datetime import date, datetime

import pytest

from sportsedge.adapters import (
    BasketballAdapter,
    GamesApiAdapter,
    EspnInjurySource,
    HockeyAdapter,
    MmaAdapter,
    SoccerAdapter,
)
from sportsedge.adapters.espn_injuries import extract_injury_type, map_injury_status, match_team_report
from sportsedge.cache import CacheManager
from sportsedge.clients import BasketballClient, EspnClient, FootballClient, HockeyClient, MmaClient
from sportsedge.clients.espn import RawEspnTeamInjuries
from sportsedge.models import (
    H2HQuery,
    InjuryStatus,
    MatchQuery,
    MatchStatus,
    StatsQuery,
    TeamQuery,
)
from sportsedge.results import ErrorCode
from tests.fakes import FakeClock, FakeResponse, FakeSession, envelope, fixture, game, team

NOW = datetime(2025, 11, 15, 12, 0)

LAKERS = team(145, "Los Angeles Lakers", "LAL")
CELTICS = team(133, "Boston Celtics", "BOS")
WARRIORS = team(161, "Golden State Warriors", "GSW")
NUGGETS = team(139, "Denver Nuggets", "DEN")
MAVERICKS = team(138, "Dallas Mavericks", "DAL")

BASKETBALL_STATS = {
    "games": {
        "played": {"all": 10},
        "wins": {"all": {"total": 7, "percentage": "0.700"}},
        "loses": {"all": {"total": 3}},
    },
    "points": {
        "for": {"total": {"all": 1150, "home": 600, "away": 550}, "average": {"all": "115.0"}},
        "against": {"total": {"all": 1080, "home": 520, "away": 560}, "average": {"all": "108.0"}},
    },
}

ESPN_REPORT = {"injuries": [
    {"displayName": "Los Angeles Lakers", "injuries": [
        {"id": "3975", "status": "Day-To-Day", "shortComment": "Left ankle soreness",
         "athlete": {"displayName": "LeBron James"}},
    ]},
    {"displayName": "LA Clippers", "injuries": [
        {"id": "6450", "status": "Out", "longComment": "Recovering from knee surgery",
         "athlete": {"displayName": "Kawhi Leonard"}, "details": {"returnDate": "2025-12-01"}},
    ]},
]}


def client_for(cls, routes, api_key="test-key"):
    session = FakeSession(routes)
    client = cls("https://provider.test", api_key, session=session, rate_limit_retries=0, retry_backoff=0)
    return client, session


def h2h_calls(session):
    return [params for path, params in session.calls if "h2h" in params]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheManager(clock=clock)


@pytest.fixture
def nba_games():
    return {
        "current": [
            game(1001, LAKERS, CELTICS, 110, 102, date="2025-11-01T00:30:00+00:00"),
            game(1002, WARRIORS, LAKERS, 120, 99, date="2025-11-03T03:00:00+00:00"),
            game(1003, LAKERS, NUGGETS, None, None, status="NS", date="2025-11-20T03:00:00+00:00"),
            game(1004, MAVERICKS, LAKERS, None, 101, date="2025-11-05T01:00:00+00:00"),
        ],
        "h2h": [
            game(1001, LAKERS, CELTICS, 110, 102, date="2025-11-01T00:30:00+00:00"),
            game(900, CELTICS, LAKERS, 115, 100, date="2025-03-01T00:30:00+00:00", season="2024-2025"),
        ],
    }


@pytest.fixture
def nba(cache, nba_games):
    def teams_route(params):
        directory = [LAKERS, CELTICS, WARRIORS, NUGGETS, MAVERICKS]
        if "id" in params:
            return envelope([t for t in directory if t["id"] == params["id"]])
        return envelope(directory)

    def games_route(params):
        if "h2h" in params:
            return envelope(nba_games["h2h"])
        if "date" in params:
            return envelope([game(1100, LAKERS, CELTICS, 50, 48, status="Q3")])
        return envelope(nba_games["current"])

    client, session = client_for(BasketballClient, {
        "/teams": teams_route,
        "/games": games_route,
        "/statistics": envelope(BASKETBALL_STATS),
        "/standings": envelope([]),
    })
    espn_client, espn_session = client_for(EspnClient, {"/basketball/nba/injuries": ESPN_REPORT}, api_key=None)
    adapter = BasketballAdapter(
        client, cache, league_id=12, injuries=EspnInjurySource(espn_client, cache), clock=lambda: NOW
    )
    return adapter, session, espn_session


# =============================================================================
# Basketball
# =============================================================================

class TestBasketballTeams:
    def test_resolve_alias(self, nba):
        adapter, _, _ = nba
        result = adapter.find_team(TeamQuery(name="lakers"))
        assert result.success
        assert result.data.id == "basketball-145"
        assert result.data.short_name == "LAL"
        assert result.provider == "api-sports"

    def test_case_and_punctuation_insensitive(self, nba):
        adapter, _, _ = nba
        a = adapter.find_team(TeamQuery(name="Dallas Mavericks"))
        b = adapter.find_team(TeamQuery(name="dallas-mavericks"))
        assert a.data.id == b.data.id == "basketball-138"

    def test_directory_fetched_once(self, nba):
        adapter, session, _ = nba
        adapter.find_team(TeamQuery(name="Lakers"))
        adapter.find_team(TeamQuery(name="Celtics"))
        assert session.count("/teams") == 1
        assert session.calls[0][1] == {"league": 12, "season": "2025-2026"}

    def test_unknown_team(self, nba):
        adapter, _, _ = nba
        result = adapter.find_team(TeamQuery(name="Unknown FC"))
        assert result.code is ErrorCode.NOT_FOUND

    def test_empty_query(self, nba):
        adapter, session, _ = nba
        assert adapter.find_team(TeamQuery(name="  ")).code is ErrorCode.INVALID_QUERY
        assert session.calls == []

    def test_lookup_by_id(self, nba):
        adapter, _, _ = nba
        result = adapter.find_team(TeamQuery(id="basketball-133"))
        assert result.data.name == "Boston Celtics"

    def test_unconfigured(self, cache):
        client, session = client_for(BasketballClient, {}, api_key=None)
        adapter = BasketballAdapter(client, cache, clock=lambda: NOW)
        assert adapter.is_available() is False
        assert adapter.find_team(TeamQuery(name="Lakers")).code is ErrorCode.UNAVAILABLE
        assert session.calls == []


class TestBasketballStats:
    def test_stats(self, nba):
        adapter, _, _ = nba
        result = adapter.get_team_stats(StatsQuery(team_id="basketball-145"))
        stats = result.data
        assert stats.season == "2025-2026"
        assert (stats.record.wins, stats.record.losses, stats.record.draws) == (7, 3, 0)
        assert stats.record.win_percentage == 70.0
        assert stats.scoring.average_for == 115.0
        assert stats.extended == {"homeFor": 600, "homeAgainst": 520, "awayFor": 550, "awayAgainst": 560}
        assert result.cached is False

    def test_second_call_is_cached(self, nba):
        adapter, session, _ = nba
        adapter.get_team_stats(StatsQuery(team_id="145"))
        result = adapter.get_team_stats(StatsQuery(team_id="basketball-145"))
        assert result.cached is True
        assert session.count("/statistics") == 1

    def test_http_500_is_api_error_and_not_cached(self, cache):
        client, session = client_for(BasketballClient, {"/statistics": [
            FakeResponse({}, status_code=500),
            FakeResponse(envelope(BASKETBALL_STATS)),
        ]})
        adapter = BasketballAdapter(client, cache, clock=lambda: NOW)

        failed = adapter.get_team_stats(StatsQuery(team_id="145"))
        assert failed.success is False
        assert failed.code is ErrorCode.API_ERROR
        assert "500" in failed.error.message
        assert cache.get_stats()["entries"] == 0

        retried = adapter.get_team_stats(StatsQuery(team_id="145"))
        assert retried.success
        assert retried.cached is False
        assert session.count("/statistics") == 2

    def test_unexpected_exception_is_api_error(self, cache):
        client, _ = client_for(BasketballClient, {"/statistics": ValueError("boom")})
        adapter = BasketballAdapter(client, cache, clock=lambda: NOW)
        result = adapter.get_team_stats(StatsQuery(team_id="145"))
        assert result.code is ErrorCode.API_ERROR
        assert "ValueError" in result.error.message

    def test_standings_fallback(self, cache):
        standing = {
            "team": LAKERS,
            "games": {"played": 10, "win": {"total": 6}, "lose": {"total": 4}},
            "points": {"for": 1100, "against": 1050},
            "form": "WLWWL",
        }
        client, _ = client_for(BasketballClient, {
            "/statistics": envelope([]),
            "/standings": envelope([[standing]]),
        })
        adapter = BasketballAdapter(client, cache, clock=lambda: NOW)
        stats = adapter.get_team_stats(StatsQuery(team_id="145")).data
        assert (stats.record.wins, stats.record.losses) == (6, 4)
        assert stats.form == "WLWWL"
        assert stats.scoring.average_for == 110.0

    def test_no_stats_anywhere(self, cache):
        client, _ = client_for(BasketballClient, {"/statistics": envelope([]), "/standings": envelope([])})
        adapter = BasketballAdapter(client, cache, clock=lambda: NOW)
        result = adapter.get_team_stats(StatsQuery(team_id="145"))
        assert result.code is ErrorCode.NOT_FOUND

    def test_invalid_team_id(self, nba):
        adapter, _, _ = nba
        assert adapter.get_team_stats(StatsQuery(team_id="lakers")).code is ErrorCode.INVALID_QUERY
        assert adapter.get_team_stats(StatsQuery(team_id="")).code is ErrorCode.INVALID_QUERY


class TestBasketballGames:
    def test_recent_counts_finished_games_only(self, nba):
        adapter, _, _ = nba
        recent = adapter.get_recent_games("basketball-145", limit=5).data
        assert [g.external_id for g in recent.games] == ["1002", "1001"]
        assert all(g.status is MatchStatus.FINISHED for g in recent.games)
        assert recent.summary.total == len(recent.games)
        assert (recent.summary.wins, recent.summary.losses, recent.summary.draws) == (1, 1, 0)
        assert recent.summary.points_for == 209
        assert recent.summary.points_against == 222

    def test_recent_limit(self, nba):
        adapter, _, _ = nba
        recent = adapter.get_recent_games("145", limit=1).data
        assert [g.external_id for g in recent.games] == ["1002"]
        assert recent.summary.total == 1

    def test_recent_invalid_limit(self, nba):
        adapter, _, _ = nba
        assert adapter.get_recent_games("145", limit=0).code is ErrorCode.INVALID_QUERY

    def test_recent_falls_back_to_previous_season(self, cache):
        def games_route(params):
            if params["season"] == "2025-2026":
                return envelope([game(2001, LAKERS, CELTICS, None, None, status="NS")])
            return envelope([game(1900, LAKERS, CELTICS, 101, 99, date="2025-04-10T00:00:00+00:00")])

        client, session = client_for(BasketballClient, {"/games": games_route})
        adapter = BasketballAdapter(client, cache, clock=lambda: NOW)
        recent = adapter.get_recent_games("145", limit=5).data
        assert [g.external_id for g in recent.games] == ["1900"]
        assert [p["season"] for _, p in session.calls] == ["2025-2026", "2024-2025"]

    def test_score_missing_means_not_finished(self, nba):
        adapter, _, _ = nba
        result = adapter.get_matches(MatchQuery(team="145"))
        statuses = {m.external_id: m.status for m in result.data}
        assert statuses["1004"] is MatchStatus.UNKNOWN
        assert statuses["1003"] is MatchStatus.SCHEDULED

    def test_matches_sorted_and_limited(self, nba):
        adapter, _, _ = nba
        result = adapter.get_matches(MatchQuery(team="Lakers", limit=2))
        assert [m.external_id for m in result.data] == ["1001", "1002"]

    def test_live_matches_expire_quickly(self, nba, clock):
        adapter, session, _ = nba
        query = MatchQuery(date=date(2025, 11, 15))
        live = adapter.get_matches(query)
        assert live.data[0].status is MatchStatus.LIVE
        clock.advance(10)
        assert adapter.get_matches(query).cached is True
        clock.advance(10)
        assert adapter.get_matches(query).cached is False
        assert sum(1 for _, p in session.calls if "date" in p) == 2


class TestBasketballH2H:
    def test_unknown_team_fails_before_h2h_call(self, nba):
        adapter, session, _ = nba
        result = adapter.get_h2h(H2HQuery(team1="Unknown FC", team2="Lakers"))
        assert result.code is ErrorCode.NOT_FOUND
        assert "Unknown FC" in result.error.message
        assert h2h_calls(session) == []

    def test_summary_is_oriented_to_team1(self, nba):
        adapter, session, _ = nba
        h2h = adapter.get_h2h(H2HQuery(team1="Lakers", team2="Celtics")).data
        assert (h2h.team1_id, h2h.team2_id) == ("basketball-145", "basketball-133")
        assert h2h.summary.total_games == 2
        assert (h2h.summary.team1_wins, h2h.summary.team2_wins, h2h.summary.draws) == (1, 1, 0)
        assert (h2h.summary.team1_points, h2h.summary.team2_points) == (210, 217)
        assert h2h_calls(session) == [{"h2h": "133-145", "league": 12}]

    def test_reversed_pair_reuses_cached_meetings(self, nba):
        adapter, session, _ = nba
        first = adapter.get_h2h(H2HQuery(team1="Lakers", team2="Celtics")).data
        second = adapter.get_h2h(H2HQuery(team1="Celtics", team2="Lakers")).data
        assert len(h2h_calls(session)) == 1
        assert second.summary.team1_points == first.summary.team2_points
        assert first.pair_key == second.pair_key


class TestBasketballInjuries:
    def test_espn_injuries(self, nba):
        adapter, _, _ = nba
        result = adapter.get_injuries("Lakers")
        assert result.success
        assert result.provider == "espn"
        injury = result.data[0]
        assert injury.player_name == "LeBron James"
        assert injury.team_name == "Los Angeles Lakers"
        assert injury.status is InjuryStatus.DAY_TO_DAY
        assert injury.type == "ankle"

    def test_name_override(self, nba):
        adapter, _, _ = nba
        injuries = adapter.get_injuries("Los Angeles Clippers").data
        assert [i.player_name for i in injuries] == ["Kawhi Leonard"]
        assert injuries[0].status is InjuryStatus.OUT
        assert injuries[0].type == "knee"
        assert injuries[0].expected_return.date() == date(2025, 12, 1)

    def test_unknown_team_has_no_injuries(self, nba):
        adapter, _, _ = nba
        result = adapter.get_injuries("Unknown FC")
        assert result.success
        assert result.data == []

    def test_report_fetched_once(self, nba):
        adapter, _, espn_session = nba
        adapter.get_injuries("Lakers")
        adapter.get_injuries("Los Angeles Clippers")
        assert espn_session.count("/basketball/nba/injuries") == 1

    def test_euroleague_has_no_espn_feed(self, cache):
        client, _ = client_for(BasketballClient, {})
        espn_client, espn_session = client_for(EspnClient, {}, api_key=None)
        adapter = BasketballAdapter(
            client, cache, league_id=120, injuries=EspnInjurySource(espn_client, cache), clock=lambda: NOW
        )
        assert adapter.current_season() == "2025"
        assert adapter.get_injuries("Real Madrid").data == []
        assert espn_session.calls == []


class TestEspnMatching:
    def test_status_mapping(self):
        assert map_injury_status("Out") is InjuryStatus.OUT
        assert map_injury_status(" questionable ") is InjuryStatus.QUESTIONABLE
        assert map_injury_status("Suspension") is InjuryStatus.DAY_TO_DAY
        assert map_injury_status(None) is InjuryStatus.DAY_TO_DAY

    def test_injury_type_uses_word_boundaries(self):
        assert extract_injury_type("Right hamstring strain") == "hamstring"
        assert extract_injury_type("Feedback session") == "Unspecified"
        assert extract_injury_type(None) == "Unspecified"

    def test_punctuation_and_case_ignored(self):
        reports = [RawEspnTeamInjuries("St. Louis Blues"), RawEspnTeamInjuries("Montréal Canadiens")]
        assert match_team_report("St Louis Blues", reports, "nhl").team_name == "St. Louis Blues"
        assert match_team_report("montreal canadiens", reports, "nhl").team_name == "Montréal Canadiens"

    def test_override_table(self):
        reports = [RawEspnTeamInjuries("Boston Bruins"), RawEspnTeamInjuries("Utah Mammoth")]
        assert match_team_report("Utah Hockey Club", reports, "nhl").team_name == "Utah Mammoth"


# =============================================================================
# Hockey
# =============================================================================

HOCKEY_STATS = {
    "games": {"played": {"all": 20}},
    "wins": {"all": {"total": 12}},
    "loses": {"all": {"total": 8}},
    "goals": {"for": {"total": {"all": 61}}, "against": {"total": {"all": 50}}},
}

BRUINS_STANDING = {
    "team": team(670, "Boston Bruins"),
    "games": {"played": 20, "win": {"total": 12, "overtime": 2}, "lose": {"total": 8, "overtime": 1}},
    "goals": {"for": 61, "against": 50},
}


class TestHockey:
    def test_overtime_games_from_standings(self, cache):
        client, _ = client_for(HockeyClient, {
            "/teams/statistics": envelope(HOCKEY_STATS),
            "/standings": envelope([[BRUINS_STANDING]]),
        })
        adapter = HockeyAdapter(client, cache, clock=lambda: NOW)
        stats = adapter.get_team_stats(StatsQuery(team_id="hockey-670")).data
        assert stats.season == "2025"
        assert stats.league == "NHL"
        assert stats.record.draws == 0
        assert stats.extended == {"overtimeGames": 3}

    def test_standings_failure_keeps_stats(self, cache):
        client, _ = client_for(HockeyClient, {
            "/teams/statistics": envelope(HOCKEY_STATS),
            "/standings": FakeResponse({}, status_code=503),
        })
        adapter = HockeyAdapter(client, cache, clock=lambda: NOW)
        result = adapter.get_team_stats(StatsQuery(team_id="670"))
        assert result.success
        assert result.data.extended == {}

    def test_level_score_is_a_loss(self, cache):
        bruins, senators = team(670, "Boston Bruins"), team(671, "Ottawa Senators")
        tied = {
            "id": 5, "date": "2025-11-01T00:00:00+00:00", "status": {"short": "FT"},
            "league": {"id": 57, "name": "NHL", "season": 2025},
            "teams": {"home": bruins, "away": senators},
            "scores": {"home": 2, "away": 2},
        }
        client, _ = client_for(HockeyClient, {"/games": envelope([tied])})
        adapter = HockeyAdapter(client, cache, clock=lambda: NOW)
        summary = adapter.get_recent_games("670", limit=5).data.summary
        assert (summary.wins, summary.losses, summary.draws) == (0, 1, 0)


# =============================================================================
# Soccer
# =============================================================================

ARSENAL = team(42, "Arsenal", "ARS")
MAN_UTD = team(33, "Manchester United", "MUN")
MAN_CITY = team(50, "Manchester City", "MCI")
BARCELONA = team(529, "Barcelona", "BAR")


@pytest.fixture
def soccer(cache):
    def teams_route(params):
        if "search" in params:
            return envelope([{"team": BARCELONA}] if params["search"] == "barcelona" else [])
        return envelope([{"team": t, "venue": {"name": "Ground"}} for t in (ARSENAL, MAN_UTD, MAN_CITY)])

    injuries = [
        {"player": {"id": 7, "name": "Bukayo Saka", "type": "Missing Fixture", "reason": "Hamstring Injury"},
         "team": {"name": "Arsenal"}, "fixture": {"date": "2025-11-01T15:00:00+00:00"}},
        {"player": {"id": 7, "name": "Bukayo Saka", "type": "Missing Fixture", "reason": "Hamstring Injury"},
         "team": {"name": "Arsenal"}, "fixture": {"date": "2025-11-08T15:00:00+00:00"}},
        {"player": {"id": 41, "name": "Declan Rice", "type": "Questionable", "reason": "Illness"},
         "team": {"name": "Arsenal"}, "fixture": {"date": "2025-11-08T15:00:00+00:00"}},
    ]
    stats = {
        "form": "WWDLW",
        "fixtures": {"played": {"total": 11}, "wins": {"total": 7}, "draws": {"total": 2}, "loses": {"total": 2}},
        "goals": {"for": {"total": {"total": 20}, "average": {"total": "1.8"}},
                  "against": {"total": {"total": 8}, "average": {"total": "0.7"}}},
        "clean_sheet": {"total": 5},
        "failed_to_score": {"total": 1},
        "biggest": {"streak": {"wins": 4}},
    }
    client, session = client_for(FootballClient, {
        "/teams": teams_route,
        "/teams/statistics": envelope(stats),
        "/fixtures": envelope([
            fixture(1, ARSENAL, MAN_UTD, 2, 1, date="2025-11-01T15:00:00+00:00"),
            fixture(2, MAN_CITY, ARSENAL, 1, 1, date="2025-11-08T15:00:00+00:00"),
        ]),
        "/fixtures/headtohead": envelope([fixture(1, ARSENAL, MAN_UTD, 2, 1)]),
        "/injuries": envelope(injuries),
    })
    return SoccerAdapter(client, cache, league_id=39, clock=lambda: NOW), session


class TestSoccer:
    def test_alias_resolves_in_directory(self, soccer):
        adapter, _ = soccer
        assert adapter.find_team(TeamQuery(name="Man Utd")).data.id == "soccer-33"

    def test_generic_word_does_not_resolve(self, soccer):
        adapter, _ = soccer
        assert adapter.find_team(TeamQuery(name="United")).code is ErrorCode.NOT_FOUND

    def test_search_fallback(self, soccer):
        adapter, session = soccer
        result = adapter.find_team(TeamQuery(name="Barcelona"))
        assert result.data.id == "soccer-529"
        assert {"search": "barcelona"} in [p for _, p in session.calls]

    def test_season_is_start_year(self, soccer):
        adapter, _ = soccer
        assert adapter.current_season() == "2025"

    def test_stats_extended(self, soccer):
        adapter, _ = soccer
        stats = adapter.get_team_stats(StatsQuery(team_id="42")).data
        assert (stats.record.wins, stats.record.draws, stats.record.losses) == (7, 2, 2)
        assert stats.form == "WWDLW"
        assert stats.extended == {"cleanSheets": 5, "failedToScore": 1, "biggestWinStreak": 4}

    def test_recent_counts_draws(self, soccer):
        adapter, _ = soccer
        summary = adapter.get_recent_games("soccer-42", limit=5).data.summary
        assert (summary.wins, summary.draws, summary.losses) == (1, 1, 0)
        assert summary.form == "1-1-0"

    def test_h2h(self, soccer):
        adapter, session = soccer
        h2h = adapter.get_h2h(H2HQuery(team1="Man Utd", team2="Arsenal")).data
        assert h2h.summary.team1_wins == 0
        assert h2h.summary.team2_wins == 1
        assert [p for path, p in session.calls if path == "/fixtures/headtohead"] == [{"h2h": "33-42"}]

    def test_injuries_deduplicated(self, soccer):
        adapter, _ = soccer
        result = adapter.get_injuries("Arsenal")
        assert result.provider == "api-football"
        by_player = {i.player_name: i for i in result.data}
        assert len(result.data) == 2
        assert by_player["Bukayo Saka"].status is InjuryStatus.OUT
        assert by_player["Declan Rice"].status is InjuryStatus.QUESTIONABLE
        assert by_player["Bukayo Saka"].type == "Hamstring Injury"

    def test_injuries_unknown_team(self, soccer):
        adapter, _ = soccer
        assert adapter.get_injuries("Unknown FC").code is ErrorCode.NOT_FOUND


# =============================================================================
# MMA
# =============================================================================

MAKHACHEV = {"id": 1, "name": "Islam Makhachev", "nickname": "", "category": "Lightweight",
             "team": {"name": "AKA"}}
POIRIER = {"id": 2, "name": "Dustin Poirier", "nickname": "The Diamond", "category": "Lightweight"}
OLIVEIRA = {"id": 3, "name": "Charles Oliveira", "nickname": "Do Bronx", "category": "Lightweight"}


def fight(fight_id, first, second, first_won, when):
    return {
        "id": fight_id,
        "date": when,
        "category": "Lightweight",
        "status": {"short": "FT"},
        "fighters": {"first": dict(first, winner=first_won), "second": dict(second, winner=not first_won)},
    }


@pytest.fixture
def mma(cache):
    fighters = {"islam makhachev": MAKHACHEV, "dustin poirier": POIRIER}

    def fighters_route(params):
        found = fighters.get(params.get("search", "").lower())
        return envelope([found] if found else [])

    record = {
        "fighter": {"id": 1},
        "record": {
            "total": {"win": 26, "loss": 1, "draw": 0, "nc": 0},
            "ko": {"win": 5, "loss": 0},
            "sub": {"win": 11, "loss": 0},
            "dec": {"win": 10, "loss": 1},
        },
    }
    client, session = client_for(MmaClient, {
        "/fighters": fighters_route,
        "/fighters/records": envelope([record]),
        "/fights": envelope([
            fight(10, MAKHACHEV, POIRIER, True, "2024-06-02T03:00:00+00:00"),
            fight(11, OLIVEIRA, MAKHACHEV, False, "2022-10-22T19:00:00+00:00"),
        ]),
    })
    return MmaAdapter(client, cache, clock=lambda: NOW), session


class TestMma:
    def test_fighter_as_team(self, mma):
        adapter, _ = mma
        fighter = adapter.find_team(TeamQuery(name="Islam Makhachev")).data
        assert fighter.id == "mma-1"
        assert fighter.short_name == "Makhachev"
        assert fighter.venue == "AKA"

    def test_record_stats(self, mma):
        adapter, _ = mma
        stats = adapter.get_team_stats(StatsQuery(team_id="mma-1")).data
        assert stats.record.wins == 26
        assert stats.games_played == 27
        assert stats.extended["koWins"] == 5
        assert stats.extended["finishRate"] == 61.5
        assert stats.extended["totalFights"] == 27

    def test_h2h_filters_shared_fights(self, mma):
        adapter, _ = mma
        h2h = adapter.get_h2h(H2HQuery(team1="Islam Makhachev", team2="Dustin Poirier")).data
        assert [m.external_id for m in h2h.matches] == ["10"]
        assert h2h.summary.team1_wins == 1

    def test_recent(self, mma):
        adapter, _ = mma
        recent = adapter.get_recent_games("mma-1", limit=5).data
        assert recent.summary.wins == 2
        assert recent.summary.total == len(recent.games) == 2

    def test_injuries_always_empty(self, mma):
        adapter, session = mma
        result = adapter.get_injuries("Islam Makhachev")
        assert result.success
        assert result.data == []
        assert session.calls == []


# =============================================================================
# Subclass hooks
# =============================================================================

class TestSeasonHooks:
    def test_missing_previous_season_fails_at_construction(self, cache):
        class CurrentOnly(GamesApiAdapter):
            def current_season(self):
                return "2025"

        client, _ = client_for(BasketballClient, {})
        with pytest.raises(TypeError):
            CurrentOnly(client, cache, league_id=12)

    def test_complete_subclass_constructs(self, cache):
        class Complete(GamesApiAdapter):
            def current_season(self):
                return "2025"

            def previous_season(self):
                return "2024"

        client, _ = client_for(BasketballClient, {})
        assert Complete(client, cache, league_id=12).previous_season() == "2024"
