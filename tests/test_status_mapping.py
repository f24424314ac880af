from competition.data.mappers import normalize_stage, normalize_status, parse_score, resolve_score_pair
from competition.data.models import MatchStatus, Stage


def test_normalize_status_completed_variants():
    assert normalize_status("completed") == MatchStatus.COMPLETED
    assert normalize_status("FT") == MatchStatus.COMPLETED
    assert normalize_status(" Finished ") == MatchStatus.COMPLETED


def test_normalize_status_scheduled_and_cancelled():
    assert normalize_status("scheduled") == MatchStatus.SCHEDULED
    assert normalize_status("NS") == MatchStatus.SCHEDULED
    assert normalize_status("cancelled") == MatchStatus.CANCELLED
    assert normalize_status("canceled") == MatchStatus.CANCELLED
    assert normalize_status("PST") == MatchStatus.CANCELLED


def test_normalize_status_unknown():
    assert normalize_status(None) is None
    assert normalize_status("") is None
    assert normalize_status("???") is None


def test_normalize_stage_aliases():
    assert normalize_stage("regular") == Stage.REGULAR_SEASON
    assert normalize_stage("REGULAR_SEASON") == Stage.REGULAR_SEASON
    assert normalize_stage("mini-league") == Stage.MINI_LEAGUE
    assert normalize_stage("MINI_LEAGUE") == Stage.MINI_LEAGUE
    assert normalize_stage("Final") == Stage.FINAL
    assert normalize_stage("cup") is None


def test_parse_score_rejects_negative_and_fractional():
    assert parse_score(3) == 3
    assert parse_score("2") == 2
    assert parse_score(1.0) == 1
    assert parse_score(-1) is None
    assert parse_score("-1") is None
    assert parse_score(1.5) is None
    assert parse_score(True) is None
    assert parse_score(None) is None


def test_resolve_score_pair_prefers_newer_field_names():
    record = {"home_team_score": 2, "away_team_score": 1, "home_score": 9, "away_score": 9}
    assert resolve_score_pair(record) == (2, 1)


def test_resolve_score_pair_falls_back_to_legacy_names():
    assert resolve_score_pair({"home_score": 0, "away_score": 3}) == (0, 3)
    assert resolve_score_pair({"homeScore": 4, "awayScore": 4}) == (4, 4)
    # Zero is a real score, not a missing one.
    assert resolve_score_pair({"homeTeamScore": 0, "awayTeamScore": 0, "homeScore": 5, "awayScore": 5}) == (0, 0)


def test_resolve_score_pair_missing_side():
    assert resolve_score_pair({"home_team_score": 1}) is None
    assert resolve_score_pair({}) is None
