import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from competition.core.errors import DependencyUnavailable
from competition.data.mappers import STAGE_CODES, normalize_stage, stage_code
from competition.data.models import MatchStatus, Stage
from competition.data.store import SqlMatchResultStore, SqlTeamRegistry


class FakeResult:
    def __init__(self, rows=None, rowcount=0):
        self._rows = rows or []
        self.rowcount = rowcount

    def first(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)


class FakeSession:
    def __init__(self, results=None, error=None):
        self._results = list(results or [])
        self.error = error
        self.calls = []
        self.commits = 0

    async def execute(self, statement, params=None):
        self.calls.append((str(statement), params))
        if self.error is not None:
            raise self.error
        return self._results.pop(0)

    async def commit(self):
        self.commits += 1


def _mapped(**values):
    return SimpleNamespace(_mapping=values)


def test_list_completed_outcomes_mini_league_binds_group():
    row = _mapped(id="g1", stage="MINI_LEAGUE", group_key="A", home_team_id="A", away_team_id="B", status="FT")
    session = FakeSession([FakeResult(rows=[row])])
    rows = asyncio.run(SqlMatchResultStore(session).list_completed_outcomes(Stage.MINI_LEAGUE, "A"))

    assert rows == [row._mapping]
    sql, params = session.calls[0]
    assert "m.group_key=:group_key" in sql
    assert "LEFT JOIN LATERAL" in sql
    assert params["group_key"] == "A"
    assert "COMPLETED" in params["statuses"]


def test_list_completed_outcomes_regular_excludes_finals():
    session = FakeSession([FakeResult(rows=[])])
    asyncio.run(SqlMatchResultStore(session).list_completed_outcomes(Stage.REGULAR_SEASON))
    sql, params = session.calls[0]
    assert "replace(replace(trim(m.stage), '-', '_'), ' ', '_')" in sql
    assert params["stage_codes"] == ["LEAGUE", "REGULAR", "REGULAR_SEASON", "SEASON"]
    assert "NOT COALESCE(m.is_final, false)" in sql
    assert "group_key" not in params


def test_list_finals_maps_records():
    row = SimpleNamespace(id=7, is_published=None, is_test=True, group_key=None, status="FT", played_at=None)
    session = FakeSession([FakeResult(rows=[row])])
    records = asyncio.run(SqlMatchResultStore(session).list_finals(is_test=True, is_published=False))

    assert len(records) == 1
    assert records[0].match_id == "7"
    assert records[0].is_published is False
    assert records[0].is_test is True
    assert records[0].status == MatchStatus.COMPLETED
    assert session.calls[0][1] == {"stage_codes": ["FINAL", "FINALS"], "is_test": True, "is_published": False}


def test_mark_final_published_reports_rowcount():
    session = FakeSession([FakeResult(rowcount=1), FakeResult(rowcount=0)])
    store = SqlMatchResultStore(session)
    assert asyncio.run(store.mark_final_published("f1")) is True
    assert asyncio.run(store.mark_final_published("f1")) is False
    assert session.commits == 2
    assert "NOT COALESCE(is_published, false)" in session.calls[0][0]


def test_store_errors_become_dependency_unavailable():
    session = FakeSession(error=OperationalError("SELECT 1", {}, Exception("connection refused")))
    with pytest.raises(DependencyUnavailable) as exc:
        asyncio.run(SqlMatchResultStore(session).list_completed_outcomes(Stage.FINAL))
    assert exc.value.dependency == "match_result_store"
    assert exc.value.status_code == 503


def test_team_registry_names_skip_empty_lookup():
    session = FakeSession([FakeResult(rows=[SimpleNamespace(id="A", name="Arsenal")])])
    registry = SqlTeamRegistry(session)
    assert asyncio.run(registry.get_team_names([])) == {}
    assert session.calls == []
    assert asyncio.run(registry.get_team_names(["A", "B", "A"])) == {"A": "Arsenal"}
    assert session.calls[0][1] == {"ids": ["A", "B"]}


def test_stage_filters_bind_every_alias_the_reader_accepts():
    for stage, raw in ((Stage.REGULAR_SEASON, "regular"), (Stage.MINI_LEAGUE, "mini-league"), (Stage.FINAL, "Finals")):
        session = FakeSession([FakeResult(rows=[])])
        asyncio.run(SqlMatchResultStore(session).list_completed_outcomes(stage, "A"))
        _, params = session.calls[0]
        assert normalize_stage(raw) == stage
        assert stage_code(raw) in params["stage_codes"]
        assert params["stage_codes"] == sorted(STAGE_CODES[stage])
