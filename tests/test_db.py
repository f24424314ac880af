import asyncio
from contextlib import asynccontextmanager

import pytest

from competition.core import db


class FakeResult:
    def __init__(self, row):
        self._row = row

    def first(self):
        return self._row


class FakeConn:
    def __init__(self, tables):
        self.tables = set(tables)

    async def execute(self, statement, params=None):
        return FakeResult((1,) if params["name"] in self.tables else None)


class FakeEngine:
    def __init__(self, tables):
        self.conn = FakeConn(tables)

    @asynccontextmanager
    async def begin(self):
        yield self.conn


def test_schema_problem_reports_first_missing_table():
    assert "alembic upgrade head" in asyncio.run(db.schema_problem(FakeConn([])))
    assert "alembic stamp head" in asyncio.run(db.schema_problem(FakeConn(["matches"])))
    assert asyncio.run(db.schema_problem(FakeConn(["matches", "alembic_version"]))) is None


def test_init_db_warns_in_dev_and_raises_elsewhere(monkeypatch, caplog):
    monkeypatch.setattr(db, "engine", FakeEngine(["matches"]))

    monkeypatch.setattr(db.settings, "app_env", "dev")
    asyncio.run(db.init_db())
    assert "alembic stamp head" in caplog.text

    monkeypatch.setattr(db.settings, "app_env", "prod")
    with pytest.raises(RuntimeError):
        asyncio.run(db.init_db())


def test_init_db_passes_with_migrated_schema(monkeypatch):
    monkeypatch.setattr(db, "engine", FakeEngine(["matches", "alembic_version"]))
    monkeypatch.setattr(db.settings, "app_env", "prod")
    asyncio.run(db.init_db())
