from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.types import Boolean, String

from competition.core.errors import DependencyUnavailable
from competition.core.logger import get_logger
from competition.data.mappers import COMPLETED_STATUS_CODES, STAGE_CODES, normalize_status
from competition.data.models import FinalsPublicationRecord, Stage
from competition.core.timeutils import parse_timestamp

log = get_logger("data.store")


class MatchResultStore(Protocol):
    async def list_completed_outcomes(
        self, stage: Stage, group_key: Optional[str] = None
    ) -> Sequence[Mapping[str, Any]]: ...

    async def list_finals(
        self, *, is_test: Optional[bool] = None, is_published: Optional[bool] = None
    ) -> Sequence[FinalsPublicationRecord]: ...

    async def mark_final_published(self, match_id: str) -> bool: ...


class TeamRegistry(Protocol):
    async def get_team_name(self, team_id: str) -> Optional[str]: ...

    async def get_team_names(self, team_ids: Iterable[str]) -> dict[str, str]: ...

    async def list_team_ids(self, group_key: Optional[str] = None) -> list[str]: ...


# Same normalisation as mappers.stage_code, applied to the stored column.
_STAGE_SQL = "upper(replace(replace(trim({col}), '-', '_'), ' ', '_')) IN :stage_codes"

_STAGE_FILTERS = {
    Stage.REGULAR_SEASON: _STAGE_SQL.format(col="m.stage") + " AND NOT COALESCE(m.is_final, false)",
    Stage.MINI_LEAGUE: _STAGE_SQL.format(col="m.stage")
    + " AND NOT COALESCE(m.is_final, false) AND m.group_key=:group_key",
    Stage.FINAL: "(" + _STAGE_SQL.format(col="m.stage") + " OR COALESCE(m.is_final, false))",
}


def _stage_codes(stage: Stage) -> list[str]:
    return sorted(STAGE_CODES[stage])


class SqlStoreBase:
    dependency = "store"

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _execute(self, stmt, params: Optional[dict] = None):
        try:
            return await self.session.execute(stmt, params or {})
        except (SQLAlchemyError, OSError) as e:
            log.warning("store_query_failed dependency=%s error=%s", self.dependency, e)
            raise DependencyUnavailable(f"{self.dependency} is unavailable", dependency=self.dependency) from e


class SqlMatchResultStore(SqlStoreBase):
    """Match Result Store over the `matches` / `match_results` tables.

    Result rows come from two historical writers, so both score column
    pairs are returned untouched; choosing between them is the ledger
    reader's job.
    """

    dependency = "match_result_store"

    async def list_completed_outcomes(
        self, stage: Stage, group_key: Optional[str] = None
    ) -> list[dict[str, Any]]:
        stmt = text(
            f"""
            SELECT
              m.id,
              m.stage,
              m.group_key,
              m.home_team_id,
              m.away_team_id,
              m.status,
              m.is_final,
              m.is_published,
              m.is_test,
              m.played_at,
              r.home_team_score,
              r.away_team_score,
              r.home_score,
              r.away_score
            FROM matches m
            LEFT JOIN LATERAL (
              SELECT mr.home_team_score, mr.away_team_score, mr.home_score, mr.away_score
              FROM match_results mr
              WHERE mr.match_id = m.id
              ORDER BY mr.created_at DESC NULLS LAST
              LIMIT 1
            ) r ON true
            WHERE {_STAGE_FILTERS[stage]}
              AND upper(trim(m.status)) IN :statuses
            ORDER BY m.played_at ASC NULLS LAST, m.id ASC
            """
        ).bindparams(bindparam("statuses", expanding=True), bindparam("stage_codes", expanding=True))
        params: dict[str, Any] = {"statuses": sorted(COMPLETED_STATUS_CODES), "stage_codes": _stage_codes(stage)}
        if stage == Stage.MINI_LEAGUE:
            params["group_key"] = group_key
        res = await self._execute(stmt, params)
        return [dict(r._mapping) for r in res.fetchall()]

    async def list_finals(
        self, *, is_test: Optional[bool] = None, is_published: Optional[bool] = None
    ) -> list[FinalsPublicationRecord]:
        stmt = text(
            f"""
            SELECT m.id, m.is_published, m.is_test, m.group_key, m.status, m.played_at
            FROM matches m
            WHERE {_STAGE_FILTERS[Stage.FINAL]}
              AND (:is_test IS NULL OR COALESCE(m.is_test, false)=:is_test)
              AND (:is_published IS NULL OR COALESCE(m.is_published, false)=:is_published)
            ORDER BY m.played_at ASC NULLS LAST, m.id ASC
            """
        ).bindparams(
            bindparam("stage_codes", expanding=True),
            bindparam("is_test", type_=Boolean),
            bindparam("is_published", type_=Boolean),
        )
        params = {"stage_codes": _stage_codes(Stage.FINAL), "is_test": is_test, "is_published": is_published}
        res = await self._execute(stmt, params)
        return [
            FinalsPublicationRecord(
                match_id=str(r.id),
                is_published=bool(r.is_published),
                is_test=bool(r.is_test),
                group_key=r.group_key,
                status=normalize_status(r.status),
                played_at=parse_timestamp(r.played_at),
            )
            for r in res.fetchall()
        ]

    async def mark_final_published(self, match_id: str) -> bool:
        """Flip one final to published. False when another caller already did."""
        res = await self._execute(
            text(
                f"""
                UPDATE matches
                SET is_published=true, updated_at=now()
                WHERE id=:id
                  AND ({_STAGE_SQL.format(col="stage")} OR COALESCE(is_final, false))
                  AND NOT COALESCE(is_published, false)
                """
            ).bindparams(bindparam("id", type_=String), bindparam("stage_codes", expanding=True)),
            {"id": match_id, "stage_codes": _stage_codes(Stage.FINAL)},
        )
        try:
            await self.session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise DependencyUnavailable(f"{self.dependency} is unavailable", dependency=self.dependency) from e
        return int(res.rowcount or 0) > 0


class SqlTeamRegistry(SqlStoreBase):
    dependency = "team_registry"

    async def get_team_name(self, team_id: str) -> Optional[str]:
        res = await self._execute(text("SELECT name FROM teams WHERE id=:id"), {"id": team_id})
        row = res.first()
        return row.name if row else None

    async def get_team_names(self, team_ids: Iterable[str]) -> dict[str, str]:
        ids = sorted({str(t) for t in team_ids})
        if not ids:
            return {}
        stmt = text("SELECT id, name FROM teams WHERE id IN :ids").bindparams(bindparam("ids", expanding=True))
        res = await self._execute(stmt, {"ids": ids})
        return {str(r.id): r.name for r in res.fetchall() if r.name is not None}

    async def list_team_ids(self, group_key: Optional[str] = None) -> list[str]:
        res = await self._execute(
            text(
                """
                SELECT id FROM teams
                WHERE (:group_key IS NULL OR group_key=:group_key)
                ORDER BY id
                """
            ).bindparams(bindparam("group_key", type_=String)),
            {"group_key": group_key},
        )
        return [str(r.id) for r in res.fetchall()]
