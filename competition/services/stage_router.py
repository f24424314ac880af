from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from competition.core.errors import InvalidQuery
from competition.core.logger import get_logger
from competition.data.models import Stage, StandingsRow
from competition.data.store import MatchResultStore, TeamRegistry
from competition.services.aggregator import aggregate
from competition.services.ledger import load_outcomes, validate_scope
from competition.services.publication import is_query_visible
from competition.services.ranking import rank

log = get_logger("services.stage_router")

_STAGE_TOKENS = {
    "regular": Stage.REGULAR_SEASON,
    "regular_season": Stage.REGULAR_SEASON,
    "mini_league": Stage.MINI_LEAGUE,
    "final": Stage.FINAL,
    "finals": Stage.FINAL,
}
STAGE_CHOICES = ", ".join(sorted(_STAGE_TOKENS))


@dataclass(frozen=True)
class StandingsRequest:
    stage: Optional[str]
    group: Optional[str] = None
    include_unpublished_finals: bool = False
    include_test: bool = False
    include_idle_teams: bool = False


@dataclass(frozen=True)
class StandingsScope:
    stage: Stage
    group_key: Optional[str] = None
    include_unpublished_finals: bool = False
    include_test: bool = False
    include_idle_teams: bool = False

    @property
    def cache_key(self) -> str:
        visibility = "admin" if self.include_unpublished_finals else "public"
        return ":".join(
            [
                "standings",
                self.stage.value,
                self.group_key or "-",
                visibility,
                "test" if self.include_test else "live",
                "roster" if self.include_idle_teams else "played",
            ]
        )


def parse_stage(token: Optional[str]) -> Stage:
    key = (token or "").strip().lower().replace("-", "_")
    if not key:
        raise InvalidQuery("stage is required")
    stage = _STAGE_TOKENS.get(key)
    if stage is None:
        raise InvalidQuery(f"stage must be one of: {STAGE_CHOICES}")
    return stage


def resolve_scope(request: StandingsRequest) -> StandingsScope:
    stage, group_key = validate_scope(parse_stage(request.stage), request.group)
    return StandingsScope(
        stage=stage,
        group_key=group_key,
        include_unpublished_finals=bool(request.include_unpublished_finals),
        include_test=bool(request.include_test),
        include_idle_teams=bool(request.include_idle_teams),
    )


async def _attach_team_names(registry: TeamRegistry, rows: dict[str, StandingsRow]) -> dict[str, StandingsRow]:
    names = await registry.get_team_names(rows.keys())
    missing = sorted(tid for tid in rows if not names.get(tid))
    if missing:
        log.warning("team_names_missing teams=%s", missing)
    return {tid: replace(row, team_name=names.get(tid) or tid) for tid, row in rows.items()}


async def compute_standings(
    scope: StandingsScope,
    store: MatchResultStore,
    registry: TeamRegistry,
) -> list[StandingsRow]:
    outcomes = await load_outcomes(store, scope.stage, scope.group_key)
    selected = [o for o in outcomes if o.is_completed]
    if not scope.include_unpublished_finals:
        selected = [o for o in selected if is_query_visible(o)]
    if not scope.include_test:
        selected = [o for o in selected if not o.is_test]

    rows = aggregate(selected)
    if scope.include_idle_teams:
        for team_id in await registry.list_team_ids(scope.group_key):
            rows.setdefault(team_id, StandingsRow(team_id=team_id))

    rows = await _attach_team_names(registry, rows)
    ranked = rank(rows)
    log.info(
        "standings_computed stage=%s group=%s outcomes=%s used=%s teams=%s",
        scope.stage.value,
        scope.group_key,
        len(outcomes),
        len(selected),
        len(ranked),
    )
    return ranked
