from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from competition.core.config import settings
from competition.core.logger import get_logger
from competition.data.models import PublishResult, StandingsRow
from competition.data.store import MatchResultStore, TeamRegistry
from competition.services import publication
from competition.services.stage_router import StandingsRequest, StandingsScope, compute_standings, resolve_scope
from competition.services.standings_cache import ReadThroughCache, standings_cache

log = get_logger("services.standings")


@dataclass(frozen=True)
class StandingsResult:
    scope: StandingsScope
    rows: tuple[StandingsRow, ...]
    cache_age_seconds: float

    def to_dict(self) -> dict:
        return {
            "stage": self.scope.stage.value,
            "group": self.scope.group_key,
            "cache_age_seconds": round(self.cache_age_seconds, 3),
            "count": len(self.rows),
            "rows": [row.to_dict() for row in self.rows],
        }


class StandingsQuery:
    """Consumer-facing entry point: scope validation, cache, then the stage router."""

    def __init__(
        self,
        store: MatchResultStore,
        registry: TeamRegistry,
        *,
        cache: Optional[ReadThroughCache] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self.store = store
        self.registry = registry
        self.cache = cache if cache is not None else standings_cache
        self.ttl_seconds = settings.standings_cache_ttl_seconds if ttl_seconds is None else int(ttl_seconds)

    async def get_standings(self, request: StandingsRequest) -> StandingsResult:
        # Invalid scopes fail here, before any cache lookup or store read.
        scope = resolve_scope(request)

        async def _compute() -> tuple[StandingsRow, ...]:
            return tuple(await compute_standings(scope, self.store, self.registry))

        entry = await self.cache.get_or_compute_entry(scope.cache_key, self.ttl_seconds, _compute)
        age = entry.age(self.cache.now())
        return StandingsResult(scope=scope, rows=entry.value, cache_age_seconds=age)

    async def publish_pending_finals(self, is_test: bool) -> PublishResult:
        result = await publication.publish_pending_finals(self.store, is_test)
        if result.published_count:
            self.cache.purge()
        return result
