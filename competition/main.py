import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, Query, Header, HTTPException, Response, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from competition.core.config import settings
from competition.core.db import get_session, init_db
from competition.core.errors import CompetitionError, PreconditionViolated
from competition.core.logger import get_logger
from competition.core.timeutils import utcnow
from competition.data.store import MatchResultStore, SqlMatchResultStore, SqlTeamRegistry, TeamRegistry
from competition.services import publication
from competition.services.stage_router import StandingsRequest
from competition.services.standings import StandingsQuery
from competition.services.standings_cache import standings_cache

logger = get_logger("main")
APP_STARTED_AT = utcnow()
PUBLIC_API_RATE: dict[str, list[float]] = {}


def _require_admin(x_admin_token: str | None = Header(default=None, alias="X-Admin-Token")):
    token = (settings.admin_token or "").strip()
    if not token:
        raise HTTPException(status_code=403, detail="Admin token is not configured")
    if x_admin_token != token:
        raise HTTPException(status_code=403, detail="Forbidden")


def _check_public_rate(request: Request):
    ip = request.client.host if request.client else "unknown"
    limit = int(settings.public_rate_limit_per_minute or 0)
    if limit <= 0:
        return
    now = time.time()
    cutoff = now - 60
    hits = PUBLIC_API_RATE.get(ip, [])
    PUBLIC_API_RATE[ip] = [t for t in hits if t > cutoff]
    if len(PUBLIC_API_RATE[ip]) >= limit:
        raise HTTPException(status_code=429, detail="Rate limit exceeded", headers={"Retry-After": "60"})
    PUBLIC_API_RATE[ip].append(now)


def _validate_runtime_config() -> None:
    if settings.is_prod and not (settings.admin_token or "").strip():
        raise RuntimeError("ADMIN_TOKEN is required in prod")


def _http_error(err: CompetitionError) -> HTTPException:
    if isinstance(err, PreconditionViolated):
        logger.error("standings_precondition_violated error=%s", err.message)
    return HTTPException(status_code=err.status_code, detail=err.message)


def get_match_store(session: AsyncSession = Depends(get_session)) -> MatchResultStore:
    return SqlMatchResultStore(session)


def get_team_registry(session: AsyncSession = Depends(get_session)) -> TeamRegistry:
    return SqlTeamRegistry(session)


def get_standings_query(
    store: MatchResultStore = Depends(get_match_store),
    registry: TeamRegistry = Depends(get_team_registry),
) -> StandingsQuery:
    return StandingsQuery(store, registry, cache=standings_cache)


@asynccontextmanager
async def lifespan(_: FastAPI):
    await init_db()
    _validate_runtime_config()
    logger.info(
        "startup env=%s cache_ttl=%s cache_max_entries=%s",
        settings.app_env,
        settings.standings_cache_ttl_seconds,
        settings.standings_cache_max_entries,
    )
    yield


app = FastAPI(title="competition-standings", lifespan=lifespan)


class PublishFinalsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_test: bool = Field(default=False, alias="isTest")


async def _standings_response(query: StandingsQuery, request: StandingsRequest, response: Response) -> dict:
    try:
        result = await query.get_standings(request)
    except CompetitionError as e:
        raise _http_error(e) from e
    response.headers["X-Cache-Age"] = f"{result.cache_age_seconds:.3f}"
    response.headers["X-Total-Count"] = str(len(result.rows))
    return result.to_dict()


@app.get("/health")
async def health():
    return {"ok": True, "started_at": APP_STARTED_AT.isoformat()}


@app.get("/api/v1/standings")
async def api_standings(
    stage: str = Query(..., description="regular | mini_league | final"),
    group: Optional[str] = Query(None, description="mini-league group key"),
    include_unpublished_finals: bool = Query(False),
    include_test: bool = Query(False),
    include_idle_teams: bool = Query(False),
    _: None = Depends(_require_admin),
    *,
    response: Response,
    query: StandingsQuery = Depends(get_standings_query),
):
    request = StandingsRequest(
        stage=stage,
        group=group,
        include_unpublished_finals=include_unpublished_finals,
        include_test=include_test,
        include_idle_teams=include_idle_teams,
    )
    return await _standings_response(query, request, response)


@app.get("/api/public/v1/standings")
async def public_standings(
    stage: str = Query(..., description="regular | mini_league | final"),
    group: Optional[str] = Query(None),
    _rate: None = Depends(_check_public_rate),
    *,
    response: Response,
    query: StandingsQuery = Depends(get_standings_query),
):
    response.headers["Cache-Control"] = f"public, max-age={int(settings.standings_cache_ttl_seconds)}"
    return await _standings_response(query, StandingsRequest(stage=stage, group=group), response)


@app.post("/api/v1/publish-finals")
async def api_publish_finals(
    req: PublishFinalsRequest,
    _: None = Depends(_require_admin),
    query: StandingsQuery = Depends(get_standings_query),
    x_admin_actor: str | None = Header(default=None, alias="X-Admin-Actor"),
):
    actor = (x_admin_actor or "").strip() or "unknown"
    logger.info("publish_finals_action is_test=%s actor=%s", req.is_test, actor)
    try:
        result = await query.publish_pending_finals(req.is_test)
    except CompetitionError as e:
        raise _http_error(e) from e
    if result.nothing_to_publish:
        return JSONResponse(
            status_code=400,
            content={"detail": "No finals pending publication", **result.to_dict()},
        )
    return result.to_dict()


@app.get("/api/v1/finals")
async def api_finals(
    is_test: Optional[bool] = Query(None),
    _: None = Depends(_require_admin),
    store: MatchResultStore = Depends(get_match_store),
):
    try:
        records = await publication.list_finals(store, is_test=is_test)
    except CompetitionError as e:
        raise _http_error(e) from e
    pending = sum(1 for r in records if not r.is_published)
    return {
        "count": len(records),
        "pending": pending,
        "published": len(records) - pending,
        "rows": [r.to_dict() for r in records],
    }


@app.post("/api/v1/standings/cache/purge")
async def api_standings_cache_purge(_: None = Depends(_require_admin)):
    purged = standings_cache.purge()
    logger.info("standings_cache_purge_action purged=%s", purged)
    return {"purged": purged, "hits": standings_cache.hits, "misses": standings_cache.misses}
