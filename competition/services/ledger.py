from __future__ import annotations

from typing import Any, Mapping, Optional

from competition.core.errors import InvalidQuery
from competition.core.logger import get_logger
from competition.core.timeutils import parse_timestamp
from competition.data.mappers import as_bool, normalize_stage, normalize_status, pick_field, resolve_score_pair
from competition.data.models import MatchOutcome, MatchStatus, Stage
from competition.data.store import MatchResultStore

log = get_logger("services.ledger")

_MATCH_ID_KEYS = ("id", "match_id", "matchId")
_HOME_TEAM_KEYS = ("home_team_id", "homeTeamId")
_AWAY_TEAM_KEYS = ("away_team_id", "awayTeamId")
_STAGE_KEYS = ("stage", "tournament_mode", "tournamentMode")
_GROUP_KEYS = ("group_key", "groupKey", "group")
_PLAYED_AT_KEYS = ("played_at", "playedAt", "date")


def validate_scope(stage: Optional[Stage], group_key: Optional[str]) -> tuple[Stage, Optional[str]]:
    """A group key is required for mini-league scopes and forbidden everywhere else."""
    if stage is None:
        raise InvalidQuery("stage is required")
    group = (group_key or "").strip() or None
    if stage == Stage.MINI_LEAGUE and group is None:
        raise InvalidQuery("group is required for mini_league standings")
    if stage != Stage.MINI_LEAGUE and group is not None:
        raise InvalidQuery("group is only allowed for mini_league standings")
    return stage, group


def normalize_record(record: Mapping[str, Any], *, default_stage: Stage) -> Optional[MatchOutcome]:
    """Project one raw store record onto MatchOutcome; None when the record is unusable."""
    match_id = pick_field(record, _MATCH_ID_KEYS)
    if match_id is None:
        log.warning("ledger_drop reason=missing_match_id record_keys=%s", sorted(record.keys()))
        return None
    match_id = str(match_id)

    home_team_id = pick_field(record, _HOME_TEAM_KEYS)
    away_team_id = pick_field(record, _AWAY_TEAM_KEYS)
    if home_team_id is None or away_team_id is None:
        log.warning("ledger_drop match=%s reason=missing_team", match_id)
        return None
    home_team_id, away_team_id = str(home_team_id), str(away_team_id)
    if home_team_id == away_team_id:
        log.warning("ledger_drop match=%s reason=same_team team=%s", match_id, home_team_id)
        return None

    raw_status = pick_field(record, ("status",))
    status = normalize_status(raw_status)
    if status is None:
        log.warning("ledger_drop match=%s reason=unknown_status status=%s", match_id, raw_status)
        return None

    is_final = as_bool(pick_field(record, ("is_final", "isFinal")))
    stage = Stage.FINAL if is_final else (normalize_stage(pick_field(record, _STAGE_KEYS)) or default_stage)

    home_score: Optional[int] = None
    away_score: Optional[int] = None
    if status == MatchStatus.COMPLETED:
        pair = resolve_score_pair(record)
        if pair is None:
            log.warning("ledger_drop match=%s reason=missing_score", match_id)
            return None
        home_score, away_score = pair

    group_key = pick_field(record, _GROUP_KEYS)
    return MatchOutcome(
        match_id=match_id,
        stage=stage,
        group_key=str(group_key) if group_key is not None and stage != Stage.REGULAR_SEASON else None,
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        home_score=home_score,
        away_score=away_score,
        status=status,
        is_final=is_final or stage == Stage.FINAL,
        is_published=as_bool(pick_field(record, ("is_published", "isPublished"))),
        is_test=as_bool(pick_field(record, ("is_test", "isTest"))),
        played_at=parse_timestamp(pick_field(record, _PLAYED_AT_KEYS)),
    )


async def load_outcomes(
    store: MatchResultStore,
    stage: Optional[Stage],
    group_key: Optional[str] = None,
) -> list[MatchOutcome]:
    """Read every stored outcome in scope, unpublished finals included."""
    stage, group_key = validate_scope(stage, group_key)
    records = await store.list_completed_outcomes(stage, group_key)
    outcomes: list[MatchOutcome] = []
    for record in records:
        outcome = normalize_record(record, default_stage=stage)
        if outcome is not None:
            outcomes.append(outcome)
    dropped = len(records) - len(outcomes)
    if dropped:
        log.warning("ledger_load stage=%s group=%s records=%s dropped=%s", stage.value, group_key, len(records), dropped)
    else:
        log.debug("ledger_load stage=%s group=%s records=%s", stage.value, group_key, len(records))
    return outcomes
