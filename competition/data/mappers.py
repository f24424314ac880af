from typing import Any, Mapping, Optional

from competition.data.models import MatchStatus, Stage

# Newer field names come first: when both schemes are present on one
# record, the first key holding a value wins.
HOME_SCORE_KEYS = ("home_team_score", "homeTeamScore", "home_score", "homeScore")
AWAY_SCORE_KEYS = ("away_team_score", "awayTeamScore", "away_score", "awayScore")

COMPLETED_STATUS_CODES = frozenset({"COMPLETED", "COMPLETE", "FINISHED", "PLAYED", "FT", "AET", "PEN"})
SCHEDULED_STATUS_CODES = frozenset({"SCHEDULED", "UPCOMING", "PENDING", "NS", "TBD", "LIVE", "IN_PROGRESS"})
CANCELLED_STATUS_CODES = frozenset({"CANCELLED", "CANCELED", "CANC", "ABD", "PST", "POSTPONED", "WO"})


def normalize_status(raw_status: Optional[str]) -> Optional[MatchStatus]:
    code = (raw_status or "").strip().upper()
    if not code:
        return None
    if code in COMPLETED_STATUS_CODES:
        return MatchStatus.COMPLETED
    if code in SCHEDULED_STATUS_CODES:
        return MatchStatus.SCHEDULED
    if code in CANCELLED_STATUS_CODES:
        return MatchStatus.CANCELLED
    return None


STAGE_CODES = {
    Stage.REGULAR_SEASON: frozenset({"REGULAR", "REGULAR_SEASON", "SEASON", "LEAGUE"}),
    Stage.MINI_LEAGUE: frozenset({"MINI_LEAGUE", "MINILEAGUE", "GROUP"}),
    Stage.FINAL: frozenset({"FINAL", "FINALS"}),
}


def stage_code(raw_stage: Optional[str]) -> str:
    return (raw_stage or "").strip().upper().replace("-", "_").replace(" ", "_")


def normalize_stage(raw_stage: Optional[str]) -> Optional[Stage]:
    code = stage_code(raw_stage)
    for stage, codes in STAGE_CODES.items():
        if code in codes:
            return stage
    return None


def parse_score(value: Any) -> Optional[int]:
    """Non-negative integer score, or None when the value cannot be one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        return int(value) if value >= 0 else None
    if isinstance(value, str):
        raw = value.strip()
        if not raw.isdigit():
            return None
        return int(raw)
    return None


def pick_field(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def resolve_score_pair(record: Mapping[str, Any]) -> Optional[tuple[int, int]]:
    home = parse_score(pick_field(record, HOME_SCORE_KEYS))
    away = parse_score(pick_field(record, AWAY_SCORE_KEYS))
    if home is None or away is None:
        return None
    return home, away


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "t"}
    return bool(value)
