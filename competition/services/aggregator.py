from __future__ import annotations

from typing import Iterable

from competition.core.errors import PreconditionViolated
from competition.core.logger import get_logger
from competition.data.models import FORM_LENGTH, POINTS_DRAW, POINTS_WIN, MatchOutcome, StandingsRow

log = get_logger("services.aggregator")


def _display_order(outcome: MatchOutcome) -> tuple[float, str]:
    played_at = outcome.played_at.timestamp() if outcome.played_at is not None else float("-inf")
    return played_at, outcome.match_id


def _result_from_score(goals_for: int, goals_against: int) -> str:
    if goals_for > goals_against:
        return "W"
    if goals_for == goals_against:
        return "D"
    return "L"


def _apply(row: StandingsRow, goals_for: int, goals_against: int) -> str:
    row.played += 1
    row.goals_for += goals_for
    row.goals_against += goals_against
    result = _result_from_score(goals_for, goals_against)
    if result == "W":
        row.wins += 1
        row.points += POINTS_WIN
    elif result == "D":
        row.draws += 1
        row.points += POINTS_DRAW
    else:
        row.losses += 1
    return result


def aggregate(outcomes: Iterable[MatchOutcome]) -> dict[str, StandingsRow]:
    """Fold completed outcomes into one fresh row per participating team.

    Teams without a completed outcome are absent from the result. The fold
    is a sum, so any permutation of `outcomes` gives identical rows; `form`
    is derived from the outcomes sorted by (played_at, match_id) for the
    same reason.
    """
    outcomes = list(outcomes)
    for outcome in outcomes:
        if not outcome.is_completed or outcome.home_score is None or outcome.away_score is None:
            log.error(
                "aggregate_precondition_violated match=%s status=%s home_score=%s away_score=%s",
                outcome.match_id,
                outcome.status.value,
                outcome.home_score,
                outcome.away_score,
            )
            raise PreconditionViolated(f"outcome {outcome.match_id} is not a completed, scored match")

    rows: dict[str, StandingsRow] = {}
    history: dict[str, list[str]] = {}
    ordered = sorted(outcomes, key=_display_order)
    for outcome in ordered:
        home = rows.setdefault(outcome.home_team_id, StandingsRow(team_id=outcome.home_team_id))
        away = rows.setdefault(outcome.away_team_id, StandingsRow(team_id=outcome.away_team_id))
        history.setdefault(home.team_id, []).append(_apply(home, outcome.home_score, outcome.away_score))
        history.setdefault(away.team_id, []).append(_apply(away, outcome.away_score, outcome.home_score))

    for team_id, results in history.items():
        rows[team_id].form = "".join(reversed(results[-FORM_LENGTH:]))
    return rows
