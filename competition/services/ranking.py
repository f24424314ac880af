from __future__ import annotations

from dataclasses import replace
from typing import Mapping

from competition.data.models import StandingsRow


def tie_break_key(row: StandingsRow) -> tuple[int, int, int, str, str]:
    """Points, goal difference, goals for (all descending), then name and id ascending.

    `casefold` gives a locale-independent case-insensitive comparison; the
    team id only matters for two teams registered under the same name.
    """
    return (-row.points, -row.goal_difference, -row.goals_for, (row.team_name or "").casefold(), row.team_id)


def rank(rows: Mapping[str, StandingsRow]) -> list[StandingsRow]:
    ordered = sorted(rows.values(), key=tie_break_key)
    return [replace(row, rank=idx) for idx, row in enumerate(ordered, start=1)]
