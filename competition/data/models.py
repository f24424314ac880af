from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class Stage(str, Enum):
    REGULAR_SEASON = "REGULAR_SEASON"
    MINI_LEAGUE = "MINI_LEAGUE"
    FINAL = "FINAL"


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PublicationState(str, Enum):
    UNPUBLISHED = "unpublished"
    PUBLISHED = "published"


POINTS_WIN = 3
POINTS_DRAW = 1
FORM_LENGTH = 5


@dataclass(frozen=True)
class MatchOutcome:
    match_id: str
    stage: Stage
    home_team_id: str
    away_team_id: str
    status: MatchStatus
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    group_key: Optional[str] = None
    is_final: bool = False
    is_published: bool = False
    is_test: bool = False
    played_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED


@dataclass
class StandingsRow:
    team_id: str
    team_name: str = ""
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    form: str = ""
    rank: Optional[int] = None

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "played": self.played,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
            "form": self.form,
        }


@dataclass(frozen=True)
class FinalsPublicationRecord:
    match_id: str
    is_published: bool = False
    is_test: bool = False
    group_key: Optional[str] = None
    status: Optional[MatchStatus] = None
    played_at: Optional[datetime] = None

    @property
    def state(self) -> PublicationState:
        return PublicationState.PUBLISHED if self.is_published else PublicationState.UNPUBLISHED

    def published(self) -> "FinalsPublicationRecord":
        """The only legal transition: unpublished -> published. Publishing twice is a no-op."""
        if self.is_published:
            return self
        return replace(self, is_published=True)

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "state": self.state.value,
            "is_published": self.is_published,
            "is_test": self.is_test,
            "group_key": self.group_key,
            "status": self.status.value if self.status is not None else None,
            "played_at": self.played_at.isoformat() if self.played_at is not None else None,
        }


@dataclass(frozen=True)
class PublishResult:
    published_count: int = 0
    published_match_ids: list[str] = field(default_factory=list)
    nothing_to_publish: bool = False

    def to_dict(self) -> dict:
        return {
            "published_count": self.published_count,
            "published_match_ids": list(self.published_match_ids),
        }
