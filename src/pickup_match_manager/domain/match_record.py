from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from pickup_match_manager.domain.participant import ParticipantId


class Outcome(StrEnum):
    TEAM_A_WIN = "team_a_win"
    TEAM_B_WIN = "team_b_win"
    VOID = "void"


class DraftFormat(StrEnum):
    STRAIGHT = "straight"
    SNAKE = "snake"


class MatchPhase(StrEnum):
    CAPTAINS = "captains"
    FORMAT = "format"
    DRAFT = "draft"
    SETTLEMENT = "settlement"
    SETTLED = "settled"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class PickLogEntry:
    turn: int
    picker: ParticipantId
    pickee: ParticipantId
    auto: bool


@dataclass
class MatchRecord:
    """Observable record of one match, written at start and again at settlement."""

    match_id: int
    participants: tuple[ParticipantId, ...]
    created_at: datetime
    team_a: tuple[ParticipantId, ...] = ()
    team_b: tuple[ParticipantId, ...] = ()
    draft_format: DraftFormat | None = None
    pick_log: tuple[PickLogEntry, ...] = ()
    outcome: Outcome | None = None
    forced: bool = False
    rating_deltas: dict[ParticipantId, int] = field(default_factory=dict)
    rating_error: str | None = None
    settled_at: datetime | None = None

    @property
    def name(self) -> str:
        return f"match-{self.match_id}"

    @property
    def status(self) -> str:
        return "ready" if self.outcome is None else str(self.outcome)
