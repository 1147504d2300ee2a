from __future__ import annotations

from dataclasses import dataclass, field, replace

from pickup_match_manager.domain.participant import ParticipantId

DEFAULT_RATING = 100
RECENT_RESULTS_SIZE = 10


@dataclass(frozen=True)
class RatingRecord:
    participant_id: ParticipantId
    rating: int = DEFAULT_RATING
    wins: int = 0
    losses: int = 0
    streak: int = 0
    last_results: tuple[str, ...] = field(default_factory=tuple)

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}"

    def with_result(self, *, won: bool, rating: int, keep: int = RECENT_RESULTS_SIZE) -> RatingRecord:
        """Return a copy with one decisive result folded into counters, streak and recent results."""
        if won:
            streak = self.streak + 1 if self.streak > 0 else 1
        else:
            streak = self.streak - 1 if self.streak < 0 else -1
        return replace(
            self,
            rating=rating,
            wins=self.wins + (1 if won else 0),
            losses=self.losses + (0 if won else 1),
            streak=streak,
            last_results=(("W" if won else "L"), *self.last_results)[:keep],
        )


def default_record(participant_id: ParticipantId, rating: int = DEFAULT_RATING) -> RatingRecord:
    return RatingRecord(participant_id=participant_id, rating=rating)
