from __future__ import annotations

import logging
from collections.abc import Sequence
from statistics import fmean
from typing import TYPE_CHECKING

from pickup_match_manager.config import RatingSettings
from pickup_match_manager.domain.match_record import Outcome
from pickup_match_manager.domain.rating_record import RatingRecord, default_record

if TYPE_CHECKING:
    from pickup_match_manager.repos.protocols import RatingRepo

logger = logging.getLogger(__name__)


def expected_score(rating: float, opponent: float) -> float:
    return 1 / (1 + 10 ** ((opponent - rating) / 400))


def team_deltas(avg_a: float, avg_b: float, outcome: Outcome, k_factor: float) -> tuple[float, float]:
    """Unrounded per-member delta for each side of a decisive outcome."""
    if outcome is Outcome.VOID:
        return 0.0, 0.0
    expected_a = expected_score(avg_a, avg_b)
    expected_b = 1 - expected_a
    if outcome is Outcome.TEAM_A_WIN:
        return k_factor * (1 - expected_a), -k_factor * expected_b
    return -k_factor * expected_a, k_factor * (1 - expected_b)


class RatingEngine:
    """Elo-style update from team-average ratings, written as one atomic batch."""

    def __init__(self, repo: RatingRepo, settings: RatingSettings | None = None) -> None:
        self._repo = repo
        self._settings = settings or RatingSettings()

    def load(self, participant_ids: Sequence[str]) -> dict[str, RatingRecord]:
        found = self._repo.get_many(participant_ids)
        return {pid: found.get(pid) or default_record(pid, self._settings.default_rating) for pid in participant_ids}

    def apply(self, outcome: Outcome, team_a: Sequence[str], team_b: Sequence[str]) -> dict[str, int]:
        """Update every participant's record and return the per-participant rating delta.

        A void outcome writes nothing and returns zero for everyone.
        """
        if outcome is Outcome.VOID:
            return {pid: 0 for pid in (*team_a, *team_b)}

        records = self.load([*team_a, *team_b])
        avg_a = fmean(records[pid].rating for pid in team_a)
        avg_b = fmean(records[pid].rating for pid in team_b)
        delta_a, delta_b = team_deltas(avg_a, avg_b, outcome, self._settings.k_factor)

        updated: list[RatingRecord] = []
        deltas: dict[str, int] = {}
        for team, delta, won in (
            (team_a, delta_a, outcome is Outcome.TEAM_A_WIN),
            (team_b, delta_b, outcome is Outcome.TEAM_B_WIN),
        ):
            for pid in team:
                before = records[pid]
                after = before.with_result(
                    won=won,
                    rating=round(before.rating + delta),
                    keep=self._settings.recent_results,
                )
                updated.append(after)
                deltas[pid] = after.rating - before.rating

        self._repo.write_batch(updated)
        logger.info("Applied %s: team A %+.1f, team B %+.1f (avg %.1f vs %.1f)", outcome, delta_a, delta_b, avg_a, avg_b)
        return deltas
