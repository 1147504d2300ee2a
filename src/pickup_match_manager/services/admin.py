"""Operator actions outside the match flow: leaderboard, manual edits, resets."""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import TYPE_CHECKING

from pickup_match_manager.config import RatingSettings
from pickup_match_manager.domain.rating_record import RatingRecord, default_record
from pickup_match_manager.domain.result import (
    AdminError,
    Err,
    InvalidConfirmationError,
    Ok,
    Result,
    UnknownMatchError,
)
from pickup_match_manager.exceptions import MatchNotFoundError, PersistenceError

if TYPE_CHECKING:
    from pickup_match_manager.engine.manager import MatchManager
    from pickup_match_manager.repos.protocols import RatingRepo

logger = logging.getLogger(__name__)


def format_leaderboard_line(rank: int, record: RatingRecord) -> str:
    """One leaderboard row: rank, mention, rating, record and current streak."""
    streak = ""
    if record.streak > 0:
        streak = f", W{record.streak}"
    elif record.streak < 0:
        streak = f", L{-record.streak}"
    return f"`{rank:>2}.` <@{record.participant_id}> — **{record.rating} rating**  ({record.record}{streak})"


class AdminService:
    def __init__(
        self,
        rating_repo: RatingRepo,
        settings: RatingSettings | None = None,
        *,
        manager: MatchManager | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._repo = rating_repo
        self._manager = manager
        self._settings = settings or RatingSettings()
        self._rng = rng or random.Random()
        self._pending_resets: dict[str, str] = {}

    def leaderboard(self, limit: int = 10) -> list[RatingRecord]:
        return self._repo.top(limit)

    def leaderboard_lines(self, limit: int = 10) -> list[str]:
        return [format_leaderboard_line(i, r) for i, r in enumerate(self.leaderboard(limit), start=1)]

    def adjust(
        self,
        participant_id: str,
        *,
        rating: int = 0,
        wins: int = 0,
        losses: int = 0,
    ) -> Result[RatingRecord, AdminError]:
        """Shift one participant's numbers; removals never take a field below zero."""
        if not (rating or wins or losses):
            return Err(AdminError("Nothing to adjust"))
        current = self._repo.get(participant_id) or default_record(participant_id, self._settings.default_rating)
        updated = replace(
            current,
            rating=current.rating + rating if rating >= 0 else max(0, current.rating + rating),
            wins=max(0, current.wins + wins),
            losses=max(0, current.losses + losses),
        )
        try:
            self._repo.write_batch([updated])
        except PersistenceError as e:
            return Err(AdminError(str(e)))
        logger.info("Manual adjustment for %s: rating %+d, wins %+d, losses %+d", participant_id, rating, wins, losses)
        return Ok(updated)

    def start_reset(self, requested_by: str) -> str:
        code = str(self._rng.randint(100000, 999999))
        self._pending_resets[requested_by] = code
        return code

    def confirm_reset(self, requested_by: str, code: str) -> Result[int, AdminError]:
        expected = self._pending_resets.get(requested_by)
        if expected is None or code != expected:
            return Err(InvalidConfirmationError("Invalid code.", participant_id=requested_by))
        del self._pending_resets[requested_by]
        try:
            count = self._repo.reset_all()
        except PersistenceError as e:
            return Err(AdminError(str(e)))
        logger.warning("Leaderboard reset by %s (%d records)", requested_by, count)
        return Ok(count)

    async def force_terminate(self, match_id: int) -> Result[int, AdminError]:
        """Void a running match regardless of its phase."""
        if self._manager is None:
            return Err(UnknownMatchError(f"No active match with id {match_id}", match_id=match_id))
        try:
            terminated = await self._manager.force_terminate(match_id)
        except MatchNotFoundError as e:
            return Err(UnknownMatchError(str(e), match_id=match_id))
        if not terminated:
            return Err(AdminError(f"match-{match_id} is already settled"))
        return Ok(match_id)
