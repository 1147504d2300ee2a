from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pickup_match_manager.config import MatchSettings
from pickup_match_manager.domain.participant import raw_id
from pickup_match_manager.engine.locks import ParticipantLocks
from pickup_match_manager.engine.match import Match
from pickup_match_manager.engine.rating import RatingEngine
from pickup_match_manager.exceptions import InvalidPoolError, MatchNotFoundError

if TYPE_CHECKING:
    from pickup_match_manager.engine.presenter import Presenter
    from pickup_match_manager.repos.protocols import MatchRepo, RatingRepo

logger = logging.getLogger(__name__)


class MatchManager:
    """Starts a match for every filled pool and keeps track of the ones still running.

    Matches run independently of each other; the only state they share is the
    participant lock table and the two repositories.
    """

    def __init__(
        self,
        presenter: Presenter,
        rating_repo: RatingRepo,
        match_repo: MatchRepo,
        settings: MatchSettings | None = None,
        *,
        locks: ParticipantLocks | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._presenter = presenter
        self._match_repo = match_repo
        self._settings = settings or MatchSettings()
        self._rating_engine = RatingEngine(rating_repo, self._settings.rating)
        self._rng = rng or random.Random()
        self.locks = locks or ParticipantLocks()
        self._matches: dict[int, Match] = {}
        self._tasks: dict[int, asyncio.Task[object]] = {}

    @property
    def settings(self) -> MatchSettings:
        return self._settings

    def active_matches(self) -> list[Match]:
        return [self._matches[mid] for mid in sorted(self._matches)]

    def get(self, match_id: int) -> Match:
        try:
            return self._matches[match_id]
        except KeyError:
            raise MatchNotFoundError(match_id) from None

    async def on_pool_filled(self, participants: Sequence[str]) -> Match:
        ids = [raw_id(p) for p in participants]
        if len(ids) != self._settings.pool_size:
            raise InvalidPoolError(f"Expected {self._settings.pool_size} participants, got {len(ids)}")
        if len(set(ids)) != len(ids):
            raise InvalidPoolError("Pool contains duplicate participants")
        locked = [pid for pid in ids if self.locks.is_locked(pid)]
        if locked:
            raise InvalidPoolError(f"Already in a match: {', '.join(locked)}")

        match_id = self._match_repo.next_sequence()
        self.locks.lock_all(ids, match_id)
        match = Match(
            match_id,
            ids,
            presenter=self._presenter,
            rating_engine=self._rating_engine,
            match_repo=self._match_repo,
            locks=self.locks,
            settings=self._settings,
            rng=self._rng,
        )
        self._matches[match_id] = match
        task = asyncio.create_task(match.run(), name=match.name)
        self._tasks[match_id] = task
        task.add_done_callback(lambda t, mid=match_id: self._on_match_done(mid, t))
        logger.info("Started %s with %s", match.name, ids)
        return match

    async def force_terminate(self, match_id: int) -> bool:
        match = self.get(match_id)
        terminated = await match.force_terminate()
        if terminated:
            await self._presenter.audit(f"🗑️ Terminating {match.name} and unlocking {len(match.participants)}.")
        return terminated

    async def shutdown(self) -> None:
        """Cancel every running match; unsettled participants are released."""
        match_ids = list(self._matches)
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for match_id in match_ids:
            self.locks.release_match(match_id)
            self._matches.pop(match_id, None)
            self._tasks.pop(match_id, None)

    def _on_match_done(self, match_id: int, task: asyncio.Task[object]) -> None:
        self._matches.pop(match_id, None)
        self._tasks.pop(match_id, None)
        if task.cancelled():
            logger.info("match-%d cancelled", match_id)
        elif (exc := task.exception()) is not None:
            logger.error("match-%d crashed", match_id, exc_info=exc)
