from __future__ import annotations

import logging
from collections.abc import Iterable

from pickup_match_manager.exceptions import AlreadyLockedError, NotLockedError

logger = logging.getLogger(__name__)


class ParticipantLocks:
    """Who is currently tied up in a match, keyed by participant id.

    Shared with the queue collaborator so nobody sits in two matches (or a
    queue and a match) at once.
    """

    def __init__(self) -> None:
        self._owners: dict[str, int] = {}

    def lock(self, participant_id: str, match_id: int) -> None:
        owner = self._owners.get(participant_id)
        if owner is not None:
            raise AlreadyLockedError(participant_id, owner)
        self._owners[participant_id] = match_id

    def unlock(self, participant_id: str, match_id: int) -> None:
        if self._owners.get(participant_id) != match_id:
            raise NotLockedError(participant_id, match_id)
        del self._owners[participant_id]

    def lock_all(self, participant_ids: Iterable[str], match_id: int) -> None:
        """Lock every participant or none of them."""
        acquired: list[str] = []
        try:
            for pid in participant_ids:
                self.lock(pid, match_id)
                acquired.append(pid)
        except AlreadyLockedError:
            for pid in acquired:
                self.unlock(pid, match_id)
            raise

    def release_match(self, match_id: int) -> list[str]:
        released = [pid for pid, owner in self._owners.items() if owner == match_id]
        for pid in released:
            self.unlock(pid, match_id)
        logger.debug("Released %d participants from match %d", len(released), match_id)
        return released

    def is_locked(self, participant_id: str) -> bool:
        return participant_id in self._owners

    def owner(self, participant_id: str) -> int | None:
        return self._owners.get(participant_id)

    def __len__(self) -> int:
        return len(self._owners)
