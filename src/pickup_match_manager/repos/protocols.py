from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pickup_match_manager.domain.match_record import MatchRecord
from pickup_match_manager.domain.rating_record import RatingRecord


@runtime_checkable
class RatingRepo(Protocol):
    def get(self, participant_id: str) -> RatingRecord | None: ...

    def get_many(self, participant_ids: Sequence[str]) -> dict[str, RatingRecord]: ...

    def write_batch(self, records: Sequence[RatingRecord]) -> None: ...

    def top(self, limit: int = 10) -> list[RatingRecord]: ...

    def reset_all(self) -> int: ...


@runtime_checkable
class MatchRepo(Protocol):
    def next_sequence(self) -> int: ...

    def save(self, record: MatchRecord) -> None: ...

    def get(self, match_id: int) -> MatchRecord | None: ...

    def list_recent(self, limit: int = 10) -> list[MatchRecord]: ...
