"""Ok/Err result values returned by operator-facing operations.

Callers pattern-match on them::

    match service.adjust(participant_id, rating=5):
        case Ok(record):
            ...
        case Err(error):
            ...
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E


type Result[T, E] = Ok[T] | Err[E]


@dataclass(frozen=True)
class AdminError:
    message: str


@dataclass(frozen=True)
class InvalidConfirmationError(AdminError):
    participant_id: str


@dataclass(frozen=True)
class UnknownMatchError(AdminError):
    match_id: int
