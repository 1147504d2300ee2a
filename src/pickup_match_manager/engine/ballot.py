"""Timed vote collection.

A ``Ballot`` is created for a single decision point, aggregates at most one
choice per eligible voter, and resolves either at its deadline or as soon as
its policy says the outcome can no longer change. Ballots never render
anything; callers wire ``Ballot.submit`` into a presenter prompt.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

logger = logging.getLogger(__name__)


class Rejection(StrEnum):
    NOT_ELIGIBLE = "not_eligible"
    DUPLICATE_VOTE = "duplicate_vote"
    AFTER_DEADLINE = "after_deadline"
    INVALID_CHOICE = "invalid_choice"
    CLOSED = "closed"


_EXPLANATIONS: dict[Rejection, str] = {
    Rejection.NOT_ELIGIBLE: "You can't vote on this one.",
    Rejection.DUPLICATE_VOTE: "You already voted; your first choice stands.",
    Rejection.AFTER_DEADLINE: "Too late, voting has closed.",
    Rejection.INVALID_CHOICE: "That option is no longer available.",
    Rejection.CLOSED: "Voting has closed.",
}


@dataclass(frozen=True)
class SubmitResult:
    accepted: bool
    rejection: Rejection | None = None
    detail: str | None = None

    @classmethod
    def ok(cls, detail: str | None = None) -> SubmitResult:
        return cls(accepted=True, detail=detail)

    @classmethod
    def rejected(cls, rejection: Rejection, detail: str | None = None) -> SubmitResult:
        return cls(accepted=False, rejection=rejection, detail=detail)

    def explain(self) -> str:
        """Text for a private reply to the voter."""
        if self.accepted:
            return self.detail or "Choice recorded!"
        assert self.rejection is not None
        return self.detail or _EXPLANATIONS[self.rejection]


class ResolutionPolicy(Protocol):
    def is_decided(self, votes: Mapping[str, str], eligible: frozenset[str]) -> bool: ...


class Plurality:
    """Runs to the deadline unless every eligible voter has already chosen."""

    def is_decided(self, votes: Mapping[str, str], eligible: frozenset[str]) -> bool:
        return len(votes) >= len(eligible)


class Unanimity(Plurality):
    """Same early exit as plurality; callers read ``Tally.unanimous`` to see if everyone agreed."""


class Quorum:
    """Decided once ``threshold`` votes are in, or immediately when an authoritative voter chooses."""

    def __init__(self, threshold: int, authoritative: Iterable[str] = ()) -> None:
        self.threshold = threshold
        self.authoritative = frozenset(authoritative)

    def is_decided(self, votes: Mapping[str, str], eligible: frozenset[str]) -> bool:
        if any(voter in self.authoritative for voter in votes):
            return True
        return len(votes) >= self.threshold


@dataclass(frozen=True)
class Tally:
    votes: dict[str, str]
    eligible: frozenset[str]
    timed_out: bool

    @property
    def counts(self) -> Counter[str]:
        return Counter(self.votes.values())

    def choice_of(self, voter: str) -> str | None:
        return self.votes.get(voter)

    def leaders(self) -> list[str]:
        counts = self.counts
        if not counts:
            return []
        top = max(counts.values())
        return [choice for choice, count in counts.items() if count == top]

    @property
    def unanimous(self) -> str | None:
        """The shared choice when every eligible voter voted the same way."""
        if len(self.votes) < len(self.eligible):
            return None
        choices = set(self.votes.values())
        return choices.pop() if len(choices) == 1 else None


class Ballot:
    def __init__(
        self,
        voters: Iterable[str],
        choices: Iterable[str],
        *,
        timeout: float | None,
        policy: ResolutionPolicy | None = None,
        purpose: str = "ballot",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.purpose = purpose
        self.eligible = frozenset(voters)
        self.choices = frozenset(choices)
        self._policy = policy or Plurality()
        self._clock = clock
        self._deadline = None if timeout is None else clock() + timeout
        self._votes: dict[str, str] = {}
        self._closed = False
        self._timed_out = False
        self._decided = asyncio.Event()

    @property
    def votes(self) -> dict[str, str]:
        return dict(self._votes)

    @property
    def decided(self) -> bool:
        return self._policy.is_decided(self._votes, self.eligible)

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, voter: str, choice: str) -> SubmitResult:
        if self._closed:
            return SubmitResult.rejected(Rejection.CLOSED)
        if self._deadline is not None and self._clock() >= self._deadline:
            return SubmitResult.rejected(Rejection.AFTER_DEADLINE)
        if voter not in self.eligible:
            logger.debug("Rejected %s vote from ineligible %s", self.purpose, voter)
            return SubmitResult.rejected(Rejection.NOT_ELIGIBLE)
        if voter in self._votes:
            return SubmitResult.rejected(Rejection.DUPLICATE_VOTE)
        if choice not in self.choices:
            return SubmitResult.rejected(Rejection.INVALID_CHOICE)

        self._votes[voter] = choice
        logger.debug("Recorded %s vote %s -> %s", self.purpose, voter, choice)
        if self.decided:
            self._decided.set()
        return SubmitResult.ok()

    async def await_resolution(self) -> Tally:
        """Suspend until the deadline passes or the policy decides, then close and tally."""
        if not self._closed and not self.decided:
            if self._deadline is None:
                await self._decided.wait()
            else:
                remaining = max(0.0, self._deadline - self._clock())
                try:
                    await asyncio.wait_for(self._decided.wait(), timeout=remaining)
                except TimeoutError:
                    self._timed_out = True
        self.close()
        return self.tally()

    def close(self) -> None:
        """Stop accepting votes and release anyone awaiting resolution."""
        self._closed = True
        self._decided.set()

    def tally(self) -> Tally:
        return Tally(votes=dict(self._votes), eligible=self.eligible, timed_out=self._timed_out)


def open_ballot(
    voters: Iterable[str],
    choices: Iterable[str],
    timeout: float | None,
    policy: ResolutionPolicy | None = None,
    *,
    purpose: str = "ballot",
) -> Ballot:
    return Ballot(voters, choices, timeout=timeout, policy=policy, purpose=purpose)
