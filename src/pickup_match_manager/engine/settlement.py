"""Post-draft result reporting.

Three ballots run side by side: one win-report track per team and a void
track. Whichever track decides first fixes the outcome; every other track is
closed in the same step, so later votes and a late force-terminate cannot
change it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import TYPE_CHECKING

from pickup_match_manager.domain.match_record import Outcome
from pickup_match_manager.engine.ballot import Ballot, Quorum, Rejection, SubmitResult
from pickup_match_manager.engine.presenter import Prompt, PromptOption

if TYPE_CHECKING:
    from pickup_match_manager.engine.presenter import Presenter, PromptHandle, RoomHandle

logger = logging.getLogger(__name__)

_YES = "yes"


class SettlementState(StrEnum):
    AWAITING_REPORT = "awaiting_report"
    SETTLED = "settled"


class SettlementEngine:
    def __init__(
        self,
        presenter: Presenter,
        room: RoomHandle | None,
        *,
        captains: tuple[str, str],
        team_a: Sequence[str],
        team_b: Sequence[str],
        report_quorum: int = 3,
        void_quorum: int = 4,
    ) -> None:
        self._presenter = presenter
        self._room = room
        self._captains = captains
        voters = (*team_a, *team_b)
        self._tracks: dict[Outcome, Ballot] = {
            Outcome.TEAM_A_WIN: Ballot(
                voters, (_YES,), timeout=None, policy=Quorum(report_quorum, captains), purpose="report-team-1"
            ),
            Outcome.TEAM_B_WIN: Ballot(
                voters, (_YES,), timeout=None, policy=Quorum(report_quorum, captains), purpose="report-team-2"
            ),
            Outcome.VOID: Ballot(voters, (_YES,), timeout=None, policy=Quorum(void_quorum, captains), purpose="void"),
        }
        self._thresholds = {
            Outcome.TEAM_A_WIN: report_quorum,
            Outcome.TEAM_B_WIN: report_quorum,
            Outcome.VOID: void_quorum,
        }
        self.state = SettlementState.AWAITING_REPORT
        self.outcome: Outcome | None = None
        self.forced = False
        self._settled = asyncio.Event()

    @property
    def eligible(self) -> frozenset[str]:
        return self._tracks[Outcome.VOID].eligible

    def submit(self, voter: str, choice: str) -> SubmitResult:
        if self.state is SettlementState.SETTLED:
            return SubmitResult.rejected(Rejection.CLOSED)
        try:
            track = Outcome(choice)
        except ValueError:
            return SubmitResult.rejected(Rejection.INVALID_CHOICE)

        ballot = self._tracks[track]
        result = ballot.submit(voter, _YES)
        if not result.accepted:
            return result
        if ballot.decided:
            self._settle(track)
            return SubmitResult.ok("Threshold reached—closing.")
        return SubmitResult.ok(f"Vote recorded ({len(ballot.votes)}/{self._thresholds[track]}).")

    def force_void(self) -> bool:
        """Settle as void from an administrative override; False if an outcome already stands."""
        if self.state is SettlementState.SETTLED:
            return False
        self.forced = True
        self._settle(Outcome.VOID)
        return True

    def _settle(self, outcome: Outcome) -> None:
        if self.state is SettlementState.SETTLED:
            return
        self.state = SettlementState.SETTLED
        self.outcome = outcome
        for ballot in self._tracks.values():
            ballot.close()
        self._settled.set()
        logger.info("Settlement decided: %s (forced=%s)", outcome, self.forced)

    def vote_counts(self) -> dict[Outcome, int]:
        return {outcome: len(ballot.votes) for outcome, ballot in self._tracks.items()}

    async def run(self) -> Outcome:
        prompt = Prompt(
            purpose="settlement",
            title="🎮 Report the result",
            voters=self.eligible,
            options=(
                PromptOption(value=str(Outcome.TEAM_A_WIN), label="Report Team 1 Win"),
                PromptOption(value=str(Outcome.TEAM_B_WIN), label="Report Team 2 Win"),
                PromptOption(value=str(Outcome.VOID), label="🧹 Void Match"),
            ),
            timeout=None,
            description=(
                f"A captain's report settles immediately; otherwise {self._thresholds[Outcome.TEAM_A_WIN]} "
                f"player reports for the same team, or {self._thresholds[Outcome.VOID]} void votes."
            ),
        )
        handle: PromptHandle | None = None
        try:
            handle = await self._presenter.open_prompt(self._room, prompt, self.submit)
            await self._settled.wait()
        finally:
            if handle is not None:
                await handle.close()
        assert self.outcome is not None
        return self.outcome
