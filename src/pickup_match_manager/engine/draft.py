from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from pickup_match_manager.domain.match_record import DraftFormat, PickLogEntry
from pickup_match_manager.engine.ballot import Ballot, Plurality
from pickup_match_manager.engine.presenter import Prompt, PromptOption

if TYPE_CHECKING:
    from pickup_match_manager.engine.presenter import Presenter, RoomHandle

logger = logging.getLogger(__name__)


def generate_snake_order(num_teams: int, num_rounds: int) -> list[int]:
    """Return team indices in snake order: 0..n-1, n-1..0, ..."""
    order: list[int] = []
    for round_num in range(num_rounds):
        indices = list(range(num_teams))
        if round_num % 2 == 1:
            indices.reverse()
        order.extend(indices)
    return order


def turn_order(draft_format: DraftFormat, picks: int, first: str, second: str) -> list[str]:
    """Captain on the clock for each of ``picks`` turns, starting with ``first``."""
    captains = (first, second)
    if draft_format is DraftFormat.SNAKE:
        rounds = -(-picks // 2)
        return [captains[i] for i in generate_snake_order(2, rounds)][:picks]
    return [captains[i % 2] for i in range(picks)]


class DraftState:
    """Undrafted pool plus two rosters; every participant sits in exactly one of the three."""

    def __init__(self, captain_a: str, captain_b: str, pool: Sequence[str]) -> None:
        if captain_a == captain_b:
            raise ValueError("Captains must be distinct")
        self.captain_a = captain_a
        self.captain_b = captain_b
        self.undrafted: list[str] = [p for p in pool if p not in (captain_a, captain_b)]
        self.team_a: list[str] = [captain_a]
        self.team_b: list[str] = [captain_b]
        self.pick_log: list[PickLogEntry] = []

    @property
    def complete(self) -> bool:
        return not self.undrafted

    @property
    def turn(self) -> int:
        return len(self.pick_log) + 1

    def roster_of(self, captain: str) -> list[str]:
        if captain == self.captain_a:
            return self.team_a
        if captain == self.captain_b:
            return self.team_b
        raise ValueError(f"{captain} is not a captain in this draft")

    def assign(self, picker: str, pickee: str, *, auto: bool = False) -> PickLogEntry:
        roster = self.roster_of(picker)
        if pickee not in self.undrafted:
            raise ValueError(f"{pickee} is not available to draft")
        self.undrafted.remove(pickee)
        roster.append(pickee)
        entry = PickLogEntry(turn=self.turn, picker=picker, pickee=pickee, auto=auto)
        self.pick_log.append(entry)
        return entry

    def auto_pick(self, picker: str) -> PickLogEntry:
        """Assign the head of the undrafted pool to ``picker``."""
        if not self.undrafted:
            raise ValueError("Nobody left to draft")
        return self.assign(picker, self.undrafted[0], auto=True)


class DraftEngine:
    def __init__(
        self,
        presenter: Presenter,
        room: RoomHandle | None,
        state: DraftState,
        draft_format: DraftFormat,
        *,
        pick_seconds: float,
        ratings: Mapping[str, int] | None = None,
    ) -> None:
        self._presenter = presenter
        self._room = room
        self._state = state
        self._format = draft_format
        self._pick_seconds = pick_seconds
        self._ratings = dict(ratings or {})

    @property
    def state(self) -> DraftState:
        return self._state

    async def run(self) -> DraftState:
        state = self._state
        order = turn_order(self._format, len(state.undrafted), state.captain_a, state.captain_b)
        await self._presenter.audit(f"🔔 Draft begins ({self._format}), <@{state.captain_a}> picks first")

        for captain in order:
            entry = await self._run_turn(captain)
            if entry.auto:
                await self._presenter.announce(self._room, f"⏰ <@{captain}> ran out of time — auto-picked <@{entry.pickee}>")
                await self._presenter.audit(f"⏰ <@{captain}> auto-picked <@{entry.pickee}>")
            else:
                await self._presenter.audit(f"✏️ <@{captain}> picked <@{entry.pickee}>")

        await self._presenter.announce(self._room, "✅ Draft complete\n\n" + await self._render_rosters())
        logger.info("Draft complete: %s vs %s", state.team_a, state.team_b)
        return state

    async def _run_turn(self, captain: str) -> PickLogEntry:
        state = self._state
        options = tuple(
            [
                PromptOption(value=p, label=f"{await self._presenter.display_name(p)} ({self._ratings.get(p, 0)})")
                for p in state.undrafted
            ]
        )
        description = f"Pick {state.turn} · 👑 On the clock: <@{captain}>\n\n{await self._render_rosters()}"
        ballot = Ballot(
            (captain,),
            state.undrafted,
            timeout=self._pick_seconds,
            policy=Plurality(),
            purpose=f"draft-pick-{state.turn}",
        )
        prompt = Prompt(
            purpose="draft-pick",
            title="✏️ Draft in progress",
            voters=ballot.eligible,
            options=options,
            timeout=self._pick_seconds,
            description=description,
            metadata={"turn": str(state.turn), "captain": captain},
        )
        handle = await self._presenter.open_prompt(self._room, prompt, ballot.submit)
        try:
            tally = await ballot.await_resolution()
        finally:
            await handle.close()

        choice = tally.choice_of(captain)
        if choice is None:
            return state.auto_pick(captain)
        return state.assign(captain, choice)

    async def _render_rosters(self) -> str:
        state = self._state
        lines: list[str] = []
        if state.pick_log:
            lines.append("📜 Draft Log")
            lines.extend(f"Pick {e.turn} — <@{e.pickee}>" + (" (auto)" if e.auto else "") for e in state.pick_log)
            lines.append("")
        for label, roster in (("🟥 Team 1", state.team_a), ("🟦 Team 2", state.team_b)):
            total = sum(self._ratings.get(p, 0) for p in roster)
            lines.append(f"{label} (Total rating: {total})")
            lines.extend(f"• <@{p}> ({self._ratings.get(p, 0)})" for p in roster)
        return "\n".join(lines)
