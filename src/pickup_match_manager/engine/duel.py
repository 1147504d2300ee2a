from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from pickup_match_manager.engine.ballot import Ballot, Plurality
from pickup_match_manager.engine.presenter import Prompt, PromptOption

if TYPE_CHECKING:
    from pickup_match_manager.engine.presenter import Presenter, RoomHandle

logger = logging.getLogger(__name__)


class Throw(StrEnum):
    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"


BEATS: dict[Throw, Throw] = {
    Throw.ROCK: Throw.SCISSORS,
    Throw.SCISSORS: Throw.PAPER,
    Throw.PAPER: Throw.ROCK,
}

_LABELS: dict[Throw, str] = {
    Throw.ROCK: "🪨 Rock",
    Throw.PAPER: "📄 Paper",
    Throw.SCISSORS: "✂️ Scissors",
}


def beats(first: Throw, second: Throw) -> bool:
    return BEATS[first] is second


@dataclass(frozen=True)
class DuelResult:
    winner: str
    loser: str
    winner_throw: Throw
    loser_throw: Throw
    rounds: int


class DuelResolver:
    """Rock/paper/scissors between two participants, replayed until the throws differ.

    Each round is a private two-voter ballot. A participant who does not
    answer in time gets a uniformly random throw.
    """

    def __init__(
        self,
        presenter: Presenter,
        *,
        timeout: float,
        room: RoomHandle | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._presenter = presenter
        self._timeout = timeout
        self._room = room
        self._rng = rng or random.Random()

    async def resolve(self, first: str, second: str, purpose: str) -> DuelResult:
        if first == second:
            raise ValueError("A duel needs two distinct participants")

        await self._presenter.audit(f"🔔 Starting RPS for **{purpose}**")
        rounds = 0
        while True:
            rounds += 1
            first_throw, second_throw = await self._play_round(first, second, purpose)
            if first_throw is not second_throw:
                break
            logger.info("Duel for %s tied on %s (round %d), replaying", purpose, first_throw, rounds)
            await self._presenter.announce(self._room, f"🤝 Both chose **{first_throw}** — tie! Rerunning RPS.")
            await self._presenter.audit(f"🤝 RPS tie on **{first_throw}** — rerunning")
            for participant in (first, second):
                await self._presenter.notify(participant, f"🤝 Tie on **{first_throw}** — rerunning RPS for **{purpose}**.")

        if beats(first_throw, second_throw):
            result = DuelResult(first, second, first_throw, second_throw, rounds)
        else:
            result = DuelResult(second, first, second_throw, first_throw, rounds)

        await self._presenter.announce(
            self._room,
            f"🤜🤛 RPS ({purpose}): <@{first}> ({first_throw}) vs ({second_throw}) <@{second}> → 🏆 <@{result.winner}>",
        )
        await self._presenter.audit(f"🏆 <@{result.winner}> won RPS for **{purpose}**")
        await self._presenter.notify(result.winner, f"🎉 You won the Rock/Paper/Scissors for **{purpose}**!")
        await self._presenter.notify(result.loser, f"😞 You lost the Rock/Paper/Scissors for **{purpose}**.")
        return result

    async def _play_round(self, first: str, second: str, purpose: str) -> tuple[Throw, Throw]:
        ballot = Ballot(
            (first, second),
            [str(t) for t in Throw],
            timeout=self._timeout,
            policy=Plurality(),
            purpose=f"duel:{purpose}",
        )
        prompt = Prompt(
            purpose="duel",
            title=f"🎲 Play Rock/Paper/Scissors for **{purpose}**",
            voters=ballot.eligible,
            options=tuple(PromptOption(value=str(t), label=_LABELS[t]) for t in Throw),
            timeout=self._timeout,
            private=True,
            metadata={"duel": purpose},
        )
        handle = await self._presenter.open_prompt(None, prompt, ballot.submit)
        try:
            tally = await ballot.await_resolution()
        finally:
            await handle.close()

        throws: list[Throw] = []
        for participant in (first, second):
            choice = tally.choice_of(participant)
            if choice is None:
                throw = self._rng.choice(list(Throw))
                await self._presenter.notify(participant, f"⏰ No pick → auto **{throw}**.")
            else:
                throw = Throw(choice)
            throws.append(throw)
        return throws[0], throws[1]
