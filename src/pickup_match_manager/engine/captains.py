from __future__ import annotations

import logging
import random
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from pickup_match_manager.engine.ballot import Ballot, Plurality
from pickup_match_manager.engine.presenter import Prompt, PromptOption

if TYPE_CHECKING:
    from pickup_match_manager.engine.presenter import Presenter, RoomHandle

logger = logging.getLogger(__name__)


def resolve_captains(counts: Mapping[str, int], pool: Sequence[str], rng: random.Random) -> tuple[str, str]:
    """Pick two captains from a vote count.

    - No votes: two uniformly random members of the pool.
    - Two or more tied for the lead: two random members of the tied set.
    - One leader: the leader plus the runner-up, with a random pick among a
      tied runner-up set. When nobody else received a vote the runner-up is
      drawn from the rest of the pool.
    """
    tallied = {candidate: n for candidate, n in counts.items() if n > 0}
    if not tallied:
        first, second = rng.sample(list(pool), 2)
        return first, second

    top = max(tallied.values())
    leaders = [c for c in pool if tallied.get(c, 0) == top]
    if len(leaders) >= 2:
        first, second = rng.sample(leaders, 2)
        return first, second

    leader = leaders[0]
    rest = {c: n for c, n in tallied.items() if c != leader}
    if rest:
        runner_up = max(rest.values())
        ties = [c for c in pool if rest.get(c) == runner_up]
    else:
        ties = [c for c in pool if c != leader]
    return leader, rng.choice(ties)


class CaptainSelector:
    def __init__(
        self,
        presenter: Presenter,
        room: RoomHandle | None,
        *,
        timeout: float,
        rng: random.Random | None = None,
    ) -> None:
        self._presenter = presenter
        self._room = room
        self._timeout = timeout
        self._rng = rng or random.Random()

    async def select(self, pool: Sequence[str]) -> tuple[str, str]:
        options = tuple([PromptOption(value=p, label=await self._presenter.display_name(p)) for p in pool])
        ballot = Ballot(pool, pool, timeout=self._timeout, policy=Plurality(), purpose="captain-vote")
        prompt = Prompt(
            purpose="captain-vote",
            title="📢 Vote for Captains!",
            voters=ballot.eligible,
            options=options,
            timeout=self._timeout,
            description="Click one below. You get 1 vote.",
        )
        handle = await self._presenter.open_prompt(self._room, prompt, ballot.submit)
        try:
            tally = await ballot.await_resolution()
        finally:
            await handle.close()

        if tally.timed_out:
            await self._presenter.announce(self._room, f"⏰ Captain vote closed with {len(tally.votes)} vote(s).")
        captains = resolve_captains(tally.counts, pool, self._rng)
        logger.info("Captains selected %s from %d votes", captains, len(tally.votes))
        await self._presenter.announce(self._room, f"🥳 **Captains Selected!** <@{captains[0]}> & <@{captains[1]}>")
        return captains
