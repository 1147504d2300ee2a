from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pickup_match_manager.domain.match_record import DraftFormat
from pickup_match_manager.engine.ballot import Ballot, Unanimity
from pickup_match_manager.engine.presenter import Prompt, PromptOption

if TYPE_CHECKING:
    from pickup_match_manager.engine.duel import DuelResolver
    from pickup_match_manager.engine.presenter import Presenter, RoomHandle

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = DraftFormat.STRAIGHT

FORMAT_LABELS: dict[DraftFormat, str] = {
    DraftFormat.SNAKE: "Snake Draft",
    DraftFormat.STRAIGHT: "Straight Draft",
}


class FormatSelector:
    """Captains agree on a draft format, or a duel settles it."""

    def __init__(
        self,
        presenter: Presenter,
        room: RoomHandle | None,
        duel: DuelResolver,
        *,
        timeout: float,
    ) -> None:
        self._presenter = presenter
        self._room = room
        self._duel = duel
        self._timeout = timeout

    async def select(self, captains: tuple[str, str]) -> DraftFormat:
        ballot = Ballot(
            captains,
            [str(f) for f in DraftFormat],
            timeout=self._timeout,
            policy=Unanimity(),
            purpose="draft-format",
        )
        prompt = Prompt(
            purpose="draft-format",
            title="📋 Choose Draft Type",
            voters=ballot.eligible,
            options=(
                PromptOption(value=str(DraftFormat.SNAKE), label="Snake"),
                PromptOption(value=str(DraftFormat.STRAIGHT), label="Straight"),
            ),
            timeout=self._timeout,
            description="Both captains pick “Snake” or “Straight”.",
        )
        handle = await self._presenter.open_prompt(self._room, prompt, ballot.submit)
        try:
            tally = await ballot.await_resolution()
        finally:
            await handle.close()

        if tally.timed_out:
            await self._presenter.announce(self._room, "⏰ Draft-type vote timed out.")
        if tally.unanimous is not None:
            chosen = DraftFormat(tally.unanimous)
        else:
            duel = await self._duel.resolve(captains[0], captains[1], "draft type")
            winner_choice = tally.choice_of(duel.winner)
            chosen = DraftFormat(winner_choice) if winner_choice else DEFAULT_FORMAT
            await self._presenter.announce(
                self._room,
                f"⚖️ Tie on draft type → RPS winner <@{duel.winner}>’s pick: **{FORMAT_LABELS[chosen]}**",
            )

        logger.info("Draft format %s chosen by captains %s", chosen, captains)
        await self._presenter.announce(self._room, f"📋 Draft type chosen: **{FORMAT_LABELS[chosen]}**")
        return chosen
