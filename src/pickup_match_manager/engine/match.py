"""One match, from a filled pool to an archived record.

A ``Match`` walks its phases strictly in order (captains, format, draft,
settlement) with exactly one phase task alive at a time. A force-terminate
claims the void outcome and cancels whatever phase is running; every path out
of the phase loop goes through ``_finalize`` exactly once, which applies
ratings, unlocks participants and writes the match record.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pickup_match_manager.domain.match_record import DraftFormat, MatchPhase, MatchRecord, Outcome
from pickup_match_manager.engine.captains import CaptainSelector
from pickup_match_manager.engine.draft import DraftEngine, DraftState
from pickup_match_manager.engine.draft_format import FormatSelector
from pickup_match_manager.engine.duel import DuelResolver
from pickup_match_manager.engine.presenter import RoomKind
from pickup_match_manager.engine.settlement import SettlementEngine
from pickup_match_manager.exceptions import PersistenceError

if TYPE_CHECKING:
    from pickup_match_manager.config import MatchSettings
    from pickup_match_manager.engine.locks import ParticipantLocks
    from pickup_match_manager.engine.presenter import Presenter, RoomHandle
    from pickup_match_manager.engine.rating import RatingEngine
    from pickup_match_manager.repos.protocols import MatchRepo

logger = logging.getLogger(__name__)

_OUTCOME_LABELS: dict[Outcome, str] = {
    Outcome.TEAM_A_WIN: "Team 1 Wins",
    Outcome.TEAM_B_WIN: "Team 2 Wins",
    Outcome.VOID: "Void — no result",
}


def _signed(delta: int) -> str:
    return f"{delta:+d}"


class Match:
    def __init__(
        self,
        match_id: int,
        participants: Sequence[str],
        *,
        presenter: Presenter,
        rating_engine: RatingEngine,
        match_repo: MatchRepo,
        locks: ParticipantLocks,
        settings: MatchSettings,
        rng: random.Random | None = None,
    ) -> None:
        self.match_id = match_id
        self.participants = tuple(participants)
        self.phase = MatchPhase.CAPTAINS
        self.record = MatchRecord(match_id=match_id, participants=self.participants, created_at=datetime.now(UTC))
        self.captains: tuple[str, str] | None = None
        self.draft_format: DraftFormat | None = None
        self.draft: DraftState | None = None
        self.settlement: SettlementEngine | None = None
        self.ratings: dict[str, int] = {}
        self.outcome: Outcome | None = None
        self.forced = False

        self._presenter = presenter
        self._rating_engine = rating_engine
        self._match_repo = match_repo
        self._locks = locks
        self._settings = settings
        self._rng = rng or random.Random()
        self._room: RoomHandle | None = None
        self._voice_rooms: list[RoomHandle] = []
        self._phase_task: asyncio.Task[None] | None = None
        self._mover_task: asyncio.Task[None] | None = None
        self._settled = asyncio.Event()
        self._steps: dict[MatchPhase, Callable[[], Awaitable[None]]] = {
            MatchPhase.CAPTAINS: self._captains_phase,
            MatchPhase.FORMAT: self._format_phase,
            MatchPhase.DRAFT: self._draft_phase,
            MatchPhase.SETTLEMENT: self._settlement_phase,
        }

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def room(self) -> RoomHandle | None:
        return self._room

    async def wait_settled(self) -> MatchRecord:
        await self._settled.wait()
        return self.record

    async def run(self) -> MatchRecord:
        try:
            try:
                await self._open()
            except Exception:
                logger.exception("Could not open %s; voiding the match", self.name)
                self._claim(Outcome.VOID)
            while self.outcome is None:
                self._phase_task = asyncio.create_task(self._steps[self.phase](), name=f"{self.name}-{self.phase}")
                try:
                    await self._phase_task
                except asyncio.CancelledError:
                    if self.outcome is None:
                        raise
                except Exception:
                    logger.exception("Phase %s of %s failed; voiding the match", self.phase, self.name)
                    await self._presenter.audit(f"⚠️ {self.name} failed during {self.phase}; voiding.")
                    self._claim(Outcome.VOID)
                finally:
                    self._phase_task = None
        except asyncio.CancelledError:
            if self.outcome is None:
                logger.warning("%s cancelled before settlement; releasing participants", self.name)
                self._locks.release_match(self.match_id)
            raise

        await self._finalize()
        await self._archive()
        return self.record

    async def force_terminate(self) -> bool:
        """Settle as void right now. Returns False when an outcome already stands."""
        if self.outcome is not None:
            return False
        # a report accepted by settlement stands even before the phase task resumes
        if self.settlement is not None and not self.settlement.force_void():
            return False
        self._claim(Outcome.VOID)
        self.forced = True
        logger.info("%s force-terminated during %s", self.name, self.phase)
        if self._phase_task is not None and not self._phase_task.done():
            self._phase_task.cancel()
        return True

    def _claim(self, outcome: Outcome) -> bool:
        if self.outcome is not None:
            return False
        self.outcome = outcome
        self.record.outcome = outcome
        return True

    async def _open(self) -> None:
        self._room = await self._presenter.create_room(RoomKind.TEXT, self.name, self.participants)
        await self._presenter.audit(f"🆕 Match channel created: **{self.name}**")
        try:
            self.ratings = {pid: rec.rating for pid, rec in self._rating_engine.load(self.participants).items()}
        except PersistenceError:
            logger.exception("Could not load ratings for %s; showing defaults", self.name)
            self.ratings = {pid: self._settings.rating.default_rating for pid in self.participants}
        self._save_record()

    async def _captains_phase(self) -> None:
        await self._presenter.audit("🔔 Starting captain vote")
        selector = CaptainSelector(self._presenter, self._room, timeout=self._settings.captain_vote_seconds, rng=self._rng)
        first, second = await selector.select(self.participants)
        await self._presenter.audit(f"🥳 Captains: <@{first}> & <@{second}>")

        duel = await self._duel().resolve(first, second, "first pick")
        self.captains = (duel.winner, duel.loser)
        await self._presenter.audit(f"🤜🤛 RPS winner (pick order): <@{duel.winner}> beat <@{duel.loser}>")
        self.phase = MatchPhase.FORMAT

    async def _format_phase(self) -> None:
        assert self.captains is not None
        await self._presenter.audit("🔔 Starting draft-type vote")
        selector = FormatSelector(self._presenter, self._room, self._duel(), timeout=self._settings.format_vote_seconds)
        self.draft_format = await selector.select(self.captains)
        self.record.draft_format = self.draft_format
        await self._presenter.audit(f"📋 Draft type: {self.draft_format}")
        self.phase = MatchPhase.DRAFT

    async def _draft_phase(self) -> None:
        assert self.captains is not None and self.draft_format is not None
        self.draft = DraftState(self.captains[0], self.captains[1], self.participants)
        engine = DraftEngine(
            self._presenter,
            self._room,
            self.draft,
            self.draft_format,
            pick_seconds=self._settings.pick_seconds,
            ratings=self.ratings,
        )
        await engine.run()
        self._sync_draft_record()
        await self._presenter.audit(
            f"✅ Draft complete: Team 1 [{', '.join(f'<@{p}>' for p in self.draft.team_a)}] "
            f"vs Team 2 [{', '.join(f'<@{p}>' for p in self.draft.team_b)}]"
        )
        await self._open_voice_rooms()
        self.phase = MatchPhase.SETTLEMENT

    async def _settlement_phase(self) -> None:
        assert self.captains is not None and self.draft is not None
        self.settlement = SettlementEngine(
            self._presenter,
            self._room,
            captains=self.captains,
            team_a=self.draft.team_a,
            team_b=self.draft.team_b,
            report_quorum=self._settings.report_quorum,
            void_quorum=self._settings.void_quorum,
        )
        outcome = await self.settlement.run()
        self._claim(outcome)

    def _duel(self) -> DuelResolver:
        return DuelResolver(self._presenter, timeout=self._settings.duel_seconds, room=self._room, rng=self._rng)

    def _sync_draft_record(self) -> None:
        if self.draft is None:
            return
        self.record.team_a = tuple(self.draft.team_a)
        self.record.team_b = tuple(self.draft.team_b)
        self.record.pick_log = tuple(self.draft.pick_log)

    async def _open_voice_rooms(self) -> None:
        assert self.draft is not None
        for label, roster in (("Team 1 VC", self.draft.team_a), ("Team 2 VC", self.draft.team_b)):
            self._voice_rooms.append(await self._presenter.create_room(RoomKind.VOICE, f"{self.name} — {label}", roster))
        self._mover_task = asyncio.create_task(self._move_after_delay(), name=f"{self.name}-mover")
        self._mover_task.add_done_callback(self._on_mover_done)

    def _on_mover_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Moving players for %s failed", self.name, exc_info=error)

    async def _move_after_delay(self) -> None:
        assert self.draft is not None
        delay = self._settings.move_delay_seconds
        await self._presenter.announce(
            self._room, f"⏳ Players will be moved to their voice channels automatically in {delay:g}s"
        )
        await asyncio.sleep(delay)
        for room, roster in zip(self._voice_rooms, (self.draft.team_a, self.draft.team_b), strict=True):
            for pid in roster:
                await self._presenter.move_to_room(pid, room)
        await self._presenter.announce(self._room, "🔊 Move complete.")

    async def _finalize(self) -> None:
        assert self.outcome is not None
        self.phase = MatchPhase.SETTLED
        if self._mover_task is not None:
            self._mover_task.cancel()
        self._sync_draft_record()
        self.record.forced = self.forced
        self.record.settled_at = datetime.now(UTC)

        deltas = {pid: 0 for pid in self.participants}
        if self.outcome is not Outcome.VOID:
            try:
                deltas.update(self._rating_engine.apply(self.outcome, self.record.team_a, self.record.team_b))
            except PersistenceError as e:
                logger.exception("Rating update failed for %s", self.name)
                self.record.rating_error = str(e)
                await self._presenter.audit(f"⚠️ Error updating ratings for {self.name}: {e}")
        self.record.rating_deltas = deltas

        self._locks.release_match(self.match_id)
        self._save_record()
        await self._announce_result()
        self._settled.set()

    async def _announce_result(self) -> None:
        assert self.outcome is not None
        rating_changed = self.outcome is not Outcome.VOID and self.record.rating_error is None
        lines = [
            f"📝 **{self.name} — Final Summary**",
            "🟥 Team 1: " + (", ".join(f"<@{p}>" for p in self.record.team_a) or "—"),
            "🟦 Team 2: " + (", ".join(f"<@{p}>" for p in self.record.team_b) or "—"),
            f"🏁 Outcome: {_OUTCOME_LABELS[self.outcome]}" + (" (force-ended)" if self.forced else ""),
        ]
        if rating_changed:
            lines.append("📊 Rating changes:")
            lines.extend(f"<@{pid}>: {_signed(d)}" for pid, d in self.record.rating_deltas.items())
        else:
            lines.append("📊 No rating change.")
        summary = "\n".join(lines)
        await self._presenter.announce(self._room, summary)
        await self._presenter.audit(summary)

        for pid, delta in self.record.rating_deltas.items():
            if rating_changed:
                await self._presenter.notify(pid, f"Your rating changed by {_signed(delta)} in **{self.name}**.")
            else:
                await self._presenter.notify(pid, f"No rating change in **{self.name}**.")

    async def _archive(self) -> None:
        await asyncio.sleep(self._settings.archive_grace_seconds)
        for room in (self._room, *self._voice_rooms):
            if room is not None:
                await self._presenter.delete_room(room)
        self.phase = MatchPhase.ARCHIVED
        logger.info("%s archived", self.name)

    def _save_record(self) -> None:
        try:
            self._match_repo.save(self.record)
        except PersistenceError:
            logger.exception("Could not store record for %s", self.name)
