"""Boundary between the match engine and whatever chat platform renders it.

The engine never talks to Discord directly. It opens prompts, announces
progress and moves people between rooms through a ``Presenter``; the Discord
adapter in ``pickup_match_manager.discord.presenter`` is the production
implementation and ``tests/fakes/presenter.py`` the scripted one.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pickup_match_manager.engine.ballot import SubmitResult


class RoomKind(StrEnum):
    TEXT = "text"
    VOICE = "voice"


@dataclass(frozen=True)
class RoomHandle:
    id: int | str
    kind: RoomKind
    name: str


@dataclass(frozen=True)
class PromptOption:
    value: str
    label: str


@dataclass(frozen=True)
class Prompt:
    """A question put to a set of voters.

    Attributes:
        purpose: Short machine-readable tag (``captain-vote``, ``draft-pick`` ...).
        title: Heading shown to participants.
        voters: Participants allowed to answer; others are shown the prompt but rejected.
        options: Choices, rendered as buttons.
        timeout: Seconds the prompt stays open, or None for no deadline.
        private: Deliver to each voter directly instead of posting in the room.
        description: Body text (rosters, pick log, time remaining).
    """

    purpose: str
    title: str
    voters: frozenset[str]
    options: tuple[PromptOption, ...]
    timeout: float | None
    private: bool = False
    description: str = ""
    metadata: dict[str, str] = field(default_factory=dict)


type ChoiceHandler = Callable[[str, str], SubmitResult]


class PromptHandle(Protocol):
    async def close(self) -> None: ...


class Presenter(Protocol):
    async def display_name(self, participant_id: str) -> str: ...

    async def create_room(self, kind: RoomKind, name: str, participants: Sequence[str]) -> RoomHandle: ...

    async def delete_room(self, room: RoomHandle) -> None: ...

    async def open_prompt(self, room: RoomHandle | None, prompt: Prompt, on_choice: ChoiceHandler) -> PromptHandle: ...

    async def announce(self, room: RoomHandle | None, message: str) -> None: ...

    async def notify(self, participant_id: str, message: str) -> None: ...

    async def move_to_room(self, participant_id: str, room: RoomHandle) -> None: ...

    async def audit(self, message: str) -> None: ...
