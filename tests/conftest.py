"""Shared pytest fixtures for test modules."""

from __future__ import annotations

import os
import random
from typing import TYPE_CHECKING

import pytest

from pickup_match_manager.config import MatchSettings
from tests.fakes.presenter import FakePresenter
from tests.fakes.repos import FakeMatchRepo, FakeRatingRepo

if TYPE_CHECKING:
    from collections.abc import Generator

POOL = tuple(str(n) for n in range(101, 109))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove PICKUP__ and DISCORD_ env vars so tests are isolated from the developer shell."""
    for key in list(os.environ):
        if key.startswith(("PICKUP__", "DISCORD_")):
            monkeypatch.delenv(key)


@pytest.fixture
def pool() -> tuple[str, ...]:
    """Eight participant ids, ``101`` through ``108``."""
    return POOL


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def presenter() -> FakePresenter:
    return FakePresenter()


@pytest.fixture
def rating_repo() -> FakeRatingRepo:
    return FakeRatingRepo()


@pytest.fixture
def match_repo() -> FakeMatchRepo:
    return FakeMatchRepo()


@pytest.fixture
def fast_settings() -> Generator[MatchSettings]:
    """Match settings with deadlines short enough that timeouts resolve within a test.

    Usage:
        async def test_something(fast_settings: MatchSettings) -> None:
            manager = MatchManager(presenter, rating_repo, match_repo, fast_settings)
    """
    yield MatchSettings(
        captain_vote_seconds=0.05,
        format_vote_seconds=0.05,
        duel_seconds=0.05,
        pick_seconds=0.05,
        move_delay_seconds=0,
        archive_grace_seconds=0,
    )
