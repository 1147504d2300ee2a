import pytest

from pickup_match_manager.config import RatingSettings
from pickup_match_manager.domain.match_record import Outcome
from pickup_match_manager.domain.rating_record import RatingRecord
from pickup_match_manager.engine.rating import RatingEngine, expected_score, team_deltas
from pickup_match_manager.exceptions import PersistenceError
from tests.fakes.repos import FakeRatingRepo

TEAM_A = ["a1", "a2", "a3", "a4"]
TEAM_B = ["b1", "b2", "b3", "b4"]


def test_expected_score_even_match() -> None:
    assert expected_score(100, 100) == pytest.approx(0.5)


def test_team_deltas_are_zero_sum_for_even_teams() -> None:
    delta_a, delta_b = team_deltas(100, 100, Outcome.TEAM_A_WIN, 32)
    assert delta_a == pytest.approx(16)
    assert delta_b == pytest.approx(-16)


def test_underdog_gains_more_than_favourite() -> None:
    underdog_win, _ = team_deltas(80, 120, Outcome.TEAM_A_WIN, 32)
    favourite_win, _ = team_deltas(120, 80, Outcome.TEAM_A_WIN, 32)
    assert underdog_win > 16 > favourite_win > 0


def test_void_deltas_are_zero() -> None:
    assert team_deltas(80, 120, Outcome.VOID, 32) == (0.0, 0.0)


class TestRatingEngine:
    def test_fresh_players_even_win(self) -> None:
        repo = FakeRatingRepo()
        deltas = RatingEngine(repo).apply(Outcome.TEAM_A_WIN, TEAM_A, TEAM_B)

        assert all(deltas[p] == 16 for p in TEAM_A)
        assert all(deltas[p] == -16 for p in TEAM_B)
        assert repo.get("a1") == RatingRecord("a1", rating=116, wins=1, losses=0, streak=1, last_results=("W",))
        assert repo.get("b1") == RatingRecord("b1", rating=84, wins=0, losses=1, streak=-1, last_results=("L",))

    def test_all_records_written_in_one_batch(self) -> None:
        repo = FakeRatingRepo()
        RatingEngine(repo).apply(Outcome.TEAM_B_WIN, TEAM_A, TEAM_B)
        assert len(repo.batches) == 1
        assert {r.participant_id for r in repo.batches[0]} == set(TEAM_A + TEAM_B)

    def test_void_writes_nothing(self) -> None:
        existing = RatingRecord("a1", rating=130, wins=3, losses=1, streak=2, last_results=("W", "W"))
        repo = FakeRatingRepo([existing])

        deltas = RatingEngine(repo).apply(Outcome.VOID, TEAM_A, TEAM_B)

        assert set(deltas.values()) == {0}
        assert repo.batches == []
        assert repo.get("a1") == existing

    def test_streak_flips_and_recent_results_capped(self) -> None:
        history = tuple("W" * 10)
        repo = FakeRatingRepo([RatingRecord("a1", rating=100, wins=10, streak=10, last_results=history)])

        RatingEngine(repo).apply(Outcome.TEAM_B_WIN, TEAM_A, TEAM_B)

        record = repo.get("a1")
        assert record is not None
        assert record.streak == -1
        assert record.losses == 1
        assert record.last_results[0] == "L"
        assert len(record.last_results) == 10

    def test_losing_streak_extends(self) -> None:
        repo = FakeRatingRepo([RatingRecord("b1", rating=100, losses=2, streak=-2, last_results=("L", "L"))])
        RatingEngine(repo).apply(Outcome.TEAM_A_WIN, TEAM_A, TEAM_B)
        record = repo.get("b1")
        assert record is not None
        assert record.streak == -3

    def test_uses_team_averages(self) -> None:
        strong = [RatingRecord(p, rating=150) for p in TEAM_A]
        repo = FakeRatingRepo(strong)

        deltas = RatingEngine(repo).apply(Outcome.TEAM_B_WIN, TEAM_A, TEAM_B)

        assert deltas["b1"] > 16
        assert deltas["a1"] < -16
        assert deltas["b1"] == -deltas["a1"]

    def test_custom_k_factor_and_default_rating(self) -> None:
        repo = FakeRatingRepo()
        engine = RatingEngine(repo, RatingSettings(k_factor=10, default_rating=1000))
        deltas = engine.apply(Outcome.TEAM_A_WIN, TEAM_A, TEAM_B)
        assert deltas["a1"] == 5
        record = repo.get("a1")
        assert record is not None
        assert record.rating == 1005

    def test_write_failure_propagates(self) -> None:
        repo = FakeRatingRepo(fail_writes=True)
        with pytest.raises(PersistenceError):
            RatingEngine(repo).apply(Outcome.TEAM_A_WIN, TEAM_A, TEAM_B)

    def test_load_fills_defaults(self) -> None:
        repo = FakeRatingRepo([RatingRecord("a1", rating=120)])
        loaded = RatingEngine(repo).load(["a1", "new"])
        assert loaded["a1"].rating == 120
        assert loaded["new"].rating == 100
