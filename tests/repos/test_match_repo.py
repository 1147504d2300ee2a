import sqlite3
from datetime import UTC, datetime

from pickup_match_manager.domain.match_record import DraftFormat, MatchRecord, Outcome, PickLogEntry
from pickup_match_manager.repos.match_repo import SqliteMatchRepo

PARTICIPANTS = tuple(f"p{n}" for n in range(1, 9))


def _record(match_id: int = 1) -> MatchRecord:
    return MatchRecord(
        match_id=match_id,
        participants=PARTICIPANTS,
        created_at=datetime(2025, 3, 1, 20, 0, tzinfo=UTC),
    )


class TestSqliteMatchRepo:
    def test_next_sequence_increments(self, conn: sqlite3.Connection) -> None:
        repo = SqliteMatchRepo(conn)
        assert [repo.next_sequence() for _ in range(3)] == [1, 2, 3]

    def test_sequence_survives_new_repo(self, conn: sqlite3.Connection) -> None:
        SqliteMatchRepo(conn).next_sequence()
        assert SqliteMatchRepo(conn).next_sequence() == 2

    def test_save_ready_record(self, conn: sqlite3.Connection) -> None:
        repo = SqliteMatchRepo(conn)
        repo.save(_record())
        fetched = repo.get(1)
        assert fetched is not None
        assert fetched.status == "ready"
        assert fetched.outcome is None
        assert fetched.participants == PARTICIPANTS
        assert fetched.created_at == datetime(2025, 3, 1, 20, 0, tzinfo=UTC)

    def test_save_settled_record_updates_row(self, conn: sqlite3.Connection) -> None:
        repo = SqliteMatchRepo(conn)
        record = _record()
        repo.save(record)

        record.team_a = ("p1", "p3", "p5", "p7")
        record.team_b = ("p2", "p4", "p6", "p8")
        record.draft_format = DraftFormat.SNAKE
        record.pick_log = (PickLogEntry(turn=1, picker="p1", pickee="p3", auto=False),)
        record.outcome = Outcome.TEAM_B_WIN
        record.forced = False
        record.rating_deltas = {"p1": -16, "p2": 16}
        record.settled_at = datetime(2025, 3, 1, 20, 40, tzinfo=UTC)
        repo.save(record)

        fetched = repo.get(1)
        assert fetched == record
        assert fetched is not None and fetched.status == "team_b_win"
        assert conn.execute("SELECT COUNT(*) FROM match_record").fetchone()[0] == 1

    def test_forced_void_and_rating_error(self, conn: sqlite3.Connection) -> None:
        repo = SqliteMatchRepo(conn)
        record = _record()
        record.outcome = Outcome.VOID
        record.forced = True
        record.rating_error = "disk full"
        repo.save(record)
        fetched = repo.get(1)
        assert fetched is not None
        assert fetched.forced
        assert fetched.rating_error == "disk full"

    def test_get_missing(self, conn: sqlite3.Connection) -> None:
        assert SqliteMatchRepo(conn).get(42) is None

    def test_list_recent_newest_first(self, conn: sqlite3.Connection) -> None:
        repo = SqliteMatchRepo(conn)
        for match_id in (1, 2, 3):
            repo.save(_record(match_id))
        assert [r.match_id for r in repo.list_recent(2)] == [3, 2]
