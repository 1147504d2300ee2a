import json
import sqlite3
from datetime import datetime

from pickup_match_manager.domain.match_record import DraftFormat, MatchRecord, Outcome, PickLogEntry
from pickup_match_manager.exceptions import PersistenceError

_MATCH_COUNTER = "match"


class SqliteMatchRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def next_sequence(self) -> int:
        """Increment and return the durable match counter; numbers are never handed out twice."""
        try:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO counter (name, value) VALUES (?, 1) "
                    "ON CONFLICT(name) DO UPDATE SET value = value + 1",
                    (_MATCH_COUNTER,),
                )
                row = self._conn.execute("SELECT value FROM counter WHERE name = ?", (_MATCH_COUNTER,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to advance match counter: {e}") from e
        return row["value"]

    def save(self, record: MatchRecord) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    """INSERT INTO match_record (match_id, participants, team_a, team_b, draft_format,
                                                 pick_log, status, forced, rating_deltas, rating_error,
                                                 created_at, settled_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                       ON CONFLICT(match_id) DO UPDATE SET
                           team_a=excluded.team_a,
                           team_b=excluded.team_b,
                           draft_format=excluded.draft_format,
                           pick_log=excluded.pick_log,
                           status=excluded.status,
                           forced=excluded.forced,
                           rating_deltas=excluded.rating_deltas,
                           rating_error=excluded.rating_error,
                           settled_at=excluded.settled_at""",
                    (
                        record.match_id,
                        json.dumps(list(record.participants)),
                        json.dumps(list(record.team_a)),
                        json.dumps(list(record.team_b)),
                        str(record.draft_format) if record.draft_format else None,
                        json.dumps(
                            [
                                {"turn": p.turn, "picker": p.picker, "pickee": p.pickee, "auto": p.auto}
                                for p in record.pick_log
                            ]
                        ),
                        record.status,
                        int(record.forced),
                        json.dumps(record.rating_deltas),
                        record.rating_error,
                        record.created_at.isoformat(),
                        record.settled_at.isoformat() if record.settled_at else None,
                    ),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save match {record.match_id}: {e}") from e

    def get(self, match_id: int) -> MatchRecord | None:
        row = self._conn.execute("SELECT * FROM match_record WHERE match_id = ?", (match_id,)).fetchone()
        return self._row_to_record(row) if row else None

    def list_recent(self, limit: int = 10) -> list[MatchRecord]:
        rows = self._conn.execute("SELECT * FROM match_record ORDER BY match_id DESC LIMIT ?", (limit,)).fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> MatchRecord:
        status = row["status"]
        return MatchRecord(
            match_id=row["match_id"],
            participants=tuple(json.loads(row["participants"])),
            created_at=datetime.fromisoformat(row["created_at"]),
            team_a=tuple(json.loads(row["team_a"])),
            team_b=tuple(json.loads(row["team_b"])),
            draft_format=DraftFormat(row["draft_format"]) if row["draft_format"] else None,
            pick_log=tuple(PickLogEntry(**entry) for entry in json.loads(row["pick_log"])),
            outcome=None if status == "ready" else Outcome(status),
            forced=bool(row["forced"]),
            rating_deltas=json.loads(row["rating_deltas"]),
            rating_error=row["rating_error"],
            settled_at=datetime.fromisoformat(row["settled_at"]) if row["settled_at"] else None,
        )
