import sqlite3
from collections.abc import Sequence

from pickup_match_manager.domain.rating_record import RatingRecord
from pickup_match_manager.exceptions import PersistenceError

_RESULTS_SEPARATOR = ","


class SqliteRatingRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, participant_id: str) -> RatingRecord | None:
        try:
            row = self._conn.execute(
                "SELECT * FROM rating_record WHERE participant_id = ?", (participant_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read rating for {participant_id}: {e}") from e
        return self._row_to_record(row) if row else None

    def get_many(self, participant_ids: Sequence[str]) -> dict[str, RatingRecord]:
        if not participant_ids:
            return {}
        placeholders = ",".join("?" * len(participant_ids))
        try:
            rows = self._conn.execute(
                f"SELECT * FROM rating_record WHERE participant_id IN ({placeholders})",
                list(participant_ids),
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read ratings: {e}") from e
        return {row["participant_id"]: self._row_to_record(row) for row in rows}

    def write_batch(self, records: Sequence[RatingRecord]) -> None:
        """Upsert every record in one transaction; either all land or none do."""
        try:
            with self._conn:
                self._conn.executemany(
                    """INSERT INTO rating_record (participant_id, rating, wins, losses, streak, last_results)
                       VALUES (?, ?, ?, ?, ?, ?)
                       ON CONFLICT(participant_id) DO UPDATE SET
                           rating=excluded.rating,
                           wins=excluded.wins,
                           losses=excluded.losses,
                           streak=excluded.streak,
                           last_results=excluded.last_results""",
                    [
                        (
                            r.participant_id,
                            r.rating,
                            r.wins,
                            r.losses,
                            r.streak,
                            _RESULTS_SEPARATOR.join(r.last_results),
                        )
                        for r in records
                    ],
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to write {len(records)} rating records: {e}") from e

    def top(self, limit: int = 10) -> list[RatingRecord]:
        try:
            rows = self._conn.execute(
                "SELECT * FROM rating_record ORDER BY rating DESC, wins DESC, participant_id LIMIT ?",
                (limit,),
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read leaderboard: {e}") from e
        return [self._row_to_record(row) for row in rows]

    def reset_all(self) -> int:
        try:
            with self._conn:
                cursor = self._conn.execute(
                    "UPDATE rating_record SET rating = 0, wins = 0, losses = 0, streak = 0, last_results = ''"
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to reset ratings: {e}") from e
        return cursor.rowcount

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> RatingRecord:
        raw_results = row["last_results"]
        return RatingRecord(
            participant_id=row["participant_id"],
            rating=row["rating"],
            wins=row["wins"],
            losses=row["losses"],
            streak=row["streak"],
            last_results=tuple(raw_results.split(_RESULTS_SEPARATOR)) if raw_results else (),
        )
