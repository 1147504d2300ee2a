import logging
import sqlite3
from pathlib import Path

from pickup_match_manager.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_MIGRATIONS_DIR = Path(__file__).parent / "migrations"
_MEMORY = ":memory:"


def create_connection(
    path: str | Path,
    *,
    check_same_thread: bool = True,
    migrations_dir: Path | None = None,
) -> sqlite3.Connection:
    """Open the match database with rows addressable by column name and the schema brought up to date.

    File databases get their parent directory created and WAL journaling;
    ``:memory:`` is accepted for tests and throwaway runs.

    Raises:
        PersistenceError: If a migration fails; that migration is rolled back.
    """
    on_disk = str(path) != _MEMORY
    if on_disk:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    if on_disk:
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    applied = apply_migrations(conn, migrations_dir or _MIGRATIONS_DIR)
    if applied:
        logger.info("Applied schema migrations %s to %s", applied, path)
    return conn


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Highest applied migration number, 0 for a database that has never been migrated."""
    try:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    except sqlite3.OperationalError:
        return 0
    return row[0] if row and row[0] is not None else 0


def _pending(migrations_dir: Path, current: int) -> list[tuple[int, Path]]:
    numbered = sorted((int(f.stem.split("_", 1)[0]), f) for f in migrations_dir.glob("*.sql"))
    return [(version, f) for version, f in numbered if version > current]


def apply_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> list[int]:
    """Run every ``NNN_name.sql`` newer than the schema version, each in its own transaction.

    Returns the migration numbers that were applied.
    """
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_version ("
        "    version INTEGER PRIMARY KEY,"
        "    applied_at TEXT NOT NULL DEFAULT (datetime('now'))"
        ")"
    )
    applied: list[int] = []
    for version, migration in _pending(migrations_dir, get_schema_version(conn)):
        statements = [s.strip() for s in migration.read_text().split(";") if s.strip()]
        # autocommit mode so the DDL and the version row share one explicit transaction
        isolation = conn.isolation_level
        conn.isolation_level = None
        try:
            conn.execute("BEGIN")
            for statement in statements:
                conn.execute(statement)
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            raise PersistenceError(f"Migration {migration.name} failed: {e}") from e
        finally:
            conn.isolation_level = isolation
        applied.append(version)
    return applied
