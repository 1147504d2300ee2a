import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from pickup_match_manager.config import MatchSettings, create_config, load_match_settings, resolve_db_path
from pickup_match_manager.db.connection import create_connection
from pickup_match_manager.repos.match_repo import SqliteMatchRepo
from pickup_match_manager.repos.rating_repo import SqliteRatingRepo
from pickup_match_manager.services.admin import AdminService


@dataclass(frozen=True)
class StorageContext:
    conn: sqlite3.Connection
    settings: MatchSettings
    rating_repo: SqliteRatingRepo
    match_repo: SqliteMatchRepo
    admin: AdminService


@contextmanager
def build_storage_context(config_path: str = "config.yaml") -> Iterator[StorageContext]:
    """Composition-root context manager: loads config, opens DB, wires repos and admin service, closes DB."""
    cfg = create_config(yaml_path=config_path)
    settings = load_match_settings(cfg)
    conn = create_connection(resolve_db_path(cfg))
    try:
        rating_repo = SqliteRatingRepo(conn)
        yield StorageContext(
            conn=conn,
            settings=settings,
            rating_repo=rating_repo,
            match_repo=SqliteMatchRepo(conn),
            admin=AdminService(rating_repo, settings.rating),
        )
    finally:
        conn.close()
