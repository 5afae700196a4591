"""
Database migration utilities.

Uses Alembic as the authoritative schema manager for the key store.
The baseline migration under alembic/versions is the single source of truth
for the `keys` table.

DB path resolution:
  1. DATABASE_URL env var  (file-backed sqlite:/// URL; other backends are rejected)
  2. KEYSERVER_DB_PATH env var  (SQLite file path)
  3. Default: ./totally_not_my_privateKeys.db (SQLite)

Alembic and the runtime store always resolve to the same file.
"""

import logging
import os
import sqlite3
import stat
from pathlib import Path

from sqlalchemy.engine import make_url

logger = logging.getLogger(__name__)

DEFAULT_DB_FILENAME = "totally_not_my_privateKeys.db"


def sqlite_path_from_url(database_url: str) -> Path:
    """
    Extract the SQLite file path from a SQLAlchemy URL.

    Raises:
        ValueError: If the URL is not a file-backed SQLite URL
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        raise ValueError(
            f"DATABASE_URL must use sqlite, got backend {url.get_backend_name()!r}"
        )
    if not url.database or url.database == ":memory:":
        raise ValueError("DATABASE_URL must name a SQLite database file")

    return Path(url.database)


def get_db_path() -> Path:
    """
    Get the path to the SQLite database file.

    Returns the file named by DATABASE_URL, then KEYSERVER_DB_PATH, then the
    default file name in the current working directory.
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return sqlite_path_from_url(database_url)

    db_path_env = os.getenv("KEYSERVER_DB_PATH")
    if db_path_env:
        return Path(db_path_env)

    return Path.cwd() / DEFAULT_DB_FILENAME


def get_database_url() -> str:
    """
    Return the SQLAlchemy database URL for Alembic.

    Priority:
    1. DATABASE_URL environment variable (validated as sqlite)
    2. get_db_path() as a SQLite file path
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        sqlite_path_from_url(database_url)
        return database_url

    return f"sqlite:///{get_db_path()}"


def ensure_db_permissions_secure(db_path: Path):
    """
    Restrict the database file to owner read/write (0600).

    The file holds unencrypted private keys.

    Raises:
        PermissionError: If unable to set secure permissions
    """
    if not db_path.exists():
        return

    try:
        os.chmod(db_path, stat.S_IRUSR | stat.S_IWUSR)
    except OSError as e:
        raise PermissionError(f"Failed to set secure permissions on database: {e}")


def enable_wal_mode(conn: sqlite3.Connection):
    """Switch the SQLite journal to Write-Ahead Logging."""
    conn.execute("PRAGMA journal_mode=WAL")
    conn.commit()


def ensure_schema():
    """
    Bring the database schema to the latest Alembic revision.

    Runs ``alembic upgrade head`` in-process, then applies WAL mode and
    secure file permissions to the SQLite file. Idempotent.
    """
    database_url = get_database_url()
    db_path = get_db_path()

    # __file__ is keyserver/app/db/migrate.py, repo root is 3 levels up.
    repo_root = Path(__file__).parent.parent.parent.parent
    alembic_ini = repo_root / "alembic.ini"

    from alembic.config import Config
    from alembic import command as alembic_command

    alembic_cfg = Config(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(repo_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    # Keep application loggers intact; env.py only calls fileConfig from the CLI.
    alembic_cfg.attributes["configure_logger"] = False

    alembic_command.upgrade(alembic_cfg, "head")

    # Harden the same file the runtime store opens.
    conn = sqlite3.connect(db_path)
    try:
        enable_wal_mode(conn)
    finally:
        conn.close()
    ensure_db_permissions_secure(db_path)

    logger.info("Key store schema ready at %s", db_path)


def get_connection() -> sqlite3.Connection:
    """
    Get a SQLite database connection.

    Returns:
        SQLite connection with Row factory enabled.
    """
    db_path = get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn
