"""
Pytest configuration for key server tests.

The database path is set at module level (not in pytest_configure) so it is
in place before any keyserver module is imported during collection. Tests
that touch SQLite use the function-scoped `test_db` fixture, which points the
store at a fresh temporary file.
"""

import os
import shutil
import tempfile

_SESSION_DB_DIR = tempfile.mkdtemp(prefix="keyserver-tests-")
os.environ["KEYSERVER_DB_PATH"] = os.path.join(_SESSION_DB_DIR, "session.db")
os.environ.pop("DATABASE_URL", None)

import pytest

from keyserver.app.services.clock import now_epoch
from keyserver.app.services.key_codec import export_private
from keyserver.app.services.key_generator import generate
from keyserver.app.services.key_store import InMemoryKeyStore, SQLiteKeyStore


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_SESSION_DB_DIR, ignore_errors=True)


@pytest.fixture(scope="session")
def pem_pool():
    """Four pre-generated PEM private keys shared by the session (RSA keygen is slow)."""
    return [export_private(generate()) for _ in range(4)]


@pytest.fixture(scope="function")
def test_db(tmp_path, monkeypatch):
    """Create a migrated temporary SQLite database and point the store at it."""
    import keyserver.app.db.migrate as migrate_module

    temp_db_path = tmp_path / "test.db"
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(migrate_module, "get_db_path", lambda: temp_db_path)

    migrate_module.ensure_schema()

    yield temp_db_path


@pytest.fixture(scope="function")
def sqlite_store(test_db):
    return SQLiteKeyStore()


@pytest.fixture(scope="function")
def memory_store():
    return InMemoryKeyStore()


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request):
    """Run a test against both key store implementations."""
    if request.param == "memory":
        return InMemoryKeyStore()
    return request.getfixturevalue("sqlite_store")


@pytest.fixture(scope="function")
def now():
    """Fixed 'now' close to real time so issued tokens pass exp checks."""
    return now_epoch()
