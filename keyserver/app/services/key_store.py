"""
Key store for the key server.

Durable mapping from an integer key identifier to PEM key material and an
expiry instant. The store holds no business policy: validity is a query-time
predicate (expires_at > now) and records are never deleted implicitly.

Two implementations share the KeyStore contract:
- SQLiteKeyStore: production store on top of the Alembic-managed `keys` table
- InMemoryKeyStore: process-local store used as a substitutable fake in tests
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional

from keyserver.app.db.migrate import get_connection
from keyserver.app.models.keys import KeyRecord
from keyserver.app.services.errors import StorageError

logger = logging.getLogger(__name__)


def latest_expiring(records: Iterable[KeyRecord]) -> Optional[KeyRecord]:
    """
    Return the record with the greatest expires_at, or None for no records.

    Ties on expires_at go to the higher id (the most recently inserted key).
    """
    best = None
    for record in records:
        if best is None or (record.expires_at, record.id) > (best.expires_at, best.id):
            best = record
    return best


class KeyStore(ABC):
    """Contract shared by every key store implementation."""

    @abstractmethod
    def insert(self, material: bytes, expires_at: int) -> int:
        """Persist a new record and return its assigned identifier."""

    @abstractmethod
    def all_valid_at(self, now: int) -> List[KeyRecord]:
        """Return every record with expires_at > now, in no particular order."""

    def most_recent_valid_at(self, now: int) -> Optional[KeyRecord]:
        """
        Return the valid record with the greatest expires_at.

        Returns:
            KeyRecord, or None if no record satisfies expires_at > now
        """
        return latest_expiring(self.all_valid_at(now))


class SQLiteKeyStore(KeyStore):
    """
    SQLite-backed key store.

    Opens one connection per operation and closes it before returning, so the
    store can be shared across requests and worker threads. Identifier
    assignment is serialized by an insert lock on top of SQLite AUTOINCREMENT.
    """

    def __init__(self, connection_factory: Callable[[], sqlite3.Connection] = get_connection):
        self._connect = connection_factory
        self._insert_lock = threading.Lock()

    def insert(self, material: bytes, expires_at: int) -> int:
        with self._insert_lock:
            try:
                conn = self._connect()
                try:
                    cursor = conn.execute(
                        "INSERT INTO keys (key, exp) VALUES (?, ?)",
                        (sqlite3.Binary(material), int(expires_at)),
                    )
                    conn.commit()
                    return cursor.lastrowid
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to insert key: {e}", operation="insert_key") from e

    def all_valid_at(self, now: int) -> List[KeyRecord]:
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(
                    "SELECT kid, key, exp FROM keys WHERE exp > ?",
                    (int(now),),
                )
                rows = cursor.fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read keys: {e}", operation="read_keys", at=now) from e

        return [
            KeyRecord(id=row["kid"], material=bytes(row["key"]), expires_at=row["exp"])
            for row in rows
        ]


class InMemoryKeyStore(KeyStore):
    """Dictionary-backed key store with the same identifier semantics as SQLite."""

    def __init__(self):
        self._records: Dict[int, KeyRecord] = {}
        self._last_id = 0
        self._lock = threading.Lock()

    def insert(self, material: bytes, expires_at: int) -> int:
        with self._lock:
            self._last_id += 1
            record = KeyRecord(id=self._last_id, material=material, expires_at=int(expires_at))
            self._records[record.id] = record
            return record.id

    def all_valid_at(self, now: int) -> List[KeyRecord]:
        with self._lock:
            return [record for record in self._records.values() if record.is_valid_at(now)]

    def __len__(self) -> int:
        return len(self._records)
