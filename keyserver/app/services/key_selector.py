"""
Signing key selection.

Only keys with expires_at > now are eligible. There is no fallback to an
expired key: when nothing qualifies the caller gets None and decides how to
fail.
"""

from typing import Optional

from keyserver.app.models.keys import KeyRecord
from keyserver.app.services.key_store import KeyStore


def select_signing_key(store: KeyStore, now: int) -> Optional[KeyRecord]:
    """Pick the valid key with the latest expiry, or None."""
    record = store.most_recent_valid_at(now)
    if record is not None and not record.is_valid_at(now):
        # A store must never hand back an expired record here.
        return None
    return record
