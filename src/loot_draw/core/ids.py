"""Canonical ID and timestamp factories for the loot engine.

All modules import from here instead of defining local _uuid()/_now() copies.

ID Categories
-------------
1. Event IDs: UUID v4 strings, assigned once when an event is created.
2. Entity IDs: caller-assigned opaque strings (account_id, item_id).

Timestamp Rule
--------------
All timestamps are ``datetime`` with ``tzinfo=timezone.utc``, never naive.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Generate a new UUID v4 string.  Use for all event IDs."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)
