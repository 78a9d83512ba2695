# Overview: Row-locking helper for read-modify-write sequences.

from __future__ import annotations


def lock_for_update(query):
    """
    Apply row-level locking for stock and status updates.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()
