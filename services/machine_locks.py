"""
Krishi Drishti — Per-machine serialization.

Readings for the same machine are processed one at a time within a
process so that the read-decide-write section of ingestion never
interleaves. Cross-process safety comes from the conditional close and
the partial unique index on open sessions.
"""

from __future__ import annotations

import asyncio
import weakref

_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def machine_lock(machine_id: str) -> asyncio.Lock:
    """Return the lock for ``machine_id``; it lives while anyone holds it."""
    lock = _locks.get(machine_id)
    if lock is None:
        lock = asyncio.Lock()
        _locks[machine_id] = lock
    return lock
