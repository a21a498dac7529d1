from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for the proxy type synthesis cache.

    Use these values for the ``lock_mode`` option of ``ProxySynthesizer``.
    Reads of an already cached proxy type never take a lock; the mode only
    controls how first-time synthesis for a ``(contract, decorator)`` key is
    serialized.

    Prefer ``NONE`` only when a synthesizer is confined to one thread.
    """

    THREAD = "thread"
    """Guard first-time synthesis with ``threading.Lock``."""

    NONE = "none"
    """Disable locking around cache writes."""
