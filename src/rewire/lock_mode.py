from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for registry writes and shared-instance caching.

    Pass one of these values as the container-level ``lock_mode``. Resolution
    state (the build stack and parameter overrides) is always context-local,
    so the lock mode only affects the shared registry and the instance cache.
    """

    THREAD = "thread"
    """Guard registry writes with a ``threading.RLock`` and shared-instance
    creation with a per-key ``threading.RLock``."""

    NONE = "none"
    """Disable locking for containers used from a single thread."""
