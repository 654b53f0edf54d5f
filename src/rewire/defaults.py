from typing import Any

from rewire.lock_mode import LockMode

PRIMITIVE_TYPES: frozenset[Any] = frozenset(
    {
        int,
        str,
        float,
        bool,
        bytes,
        complex,
        list,
        dict,
        set,
        frozenset,
        tuple,
        type(None),
        object,
        Any,
    },
)
"""Annotations that never name a service and are resolved as primitives."""

CONTEXTUAL_PRIMITIVE_PREFIX = "$"

CONFIG_KEY = "config"
"""Key under which ``give_config`` looks up the configuration repository."""

DEFAULT_LOCK_MODE = LockMode.THREAD
DEFAULT_DETECT_CIRCULAR = True
