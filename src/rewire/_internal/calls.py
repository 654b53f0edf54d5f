from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def accepted_positional_count(func: Callable[..., Any], offered: int) -> int:
    """Return how many of ``offered`` leading positional arguments ``func`` takes.

    Factories, extenders and callbacks may be written as ``lambda: ...``,
    ``lambda container: ...`` or ``lambda container, params: ...``; only the
    arguments a callable declares are passed. Callables without an
    inspectable signature receive every argument.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return offered

    count = 0
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return offered
        if param.kind in _POSITIONAL_KINDS:
            count += 1
    return min(count, offered)


def call_with_supported_args(func: Callable[..., Any], *args: Any) -> Any:
    return func(*args[: accepted_positional_count(func, len(args))])


__all__ = ["accepted_positional_count", "call_with_supported_args"]
