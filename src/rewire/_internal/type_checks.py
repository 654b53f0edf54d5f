from __future__ import annotations

import inspect
import types
from typing import Any, TypeGuard

from rewire.defaults import PRIMITIVE_TYPES


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_factory_callable(candidate: object) -> bool:
    """Return true when candidate should be invoked rather than reflected over.

    Classes are callable too, but they are bare types that the builder
    constructs from their ``__init__`` signature.
    """
    return callable(candidate) and not is_runtime_class(candidate)


def is_primitive_class(candidate: object) -> bool:
    return candidate in PRIMITIVE_TYPES or (
        is_runtime_class(candidate) and candidate.__module__ == "builtins"
    )


def is_instantiable(candidate: type[Any]) -> bool:
    if inspect.isabstract(candidate):
        return False
    return not getattr(candidate, "_is_protocol", False)


def describe_key(key: Any) -> str:
    """Render a key for error messages and logs."""
    if is_runtime_class(key):
        if key.__module__ == "builtins":
            return key.__qualname__
        return f"{key.__module__}.{key.__qualname__}"
    if isinstance(key, str):
        return key
    return repr(key)


__all__ = [
    "describe_key",
    "is_factory_callable",
    "is_instantiable",
    "is_primitive_class",
    "is_runtime_class",
]
