from __future__ import annotations

import importlib
import warnings
from typing import Any

_PYDANTIC_V1_WARNING_PATTERN = (
    r"Core Pydantic V1 functionality isn't compatible with Python 3\.14 or greater\."
)


def _load_pydantic_settings_base() -> type[Any] | None:
    return _load_base_settings("pydantic_settings")


def _load_pydantic_v1_base() -> type[Any] | None:
    with warnings.catch_warnings():
        warnings.filterwarnings(
            "ignore",
            message=_PYDANTIC_V1_WARNING_PATTERN,
            category=UserWarning,
        )
        return _load_base_settings("pydantic.v1")


def _load_base_settings(module_name: str) -> type[Any] | None:
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    base_settings = getattr(module, "BaseSettings", None)
    if isinstance(base_settings, type):
        return base_settings
    return None


def _build_settings_bases() -> tuple[type[Any], ...]:
    bases: list[type[Any]] = []
    for candidate in (_load_pydantic_settings_base(), _load_pydantic_v1_base()):
        if candidate is not None and candidate not in bases:
            bases.append(candidate)
    return tuple(bases)


SETTINGS_BASES: tuple[type[Any], ...] = _build_settings_bases()


def is_pydantic_settings(candidate: object) -> bool:
    """Return whether ``candidate`` is an instance of a Pydantic settings model.

    Both ``pydantic_settings.BaseSettings`` and the legacy
    ``pydantic.v1.BaseSettings`` are recognized when installed. Without
    Pydantic every candidate is rejected.
    """
    return any(isinstance(candidate, base) for base in SETTINGS_BASES)


def settings_to_dict(settings: Any) -> dict[str, Any]:
    """Dump a settings model into plain nested dictionaries."""
    model_dump = getattr(settings, "model_dump", None)
    if callable(model_dump):
        return dict(model_dump())
    return dict(settings.dict())


__all__ = [
    "SETTINGS_BASES",
    "is_pydantic_settings",
    "settings_to_dict",
]
