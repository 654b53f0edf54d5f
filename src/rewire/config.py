from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from rewire.integrations.pydantic_settings import is_pydantic_settings, settings_to_dict

_MISSING: Any = object()


class Config:
    """Key-value configuration store consumed by ``give_config``.

    Keys may use dots to reach into nested mappings: ``get("mail.from")``
    reads ``items["mail"]["from"]``. A flat key containing a dot takes
    precedence over the nested lookup.

    Bind an instance under the ``"config"`` key to make it available to
    contextual bindings::

        container.instance("config", Config({"mail": {"from": "ops@example.com"}}))
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, Any] | None = None) -> None:
        self._items: dict[str, Any] = dict(items or {})

    @classmethod
    def from_settings(cls, settings: Any) -> Config:
        """Build a config store from a Pydantic settings model instance.

        Raises:
            TypeError: If ``settings`` is not a ``BaseSettings`` instance.

        """
        if not is_pydantic_settings(settings):
            msg = f"Expected a pydantic BaseSettings instance, got {type(settings).__name__}."
            raise TypeError(msg)
        return cls(settings_to_dict(settings))

    def has(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def set(self, key: str, value: Any) -> None:
        *parents, leaf = key.split(".")
        target: MutableMapping[str, Any] = self._items
        for part in parents:
            child = target.get(part)
            if not isinstance(child, MutableMapping):
                child = {}
                target[part] = child
            target = child
        target[leaf] = value

    def all(self) -> dict[str, Any]:
        return dict(self._items)

    def _lookup(self, key: str) -> Any:
        if key in self._items:
            return self._items[key]

        current: Any = self._items
        for part in key.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return _MISSING
            current = current[part]
        return current

    def __repr__(self) -> str:
        return f"Config({self._items!r})"


__all__ = ["Config"]
