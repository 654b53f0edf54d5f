from __future__ import annotations

import logging
from typing import Any

from rewire._internal.type_checks import describe_key
from rewire.exceptions import RewireAliasError

logger = logging.getLogger(__name__)


class AliasRegistry:
    """Map alternative names onto canonical keys.

    An alias may point at another alias; ``get_alias`` follows the chain to the
    canonical key. The reverse index (``aliases_of``) lets contextual lookups
    probe every name a key is known by.
    """

    __slots__ = ("_abstract_aliases", "_aliases")

    def __init__(self) -> None:
        self._aliases: dict[Any, Any] = {}
        self._abstract_aliases: dict[Any, list[Any]] = {}

    def alias(self, abstract: Any, alias: Any) -> None:
        """Register ``alias`` as another name for ``abstract``.

        Raises:
            RewireAliasError: If ``alias`` equals ``abstract`` or the new alias
                would close a loop.

        """
        if alias == abstract:
            msg = f"[{describe_key(abstract)}] is aliased to itself."
            raise RewireAliasError(alias, msg)
        if self._resolves_to(abstract, alias):
            msg = f"Aliasing [{describe_key(alias)}] to [{describe_key(abstract)}] creates a loop."
            raise RewireAliasError(alias, msg)

        self.drop(alias)
        self._aliases[alias] = abstract
        self._abstract_aliases.setdefault(abstract, []).append(alias)
        logger.debug("Aliased %s to %s", describe_key(alias), describe_key(abstract))

    def is_alias(self, name: Any) -> bool:
        return name in self._aliases

    def get_alias(self, abstract: Any) -> Any:
        """Return the canonical key for ``abstract`` (itself when not an alias)."""
        seen = {abstract}
        while abstract in self._aliases:
            abstract = self._aliases[abstract]
            if abstract in seen:
                msg = f"[{describe_key(abstract)}] is part of an alias loop."
                raise RewireAliasError(abstract, msg)
            seen.add(abstract)
        return abstract

    def aliases_of(self, abstract: Any) -> tuple[Any, ...]:
        return tuple(self._abstract_aliases.get(abstract, ()))

    def remove_abstract_alias(self, searched: Any) -> None:
        """Forget ``searched`` in the reverse index of whatever it aliased."""
        if searched not in self._aliases:
            return
        for abstract, aliases in list(self._abstract_aliases.items()):
            if searched in aliases:
                aliases[:] = [alias for alias in aliases if alias != searched]
                if not aliases:
                    del self._abstract_aliases[abstract]

    def drop(self, alias: Any) -> None:
        """Remove ``alias`` so the name can be bound to something else."""
        self.remove_abstract_alias(alias)
        self._aliases.pop(alias, None)

    def clear(self) -> None:
        self._aliases.clear()
        self._abstract_aliases.clear()

    def _resolves_to(self, start: Any, target: Any) -> bool:
        seen: set[Any] = set()
        current = start
        while current in self._aliases and current not in seen:
            seen.add(current)
            current = self._aliases[current]
            if current == target:
                return True
        return False


__all__ = ["AliasRegistry"]
