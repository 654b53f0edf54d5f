from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from rewire.defaults import CONFIG_KEY
from rewire.exceptions import RewireInvalidRegistrationError

if TYPE_CHECKING:
    from typing_extensions import Self

    from rewire.container import Container

_UNSET: Any = object()


class ContextualBindingBuilder:
    """Fluent helper returned by ``Container.when``.

    Usage:
        container.when(PhotoController).needs(Filesystem).give(LocalFilesystem)
        container.when(Mailer).needs("$retries").give(3)
        container.when(Mailer).needs("$sender").give_config("mail.from", "noreply@localhost")
    """

    __slots__ = ("_concretes", "_container", "_needs")

    def __init__(self, container: Container, concretes: Sequence[Any]) -> None:
        self._container = container
        self._concretes = tuple(concretes)
        self._needs: Any = _UNSET

    @property
    def concretes(self) -> tuple[Any, ...]:
        return self._concretes

    def needs(self, abstract: Any) -> Self:
        """Define the dependency key the override applies to.

        Use ``"$name"`` to target a primitive constructor parameter called
        ``name``.
        """
        self._needs = abstract
        return self

    def give(self, implementation: Any) -> None:
        """Commit ``implementation`` for every consumer passed to ``when``.

        ``implementation`` may be a class, another key, a factory callable, or
        (for ``*args`` parameters) a list of keys. Primitive overrides may be
        any value; callables are invoked with the container.

        Raises:
            RewireInvalidRegistrationError: If ``needs`` was not called first.

        """
        if self._needs is _UNSET:
            msg = "give() requires needs() to be called first."
            raise RewireInvalidRegistrationError(msg)

        for concrete in self._concretes:
            self._container.add_contextual_binding(concrete, self._needs, implementation)

    def give_config(self, key: str, default: Any = None) -> None:
        """Give the value of ``key`` from the bound ``"config"`` service."""
        self.give(lambda container: container.make(CONFIG_KEY).get(key, default))


__all__ = ["ContextualBindingBuilder"]
