from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

FactoryFunction: TypeAlias = Callable[..., Any]
"""A callable producing an instance, invoked as ``factory(container, params)``.

Only the leading arguments the callable declares are passed, so
``lambda: Service()`` and ``lambda container: Service(container.make(Dep))``
are valid factories as well.
"""

Concrete: TypeAlias = type[Any] | str | FactoryFunction
"""What a key is bound to: a class, another key, or a factory function."""

Parameters: TypeAlias = Mapping[str, Any]
"""Named constructor arguments passed to ``Container.make``."""

Extender: TypeAlias = Callable[..., Any]
"""A decorator invoked as ``extender(instance, container)``."""

ReboundCallback: TypeAlias = Callable[..., Any]
"""A listener invoked as ``callback(container, instance)``."""


@dataclass(frozen=True, slots=True)
class Binding:
    """The single active registration for a key."""

    key: Any
    concrete: Concrete
    shared: bool = False
