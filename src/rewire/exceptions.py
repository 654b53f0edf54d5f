from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rewire._internal.type_checks import describe_key


def _format_chain(build_stack: Sequence[Any]) -> str:
    return ", ".join(describe_key(item) for item in build_stack)


class RewireError(Exception):
    """Represent a base class for all rewire-specific failures.

    Catch this type when you want to handle any rewire error path without
    matching each concrete exception class individually.
    """


class RewireInvalidRegistrationError(RewireError):
    """Signal a registration API used out of order or with invalid arguments.

    Raised, for example, by ``ContextualBindingBuilder.give`` when ``needs``
    was not called first.
    """


class RewireBindingResolutionError(RewireError):
    """Signal that a requested key cannot be turned into an instance.

    Raised by ``Container.make`` and ``Container.build`` when the target class
    does not exist, is not instantiable, or one of its constructor parameters
    cannot be satisfied.

    ``build_stack`` holds the classes that were mid-construction when the
    failure happened, outermost first. It is empty for top-level failures.
    """

    def __init__(
        self,
        key: Any,
        message: str | None = None,
        build_stack: Sequence[Any] = (),
    ) -> None:
        self.key = key
        self.build_stack = list(build_stack)
        if message is None:
            message = f"Target [{describe_key(key)}] cannot be resolved."
        super().__init__(message)


class RewireNotInstantiableError(RewireBindingResolutionError):
    """Signal that the target is abstract, a protocol, or not a class at all.

    Typical fixes include binding the abstract key to a concrete class with
    ``container.bind(Abstract, Concrete)`` or providing a factory callable.
    """

    def __init__(self, key: Any, build_stack: Sequence[Any] = ()) -> None:
        if build_stack:
            message = (
                f"Target [{describe_key(key)}] is not instantiable while building "
                f"[{_format_chain(build_stack)}]."
            )
        else:
            message = f"Target [{describe_key(key)}] is not instantiable."
        super().__init__(key, message, build_stack)


class RewireUnresolvablePrimitiveError(RewireBindingResolutionError):
    """Signal a constructor parameter with no service type, override, or default.

    Typical fixes include passing the value through ``make(key, {"name": ...})``,
    adding a contextual primitive with
    ``container.when(Cls).needs("$name").give(value)``, or declaring a default.
    """

    def __init__(
        self,
        parameter_name: str,
        declaring_class: Any,
        annotation: Any = None,
        build_stack: Sequence[Any] = (),
    ) -> None:
        self.parameter_name = parameter_name
        self.declaring_class = declaring_class
        self.annotation = annotation
        declared = "" if annotation is None else f"{describe_key(annotation)} "
        message = (
            f"Unresolvable dependency resolving [{declared}${parameter_name}] "
            f"in class {describe_key(declaring_class)}."
        )
        super().__init__(declaring_class, message, build_stack)


class RewireCircularDependencyError(RewireError):
    """Signal a class that (indirectly) requires itself to be constructed.

    Raised by ``Container.build`` when the class about to be constructed is
    already on the build stack. The error is never replaced by a parameter
    default. Pass ``detect_circular=False`` to the container to restore
    unbounded recursion.
    """

    def __init__(self, key: Any, build_stack: Sequence[Any]) -> None:
        self.key = key
        self.build_stack = list(build_stack)
        chain = _format_chain([*self.build_stack, key])
        super().__init__(f"Circular dependency detected while building [{chain}].")


class RewireTypeMismatchError(RewireError, TypeError):
    """Signal a binding whose concrete is neither a class, a key, nor a callable.

    Raised by ``Container.bind`` and the helpers built on it.
    """

    def __init__(self, key: Any, concrete: Any) -> None:
        self.key = key
        self.concrete = concrete
        super().__init__(
            f"bind(): concrete for [{describe_key(key)}] must be a class, a key or a "
            f"callable, got {type(concrete).__name__}.",
        )


class RewireMethodNotBoundError(RewireError):
    """Signal a ``call_method_binding`` lookup with no registered callback."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method {method} not bound.")


class RewireAliasError(RewireError, ValueError):
    """Signal an alias that points at itself or closes a loop of aliases."""

    def __init__(self, key: Any, message: str) -> None:
        self.key = key
        super().__init__(message)
