from __future__ import annotations

import functools
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from contextlib import AbstractContextManager, nullcontext
from types import MappingProxyType
from typing import Any, TypeVar, overload

from rewire._internal.calls import call_with_supported_args
from rewire._internal.type_checks import describe_key, is_factory_callable
from rewire.aliases import AliasRegistry
from rewire.builder import Builder
from rewire.contextual import ContextualBindingBuilder
from rewire.defaults import DEFAULT_DETECT_CIRCULAR, DEFAULT_LOCK_MODE
from rewire.dependencies import DependenciesExtractor
from rewire.exceptions import RewireMethodNotBoundError, RewireTypeMismatchError
from rewire.lock_mode import LockMode
from rewire.resolution_stack import ResolutionStack
from rewire.types import Binding, Concrete, Extender, Parameters, ReboundCallback

T = TypeVar("T")

logger = logging.getLogger(__name__)

_MISSING: Any = object()


class Container:
    """Inversion-of-control registry for binding keys and building instances.

    Keys are usually classes, but any hashable value (typically a string) can
    be bound. ``make`` resolves a key to an instance: bound factories are
    invoked, bound classes are constructed by resolving their ``__init__``
    type hints recursively, and unbound classes are constructed directly.

    Shared bindings (``singleton``) and stored instances (``instance``) are
    cached. Contextual bindings (``when(...).needs(...).give(...)``) replace a
    dependency only while a specific class is being constructed. Extenders
    decorate every freshly built instance, and rebind callbacks fire when an
    already-resolved key is bound again.

    The container registers itself under ``Container`` (and under its own
    subclass), so classes can depend on the container explicitly instead of
    reaching for a global.
    """

    __slots__ = (
        "_aliases",
        "_bindings",
        "_builder",
        "_contextual",
        "_extenders",
        "_instance_locks",
        "_instance_locks_lock",
        "_instances",
        "_lock_mode",
        "_method_bindings",
        "_rebound_callbacks",
        "_registry_lock",
        "_resolution_stack",
        "_resolved",
    )

    def __init__(
        self,
        *,
        lock_mode: LockMode = DEFAULT_LOCK_MODE,
        detect_circular: bool = DEFAULT_DETECT_CIRCULAR,
        aliases: AliasRegistry | None = None,
    ) -> None:
        """Initialize an empty container.

        Args:
            lock_mode: ``LockMode.THREAD`` serializes registry writes and
                first-time creation of shared instances; ``LockMode.NONE``
                skips locking for single-threaded use.
            detect_circular: Raise ``RewireCircularDependencyError`` when a
                class transitively requires itself instead of recursing until
                ``RecursionError``.
            aliases: Alias registry to use; a private one is created by default.

        """
        self._lock_mode = lock_mode
        self._aliases = aliases if aliases is not None else AliasRegistry()

        self._bindings: dict[Any, Binding] = {}
        self._instances: dict[Any, Any] = {}
        self._resolved: set[Any] = set()
        self._extenders: dict[Any, list[Extender]] = {}
        self._rebound_callbacks: dict[Any, list[ReboundCallback]] = {}
        # consumer class -> needed key -> implementation
        self._contextual: dict[Any, dict[Any, Any]] = {}
        self._method_bindings: dict[str, Callable[..., Any]] = {}

        self._registry_lock = threading.RLock()
        # Per-key locks for first-time creation of shared instances
        self._instance_locks: dict[Any, threading.RLock] = {}
        self._instance_locks_lock = threading.Lock()

        self._resolution_stack = ResolutionStack()
        self._builder = Builder(
            self,
            self._resolution_stack,
            DependenciesExtractor(),
            detect_circular=detect_circular,
        )

        self._register_self()

    def bind(self, key: Any, concrete: Concrete | None = None, shared: bool = False) -> None:
        """Register how ``key`` is produced.

        Args:
            key: The key to register, usually a class or a string.
            concrete: A class (or import path) to construct, another key to
                resolve, or a factory invoked as ``factory(container, params)``.
                Defaults to ``key`` itself.
            shared: Cache the first instance and return it from every ``make``.

        Raises:
            RewireTypeMismatchError: If ``concrete`` is not a class, a string,
                or a callable.

        """
        if concrete is None:
            concrete = key
        elif not (isinstance(concrete, str) or callable(concrete)):
            raise RewireTypeMismatchError(key, concrete)

        with self._registry_mutation():
            self._drop_stale_instances(key)
            self._bindings[key] = Binding(key=key, concrete=concrete, shared=shared)

        logger.debug(
            "Bound %s to %s (shared=%s)",
            describe_key(key),
            describe_key(concrete),
            shared,
        )

        if self.resolved(key):
            self._rebound(key)

    def singleton(self, key: Any, concrete: Concrete | None = None) -> None:
        """Register a shared binding; see ``bind``."""
        self.bind(key, concrete, shared=True)

    def bind_if(self, key: Any, concrete: Concrete | None = None, shared: bool = False) -> None:
        """Register a binding unless ``key`` is already bound."""
        if not self.bound(key):
            self.bind(key, concrete, shared)

    def singleton_if(self, key: Any, concrete: Concrete | None = None) -> None:
        """Register a shared binding unless ``key`` is already bound."""
        if not self.bound(key):
            self.singleton(key, concrete)

    def instance(self, key: Any, instance: T) -> T:
        """Store an existing object as the shared instance for ``key``.

        The builder is bypassed entirely. Rebind callbacks fire when ``key``
        was already bound.
        """
        with self._registry_mutation():
            self._aliases.remove_abstract_alias(key)
            is_bound = self.bound(key)
            self._aliases.drop(key)
            self._instances[key] = instance

        if is_bound:
            self._rebound(key)

        return instance

    def alias(self, abstract: Any, alias: Any) -> None:
        """Make ``alias`` another name for ``abstract``."""
        with self._registry_mutation():
            self._aliases.alias(abstract, alias)

    def extend(self, key: Any, extender: Extender) -> None:
        """Decorate instances of ``key`` as ``extender(instance, container)``.

        A cached instance is decorated immediately; otherwise the extender is
        applied, in registration order, to every instance built afterwards.
        """
        key = self.get_alias(key)

        with self._registry_mutation():
            if key in self._instances:
                self._instances[key] = call_with_supported_args(
                    extender,
                    self._instances[key],
                    self,
                )
                fire_rebound = True
            else:
                self._extenders.setdefault(key, []).append(extender)
                fire_rebound = self.resolved(key)

        if fire_rebound:
            self._rebound(key)

    def rebinding(self, key: Any, callback: ReboundCallback) -> Any:
        """Register ``callback(container, instance)`` for rebinds of ``key``.

        Returns:
            The current instance when ``key`` is already bound, else ``None``.

        """
        key = self.get_alias(key)
        with self._registry_mutation():
            self._rebound_callbacks.setdefault(key, []).append(callback)

        if self.bound(key):
            return self.make(key)
        return None

    def when(self, concrete: Any | Iterable[Any] | None) -> ContextualBindingBuilder:
        """Start a contextual binding for one or more consumer classes.

        Usage:
            container.when(ReportService).needs(Storage).give(S3Storage)
        """
        if concrete is None:
            concretes: list[Any] = []
        elif isinstance(concrete, list | tuple | set | frozenset):
            concretes = list(concrete)
        else:
            concretes = [concrete]

        return ContextualBindingBuilder(self, [self.get_alias(c) for c in concretes])

    def add_contextual_binding(self, concrete: Any, abstract: Any, implementation: Any) -> None:
        """Use ``implementation`` for ``abstract`` while ``concrete`` is being built."""
        with self._registry_mutation():
            self._contextual.setdefault(concrete, {})[self.get_alias(abstract)] = implementation

    def bind_method(self, method: str | tuple[Any, str], callback: Callable[..., Any]) -> None:
        """Register ``callback(instance, container)`` under ``"Class@method"``."""
        with self._registry_mutation():
            self._method_bindings[self._parse_bind_method(method)] = callback

    def set(self, key: Any, value: Any) -> None:
        """Bind ``key`` to ``value``; non-factory values are returned as-is by ``make``."""
        self.bind(key, value if is_factory_callable(value) else (lambda: value))

    @overload
    def make(self, key: type[T], parameters: Parameters | None = None) -> T: ...

    @overload
    def make(self, key: Any, parameters: Parameters | None = None) -> Any: ...

    def make(self, key: Any, parameters: Parameters | None = None) -> Any:
        """Resolve ``key`` into an instance.

        Args:
            key: The key (or alias) to resolve.
            parameters: Constructor arguments by name. They apply only to the
                class built for this call, never to nested dependencies, and
                they always force a fresh, uncached build.

        Raises:
            RewireBindingResolutionError: If the key cannot be built.
            RewireCircularDependencyError: If a class requires itself.

        """
        key = self.get_alias(key)
        if parameters is None:
            parameters = {}

        concrete = self.get_contextual_concrete(key)
        needs_contextual_build = bool(parameters) or concrete is not None

        # Shared instances short-circuit everything except contextual builds
        if not needs_contextual_build:
            cached = self._instances.get(key, _MISSING)
            if cached is not _MISSING:
                return cached

        lock = (
            self._instance_lock(key)
            if not needs_contextual_build and self.is_shared(key)
            else nullcontext()
        )
        with lock:
            if not needs_contextual_build:
                cached = self._instances.get(key, _MISSING)
                if cached is not _MISSING:
                    return cached

            binding = self._bindings.get(key)
            with self._resolution_stack.parameters(parameters):
                if concrete is None:
                    concrete = key if binding is None else binding.concrete

                if self._is_buildable(concrete, key):
                    instance = self.build(concrete)
                else:
                    instance = self.make(concrete)

                for extender in self._get_extenders(key):
                    instance = call_with_supported_args(extender, instance, self)

                if not needs_contextual_build and self.is_shared(key):
                    self._cache_instance(key, binding, instance)

                self._resolved.add(key)

        return instance

    @overload
    def get(self, key: type[T]) -> T: ...

    @overload
    def get(self, key: Any) -> Any: ...

    def get(self, key: Any) -> Any:
        """Resolve ``key`` with no parameters; see ``make``."""
        return self.make(key)

    def build(self, concrete: Any) -> Any:
        """Instantiate ``concrete`` without consulting bindings for it.

        Constructor dependencies are still resolved through ``make``.
        """
        return self._builder.build(concrete)

    def factory(self, key: Any) -> Callable[[], Any]:
        """Return a zero-argument callable that resolves ``key`` on each call."""
        return functools.partial(self.make, key)

    def call_method_binding(self, method: str | tuple[Any, str], instance: Any) -> Any:
        """Invoke the callback registered for ``method`` with ``instance``.

        Raises:
            RewireMethodNotBoundError: If no callback is registered.

        """
        parsed = self._parse_bind_method(method)
        callback = self._method_bindings.get(parsed)
        if callback is None:
            raise RewireMethodNotBoundError(parsed)
        return call_with_supported_args(callback, instance, self)

    def bound(self, key: Any) -> bool:
        """Whether ``key`` has a binding, a cached instance, or is an alias."""
        return key in self._bindings or key in self._instances or self._aliases.is_alias(key)

    def has(self, key: Any) -> bool:
        return self.bound(key)

    def resolved(self, key: Any) -> bool:
        """Whether ``key`` (or the key it aliases) has been produced before."""
        if self._aliases.is_alias(key):
            key = self._aliases.get_alias(key)
        return key in self._resolved or key in self._instances

    def is_shared(self, key: Any) -> bool:
        if key in self._instances:
            return True
        binding = self._bindings.get(key)
        return binding is not None and binding.shared

    def is_alias(self, name: Any) -> bool:
        return self._aliases.is_alias(name)

    def get_alias(self, key: Any) -> Any:
        return self._aliases.get_alias(key)

    def get_bindings(self) -> Mapping[Any, Binding]:
        """Return a read-only snapshot of the registered bindings."""
        return MappingProxyType(dict(self._bindings))

    def has_method_binding(self, method: str | tuple[Any, str]) -> bool:
        return self._parse_bind_method(method) in self._method_bindings

    def get_contextual_concrete(self, key: Any) -> Any | None:
        """Return the contextual implementation of ``key`` for the class being built.

        Only bindings registered for the innermost class on the build stack
        are visible. Aliases of ``key`` are probed when ``key`` itself has no
        entry.
        """
        binding = self._find_in_contextual_bindings(key)
        if binding is not None:
            return binding

        for alias in self._aliases.aliases_of(key):
            binding = self._find_in_contextual_bindings(alias)
            if binding is not None:
                return binding

        return None

    @property
    def build_stack(self) -> tuple[Any, ...]:
        """Classes currently being constructed in this context, outermost first."""
        return tuple(self._resolution_stack.build_stack)

    def unset(self, key: Any) -> None:
        """Remove the binding, cached instance, and resolved flag for ``key``."""
        with self._registry_mutation():
            self._bindings.pop(key, None)
            self._instances.pop(key, None)
            self._resolved.discard(key)

    def forget_instance(self, key: Any) -> None:
        with self._registry_mutation():
            self._instances.pop(key, None)

    def forget_instances(self) -> None:
        """Drop every cached instance except the container's own registration."""
        with self._registry_mutation():
            self._instances.clear()
            self._register_self()

    def forget_extenders(self, key: Any) -> None:
        with self._registry_mutation():
            self._extenders.pop(self.get_alias(key), None)

    def flush(self) -> None:
        """Reset the container to its freshly constructed state."""
        with self._registry_mutation():
            self._aliases.clear()
            self._bindings.clear()
            self._instances.clear()
            self._resolved.clear()
            self._extenders.clear()
            self._rebound_callbacks.clear()
            self._contextual.clear()
            self._method_bindings.clear()
            self._register_self()

    def _register_self(self) -> None:
        self._instances[Container] = self
        self._instances[type(self)] = self

    def _registry_mutation(self) -> AbstractContextManager[Any]:
        if self._lock_mode is LockMode.NONE:
            return nullcontext()
        return self._registry_lock

    def _instance_lock(self, key: Any) -> AbstractContextManager[Any]:
        """Get or create the lock guarding first-time creation of ``key``.

        Uses double-checked locking to minimize lock contention.
        """
        if self._lock_mode is LockMode.NONE:
            return nullcontext()
        if key not in self._instance_locks:
            with self._instance_locks_lock:
                if key not in self._instance_locks:
                    self._instance_locks[key] = threading.RLock()
        return self._instance_locks[key]

    def _drop_stale_instances(self, key: Any) -> None:
        self._instances.pop(key, None)
        self._aliases.drop(key)

    def _cache_instance(self, key: Any, binding: Binding | None, instance: Any) -> None:
        # A concurrent bind() or instance() during the build wins over the stale result
        with self._registry_mutation():
            if self._bindings.get(key) is not binding or key in self._instances:
                logger.debug("Discarded stale instance for %s", describe_key(key))
                return
            self._instances[key] = instance
        logger.debug("Cached shared instance for %s", describe_key(key))

    def _is_buildable(self, concrete: Any, key: Any) -> bool:
        return concrete is key or concrete == key or is_factory_callable(concrete)

    def _get_extenders(self, key: Any) -> list[Extender]:
        return list(self._extenders.get(self.get_alias(key), ()))

    def _find_in_contextual_bindings(self, key: Any) -> Any | None:
        return self._contextual.get(self._resolution_stack.top(), {}).get(key)

    def _rebound(self, key: Any) -> None:
        callbacks = list(self._rebound_callbacks.get(key, ()))
        if not callbacks:
            return

        instance = self.make(key)
        logger.debug(
            "Firing %d rebound callback(s) for %s",
            len(callbacks),
            describe_key(key),
        )
        for callback in callbacks:
            call_with_supported_args(callback, self, instance)

    def _parse_bind_method(self, method: str | tuple[Any, str]) -> str:
        if isinstance(method, tuple | list):
            owner, name = method
            return f"{describe_key(owner)}@{name}"
        return method


__all__ = ["Container"]
