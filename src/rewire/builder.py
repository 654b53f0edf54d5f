from __future__ import annotations

import importlib
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from rewire._internal.calls import call_with_supported_args
from rewire._internal.type_checks import (
    describe_key,
    is_factory_callable,
    is_instantiable,
    is_runtime_class,
)
from rewire.defaults import CONTEXTUAL_PRIMITIVE_PREFIX
from rewire.dependencies import DependenciesExtractor, ParameterInfo
from rewire.exceptions import (
    RewireBindingResolutionError,
    RewireCircularDependencyError,
    RewireNotInstantiableError,
    RewireUnresolvablePrimitiveError,
)

if TYPE_CHECKING:
    from rewire.container import Container
    from rewire.resolution_stack import ResolutionStack

logger = logging.getLogger(__name__)


class Builder:
    """Instantiate concrete classes by resolving their constructor parameters.

    Parameters are resolved left to right. For each one the builder uses, in
    order: the innermost ``make`` parameter override with the same name; for
    primitive parameters a ``"$name"`` contextual binding, the declared default,
    or an empty tuple for ``*args``; for class-typed parameters a nested
    ``Container.make`` call, falling back to the declared default when that
    call fails with ``RewireBindingResolutionError``.
    """

    def __init__(
        self,
        container: Container,
        resolution_stack: ResolutionStack,
        dependencies_extractor: DependenciesExtractor,
        *,
        detect_circular: bool = True,
    ) -> None:
        self._container = container
        self._resolution_stack = resolution_stack
        self._dependencies_extractor = dependencies_extractor
        self._detect_circular = detect_circular

    def build(self, concrete: Any) -> Any:
        """Instantiate ``concrete``.

        Factory callables are invoked with the container and the current
        parameter overrides. Classes (or import paths naming a class) are
        constructed reflectively.

        Raises:
            RewireBindingResolutionError: If an import path does not name a class.
            RewireNotInstantiableError: If the target is abstract, a protocol,
                or not a class.
            RewireUnresolvablePrimitiveError: If a primitive parameter has no
                override, contextual value, or default.
            RewireCircularDependencyError: If the class is already being built.

        """
        if is_factory_callable(concrete):
            return call_with_supported_args(
                concrete,
                self._container,
                self._resolution_stack.last_parameters(),
            )

        target = self._load_class(concrete) if isinstance(concrete, str) else concrete
        build_stack = self._resolution_stack.build_stack

        if not is_runtime_class(target) or not is_instantiable(target):
            raise RewireNotInstantiableError(concrete, build_stack)

        if self._detect_circular and target in build_stack:
            raise RewireCircularDependencyError(target, build_stack)

        with self._resolution_stack.building(target):
            parameters = self._dependencies_extractor.get_parameters(target)
            if parameters is None:
                args: list[Any] = []
                kwargs: dict[str, Any] = {}
            else:
                args, kwargs = self._resolve_dependencies(target, parameters)

        return target(*args, **kwargs)

    def _resolve_dependencies(
        self,
        target: type[Any],
        parameters: Sequence[ParameterInfo],
    ) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        overrides = self._resolution_stack.last_parameters()

        for parameter in parameters:
            if parameter.is_var_keyword:
                kwargs.update(overrides.get(parameter.name, {}))
                continue

            if parameter.name in overrides:
                value = overrides[parameter.name]
                if parameter.is_variadic:
                    value = _as_sequence(value)
            elif parameter.class_key is None:
                value = self._resolve_primitive(target, parameter)
            else:
                value = self._resolve_class(parameter)

            if parameter.is_variadic:
                args.extend(value)
            elif parameter.is_keyword_only:
                kwargs[parameter.name] = value
            else:
                args.append(value)

        return args, kwargs

    def _resolve_primitive(self, target: type[Any], parameter: ParameterInfo) -> Any:
        concrete = self._container.get_contextual_concrete(
            f"{CONTEXTUAL_PRIMITIVE_PREFIX}{parameter.name}",
        )
        if concrete is not None:
            if is_factory_callable(concrete):
                concrete = call_with_supported_args(concrete, self._container)
            return _as_sequence(concrete) if parameter.is_variadic else concrete

        if parameter.has_default:
            return parameter.default

        if parameter.is_variadic:
            return ()

        raise RewireUnresolvablePrimitiveError(
            parameter.name,
            target,
            parameter.annotation,
            self._resolution_stack.build_stack,
        )

    def _resolve_class(self, parameter: ParameterInfo) -> Any:
        try:
            if parameter.is_variadic:
                return self._resolve_variadic_class(parameter)
            return self._container.make(parameter.class_key)
        except RewireBindingResolutionError:
            if parameter.has_default:
                logger.debug(
                    "Using default for parameter %r after failing to resolve %s",
                    parameter.name,
                    describe_key(parameter.class_key),
                )
                return parameter.default
            raise

    def _resolve_variadic_class(self, parameter: ParameterInfo) -> list[Any]:
        class_key = parameter.class_key
        concrete = self._container.get_contextual_concrete(self._container.get_alias(class_key))
        if isinstance(concrete, list | tuple):
            return [self._container.make(abstract) for abstract in concrete]
        return [self._container.make(class_key)]

    def _load_class(self, name: str) -> Any:
        """Import the class named by ``"pkg.module.Class"`` or ``"pkg.module:Class"``."""
        if ":" in name:
            module_name, _, attr_path = name.partition(":")
        else:
            module_name, _, attr_path = name.rpartition(".")

        if not module_name or not attr_path:
            raise self._missing_class(name)

        try:
            target: Any = importlib.import_module(module_name)
            for attr in attr_path.split("."):
                target = getattr(target, attr)
        except (ImportError, AttributeError) as e:
            raise self._missing_class(name) from e
        return target

    def _missing_class(self, name: str) -> RewireBindingResolutionError:
        return RewireBindingResolutionError(
            name,
            f"Target class [{name}] does not exist.",
            self._resolution_stack.build_stack,
        )


def _as_sequence(value: Any) -> Sequence[Any]:
    return value if isinstance(value, list | tuple) else (value,)


__all__ = ["Builder"]
