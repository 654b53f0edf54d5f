import inspect
import logging
import types
from dataclasses import dataclass
from typing import Any, Union, get_args, get_origin, get_type_hints

from rewire._internal.type_checks import is_primitive_class, is_runtime_class

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    """Information about a constructor parameter."""

    name: str
    kind: inspect._ParameterKind
    annotation: Any
    class_key: type[Any] | None
    """The service class to resolve, or ``None`` for primitive parameters."""
    has_default: bool
    default: Any = None

    @property
    def is_variadic(self) -> bool:
        return self.kind is inspect.Parameter.VAR_POSITIONAL

    @property
    def is_var_keyword(self) -> bool:
        return self.kind is inspect.Parameter.VAR_KEYWORD

    @property
    def is_keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


class DependenciesExtractor:
    """Extract type-hinted constructor parameters from classes."""

    def __init__(self) -> None:
        self._parameters_cache: dict[type[Any], tuple[ParameterInfo, ...] | None] = {}

    def has_constructor(self, cls: type[Any]) -> bool:
        return cls.__init__ is not object.__init__

    def get_parameters(self, cls: type[Any]) -> tuple[ParameterInfo, ...] | None:
        """Get constructor parameters in declaration order.

        Returns ``None`` when the class has no constructor of its own and should
        be instantiated without arguments.
        """
        if cls in self._parameters_cache:
            return self._parameters_cache[cls]

        result = self._extract(cls) if self.has_constructor(cls) else None
        self._parameters_cache[cls] = result
        return result

    def _extract(self, cls: type[Any]) -> tuple[ParameterInfo, ...] | None:
        init_func = cls.__init__
        try:
            sig = inspect.signature(init_func)
        except (ValueError, TypeError):
            return None

        type_hints = self._get_type_hints(cls, init_func)
        # Drop ``self``.
        params = list(sig.parameters.values())[1:]

        result: list[ParameterInfo] = []
        for param in params:
            annotation = type_hints.get(param.name, _annotation_or_none(param))
            has_default = param.default is not inspect.Parameter.empty
            result.append(
                ParameterInfo(
                    name=param.name,
                    kind=param.kind,
                    annotation=annotation,
                    class_key=self._class_key(annotation),
                    has_default=has_default,
                    default=param.default if has_default else None,
                ),
            )
        return tuple(result)

    def _get_type_hints(self, cls: type[Any], init_func: Any) -> dict[str, Any]:
        """Resolve annotations, keeping the ones that fail as raw strings.

        When ``get_type_hints`` fails on a single bad forward reference, the
        remaining annotations are still evaluated one by one, so only the
        parameters with unresolvable hints end up treated as primitives.
        """
        try:
            return get_type_hints(init_func)
        except (TypeError, NameError) as e:
            logger.debug(
                "Resolving annotations of %s.__init__ one by one: %s",
                cls.__qualname__,
                e,
            )

        globalns = getattr(init_func, "__globals__", {})
        localns = {cls.__name__: cls}
        return {
            name: _evaluate_annotation(annotation, globalns, localns)
            for name, annotation in getattr(init_func, "__annotations__", {}).items()
        }

    def _class_key(self, hint: Any) -> type[Any] | None:
        hint = _strip_optional(hint)
        if hint is None or isinstance(hint, str):
            return None
        if not is_runtime_class(hint) or is_primitive_class(hint):
            return None
        return hint


def _annotation_or_none(param: inspect.Parameter) -> Any:
    if param.annotation is inspect.Parameter.empty:
        return None
    return param.annotation


def _evaluate_annotation(
    annotation: Any,
    globalns: dict[str, Any],
    localns: dict[str, Any],
) -> Any:
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, globalns, localns)  # noqa: S307
    except (NameError, AttributeError, SyntaxError, TypeError):
        return annotation


def _strip_optional(hint: Any) -> Any:
    """Reduce ``T | None`` and ``Optional[T]`` to ``T``; leave other unions alone."""
    if get_origin(hint) in (Union, types.UnionType):
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


__all__ = ["DependenciesExtractor", "ParameterInfo"]
