"""Tests for reflective construction of classes."""

from typing import Optional, Protocol

import pytest

from rewire.container import Container
from rewire.exceptions import (
    RewireBindingResolutionError,
    RewireCircularDependencyError,
    RewireNotInstantiableError,
    RewireUnresolvablePrimitiveError,
)


class Clock:
    pass


class Logger(Protocol):
    def log(self, message: str) -> None: ...


class Report:
    def __init__(self, clock: Clock, title: str, pages: int = 1) -> None:
        self.clock = clock
        self.title = title
        self.pages = pages


class Node:
    def __init__(self, parent: "Node") -> None:
        self.parent = parent


class Left:
    def __init__(self, right: "Right") -> None:
        self.right = right


class Right:
    def __init__(self, left: Left) -> None:
        self.left = left


class OptionalLeft:
    def __init__(self, right: Optional["OptionalRight"] = None) -> None:
        self.right = right


class OptionalRight:
    def __init__(self, left: OptionalLeft) -> None:
        self.left = left


class PartiallyTyped:
    def __init__(self, clock: Clock, other: "Missing" = None) -> None:  # noqa: F821
        self.clock = clock
        self.other = other


class TestPrimitiveParameters:
    def test_default_used_for_primitive(self, container: Container) -> None:
        report = container.make(Report, {"title": "Q3"})

        assert report.title == "Q3"
        assert report.pages == 1
        assert isinstance(report.clock, Clock)

    def test_missing_primitive_raises(self, container: Container) -> None:
        with pytest.raises(RewireUnresolvablePrimitiveError) as exc_info:
            container.make(Report)

        error = exc_info.value
        assert error.parameter_name == "title"
        assert error.declaring_class is Report
        assert error.build_stack == [Report]
        assert "[str $title]" in str(error)
        assert f"in class {Report.__module__}.Report" in str(error)

    def test_unannotated_parameter_is_primitive(self, container: Container) -> None:
        class Untyped:
            def __init__(self, value) -> None:  # noqa: ANN001
                self.value = value

        with pytest.raises(RewireUnresolvablePrimitiveError) as exc_info:
            container.make(Untyped)

        assert "[$value]" in str(exc_info.value)

    def test_contextual_primitive(self, container: Container) -> None:
        container.when(Report).needs("$title").give("Annual")

        assert container.make(Report).title == "Annual"

    def test_contextual_primitive_callable_receives_container(self, container: Container) -> None:
        container.instance("title", "From container")
        container.when(Report).needs("$title").give(lambda c: c.make("title"))

        assert container.make(Report).title == "From container"

    def test_keyword_only_parameters_passed_by_name(self, container: Container) -> None:
        class Settings:
            def __init__(self, *, clock: Clock, debug: bool = False) -> None:
                self.clock = clock
                self.debug = debug

        settings = container.make(Settings, {"debug": True})

        assert settings.debug is True
        assert isinstance(settings.clock, Clock)


class TestClassParameters:
    def test_default_used_when_class_unresolvable(self, container: Container) -> None:
        class Service:
            def __init__(self, logger: Optional[Logger] = None) -> None:
                self.logger = logger

        assert container.make(Service).logger is None

    def test_unresolvable_class_without_default_propagates(self, container: Container) -> None:
        class Service:
            def __init__(self, logger: Logger) -> None:
                self.logger = logger

        with pytest.raises(RewireNotInstantiableError) as exc_info:
            container.make(Service)

        assert exc_info.value.key is Logger
        assert exc_info.value.build_stack == [Service]
        assert "while building" in str(exc_info.value)

    def test_bad_forward_reference_only_affects_its_parameter(self, container: Container) -> None:
        instance = container.make(PartiallyTyped)

        assert isinstance(instance.clock, Clock)
        assert instance.other is None

    def test_optional_class_is_resolved_when_possible(self, container: Container) -> None:
        class Service:
            def __init__(self, clock: Clock | None = None) -> None:
                self.clock = clock

        assert isinstance(container.make(Service).clock, Clock)

    def test_parameters_do_not_leak_into_nested_builds(self, container: Container) -> None:
        class Inner:
            def __init__(self, name: str = "inner") -> None:
                self.name = name

        class Outer:
            def __init__(self, inner: Inner, name: str) -> None:
                self.inner = inner
                self.name = name

        outer = container.make(Outer, {"name": "outer"})

        assert outer.name == "outer"
        assert outer.inner.name == "inner"

    def test_override_replaces_class_dependency(self, container: Container) -> None:
        clock = Clock()

        report = container.make(Report, {"clock": clock, "title": "T"})

        assert report.clock is clock

    def test_var_keyword_receives_named_mapping(self, container: Container) -> None:
        class Flexible:
            def __init__(self, **options: object) -> None:
                self.options = options

        assert container.make(Flexible).options == {}
        assert container.make(Flexible, {"options": {"a": 1}}).options == {"a": 1}


class TestVariadicParameters:
    def test_variadic_primitive_defaults_to_empty(self, container: Container) -> None:
        class Tags:
            def __init__(self, *tags: str) -> None:
                self.tags = tags

        assert container.make(Tags).tags == ()

    def test_variadic_override_expands(self, container: Container) -> None:
        class Tags:
            def __init__(self, *tags: str) -> None:
                self.tags = tags

        assert container.make(Tags, {"tags": ["a", "b"]}).tags == ("a", "b")
        assert container.make(Tags, {"tags": "solo"}).tags == ("solo",)

    def test_variadic_class_without_contextual_builds_one(self, container: Container) -> None:
        class Clocks:
            def __init__(self, *clocks: Clock) -> None:
                self.clocks = clocks

        clocks = container.make(Clocks).clocks

        assert len(clocks) == 1
        assert isinstance(clocks[0], Clock)


class TestImportPaths:
    def test_string_concrete_is_imported(self, container: Container) -> None:
        container.bind("ordered", "collections.OrderedDict")

        assert type(container.make("ordered")).__name__ == "OrderedDict"

    def test_colon_import_path(self, container: Container) -> None:
        container.bind("counter", "collections:Counter")

        assert type(container.make("counter")).__name__ == "Counter"

    def test_missing_class_raises(self, container: Container) -> None:
        container.bind("missing", "rewire.nowhere.Missing")

        with pytest.raises(RewireBindingResolutionError) as exc_info:
            container.make("missing")

        assert str(exc_info.value) == "Target class [rewire.nowhere.Missing] does not exist."
        assert isinstance(exc_info.value.__cause__, ImportError)


class TestNotInstantiable:
    def test_protocol_is_not_instantiable(self, container: Container) -> None:
        with pytest.raises(RewireNotInstantiableError) as exc_info:
            container.make(Logger)

        assert str(exc_info.value) == f"Target [{Logger.__module__}.Logger] is not instantiable."

    def test_build_of_non_class_value(self, container: Container) -> None:
        with pytest.raises(RewireNotInstantiableError):
            container.build(42)

    def test_build_ignores_bindings_for_target(self, container: Container) -> None:
        container.bind(Clock, lambda: "not a clock")

        assert isinstance(container.build(Clock), Clock)
        assert container.make(Clock) == "not a clock"


class TestCircularDependencies:
    def test_self_dependency_detected(self, container: Container) -> None:
        with pytest.raises(RewireCircularDependencyError) as exc_info:
            container.make(Node)

        assert exc_info.value.key is Node
        assert exc_info.value.build_stack == [Node]

    def test_two_class_cycle_reports_chain(self, container: Container) -> None:
        with pytest.raises(RewireCircularDependencyError) as exc_info:
            container.make(Left)

        assert exc_info.value.build_stack == [Left, Right]
        assert "Left" in str(exc_info.value)
        assert "Right" in str(exc_info.value)

    def test_cycle_not_masked_by_default(self, container: Container) -> None:
        with pytest.raises(RewireCircularDependencyError):
            container.make(OptionalLeft)

    def test_build_stack_empty_after_failure(self, container: Container) -> None:
        with pytest.raises(RewireCircularDependencyError):
            container.make(Left)

        assert container.build_stack == ()

    def test_detection_can_be_disabled(self) -> None:
        container = Container(detect_circular=False)

        with pytest.raises(RecursionError):
            container.make(Node)
