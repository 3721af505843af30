#!/usr/bin/env python3
"""
Tests for materializing instances with TypeBinder.create_instance.
"""

import argparse
from dataclasses import dataclass, field
from typing import Optional

import pytest

from type_binder import (
    BinderError,
    CancellationToken,
    Console,
    InvocationContext,
    MissingValueError,
    ParseResult,
    ResolvedValues,
    TypeBinder,
    TypeShape,
)


class ClassWithMultiLetterCtorParameters:
    def __init__(
        self,
        int_option: int = 123,
        string_option: str = "the default",
        bool_option: bool = False,
    ):
        self.int_option = int_option
        self.string_option = string_option
        self.bool_option = bool_option


class ClassWithRequiredParameter:
    def __init__(self, name: str, count: int = 1):
        self.name = name
        self.count = count


class ClassWithTrackedSetters:
    def __init__(self, s: str = "the default"):
        self._string_option = s
        self.calls = []

    @property
    def string_option(self) -> str:
        return self._string_option

    @string_option.setter
    def string_option(self, value: str) -> None:
        self.calls.append(value)
        self._string_option = value


class ClassWithMultiLetterSetters:
    int_option: int = 0
    string_option: str = ""
    bool_option: bool = False


class ValidatingClass:
    def __init__(self, port: int = 80):
        if not 0 < port < 65536:
            raise ValueError(f"Invalid port: {port}")
        self.port = port

    @property
    def host(self) -> str:
        return self._host

    @host.setter
    def host(self, value: str) -> None:
        if not value:
            raise ValueError("host must not be empty")
        self._host = value


class Handler:
    def __init__(self, console: Console, verbose: bool = False):
        self.console = console
        self.verbose = verbose

    context: Optional[InvocationContext] = None
    parse_result: Optional[ParseResult] = None
    token: Optional[CancellationToken] = None


def make_context(values):
    parse_result = ParseResult(argparse.Namespace(), ResolvedValues(values))
    return InvocationContext(parse_result)


class TestConstructorParameters:
    """Test suite for binding constructor parameters."""

    def test_defaults_used_when_nothing_resolved(self):
        instance = TypeBinder(ClassWithMultiLetterCtorParameters).create_instance({})

        assert instance.int_option == 123
        assert instance.string_option == "the default"
        assert instance.bool_option is False

    def test_resolved_values_override_defaults(self):
        instance = TypeBinder(ClassWithMultiLetterCtorParameters).create_instance(
            {"--string-option": "not-the-default", "IntOption": 7}
        )

        assert instance.string_option == "not-the-default"
        assert instance.int_option == 7
        assert instance.bool_option is False

    def test_resolved_none_is_bound(self):
        instance = TypeBinder(ClassWithMultiLetterCtorParameters).create_instance(
            {"string_option": None}
        )

        assert instance.string_option is None

    def test_missing_required_parameter(self):
        """Test that a required parameter with no value raises MissingValueError."""
        binder = TypeBinder(ClassWithRequiredParameter)

        with pytest.raises(MissingValueError, match="'name' of ClassWithRequiredParameter") as exc_info:
            binder.create_instance({"count": 2})

        assert exc_info.value.member_name == "name"
        assert exc_info.value.type_name == "ClassWithRequiredParameter"

    def test_unrelated_values_are_ignored(self):
        instance = TypeBinder(ClassWithRequiredParameter).create_instance(
            {"name": "n", "verbose": True}
        )

        assert instance.name == "n"
        assert instance.count == 1

    def test_positional_only_parameters(self):
        class PositionalOnly:
            def __init__(self, a: int, /, b: int = 2):
                self.a = a
                self.b = b

        instance = TypeBinder(PositionalOnly).create_instance({"a": 1})
        assert (instance.a, instance.b) == (1, 2)

    def test_dataclass_default_factory_gives_fresh_values(self):
        @dataclass
        class WithFactory:
            tags: list = field(default_factory=list)

        binder = TypeBinder(WithFactory)
        first = binder.create_instance({})
        second = binder.create_instance({})

        assert first.tags == []
        assert first.tags is not second.tags

    def test_alternate_factory(self):
        class Point:
            def __init__(self, x: int):
                self.x = x
                self.y = 0

            @classmethod
            def at(cls, x: int, y: int = 5) -> "Point":
                point = cls(x)
                point.y = y
                return point

        point = TypeBinder(Point, factories=[Point.at]).create_instance({"x": 1})
        assert (point.x, point.y) == (1, 5)


class TestProperties:
    """Test suite for binding property setters."""

    def test_resolved_values_are_set(self):
        instance = TypeBinder(ClassWithMultiLetterSetters).create_instance(
            {"bool-option": True, "StringOption": "set"}
        )

        assert instance.bool_option is True
        assert instance.string_option == "set"
        assert instance.int_option == 0

    def test_unresolved_properties_are_not_touched(self):
        """Test that setters with no value are never called."""
        instance = TypeBinder(ClassWithTrackedSetters).create_instance({})

        assert instance.calls == []
        assert instance.string_option == "the default"

    def test_setter_called_once_with_resolved_value(self):
        instance = TypeBinder(ClassWithTrackedSetters).create_instance(
            {"string_option": "x"}
        )

        assert instance.calls == ["x"]

    def test_property_sharing_a_parameter_name_is_set_by_the_constructor_only(self):
        class Shared:
            def __init__(self, value: int = 0):
                self._value = value
                self.sets = 0

            @property
            def value(self) -> int:
                return self._value

            @value.setter
            def value(self, v: int) -> None:
                self.sets += 1
                self._value = v

        instance = TypeBinder(Shared).create_instance({"value": 3})
        assert instance.value == 3
        assert instance.sets == 0

    def test_class_attribute_values_stay_when_unresolved(self):
        instance = TypeBinder(ClassWithMultiLetterSetters).create_instance({})

        assert "string_option" not in vars(instance)
        assert instance.string_option == ""


class TestFailures:
    """Test suite for failure propagation."""

    def test_constructor_errors_propagate_unwrapped(self):
        with pytest.raises(ValueError, match="Invalid port: 0"):
            TypeBinder(ValidatingClass).create_instance({"port": 0})

    def test_setter_errors_propagate_unwrapped(self):
        with pytest.raises(ValueError, match="host must not be empty"):
            TypeBinder(ValidatingClass).create_instance({"host": ""})

    def test_declared_shape_not_fitting_the_constructor(self):
        shape = TypeShape.declare(ClassWithRequiredParameter, parameters=[("title", str)])

        with pytest.raises(BinderError, match="do not fit its constructor") as exc_info:
            TypeBinder(shape).create_instance({"title": "t"})

        message = str(exc_info.value)
        assert "member 'title' is not a constructor parameter" in message
        assert "parameter 'name' has no bound member" in message

    def test_declared_shape_with_factory(self):
        shape = TypeShape.declare(
            ClassWithRequiredParameter,
            parameters=[("title", str), ("size", int, 4)],
            factory=lambda title, size: ClassWithRequiredParameter(title, size),
        )

        instance = TypeBinder(shape).create_instance({"title": "t"})
        assert (instance.name, instance.count) == ("t", 4)

    def test_unsupported_value_source(self):
        with pytest.raises(TypeError, match="Cannot resolve values from list"):
            TypeBinder(ClassWithMultiLetterCtorParameters).create_instance([])

    def test_safe_create_instance(self):
        binder = TypeBinder(ClassWithRequiredParameter)

        ok = binder.safe_create_instance({"name": "n"})
        assert ok.is_ok()
        assert ok.unwrap().name == "n"

        err = binder.safe_create_instance({})
        assert err.is_err()
        assert "'name'" in err.unwrap_err()


class TestValueSources:
    """Test suite for the accepted value sources."""

    def test_parse_result_source(self):
        parse_result = ParseResult(
            argparse.Namespace(), ResolvedValues({"string_option": "from parse"})
        )

        instance = TypeBinder(ClassWithMultiLetterCtorParameters).create_instance(parse_result)
        assert instance.string_option == "from parse"

    def test_infrastructure_members_injected_from_context(self):
        """Test that infrastructure members come from the invocation context."""
        context = make_context({"verbose": True})

        handler = TypeBinder(Handler).create_instance(context)

        assert handler.console is context.console
        assert handler.context is context
        assert handler.parse_result is context.parse_result
        assert handler.token is context.cancellation_token
        assert handler.verbose is True

    def test_infrastructure_parameter_without_context_is_missing(self):
        with pytest.raises(MissingValueError, match="'console'"):
            TypeBinder(Handler).create_instance({"verbose": True})

    def test_infrastructure_parameter_from_plain_mapping(self):
        console = Console()

        handler = TypeBinder(Handler).create_instance({"console": console})
        assert handler.console is console
        assert handler.token is None
