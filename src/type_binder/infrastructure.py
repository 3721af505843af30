"""
Environment-injected types that are never exposed as user-facing options.

A member whose type is one of these (or a subclass, or an Optional of one) is
still part of the bound type, but build_options skips it. When an instance is
materialized from an InvocationContext, such members are supplied from the
context instead of from the resolved values.
"""

import argparse
import re
import sys
import threading
import types
import typing
from typing import Any, Optional, TextIO, Union

from .resolved import ResolvedValues


class Console:
    """Output abstraction over an ``out`` and an ``err`` text stream."""

    def __init__(
        self, out: Optional[TextIO] = None, err: Optional[TextIO] = None
    ) -> None:
        self.out: TextIO = out if out is not None else sys.stdout
        self.err: TextIO = err if err is not None else sys.stderr

    def write(self, text: str) -> None:
        self.out.write(text)

    def error(self, text: str) -> None:
        self.err.write(text)


class CancellationToken:
    """Cooperative cancellation signal shared between an invocation and its handler."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancellation is requested or ``timeout`` elapses."""
        return self._event.wait(timeout)


class ParseResult:
    """
    Outcome of parsing one command line.

    Attributes:
        namespace: The raw argparse namespace.
        values: Resolved values after merging configured defaults, the config
            file and the command line.
        config_data: The loaded config file contents (empty when none was given).
    """

    def __init__(
        self,
        namespace: argparse.Namespace,
        values: ResolvedValues,
        config_data: Optional[dict[str, Any]] = None,
    ) -> None:
        self.namespace = namespace
        self.values = values
        self.config_data = config_data or {}

    def __repr__(self) -> str:
        return f"ParseResult(values={self.values!r})"


class InvocationContext:
    """Everything one invocation of a command carries besides its option values."""

    def __init__(
        self,
        parse_result: ParseResult,
        console: Optional[Console] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> None:
        self.parse_result = parse_result
        self.console = console if console is not None else Console()
        self.cancellation_token = (
            cancellation_token if cancellation_token is not None else CancellationToken()
        )

    @property
    def values(self) -> ResolvedValues:
        return self.parse_result.values

    def service_for(self, tp: Any) -> Any:
        """Return the infrastructure object this context supplies for ``tp``."""
        tp = _unwrap_optional(tp)
        if issubclass(tp, InvocationContext):
            return self
        if issubclass(tp, ParseResult):
            return self.parse_result
        if issubclass(tp, Console):
            return self.console
        if issubclass(tp, CancellationToken):
            return self.cancellation_token
        raise TypeError(f"{tp!r} is not an infrastructure type")


INFRASTRUCTURE_TYPES: tuple[type, ...] = (
    Console,
    InvocationContext,
    ParseResult,
    CancellationToken,
)


_ANNOTATION_NAME = re.compile(r"[A-Za-z_][\w.]*")
_OPTIONAL_WRAPPERS = {"None", "Optional", "Union"}


def _unwrap_optional(tp: Any) -> Any:
    if isinstance(tp, str):
        return _class_named(tp)
    if typing.get_origin(tp) in (Union, types.UnionType):
        non_none = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(non_none) == 1:
            return _unwrap_optional(non_none[0])
    return tp


def _class_named(annotation: str) -> Any:
    """
    The infrastructure class an unevaluated annotation such as
    ``"CancellationToken"`` or ``"Optional[Console]"`` names, else the string.
    """
    names = [
        name.rsplit(".", 1)[-1] for name in _ANNOTATION_NAME.findall(annotation)
    ]
    names = [name for name in names if name not in _OPTIONAL_WRAPPERS]
    if len(names) == 1:
        for cls in INFRASTRUCTURE_TYPES:
            if cls.__name__ == names[0]:
                return cls
    return annotation


def is_infrastructure_type(tp: Any) -> bool:
    """
    True when ``tp`` is, derives from, or is an Optional of an infrastructure
    type. A string annotation counts when it names one of them.
    """
    tp = _unwrap_optional(tp)
    return isinstance(tp, type) and issubclass(tp, INFRASTRUCTURE_TYPES)
