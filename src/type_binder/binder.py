"""
TypeBinder: synthesizes options from a type and materializes instances of it.

Example:
    class Settings:
        def __init__(self, int_option: int = 123, string_option: str = "the default"):
            self.int_option = int_option
            self.string_option = string_option

    binder = TypeBinder(Settings)
    binder.build_options()          # --int-option, --string-option
    settings = binder.create_instance({"string-option": "not-the-default"})
"""

import dataclasses
import inspect
import logging
import threading
import weakref
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Optional, Union

from result import Err, Ok, Result

from .discovery import TypeShape, discover
from .errors import BinderError, MissingValueError
from .infrastructure import InvocationContext, ParseResult
from .members import BindableMember
from .options import OptionDescriptor, build_options
from .resolved import ResolvedValues

logger = logging.getLogger(__name__)

ValueSource = Union[InvocationContext, ParseResult, Mapping[str, Any]]

# Published shapes, keyed by (type, factories). An entry lives only as long as
# some binder holds its shape. Concurrent first use may discover twice, but the
# locked setdefault publishes exactly one shape.
_SHAPES: "weakref.WeakValueDictionary[tuple[type, tuple[Callable[..., Any], ...]], TypeShape]" = (
    weakref.WeakValueDictionary()
)
_PUBLISH_LOCK = threading.Lock()


def shape_of(
    target_type: type, factories: Sequence[Callable[..., Any]] = ()
) -> TypeShape:
    """Return the memoized TypeShape of ``target_type``, discovering it on first use."""
    key = (target_type, tuple(factories))
    shape = _SHAPES.get(key)
    if shape is None:
        discovered = discover(target_type, key[1])
        with _PUBLISH_LOCK:
            shape = _SHAPES.setdefault(key, discovered)
    return shape


class TypeBinder:
    """
    Binds command-line values to one target type by member name.

    build_options and create_instance are independent: options registered by
    hand bind just as well, as long as their names match the type's members.

    Args:
        target: The class to bind, or an explicitly declared TypeShape.
        factories: Alternate constructors competing with the class itself
            (ignored when ``target`` is a TypeShape).

    Raises:
        DiscoveryError: If the type cannot be bound.
    """

    def __init__(
        self,
        target: Union[type, TypeShape],
        factories: Sequence[Callable[..., Any]] = (),
    ) -> None:
        if isinstance(target, TypeShape):
            self.shape = target
        else:
            self.shape = shape_of(target, factories)

    @property
    def target_type(self) -> type:
        return self.shape.target_type

    def __repr__(self) -> str:
        return f"TypeBinder({self.target_type.__name__})"

    def build_options(self) -> list[OptionDescriptor]:
        """One option per non-infrastructure member. See options.build_options."""
        return build_options(self.shape)

    def create_instance(self, source: ValueSource) -> Any:
        """
        Create a new instance of the target type from resolved values.

        Constructor parameters take their resolved value, else their declared
        default, else fail. Properties are set only when a value was resolved
        for them; otherwise whatever the constructor left in place stays.
        Infrastructure members are supplied by ``source`` when it is an
        InvocationContext.

        Args:
            source: An InvocationContext, a ParseResult, or any mapping of
                member names to already-typed values.

        Returns:
            The fully materialized instance.

        Raises:
            MissingValueError: If a required constructor parameter has no value.
            BinderError: If the assembled arguments do not fit the constructor.
        """
        context, values = _values_from(source)
        type_name = self.target_type.__name__

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in self.shape.parameters:
            value = _resolve(parameter, values, context)
            if value is dataclasses.MISSING:
                if not parameter.has_default:
                    raise MissingValueError(parameter.name, type_name)
                value = parameter.default_value()
            if parameter.positional_only:
                args.append(value)
            else:
                kwargs[parameter.name] = value

        self._check_arguments(args, kwargs)
        instance = self.shape.constructor(*args, **kwargs)

        consumed = {p.normalized_name for p in self.shape.parameters}
        for prop in self.shape.properties:
            if prop.normalized_name in consumed:
                continue
            value = _resolve(prop, values, context)
            if value is dataclasses.MISSING:
                continue
            setattr(instance, prop.name, value)

        logger.debug("Created %s from %d resolved values", type_name, len(values))
        return instance

    def safe_create_instance(self, source: ValueSource) -> Result[Any, str]:
        """
        Like create_instance, but returns the outcome instead of raising.

        Returns:
            Ok(instance), or Err with the error message.
        """
        try:
            return Ok(self.create_instance(source))
        except Exception as e:
            return Err(str(e))

    def _check_arguments(self, args: list[Any], kwargs: dict[str, Any]) -> None:
        try:
            signature = inspect.signature(self.shape.constructor)
        except (TypeError, ValueError):
            return
        try:
            signature.bind(*args, **kwargs)
        except TypeError as e:
            problems = _unfit_members(signature, kwargs) or [str(e)]
            raise BinderError(
                f"Arguments bound for {self.target_type.__name__} do not fit its "
                f"constructor: {'; '.join(problems)}"
            ) from e


def _unfit_members(signature: inspect.Signature, kwargs: dict[str, Any]) -> list[str]:
    accepted = signature.parameters
    takes_any_keyword = any(
        p.kind is inspect.Parameter.VAR_KEYWORD for p in accepted.values()
    )
    problems = []
    if not takes_any_keyword:
        problems.extend(
            f"member '{name}' is not a constructor parameter"
            for name in kwargs
            if name not in accepted
        )
    problems.extend(
        f"parameter '{p.name}' has no bound member"
        for p in accepted.values()
        if p.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
        and p.default is inspect.Parameter.empty
        and p.name not in kwargs
    )
    return problems


def _values_from(
    source: ValueSource,
) -> tuple[Optional[InvocationContext], ResolvedValues]:
    if isinstance(source, InvocationContext):
        return source, source.values
    if isinstance(source, ParseResult):
        return None, source.values
    if isinstance(source, ResolvedValues):
        return None, source
    if isinstance(source, Mapping):
        return None, ResolvedValues(source)
    raise TypeError(
        f"Cannot resolve values from {type(source).__name__}; expected an "
        "InvocationContext, a ParseResult or a mapping"
    )


def _resolve(
    member: BindableMember,
    values: ResolvedValues,
    context: Optional[InvocationContext],
) -> Any:
    if context is not None and member.is_infrastructure:
        return context.service_for(member.semantic_type)
    return values.get(member.name, dataclasses.MISSING)
