"""
Member discovery: turning a class into a TypeShape.

A TypeShape is the ordered list of constructor parameters and writable
properties the binder works from. It is normally discovered from the class with
``inspect``, but can also be declared explicitly with TypeShape.declare when a
type's construction should not be inferred.
"""

import dataclasses
import inspect
import logging
import sys
import typing
from collections.abc import Callable, Iterable, Sequence
from typing import Any, ClassVar, Optional, Union

from .errors import DiscoveryError
from .members import BindableMember, MemberKind

logger = logging.getLogger(__name__)

MemberSpec = Union[BindableMember, tuple]

_SKIPPED_PARAMETER_KINDS = (
    inspect.Parameter.VAR_POSITIONAL,
    inspect.Parameter.VAR_KEYWORD,
)


@dataclasses.dataclass(frozen=True)
class TypeShape:
    """
    The bindable shape of a target type.

    Attributes:
        target_type: The type being bound.
        constructor: The callable invoked to create instances. Usually the type
            itself; may be an alternate factory.
        parameters: Constructor parameters, in declaration order.
        properties: Writable properties, in declaration order.
    """

    target_type: type
    constructor: Callable[..., Any]
    parameters: tuple[BindableMember, ...] = ()
    properties: tuple[BindableMember, ...] = ()

    def __post_init__(self) -> None:
        _check_members(self.target_type, self.parameters, MemberKind.CONSTRUCTOR_PARAMETER)
        _check_members(self.target_type, self.properties, MemberKind.PROPERTY)

    @property
    def members(self) -> tuple[BindableMember, ...]:
        return self.parameters + self.properties

    @classmethod
    def declare(
        cls,
        target_type: type,
        parameters: Iterable[MemberSpec] = (),
        properties: Iterable[MemberSpec] = (),
        factory: Optional[Callable[..., Any]] = None,
    ) -> "TypeShape":
        """
        Build a shape from an explicit schema instead of inspecting the type.

        Parameters may be given as BindableMember instances or as
        ``(name, type)`` / ``(name, type, default)`` tuples; properties as
        BindableMember instances or ``(name, type)`` tuples. ``factory`` receives
        the constructor arguments by keyword and defaults to ``target_type``.

        Example:
            shape = TypeShape.declare(
                Point,
                parameters=[("x", int), ("y", int, 0)],
                properties=[("label", str)],
            )
        """
        return cls(
            target_type=target_type,
            constructor=factory if factory is not None else target_type,
            parameters=tuple(
                _member_from_spec(spec, MemberKind.CONSTRUCTOR_PARAMETER)
                for spec in parameters
            ),
            properties=tuple(
                _member_from_spec(spec, MemberKind.PROPERTY) for spec in properties
            ),
        )


def _member_from_spec(spec: MemberSpec, kind: MemberKind) -> BindableMember:
    if isinstance(spec, BindableMember):
        if spec.kind is not kind:
            raise DiscoveryError(f"Member '{spec.name}' is a {spec.kind.value}, expected {kind.value}")
        return spec
    if isinstance(spec, tuple) and len(spec) in (2, 3):
        name, semantic_type, *rest = spec
        if rest and kind is MemberKind.PROPERTY:
            raise DiscoveryError(f"Property '{name}' cannot declare a default")
        default = rest[0] if rest else dataclasses.MISSING
        return BindableMember(name, semantic_type, kind, default)
    raise DiscoveryError(
        f"Invalid member declaration {spec!r}: expected BindableMember, "
        "(name, type) or (name, type, default)"
    )


def _check_members(
    target_type: type, members: Sequence[BindableMember], kind: MemberKind
) -> None:
    seen: dict[str, str] = {}
    for member in members:
        if member.kind is not kind:
            raise DiscoveryError(
                f"Member '{member.name}' of {target_type.__name__} is a "
                f"{member.kind.value}, expected {kind.value}"
            )
        normalized = member.normalized_name
        if not normalized:
            raise DiscoveryError(
                f"Member name '{member.name}' of {target_type.__name__} is not bindable"
            )
        if normalized in seen:
            raise DiscoveryError(
                f"{kind.value.capitalize()}s '{seen[normalized]}' and '{member.name}' of "
                f"{target_type.__name__} both normalize to '{normalized}'"
            )
        seen[normalized] = member.name


def _type_hints(obj: Any) -> dict[str, Any]:
    """
    Resolved type hints of ``obj``.

    typing.get_type_hints gives up on every annotation when one of them cannot
    be resolved. In that case each annotation is evaluated on its own, and the
    ones that still fail are kept as their source strings.
    """
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError) as e:
        logger.debug("Could not resolve all type hints of %r: %s", obj, e)

    if isinstance(obj, type):
        hints: dict[str, Any] = {}
        for klass in reversed(obj.__mro__):
            module = sys.modules.get(klass.__module__)
            globalns = dict(vars(module)) if module is not None else {}
            localns = dict(vars(klass))
            for name, annotation in inspect.get_annotations(klass).items():
                hints[name] = _evaluate(annotation, globalns, localns)
        return hints

    function = inspect.unwrap(getattr(obj, "__func__", obj))
    globalns = dict(getattr(function, "__globals__", {}))
    annotations = getattr(function, "__annotations__", None) or {}
    return {
        name: _evaluate(annotation, globalns, None)
        for name, annotation in annotations.items()
    }


def _evaluate(annotation: Any, globalns: dict[str, Any], localns: Any) -> Any:
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, globalns, localns)
    except (NameError, AttributeError, TypeError, SyntaxError):
        return annotation


def _dataclass_fields(target_type: type) -> dict[str, dataclasses.Field]:
    if not dataclasses.is_dataclass(target_type):
        return {}
    return {f.name: f for f in dataclasses.fields(target_type)}


def _field_help(fields: dict[str, dataclasses.Field], name: str) -> str:
    """Help text from the ``metadata["help"]`` of a dataclass field."""
    field = fields.get(name)
    return field.metadata.get("help", "") if field is not None else ""


def _signature(constructor: Callable[..., Any]) -> Optional[inspect.Signature]:
    try:
        return inspect.signature(constructor)
    except (TypeError, ValueError):
        return None


def _bindable_parameters(signature: inspect.Signature) -> list[inspect.Parameter]:
    return [
        p for p in signature.parameters.values() if p.kind not in _SKIPPED_PARAMETER_KINDS
    ]


def _select_constructor(
    target_type: type, factories: Sequence[Callable[..., Any]]
) -> tuple[Callable[..., Any], inspect.Signature]:
    """
    Pick the constructor to bind to.

    The type itself is the first candidate unless it is abstract or has no
    inspectable signature; alternate factories follow in the order given. The
    candidate with the most bindable parameters wins, the earliest on a tie.
    """
    candidates: list[tuple[Callable[..., Any], inspect.Signature]] = []
    if not inspect.isabstract(target_type):
        signature = _signature(target_type)
        if signature is not None:
            candidates.append((target_type, signature))
    for factory in factories:
        signature = _signature(factory)
        if signature is None:
            raise DiscoveryError(
                f"Factory {factory!r} for {target_type.__name__} has no inspectable signature"
            )
        candidates.append((factory, signature))

    if not candidates:
        raise DiscoveryError(f"{target_type.__name__} exposes no public constructor")

    return max(candidates, key=lambda c: len(_bindable_parameters(c[1])))


def _discover_parameters(
    target_type: type, constructor: Callable[..., Any], signature: inspect.Signature
) -> tuple[BindableMember, ...]:
    if constructor is target_type:
        hints = _type_hints(target_type)
        hints.update(_type_hints(target_type.__init__))
        fields = _dataclass_fields(target_type)
    else:
        hints = _type_hints(constructor)
        fields = {}
    hints.pop("return", None)

    members = []
    for parameter in _bindable_parameters(signature):
        semantic_type = hints.get(parameter.name)
        if semantic_type is None:
            semantic_type = (
                parameter.annotation
                if parameter.annotation is not inspect.Parameter.empty
                else str
            )
        default = (
            parameter.default
            if parameter.default is not inspect.Parameter.empty
            else dataclasses.MISSING
        )
        # A dataclass default_factory shows up in the signature as an opaque sentinel.
        default_factory = None
        field = fields.get(parameter.name)
        if field is not None and field.default_factory is not dataclasses.MISSING:
            default, default_factory = dataclasses.MISSING, field.default_factory
        members.append(
            BindableMember(
                name=parameter.name,
                semantic_type=semantic_type,
                kind=MemberKind.CONSTRUCTOR_PARAMETER,
                default=default,
                positional_only=parameter.kind is inspect.Parameter.POSITIONAL_ONLY,
                description=_field_help(fields, parameter.name),
                default_factory=default_factory,
            )
        )
    return tuple(members)


def _property_type(prop: property) -> Any:
    if prop.fget is not None:
        returned = _type_hints(prop.fget).get("return")
        if returned is not None:
            return returned
    setter_hints = _type_hints(prop.fset)
    setter_hints.pop("return", None)
    if setter_hints:
        return next(reversed(setter_hints.values()))
    return str


def _is_class_var(hint: Any) -> bool:
    return hint is ClassVar or typing.get_origin(hint) is ClassVar


def _discover_properties(
    target_type: type, parameter_names: set[str]
) -> tuple[BindableMember, ...]:
    """
    Collect writable public properties, base classes first.

    A property is a ``property`` with a setter, or a public annotated class
    attribute that is not also a constructor parameter (dataclass fields with
    ``init=False`` land here). Frozen dataclasses expose no annotated attributes.
    """
    hints = _type_hints(target_type)
    fields = _dataclass_fields(target_type)
    frozen = (
        dataclasses.is_dataclass(target_type)
        and target_type.__dataclass_params__.frozen
    )
    found: dict[str, BindableMember] = {}
    for klass in reversed(target_type.__mro__):
        if klass is object:
            continue
        for name in inspect.get_annotations(klass):
            if name.startswith("_") or name in parameter_names or frozen:
                continue
            hint = hints.get(name, str)
            if _is_class_var(hint):
                continue
            found[name] = BindableMember(
                name, hint, MemberKind.PROPERTY, description=_field_help(fields, name)
            )
        for name, attr in vars(klass).items():
            if name.startswith("_") or not isinstance(attr, property):
                continue
            if attr.fset is None:
                found.pop(name, None)
                continue
            found[name] = BindableMember(name, _property_type(attr), MemberKind.PROPERTY)
    return tuple(found.values())


def discover(
    target_type: type, factories: Sequence[Callable[..., Any]] = ()
) -> TypeShape:
    """
    Inspect ``target_type`` and return its TypeShape.

    Args:
        target_type: The class to bind.
        factories: Alternate constructors (for example classmethods) competing
            with the class itself for selection.

    Raises:
        DiscoveryError: If ``target_type`` is not a class, has no usable
            constructor, or two members of the same kind normalize to one name.
    """
    if not isinstance(target_type, type):
        raise DiscoveryError(f"{target_type!r} is not a class")

    constructor, signature = _select_constructor(target_type, factories)
    parameters = _discover_parameters(target_type, constructor, signature)
    properties = _discover_properties(target_type, {p.name for p in parameters})

    logger.debug(
        "Discovered %s: constructor=%r parameters=%s properties=%s",
        target_type.__name__,
        constructor,
        [p.name for p in parameters],
        [p.name for p in properties],
    )
    return TypeShape(target_type, constructor, parameters, properties)
