"""
Exceptions raised by the type binder.

Bind-time problems (a type that cannot be bound, colliding member names or
aliases) raise DiscoveryError. Invocation-time problems (a required constructor
parameter with nothing to bind to it) raise MissingValueError. Errors raised by
the target type's own constructor or setters are never wrapped.
"""

from typing import Optional


class BinderError(Exception):
    """Base class for all errors raised by the binder itself."""


class DiscoveryError(BinderError):
    """The target type cannot be bound: no usable constructor, or a name/alias collision."""


class MissingValueError(BinderError):
    """
    A required constructor parameter had neither a resolved value nor a default.

    Attributes:
        member_name: Name of the constructor parameter that could not be bound.
        type_name: Name of the type being materialized, when known.
    """

    def __init__(self, member_name: str, type_name: Optional[str] = None) -> None:
        self.member_name = member_name
        self.type_name = type_name
        target = f" of {type_name}" if type_name else ""
        super().__init__(
            f"No value resolved for required constructor parameter '{member_name}'{target}"
        )
