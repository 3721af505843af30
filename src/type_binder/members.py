"""
Bindable members: the constructor parameters and writable properties of a type.
"""

import dataclasses
import enum
from collections.abc import Callable
from typing import Any, Optional

from .infrastructure import is_infrastructure_type
from .naming import normalize_name


class MemberKind(enum.Enum):
    CONSTRUCTOR_PARAMETER = "constructor parameter"
    PROPERTY = "property"


@dataclasses.dataclass(frozen=True)
class BindableMember:
    """
    One constructor parameter or writable property of a bound type.

    ``default`` is ``dataclasses.MISSING`` when the member declares none;
    ``default_factory`` stands in for it on dataclass fields declared with one.
    Properties never carry a default. ``positional_only`` marks constructor
    parameters that must be passed positionally. ``description`` is help text,
    taken from a dataclass field's ``metadata["help"]`` when discovered.
    """

    name: str
    semantic_type: Any
    kind: MemberKind
    default: Any = dataclasses.field(default_factory=lambda: dataclasses.MISSING)
    positional_only: bool = False
    description: str = ""
    default_factory: Optional[Callable[[], Any]] = None

    def __post_init__(self) -> None:
        if self.kind is MemberKind.PROPERTY and self.has_default:
            raise ValueError(f"Property '{self.name}' cannot declare a default")

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    @property
    def has_default(self) -> bool:
        return self.default is not dataclasses.MISSING or self.default_factory is not None

    def default_value(self) -> Any:
        """The declared default, or a fresh value from ``default_factory``."""
        if self.default is not dataclasses.MISSING:
            return self.default
        if self.default_factory is not None:
            return self.default_factory()
        return dataclasses.MISSING

    @property
    def is_infrastructure(self) -> bool:
        """True when this member is environment-injected and gets no option."""
        return is_infrastructure_type(self.semantic_type)
