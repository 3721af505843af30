"""
Option synthesis: alias, type and default for every user-facing member.
"""

import dataclasses
import logging
from typing import Any

from .discovery import TypeShape
from .errors import DiscoveryError
from .members import BindableMember, MemberKind
from .naming import alias_for

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class OptionDescriptor:
    """
    An option synthesized from one bindable member, ready to be registered by
    a command-line front end.

    Attributes:
        name: Name of the member the option binds to.
        aliases: Command-line aliases, e.g. ``{"--int-option"}``.
        argument_type: The member's semantic type.
        default: Default value, or ``dataclasses.MISSING`` when there is none.
        kind: Whether the member is a constructor parameter or a property.
        description: Help text for the option.
    """

    name: str
    aliases: frozenset[str]
    argument_type: Any
    default: Any = dataclasses.MISSING
    kind: MemberKind = MemberKind.CONSTRUCTOR_PARAMETER
    description: str = ""

    @property
    def has_default(self) -> bool:
        return self.default is not dataclasses.MISSING

    def has_alias(self, alias: str) -> bool:
        return alias in self.aliases


def resolve_default(member: BindableMember) -> Any:
    """
    Return the default an option built from ``member`` should carry.

    Only constructor parameters contribute their declared default (a
    ``default_factory`` is called once per option built); properties never do,
    so a property-backed option only has a default if its caller configures one
    by hand.
    """
    if member.kind is MemberKind.CONSTRUCTOR_PARAMETER:
        return member.default_value()
    return dataclasses.MISSING


def build_option(member: BindableMember) -> OptionDescriptor:
    return OptionDescriptor(
        name=member.name,
        aliases=frozenset((alias_for(member.name),)),
        argument_type=member.semantic_type,
        default=resolve_default(member),
        kind=member.kind,
        description=member.description,
    )


def build_options(shape: TypeShape) -> list[OptionDescriptor]:
    """
    Build one OptionDescriptor per non-infrastructure member of ``shape``.

    Constructor parameters come first, then properties, each in declaration
    order. Nothing is registered anywhere; the result can be rebuilt freely.

    Raises:
        DiscoveryError: If two members synthesize the same alias.
    """
    options = []
    owners: dict[str, BindableMember] = {}
    for member in shape.members:
        if member.is_infrastructure:
            logger.debug(
                "Skipping infrastructure %s '%s' of %s",
                member.kind.value,
                member.name,
                shape.target_type.__name__,
            )
            continue
        option = build_option(member)
        for alias in option.aliases:
            key = alias.lower()
            if key in owners:
                other = owners[key]
                raise DiscoveryError(
                    f"Alias '{alias}' of {shape.target_type.__name__} is synthesized by both "
                    f"{other.kind.value} '{other.name}' and {member.kind.value} '{member.name}'"
                )
            owners[key] = member
        options.append(option)
    return options
