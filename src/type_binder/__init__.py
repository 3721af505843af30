"""
TypeBinder - derive command-line options from a type's shape and bind parsed values back to it.

This package synthesizes option definitions from a class's constructor parameters and
writable properties, and later materializes a new instance of that class from resolved
command-line values, matched by name. An argparse front end (BinderArgParser) registers
the synthesized options and supports loading values from YAML or JSON config files.
"""

from .binder import TypeBinder
from .discovery import TypeShape, discover
from .errors import BinderError, DiscoveryError, MissingValueError
from .infrastructure import (
    INFRASTRUCTURE_TYPES,
    CancellationToken,
    Console,
    InvocationContext,
    ParseResult,
    is_infrastructure_type,
)
from .members import BindableMember, MemberKind
from .naming import alias_for, kebab_case, normalize_name
from .options import OptionDescriptor, build_options, resolve_default
from .parser import BinderArgParser
from .resolved import ResolvedValues

__version__ = "1.0.0"
__all__ = [
    "INFRASTRUCTURE_TYPES",
    "BindableMember",
    "BinderArgParser",
    "BinderError",
    "CancellationToken",
    "Console",
    "DiscoveryError",
    "InvocationContext",
    "MemberKind",
    "MissingValueError",
    "OptionDescriptor",
    "ParseResult",
    "ResolvedValues",
    "TypeBinder",
    "TypeShape",
    "alias_for",
    "build_options",
    "discover",
    "is_infrastructure_type",
    "kebab_case",
    "normalize_name",
    "resolve_default",
]
