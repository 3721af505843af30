"""
Naming conventions shared by option synthesis and value lookup.

Every name comparison in the binder goes through normalize_name, so a member
called ``IntOption``, a Python attribute ``int_option``, an argparse dest
``int_option`` and the alias ``--int-option`` all address the same value.
"""

import re

_LOWER_TO_UPPER = re.compile(r"([a-z])([A-Z])")
_LETTER_TO_DIGIT = re.compile(r"([A-Za-z])([0-9])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def kebab_case(name: str) -> str:
    """
    Convert an identifier to kebab-case.

    Dashes are inserted at lower-to-upper and letter-to-digit transitions, and any
    run of other characters (underscores included) collapses to a single dash.

    Examples:
        >>> kebab_case("IntOption")
        'int-option'
        >>> kebab_case("int_option")
        'int-option'
        >>> kebab_case("option2")
        'option-2'
    """
    name = _LOWER_TO_UPPER.sub(r"\1-\2", name)
    name = _LETTER_TO_DIGIT.sub(r"\1-\2", name)
    return _SEPARATORS.sub("-", name).strip("-").lower()


def normalize_name(name: str) -> str:
    """Strip any option prefix dashes and kebab-case the remainder."""
    return kebab_case(name.lstrip("-"))


def alias_for(name: str) -> str:
    """
    Return the single command-line alias synthesized for a member name.

    A one-character name gets a single dash (``x`` -> ``-x``); anything longer
    gets a double dash and the kebab-cased name (``StringOption`` ->
    ``--string-option``).
    """
    if len(name) == 1:
        return f"-{name}"
    return f"--{kebab_case(name)}"
