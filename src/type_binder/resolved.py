"""
Name-normalized, read-only lookup of already-typed values.
"""

from collections.abc import Iterator, Mapping
from typing import Any, Optional

from .naming import normalize_name


class ResolvedValues(Mapping[str, Any]):
    """
    Read-only mapping from option/argument names to resolved values.

    Keys are compared through normalize_name, so ``--int-option``, ``int_option``
    and ``IntOption`` all address the same entry. Iteration yields normalized
    keys. ``None`` is a value like any other; a name that was never resolved is
    simply absent.

    Example:
        values = ResolvedValues({"int_option": 3})
        assert values["--int-option"] == 3
        assert "IntOption" in values
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        self._values: dict[str, Any] = {}
        self._sources: dict[str, str] = {}
        for key, value in (values or {}).items():
            normalized = normalize_name(key)
            if normalized in self._values:
                raise ValueError(
                    f"Resolved value names '{self._sources[normalized]}' and '{key}' "
                    f"both normalize to '{normalized}'"
                )
            self._values[normalized] = value
            self._sources[normalized] = key

    def __getitem__(self, name: str) -> Any:
        return self._values[normalize_name(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ResolvedValues({self._values!r})"
