"""Canonical identifiers shared by all parsers.

Each input format spells the fully qualified path to a Java symbol slightly
differently (``pkg/Outer$Inner`` in api-versions XML, ``pkg.Outer#field`` in
baseline identifiers). Everything is converted to a :class:`Symbol` so the
three sources can be compared by value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

FORBIDDEN_CHARS = ("/", "#", "$")


@dataclass(frozen=True, order=True)
class Symbol:
    """Dot-separated fully qualified name of a class, field or method.

    e.g. ``package.class.inner-class.field``
    """

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            msg = "empty string"
            raise ValueError(msg)
        for ch in FORBIDDEN_CHARS:
            if ch in self.name:
                msg = f"{self.name}: contains {ch}"
                raise ValueError(msg)

    @classmethod
    def create(cls, name: str) -> Symbol:
        """Create a Symbol from a string that may use delimiters other than dot."""
        sanitized = name
        for ch in FORBIDDEN_CHARS:
            sanitized = sanitized.replace(ch, ".")
        return cls(sanitized)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, order=True)
class Flag:
    """Fully qualified aconfig flag name: package and name joined by a dot."""

    name: str

    @classmethod
    def from_parts(cls, package: str, name: str) -> Flag:
        return cls(f"{package}.{name}")

    def __str__(self) -> str:
        return self.name


class FlaggedSymbol(NamedTuple):
    """A declared API element and the flag that guards it."""

    symbol: Symbol
    flag: Flag


__all__ = ["FORBIDDEN_CHARS", "Flag", "FlaggedSymbol", "Symbol"]
