"""Diagnostics reported by a flagged-API check.

The set of diagnostics is closed: :data:`API_ERROR_TYPES` lists every
concrete variant and anything dispatching on them should cover all three.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable

    from model.symbols import Flag, Symbol

ApiErrorKind = Literal["enabled-not-present", "disabled-present", "unknown-flag"]


@dataclass(frozen=True)
class ApiError(ABC):
    symbol: Symbol
    flag: Flag

    kind: ClassVar[ApiErrorKind]

    @property
    @abstractmethod
    def description(self) -> str: ...

    def __str__(self) -> str:
        return f"error: {self.description}: symbol={self.symbol} flag={self.flag}"

    def sort_key(self) -> tuple[str, str, str]:
        return (str(self.symbol), str(self.flag), self.kind)

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind,
            "symbol": str(self.symbol),
            "flag": str(self.flag),
            "message": str(self),
        }


@dataclass(frozen=True)
class EnabledFlaggedApiNotPresentError(ApiError):
    kind: ClassVar[ApiErrorKind] = "enabled-not-present"

    @property
    def description(self) -> str:
        return "enabled @FlaggedApi not present in built artifact"


@dataclass(frozen=True)
class DisabledFlaggedApiIsPresentError(ApiError):
    kind: ClassVar[ApiErrorKind] = "disabled-present"

    @property
    def description(self) -> str:
        return "disabled @FlaggedApi is present in built artifact"


@dataclass(frozen=True)
class UnknownFlagError(ApiError):
    kind: ClassVar[ApiErrorKind] = "unknown-flag"

    @property
    def description(self) -> str:
        return "unknown flag"


API_ERROR_TYPES: tuple[type[ApiError], ...] = (
    EnabledFlaggedApiNotPresentError,
    DisabledFlaggedApiIsPresentError,
    UnknownFlagError,
)


def sorted_errors(errors: Iterable[ApiError]) -> list[ApiError]:
    """Return errors ordered by symbol, then flag, then kind."""
    return sorted(errors, key=lambda error: error.sort_key())


__all__ = [
    "API_ERROR_TYPES",
    "ApiError",
    "ApiErrorKind",
    "DisabledFlaggedApiIsPresentError",
    "EnabledFlaggedApiNotPresentError",
    "UnknownFlagError",
    "sorted_errors",
]
