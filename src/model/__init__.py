"""Value types shared by the parsers and the cross-referencing engine."""

from model.errors import (
    API_ERROR_TYPES,
    ApiError,
    DisabledFlaggedApiIsPresentError,
    EnabledFlaggedApiNotPresentError,
    UnknownFlagError,
    sorted_errors,
)
from model.symbols import Flag, FlaggedSymbol, Symbol

__all__ = [
    "API_ERROR_TYPES",
    "ApiError",
    "DisabledFlaggedApiIsPresentError",
    "EnabledFlaggedApiNotPresentError",
    "Flag",
    "FlaggedSymbol",
    "Symbol",
    "UnknownFlagError",
    "sorted_errors",
]
