"""Cross-referencing of flagged symbols against flag values and build output."""

from __future__ import annotations

from typing import TYPE_CHECKING

from model.errors import (
    ApiError,
    DisabledFlaggedApiIsPresentError,
    EnabledFlaggedApiNotPresentError,
    UnknownFlagError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Set

    from model.symbols import Flag, FlaggedSymbol, Symbol


def check_symbol(
    symbol: Symbol,
    flag: Flag,
    flags: Mapping[Flag, bool],
    symbols_in_output: Set[Symbol],
) -> ApiError | None:
    """Classify a single flagged symbol; None means it is consistent."""
    enabled = flags.get(flag)
    if enabled is None:
        return UnknownFlagError(symbol, flag)
    if enabled and symbol not in symbols_in_output:
        return EnabledFlaggedApiNotPresentError(symbol, flag)
    if not enabled and symbol in symbols_in_output:
        return DisabledFlaggedApiIsPresentError(symbol, flag)
    return None


def find_errors(
    flagged_symbols_in_source: Iterable[FlaggedSymbol],
    flags: Mapping[Flag, bool],
    symbols_in_output: Set[Symbol],
) -> set[ApiError]:
    """Find errors in the given data.

    Args:
        flagged_symbols_in_source: Symbols flagged in the API signature, with their flag
        flags: Every known flag and whether it is enabled
        symbols_in_output: Symbols present in the built artifact

    Returns:
        The set of errors found; empty when the artifact matches the flags.
    """
    errors: set[ApiError] = set()
    for symbol, flag in flagged_symbols_in_source:
        error = check_symbol(symbol, flag, flags, symbols_in_output)
        if error is not None:
            errors.add(error)
    return errors


__all__ = ["check_symbol", "find_errors"]
