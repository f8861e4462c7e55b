"""End-to-end flagged-API check over the three input files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from check.cross_reference import find_errors
from config import CheckConfig
from model.errors import sorted_errors
from parse.api_signature import parse_api_signature
from parse.api_versions import parse_api_versions
from parse.flag_values import parse_flag_values

if TYPE_CHECKING:
    from pathlib import Path

    from model.errors import ApiError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    errors: tuple[ApiError, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.errors

    def exit_code(self, cap: int = 255) -> int:
        """Number of errors, capped so large counts never wrap around to 0."""
        return min(len(self.errors), cap)


def check_flagged_apis(
    *,
    api_signature: Path,
    flag_values: Path,
    api_versions: Path,
    config: CheckConfig | None = None,
) -> CheckResult:
    """Check that all flagged APIs are used in the correct way.

    Parses the API signature file, the aconfig flag values and the
    api-versions XML of the built artifact, then cross-references them.

    Args:
        api_signature: Path to the API signature file (usually ``current.txt``)
        flag_values: Path to the aconfig parsed_flags dump
        api_versions: Path to the api-versions XML of the built artifact
        config: Optional settings; defaults apply when omitted

    Returns:
        CheckResult holding the errors in deterministic order.

    Raises:
        CheckError: If any input is malformed.
    """
    if config is None:
        config = CheckConfig()

    with api_signature.open("rb") as stream:
        flagged_symbols = parse_api_signature(
            str(api_signature), stream, annotations=config.flagged_annotations
        )
    with flag_values.open("rb") as stream:
        flags = parse_flag_values(stream, fmt=config.flag_values_format)
    with api_versions.open("rb") as stream:
        exported_symbols = parse_api_versions(stream)

    logger.info(
        "%d flagged symbols, %d flags, %d symbols in built artifact",
        len(flagged_symbols),
        len(flags),
        len(exported_symbols),
    )
    errors = find_errors(flagged_symbols, flags, exported_symbols)
    logger.info("%d errors found", len(errors))
    return CheckResult(errors=tuple(sorted_errors(errors)))
