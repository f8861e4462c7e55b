"""Cross-referencing of flagged APIs against flag values and build output."""

from check.cross_reference import check_symbol, find_errors
from check.runner import CheckResult, check_flagged_apis

__all__ = ["CheckResult", "check_flagged_apis", "check_symbol", "find_errors"]
