"""Parsers for the three inputs of a flagged-API check."""

from parse.api_signature import FLAGGED_API_ANNOTATIONS, parse_api_signature
from parse.api_versions import parse_api_versions
from parse.exceptions import (
    ApiVersionsParseError,
    CheckError,
    FlagValuesParseError,
    SignatureParseError,
)
from parse.flag_values import parse_flag_values

__all__ = [
    "FLAGGED_API_ANNOTATIONS",
    "ApiVersionsParseError",
    "CheckError",
    "FlagValuesParseError",
    "SignatureParseError",
    "parse_api_signature",
    "parse_api_versions",
    "parse_flag_values",
]
