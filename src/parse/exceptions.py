"""Fatal input errors raised by the parsers."""

from __future__ import annotations


class CheckError(Exception):
    """Raised when an input cannot be parsed; the run produces no diagnostics."""


class SignatureParseError(CheckError):
    """Raised for a malformed API signature file."""

    def __init__(self, path: str, line: int | None, message: str) -> None:
        self.path = path
        self.line = line
        self.reason = message
        super().__init__(self.location() + ": " + message)

    def location(self) -> str:
        if self.line is None:
            return self.path
        return f"{self.path}:{self.line}"


class FlagValuesParseError(CheckError):
    """Raised when the parsed_flags message cannot be decoded."""


class ApiVersionsParseError(CheckError):
    """Raised for a structurally invalid api-versions XML document."""
