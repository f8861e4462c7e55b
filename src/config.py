"""Configuration for check-flagged-apis."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parse.api_signature import FLAGGED_API_ANNOTATIONS
from parse.flag_values import FlagValuesFormat

CONFIG_FILENAME = "check-flagged-apis.toml"

OutputFormat = Literal["text", "json"]


class CheckConfig(BaseModel):
    """Settings for a flagged-API check run."""

    model_config = ConfigDict(extra="forbid")

    flagged_annotations: list[str] = Field(
        default_factory=lambda: list(FLAGGED_API_ANNOTATIONS),
        description="Annotation names that mark an API element as flagged",
    )
    flag_values_format: FlagValuesFormat = Field(
        default="binary",
        description="Encoding of the parsed_flags input",
    )
    output_format: OutputFormat = Field(
        default="text",
        description="How diagnostics are written to stdout",
    )
    max_exit_code: int = Field(
        default=255,
        ge=1,
        le=255,
        description="Upper bound for the exit code (the diagnostic count)",
    )

    @field_validator("flagged_annotations", mode="before")
    @classmethod
    def validate_flagged_annotations(cls, v: Any) -> Any:
        """Reject an empty list or blank names.

        Runs in `mode="before"` so the error names the raw TOML value.
        """
        if not isinstance(v, list) or not v:
            msg = "flagged_annotations must be a non-empty list of annotation names"
            raise ValueError(msg)
        for name in v:
            if not isinstance(name, str) or not name.strip():
                msg = f"Invalid annotation name {name!r} in flagged_annotations"
                raise ValueError(msg)
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(path: Path | None = None) -> CheckConfig:
    """Load configuration from a TOML file.

    With no explicit path, ``check-flagged-apis.toml`` in the current
    directory is used when present; otherwise defaults apply. An explicit
    path must exist.
    """
    if path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
        if not config_path.is_file():
            return CheckConfig()
    else:
        config_path = path
        if not config_path.is_file():
            msg = f"Config file does not exist: {config_path}"
            raise ConfigError(msg)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return CheckConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
