"""Command-line interface for check-flagged-apis."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import orjson

from check.runner import CheckResult, check_flagged_apis
from config import CheckConfig, ConfigError, load_config
from parse.exceptions import CheckError

DESCRIPTION = """\
Check that all flagged APIs are used in the correct way.

This tool reads the API signature file and checks that all flagged APIs are
used in the correct way.

The tool will exit with a non-zero exit code if any flagged APIs are found
to be used in the incorrect way.
"""

EPILOG = """\
exit status:
  0      no errors found
  N      number of errors found, capped at max_exit_code (default 255)
  2      also used when an input file or the config file cannot be read or
         parsed; in that case nothing is written to stdout and the reason is
         written to stderr
"""

_INPUTS = (
    (
        "--api-signature",
        "Path to API signature file. Usually named *current.txt. "
        "Tip: `m frameworks-base-api-current.txt` will generate a file that "
        "includes all platform and mainline APIs.",
    ),
    (
        "--flag-values",
        "Path to aconfig parsed_flags binary proto file. "
        "Tip: `m all_aconfig_declarations` will generate a file that includes "
        "all information about all flags.",
    ),
    (
        "--api-versions",
        "Path to API versions XML file. Usually named xml-versions.xml. "
        "Tip: `m sdk dist` will generate a file that includes all platform "
        "and mainline APIs.",
    ),
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="check-flagged-apis",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    for option, help_text in _INPUTS:
        parser.add_argument(option, required=True, help=help_text)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a check-flagged-apis.toml config file "
        "(default: ./check-flagged-apis.toml if present)",
    )
    parser.add_argument(
        "--flag-values-format",
        choices=("binary", "textproto"),
        default=None,
        help="Encoding of --flag-values (default: config value, else binary)",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=("text", "json"),
        default=None,
        help="Output format for errors (default: config value, else text)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-v for info, -vv for debug)",
    )
    return parser


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s: %(name)s: %(message)s",
    )


def _check_input(option: str, value: str) -> Path | None:
    path = Path(value).expanduser()
    if not path.exists():
        reason = f"file does not exist: {path}"
    elif path.is_dir():
        reason = f"is a directory: {path}"
    elif not path.is_file():
        reason = f"not a regular file: {path}"
    elif not os.access(path, os.R_OK):
        reason = f"file is not readable: {path}"
    else:
        return path
    sys.stderr.write(f"error: {option}: {reason}\n")
    return None


def _resolve_config(args: argparse.Namespace) -> CheckConfig:
    config_path = Path(args.config).expanduser() if args.config else None
    config = load_config(config_path)
    overrides: dict[str, object] = {}
    if args.flag_values_format is not None:
        overrides["flag_values_format"] = args.flag_values_format
    if args.output_format is not None:
        overrides["output_format"] = args.output_format
    if overrides:
        config = config.model_copy(update=overrides)
    return config


def _write_result(result: CheckResult, output_format: str) -> None:
    if output_format == "json":
        payload = orjson.dumps(
            [error.to_dict() for error in result.errors], option=orjson.OPT_INDENT_2
        )
        sys.stdout.write(payload.decode("utf-8") + "\n")
        return
    for error in result.errors:
        sys.stdout.write(f"{error}\n")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    api_signature = _check_input("--api-signature", args.api_signature)
    flag_values = _check_input("--flag-values", args.flag_values)
    api_versions = _check_input("--api-versions", args.api_versions)
    if api_signature is None or flag_values is None or api_versions is None:
        return 2

    try:
        config = _resolve_config(args)
        result = check_flagged_apis(
            api_signature=api_signature,
            flag_values=flag_values,
            api_versions=api_versions,
            config=config,
        )
    except (CheckError, ConfigError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    _write_result(result, config.output_format)
    return result.exit_code(config.max_exit_code)


if __name__ == "__main__":
    raise SystemExit(main())
