"""Flag state extraction from aconfig ``parsed_flags`` dumps."""

from __future__ import annotations

import logging
from typing import IO, Literal

from google.protobuf import text_format
from google.protobuf.message import DecodeError, Message

from model.symbols import Flag
from parse.aconfig_proto import ENABLED, ParsedFlags
from parse.exceptions import FlagValuesParseError

logger = logging.getLogger(__name__)

FlagValuesFormat = Literal["binary", "textproto"]


def _decode(stream: IO[bytes], fmt: FlagValuesFormat) -> Message:
    message = ParsedFlags()
    data = stream.read()
    if fmt == "binary":
        try:
            message.ParseFromString(data)
        except DecodeError as exc:
            msg = f"Invalid parsed_flags message: {exc}"
            raise FlagValuesParseError(msg) from exc
        return message
    if fmt == "textproto":
        try:
            text_format.Parse(data.decode("utf-8"), message)
        except (text_format.ParseError, UnicodeDecodeError) as exc:
            msg = f"Invalid parsed_flags text proto: {exc}"
            raise FlagValuesParseError(msg) from exc
        return message
    msg = f"Unsupported flag values format: {fmt}"
    raise ValueError(msg)


def parse_flag_values(
    stream: IO[bytes], *, fmt: FlagValuesFormat = "binary"
) -> dict[Flag, bool]:
    """Map every declared flag to whether it is enabled.

    A flag listed more than once keeps the state of its last record.

    Raises:
        FlagValuesParseError: If the stream does not hold a parsed_flags message.
    """
    message = _decode(stream, fmt)
    flags: dict[Flag, bool] = {}
    for parsed_flag in message.parsed_flag:
        flag = Flag.from_parts(parsed_flag.package, parsed_flag.name)
        if flag in flags:
            logger.debug("duplicate flag %s: last declaration wins", flag)
        flags[flag] = parsed_flag.state == ENABLED
    logger.debug("parsed %d flag values", len(flags))
    return flags


__all__ = ["FlagValuesFormat", "parse_flag_values"]
