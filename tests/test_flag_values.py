from __future__ import annotations

import io
from pathlib import Path

import pytest

from model.symbols import Flag
from parse.aconfig_proto import DISABLED, ENABLED, ParsedFlags
from parse.exceptions import FlagValuesParseError
from parse.flag_values import parse_flag_values

FIXTURES = Path(__file__).parent / "fixtures" / "sample"


def _parsed_flags(*flags: tuple[str, str, int]) -> bytes:
    message = ParsedFlags()
    for package, name, state in flags:
        message.parsed_flag.add(package=package, name=name, state=state)
    return message.SerializeToString()


def test_binary_parsed_flags() -> None:
    data = _parsed_flags(
        ("com.android.aconfig.test", "enabled_ro", ENABLED),
        ("com.android.aconfig.test", "disabled_rw", DISABLED),
    )

    flags = parse_flag_values(io.BytesIO(data))

    assert flags == {
        Flag("com.android.aconfig.test.enabled_ro"): True,
        Flag("com.android.aconfig.test.disabled_rw"): False,
    }


def test_empty_message_has_no_flags() -> None:
    assert parse_flag_values(io.BytesIO(b"")) == {}


def test_duplicate_flag_last_record_wins() -> None:
    data = _parsed_flags(
        ("pkg", "f1", ENABLED),
        ("pkg", "f2", ENABLED),
        ("pkg", "f1", DISABLED),
    )

    flags = parse_flag_values(io.BytesIO(data))

    assert flags == {Flag("pkg.f1"): False, Flag("pkg.f2"): True}


def test_unset_state_reads_as_first_enum_value() -> None:
    # proto2 enums default to their first value, ENABLED.
    message = ParsedFlags()
    message.parsed_flag.add(package="pkg", name="f1")

    flags = parse_flag_values(io.BytesIO(message.SerializeToString()))

    assert flags == {Flag("pkg.f1"): True}


def test_extra_fields_are_accepted() -> None:
    message = ParsedFlags()
    flag = message.parsed_flag.add(
        package="pkg",
        name="f1",
        namespace="ns",
        description="a flag",
        state=ENABLED,
        is_fixed_read_only=True,
        container="system",
    )
    flag.bug.append("12345")
    flag.trace.add(source="flags.aconfig", state=ENABLED)

    flags = parse_flag_values(io.BytesIO(message.SerializeToString()))

    assert flags == {Flag("pkg.f1"): True}


def test_textproto_fixture() -> None:
    with (FIXTURES / "flags.textproto").open("rb") as stream:
        flags = parse_flag_values(stream, fmt="textproto")

    assert flags == {Flag("android.flag.foo"): True, Flag("android.flag.bar"): False}


def test_truncated_binary_message_is_fatal() -> None:
    with pytest.raises(FlagValuesParseError, match="Invalid parsed_flags message"):
        parse_flag_values(io.BytesIO(b"\x0a\x05ab"))


def test_invalid_textproto_is_fatal() -> None:
    with pytest.raises(FlagValuesParseError, match="Invalid parsed_flags text proto"):
        parse_flag_values(io.BytesIO(b"parsed_flag { bogus: 1 }"), fmt="textproto")


def test_unknown_format() -> None:
    with pytest.raises(ValueError, match="Unsupported flag values format"):
        parse_flag_values(io.BytesIO(b""), fmt="yaml")  # type: ignore[arg-type]
