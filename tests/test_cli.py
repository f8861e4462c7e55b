from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

import orjson
import pytest
from google.protobuf import text_format

from check.runner import CheckResult, check_flagged_apis
from cli import _build_parser, main
from config import CheckConfig
from model.errors import DisabledFlaggedApiIsPresentError, UnknownFlagError
from model.symbols import Flag, Symbol
from parse.aconfig_proto import ParsedFlags
from parse.exceptions import ApiVersionsParseError

FIXTURES = Path(__file__).parent / "fixtures" / "sample"

BUILDER_ERROR = (
    "error: disabled @FlaggedApi is present in built artifact: "
    "symbol=android.test.Clazz.Builder flag=android.flag.bar"
)


def _copy_sample(root: Path) -> dict[str, Path]:
    """Copy the sample inputs and write the flag values as a binary proto."""
    shutil.copytree(FIXTURES, root)
    message = ParsedFlags()
    text_format.Parse(
        (root / "flags.textproto").read_text(encoding="utf-8"), message
    )
    flag_values = root / "flags.pb"
    flag_values.write_bytes(message.SerializeToString())
    return {
        "api_signature": root / "current.txt",
        "flag_values": flag_values,
        "api_versions": root / "api-versions.xml",
    }


def _argv(paths: dict[str, Path], *extra: str) -> list[str]:
    return [
        "--api-signature",
        str(paths["api_signature"]),
        "--flag-values",
        str(paths["flag_values"]),
        "--api-versions",
        str(paths["api_versions"]),
        *extra,
    ]


def _write_api_versions(path: Path, body: str) -> None:
    path.write_text(f'<?xml version="1.0"?>\n<api version="3">\n{body}\n</api>\n')


def test_cli_reports_errors_and_exit_code(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")

    exit_code = main(_argv(paths))

    assert exit_code == 1
    captured = capsys.readouterr()
    assert captured.out == BUILDER_ERROR + "\n"
    assert captured.err == ""


def test_cli_consistent_artifact_exits_zero(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    _write_api_versions(
        paths["api_versions"],
        """  <class name="android/test/Clazz" since="1">
    <method name="&lt;init&gt;()V"/>
    <method name="getErrorCode()I"/>
    <field name="FOO"/>
  </class>""",
    )

    exit_code = main(_argv(paths))

    assert exit_code == 0
    assert capsys.readouterr().out == ""


def test_cli_enabled_symbols_missing(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    _write_api_versions(paths["api_versions"], "")

    exit_code = main(_argv(paths))

    assert exit_code == 4
    lines = capsys.readouterr().out.splitlines()
    prefix = "error: enabled @FlaggedApi not present in built artifact: symbol="
    assert lines == [
        f"{prefix}android.test.Clazz flag=android.flag.foo",
        f"{prefix}android.test.Clazz.Clazz() flag=android.flag.foo",
        f"{prefix}android.test.Clazz.FOO flag=android.flag.foo",
        f"{prefix}android.test.Clazz.getErrorCode() flag=android.flag.foo",
    ]


def test_cli_json_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    paths = _copy_sample(tmp_path / "sample")

    exit_code = main(_argv(paths, "--format", "json"))

    assert exit_code == 1
    assert orjson.loads(capsys.readouterr().out) == [
        {
            "kind": "disabled-present",
            "symbol": "android.test.Clazz.Builder",
            "flag": "android.flag.bar",
            "message": BUILDER_ERROR,
        }
    ]


def test_cli_textproto_flag_values(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    paths["flag_values"] = paths["api_signature"].parent / "flags.textproto"

    exit_code = main(_argv(paths, "--flag-values-format", "textproto"))

    assert exit_code == 1
    assert capsys.readouterr().out == BUILDER_ERROR + "\n"


def test_cli_unknown_flags(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    paths = _copy_sample(tmp_path / "sample")
    paths["flag_values"].write_bytes(b"")

    exit_code = main(_argv(paths))

    assert exit_code == 5
    out = capsys.readouterr().out
    assert out.count("error: unknown flag: ") == 5
    assert "symbol=android.test.Clazz.Builder flag=android.flag.bar" in out


def test_cli_exit_code_is_capped(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    paths["flag_values"].write_bytes(b"")
    config_path = tmp_path / "check.toml"
    config_path.write_text("max_exit_code = 3\n", encoding="utf-8")

    exit_code = main(_argv(paths, "--config", str(config_path)))

    assert exit_code == 3
    assert len(capsys.readouterr().out.splitlines()) == 5


def test_cli_parameterized_method_is_not_checked(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    paths["api_signature"].write_text(
        """// Signature format: 2.0
package pkg {
  public class C {
    method @FlaggedApi("android.flag.foo") public void m(int);
  }
}
""",
        encoding="utf-8",
    )
    _write_api_versions(paths["api_versions"], '  <class name="pkg/C" since="1"/>')

    exit_code = main(_argv(paths))

    assert exit_code == 0
    assert capsys.readouterr().out == ""


def test_cli_missing_input_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    paths["flag_values"] = tmp_path / "missing.pb"

    exit_code = main(_argv(paths))

    assert exit_code == 2
    captured = capsys.readouterr()
    assert f"error: --flag-values: file does not exist: {tmp_path / 'missing.pb'}" in (
        captured.err
    )
    assert captured.out == ""


def test_cli_directory_input(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    paths["api_versions"] = tmp_path

    exit_code = main(_argv(paths))

    assert exit_code == 2
    assert "error: --api-versions: is a directory" in capsys.readouterr().err


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires named pipes")
def test_cli_fifo_input_is_rejected(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    fifo = tmp_path / "flags.fifo"
    os.mkfifo(fifo)
    paths["flag_values"] = fifo

    exit_code = main(_argv(paths))

    assert exit_code == 2
    captured = capsys.readouterr()
    assert f"error: --flag-values: not a regular file: {fifo}" in captured.err
    assert captured.out == ""


def test_cli_device_input_is_rejected(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    if not Path(os.devnull).exists():
        pytest.skip("no null device path")
    paths = _copy_sample(tmp_path / "sample")
    paths["api_signature"] = Path(os.devnull)

    exit_code = main(_argv(paths))

    assert exit_code == 2
    assert "error: --api-signature: not a regular file" in capsys.readouterr().err


def test_help_documents_exit_status() -> None:
    help_text = _build_parser().format_help()

    assert "exit status:" in help_text
    assert "capped at max_exit_code" in help_text
    assert "config file cannot be read" in help_text


def test_cli_malformed_input_produces_no_diagnostics(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    _write_api_versions(paths["api_versions"], '  <class since="1"/>')

    exit_code = main(_argv(paths))

    assert exit_code == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "error: Bad XML: <class> element without name attribute" in captured.err


def test_cli_invalid_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    paths = _copy_sample(tmp_path / "sample")
    config_path = tmp_path / "check.toml"
    config_path.write_text('output_format = "xml"\n', encoding="utf-8")

    exit_code = main(_argv(paths, "--config", str(config_path)))

    assert exit_code == 2
    assert "Invalid config" in capsys.readouterr().err


def test_cli_requires_all_inputs() -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--api-signature", "current.txt"])
    assert exc_info.value.code == 2


def test_check_flagged_apis_result(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    paths = _copy_sample(tmp_path / "sample")
    caplog.set_level(logging.INFO)

    result = check_flagged_apis(**paths)

    assert result == CheckResult(
        errors=(
            DisabledFlaggedApiIsPresentError(
                Symbol("android.test.Clazz.Builder"), Flag("android.flag.bar")
            ),
        )
    )
    assert not result.ok
    assert result.exit_code() == 1
    assert "1 errors found" in caplog.text


def test_check_flagged_apis_custom_annotation(tmp_path: Path) -> None:
    paths = _copy_sample(tmp_path / "sample")
    paths["api_signature"].write_text(
        """// Signature format: 2.0
package android.test {
  @com.example.Gated("android.flag.missing") public final class Clazz {
  }
}
""",
        encoding="utf-8",
    )
    config = CheckConfig(flagged_annotations=["com.example.Gated"])

    result = check_flagged_apis(**paths, config=config)

    assert result.errors == (
        UnknownFlagError(Symbol("android.test.Clazz"), Flag("android.flag.missing")),
    )


def test_check_flagged_apis_propagates_parse_errors(tmp_path: Path) -> None:
    paths = _copy_sample(tmp_path / "sample")
    _write_api_versions(paths["api_versions"], '  <method name="m()V"/>')

    with pytest.raises(ApiVersionsParseError, match="inside <api> without name"):
        check_flagged_apis(**paths)


def test_check_result_exit_code_cap() -> None:
    errors = tuple(
        UnknownFlagError(Symbol(f"pkg.C.s{i}"), Flag("pkg.f")) for i in range(300)
    )
    result = CheckResult(errors=errors)

    assert result.exit_code() == 255
    assert result.exit_code(cap=10) == 10
    assert CheckResult().exit_code() == 0
    assert CheckResult().ok
