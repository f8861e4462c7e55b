"""Flagged API extraction from API signature files (``current.txt``).

The signature format lists every public class of a library grouped by
package, one member per line::

    // Signature format: 2.0
    package android.app {

      @FlaggedApi("android.app.flag_a") public class Foo {
        ctor @FlaggedApi("android.app.flag_b") public Foo();
        method @FlaggedApi("android.app.flag_b") public void bar();
        field @FlaggedApi("android.app.flag_c") public static final int X = 1; // 0x1
      }

    }

Only element identity and the flagged-API annotation are of interest here;
types, modifiers and default values are skipped.

Format 5.0 files may follow the header with `// - key=value` option lines.
With `kotlin-name-type-order=yes` fields read `NAME: Type` instead of
`Type NAME`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import IO, TYPE_CHECKING

from model.symbols import Flag, FlaggedSymbol, Symbol
from parse.exceptions import SignatureParseError

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

FLAGGED_API_ANNOTATIONS = ("android.annotation.FlaggedApi", "FlaggedApi")

SUPPORTED_FORMATS = frozenset({"2.0", "3.0", "4.0", "5.0"})

_HEADER_RE = re.compile(r"^//\s*Signature format:\s*(?P<version>\S+)\s*$")
_OPTION_RE = re.compile(r"^//\s*-\s*(?P<key>[\w-]+)=(?P<value>\S*)\s*$")

_TOKEN_RE = re.compile(
    r"""
    (?P<newline>\n)
    |(?P<space>[ \t\r\f]+)
    |(?P<comment>//[^\n]*)
    |(?P<block>/\*.*?\*/)
    |(?P<string>"(?:[^"\\\n]|\\.)*")
    |(?P<char>'(?:[^'\\\n]|\\.)*')
    |(?P<punct>[{}()<>,;=@\[\]])
    |(?P<word>[^\s{}()<>,;=@\[\]"']+)
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPE_RE = re.compile(r"\\(.)")

_CLASS_KEYWORDS = frozenset({"class", "interface", "enum", "record"})
_MEMBER_KINDS = frozenset({"ctor", "method", "field", "enum_constant", "property"})


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    line: int


@dataclass
class _Annotation:
    name: str
    # Attribute name -> string literal value, or None for non-literal values.
    attributes: dict[str, str | None] = field(default_factory=dict)


def _tokenize(path: str, text: str) -> list[_Token]:
    tokens: list[_Token] = []
    line = 1
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            msg = f"unexpected character {text[pos]!r}"
            raise SignatureParseError(path, line, msg)
        kind = match.lastgroup
        value = match.group()
        pos = match.end()
        if kind == "newline":
            line += 1
            continue
        if kind == "block":
            line += value.count("\n")
            continue
        if kind in ("space", "comment"):
            continue
        tokens.append(_Token(kind or "", value, line))
    return tokens


def _read_header(path: str, text: str) -> str | None:
    first_line = text.split("\n", 1)[0].strip()
    match = _HEADER_RE.match(first_line)
    if match is None:
        return None
    version = match.group("version")
    if version not in SUPPORTED_FORMATS:
        msg = (
            f"unsupported signature format {version!r}; "
            f"expected one of {', '.join(sorted(SUPPORTED_FORMATS))}"
        )
        raise SignatureParseError(path, 1, msg)
    return version


def _read_options(path: str, text: str) -> dict[str, str]:
    """Read the ``// - key=value`` lines that follow a format 5.0 header."""
    options: dict[str, str] = {}
    for line_number, raw_line in enumerate(text.split("\n")[1:], 2):
        line = raw_line.strip()
        if not line.startswith("//") or not line[2:].lstrip().startswith("-"):
            break
        match = _OPTION_RE.match(line)
        if match is None:
            msg = f"invalid format option {line!r}"
            raise SignatureParseError(path, line_number, msg)
        options[match.group("key")] = match.group("value")
    return options


def _name_type_order(path: str, options: dict[str, str]) -> bool:
    """Whether members are written ``name: Type`` instead of ``Type name``."""
    value = options.get("kotlin-name-type-order", "no")
    if value not in ("yes", "no"):
        msg = f"invalid value {value!r} for format option kotlin-name-type-order"
        raise SignatureParseError(path, None, msg)
    return value == "yes"


def _unquote(literal: str) -> str:
    return _ESCAPE_RE.sub(r"\1", literal[1:-1])


class _SignatureParser:
    def __init__(
        self,
        path: str,
        tokens: list[_Token],
        annotations: frozenset[str],
        *,
        name_type_order: bool = False,
    ) -> None:
        self.path = path
        self.tokens = tokens
        self.pos = 0
        self.flagged_annotations = annotations
        self.name_type_order = name_type_order
        self.output: set[FlaggedSymbol] = set()

    # Token cursor helpers

    def _error(self, message: str, token: _Token | None = None) -> SignatureParseError:
        if token is None:
            token = self._peek()
        line = token.line if token is not None else self._last_line()
        return SignatureParseError(self.path, line, message)

    def _last_line(self) -> int | None:
        return self.tokens[-1].line if self.tokens else None

    def _peek(self) -> _Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _next(self) -> _Token:
        token = self._peek()
        if token is None:
            raise self._error("unexpected end of file")
        self.pos += 1
        return token

    def _expect(self, text: str) -> _Token:
        token = self._next()
        if token.text != text:
            raise self._error(f"expected '{text}', found '{token.text}'", token)
        return token

    def _expect_word(self, what: str) -> _Token:
        token = self._next()
        if token.kind != "word":
            raise self._error(f"expected {what}, found '{token.text}'", token)
        return token

    # Grammar

    def parse(self) -> set[FlaggedSymbol]:
        while self._peek() is not None:
            self._parse_package()
        return self.output

    def _parse_package(self) -> None:
        keyword = self._next()
        if keyword.text != "package":
            raise self._error(f"expected 'package', found '{keyword.text}'", keyword)
        package = self._expect_word("package name").text
        self._expect("{")
        while True:
            token = self._peek()
            if token is None:
                raise self._error(f"unterminated package '{package}'")
            if token.text == "}":
                self.pos += 1
                return
            self._parse_class(package)

    def _parse_class(self, package: str) -> None:
        annotations: list[_Annotation] = []
        while True:
            token = self._next()
            if token.text == "@":
                following = self._peek()
                if following is not None and following.text == "interface":
                    self.pos += 1
                    break
                annotations.append(self._parse_annotation())
                continue
            if token.kind == "word" and token.text in _CLASS_KEYWORDS:
                break
            if token.kind != "word":
                raise self._error(f"unexpected '{token.text}' in class header", token)

        class_name = self._expect_word("class name").text
        qualified_name = f"{package}.{class_name}"
        self._skip_until_body(qualified_name)

        flag = self._flag_of(annotations)
        if flag is not None:
            self.output.add(FlaggedSymbol(Symbol.create(qualified_name), flag))

        simple_name = class_name.rsplit(".", 1)[-1]
        while True:
            token = self._peek()
            if token is None:
                raise self._error(f"unterminated class '{qualified_name}'")
            if token.text == "}":
                self.pos += 1
                return
            self._parse_member(qualified_name, simple_name)

    def _skip_until_body(self, qualified_name: str) -> None:
        """Skip type parameters, extends and implements clauses up to '{'."""
        while True:
            token = self._next()
            if token.text == "{":
                return
            if token.text in ("}", ";"):
                raise self._error(
                    f"unexpected '{token.text}' in declaration of '{qualified_name}'",
                    token,
                )

    def _parse_annotation(self) -> _Annotation:
        annotation = _Annotation(self._expect_word("annotation name").text)
        token = self._peek()
        if token is None or token.text != "(":
            return annotation
        self.pos += 1
        arguments = self._collect_balanced("(", ")")
        for segment in _split_top_level(arguments):
            if len(segment) >= 2 and segment[1].text == "=":
                key, value_tokens = segment[0].text, segment[2:]
            else:
                key, value_tokens = "value", segment
            if len(value_tokens) == 1 and value_tokens[0].kind == "string":
                annotation.attributes[key] = _unquote(value_tokens[0].text)
            else:
                annotation.attributes[key] = None
        return annotation

    def _collect_balanced(self, opening: str, closing: str) -> list[_Token]:
        """Return tokens up to the closer matching an already consumed opener."""
        collected: list[_Token] = []
        depth = 1
        while True:
            token = self._next()
            if token.text == opening:
                depth += 1
            elif token.text == closing:
                depth -= 1
                if depth == 0:
                    return collected
            collected.append(token)

    def _parse_member(self, qualified_name: str, simple_name: str) -> None:
        kind_token = self._expect_word("member kind")
        if kind_token.text not in _MEMBER_KINDS:
            raise self._error(f"unknown member kind '{kind_token.text}'", kind_token)

        annotations: list[_Annotation] = []
        words: list[_Token] = []
        while True:
            token = self._next()
            if token.text == "@":
                annotations.append(self._parse_annotation())
            elif token.text == "(":
                self._parse_callable(
                    kind_token, words, annotations, qualified_name, simple_name
                )
                return
            elif token.text in ("=", ";"):
                if token.text == "=":
                    self._skip_member_rest()
                self._parse_field(kind_token, words, annotations, qualified_name)
                return
            elif token.text in ("{", "}"):
                raise self._error(f"unexpected '{token.text}' in member", token)
            elif token.kind == "word":
                words.append(token)

    def _skip_member_rest(self) -> None:
        """Skip a value or default clause up to the terminating ';'."""
        depth = 0
        while True:
            token = self._next()
            if token.text in ("(", "{"):
                depth += 1
            elif token.text in (")", "}"):
                depth -= 1
                if depth < 0:
                    raise self._error(f"unexpected '{token.text}' in member", token)
            elif token.text == ";" and depth == 0:
                return

    def _parse_callable(
        self,
        kind_token: _Token,
        words: list[_Token],
        annotations: list[_Annotation],
        qualified_name: str,
        simple_name: str,
    ) -> None:
        if kind_token.text not in ("ctor", "method"):
            raise self._error(f"unexpected '(' in {kind_token.text}", kind_token)
        if not words:
            raise self._error(f"{kind_token.text} without a name", kind_token)
        parameters = self._collect_balanced("(", ")")
        self._skip_member_rest()

        flag = self._flag_of(annotations)
        if flag is None:
            return
        # TODO: translate parameter types into descriptor form (Lpkg/Cls;I) so
        # methods with parameters can be matched against api-versions.
        if parameters:
            logger.debug(
                "skipping %s.%s: methods with parameters are not supported",
                qualified_name,
                words[-1].text,
            )
            return
        if kind_token.text == "ctor":
            name = simple_name
        else:
            name = words[-1].text
        symbol = Symbol.create(f"{qualified_name}.{name}()")
        self.output.add(FlaggedSymbol(symbol, flag))

    def _parse_field(
        self,
        kind_token: _Token,
        words: list[_Token],
        annotations: list[_Annotation],
        qualified_name: str,
    ) -> None:
        if kind_token.text in ("ctor", "method"):
            raise self._error(f"{kind_token.text} without parameter list", kind_token)
        if not words:
            raise self._error(f"{kind_token.text} without a name", kind_token)
        if kind_token.text == "property":
            return
        flag = self._flag_of(annotations)
        if flag is None:
            return
        name = self._field_name(kind_token, words)
        symbol = Symbol.create(f"{qualified_name}#{name}")
        self.output.add(FlaggedSymbol(symbol, flag))

    def _field_name(self, kind_token: _Token, words: list[_Token]) -> str:
        if not self.name_type_order:
            return words[-1].text
        for word in words:
            if ":" in word.text:
                return word.text.split(":", 1)[0]
        raise self._error(f"{kind_token.text} without 'name: Type'", kind_token)

    def _flag_of(self, annotations: list[_Annotation]) -> Flag | None:
        for annotation in annotations:
            if annotation.name not in self.flagged_annotations:
                continue
            if "value" not in annotation.attributes:
                return None
            value = annotation.attributes["value"]
            if value is None:
                msg = f"@{annotation.name} value is not a string literal"
                raise self._error(msg)
            return Flag(value)
        return None


def _split_top_level(tokens: list[_Token]) -> list[list[_Token]]:
    segments: list[list[_Token]] = []
    current: list[_Token] = []
    depth = 0
    for token in tokens:
        if token.text in ("(", "{", "["):
            depth += 1
        elif token.text in (")", "}", "]"):
            depth -= 1
        if token.text == "," and depth == 0:
            segments.append(current)
            current = []
            continue
        current.append(token)
    if current:
        segments.append(current)
    return segments


def parse_api_signature(
    path: str,
    stream: IO[bytes],
    *,
    annotations: Iterable[str] = FLAGGED_API_ANNOTATIONS,
) -> set[FlaggedSymbol]:
    """Extract every flagged class, field and method from a signature file.

    Args:
        path: Name of the input, used in error messages
        stream: Binary stream holding the UTF-8 signature text
        annotations: Annotation names that mark an element as flagged

    Returns:
        Set of (symbol, flag) pairs. Methods and constructors that take
        parameters are not included.

    Raises:
        SignatureParseError: If the input is not a valid signature file.
    """
    try:
        text = stream.read().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SignatureParseError(path, None, f"not valid UTF-8: {exc}") from exc

    version = _read_header(path, text)
    options = _read_options(path, text) if version is not None else {}
    tokens = _tokenize(path, text)
    parser = _SignatureParser(
        path,
        tokens,
        frozenset(annotations),
        name_type_order=_name_type_order(path, options),
    )
    output = parser.parse()
    logger.debug(
        "parsed %s (format %s): %d flagged symbols",
        path,
        version or "unspecified",
        len(output),
    )
    return output


__all__ = ["FLAGGED_API_ANNOTATIONS", "SUPPORTED_FORMATS", "parse_api_signature"]
