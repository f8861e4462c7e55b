"""Symbol extraction from api-versions XML (``api-versions.xml``).

The document lists every class of the built artifact using binary names,
with its fields and methods as children::

    <api version="3">
      <class name="android/app/Outer$Inner" since="1">
        <method name="&lt;init&gt;()V"/>
        <method name="foo(ILjava/lang/String;)V"/>
        <field name="BAR"/>
      </class>
    </api>
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import IO

from model.symbols import Symbol
from parse.exceptions import ApiVersionsParseError

logger = logging.getLogger(__name__)

_SIGNATURE_SPLIT_RE = re.compile(r"\(|\)")


def _require_name(element: ET.Element, tag: str) -> str:
    name = element.get("name")
    if name is None:
        msg = f"Bad XML: <{tag}> element without name attribute"
        raise ApiVersionsParseError(msg)
    if not name:
        msg = f"Bad XML: <{tag}> element with empty name attribute"
        raise ApiVersionsParseError(msg)
    return name


def _owner_name(
    element: ET.Element, parents: dict[ET.Element, ET.Element], tag: str
) -> str:
    parent = parents.get(element)
    if parent is None:
        msg = f"Bad XML: top level <{tag}> element"
        raise ApiVersionsParseError(msg)
    name = parent.get("name")
    if name is None:
        msg = f"Bad XML: <{tag}> element inside <{parent.tag}> without name attribute"
        raise ApiVersionsParseError(msg)
    return name


def simple_class_name(class_name: str) -> str:
    """Return the innermost class name, e.g. ``a/b/Outer$Inner`` -> ``Inner``."""
    return re.split(r"[/$]", class_name)[-1]


def method_symbol(class_name: str, signature: str) -> Symbol:
    """Build the Symbol of a method from its owner and JVM-style signature.

    ``signature`` has the form ``name(argDescriptors)returnDescriptor``.
    Constructors (``<init>``) are named after their class.
    """
    parts = _SIGNATURE_SPLIT_RE.split(signature)
    if len(parts) != 3:
        msg = f"Bad XML: method signature '{signature}': debug {parts}"
        raise ApiVersionsParseError(msg)
    method_name, method_args, _return_value = parts
    if method_name == "<init>":
        method_name = simple_class_name(class_name)
    return Symbol.create(f"{class_name}.{method_name}({method_args})")


def parse_api_versions(stream: IO[bytes]) -> set[Symbol]:
    """Collect the classes, fields and methods present in a built artifact.

    Raises:
        ApiVersionsParseError: If the document is not well-formed XML or an
            element is missing its name or owning class.
    """
    try:
        root = ET.parse(stream).getroot()
    except ET.ParseError as exc:
        msg = f"Bad XML: {exc}"
        raise ApiVersionsParseError(msg) from exc

    parents = {child: parent for parent in root.iter() for child in parent}
    output: set[Symbol] = set()

    for cls in root.iter("class"):
        output.add(Symbol.create(_require_name(cls, "class")))

    for field in root.iter("field"):
        field_name = _require_name(field, "field")
        class_name = _owner_name(field, parents, "field")
        output.add(Symbol.create(f"{class_name}.{field_name}"))

    for method in root.iter("method"):
        signature = _require_name(method, "method")
        class_name = _owner_name(method, parents, "method")
        output.add(method_symbol(class_name, signature))

    logger.debug("parsed %d symbols from api-versions", len(output))
    return output


__all__ = ["method_symbol", "parse_api_versions", "simple_class_name"]
