"""Convenience helpers layered on the core writer.

Everything here formats or sequences values and then delegates to the
:class:`~ultra_robust_xml_writer.writer.core.XMLWriter` primitives; none of
it touches writer state directly.
"""

import math
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Union

from ultra_robust_xml_writer.character.names import is_valid_ncname
from ultra_robust_xml_writer.shared.config import WriterConfig
from ultra_robust_xml_writer.writer.core import XMLWriter

AttributeValue = Union[str, bool, int, float, Decimal, date, datetime, time]


class XMLWritable(Protocol):
    """Object that knows how to write itself as XML."""

    def to_xml(self, writer: Any) -> None:
        ...


def format_attribute_value(value: AttributeValue) -> str:
    """Format a typed value as attribute text.

    Booleans become ``true``/``false`` and floats use the XML Schema lexical
    forms for special values (``NaN``, ``INF``, ``-INF``).

    Raises:
        TypeError: the value type has no attribute representation
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "INF" if value > 0 else "-INF"
        return repr(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    raise TypeError(f"Cannot format {type(value).__name__} as an attribute value")


def set_typed_attribute(
    writer: XMLWriter,
    name: str,
    value: AttributeValue,
    namespace_uri: Optional[str] = None,
    preferred_prefix: Optional[str] = None,
) -> None:
    """Format ``value`` and set it as an attribute of the pending element."""
    writer.set_attribute(
        name, format_attribute_value(value), namespace_uri, preferred_prefix
    )


def write_element(
    writer: XMLWriter,
    name: str,
    text: Optional[Any] = None,
    attributes: Optional[Mapping[str, AttributeValue]] = None,
    namespace_uri: Optional[str] = None,
    preferred_prefix: Optional[str] = None,
) -> None:
    """Write a complete element with optional attributes and text content.

    Non-string text is converted with ``str()``.
    """
    writer.open_element(name, namespace_uri, preferred_prefix)
    for attribute_name, value in (attributes or {}).items():
        set_typed_attribute(writer, attribute_name, value)
    if text is not None:
        writer.write_text(text if isinstance(text, str) else str(text))
    writer.close_element()


def write_empty_element(
    writer: XMLWriter,
    name: str,
    attributes: Optional[Mapping[str, AttributeValue]] = None,
    namespace_uri: Optional[str] = None,
    preferred_prefix: Optional[str] = None,
) -> None:
    """Write an element with no content."""
    write_element(writer, name, None, attributes, namespace_uri, preferred_prefix)


def to_element_name(text: str) -> str:
    """Coerce arbitrary text into a valid, lower-case element name.

    The first character becomes ``x`` unless it is a letter; any later
    character that is not a letter or digit becomes ``-``. Digits after the
    first character are kept rather than replaced, so numbered names such as
    ``item1`` or ``h2`` come through unchanged.

    Example:
        >>> to_element_name("Order Date")
        'order-date'
        >>> to_element_name("2nd")
        'xnd'
        >>> to_element_name("Line2")
        'line2'

    Raises:
        ValueError: ``text`` is empty
    """
    if not text:
        raise ValueError("Cannot derive an element name from empty text")
    first = text[0].lower()
    chars = [first if text[0].isalpha() and is_valid_ncname(first) else "x"]
    for char in text[1:]:
        lowered = char.lower()
        if (char.isalpha() or char.isdigit()) and is_valid_ncname("x" + lowered):
            chars.append(lowered)
        else:
            chars.append("-")
    return "".join(chars)


def open_file_writer(
    path: Union[str, Path],
    config: Optional[WriterConfig] = None,
    correlation_id: Optional[str] = None,
) -> XMLWriter:
    """Open ``path`` for writing and return a writer that owns the file.

    The file is encoded with ``config.encoding`` and closed by
    :meth:`XMLWriter.close` or when the writer's ``with`` block exits.
    """
    config = (config or WriterConfig()).override(close_sink=True)
    stream = open(path, "wb")
    try:
        return XMLWriter(stream, config, correlation_id)
    except Exception:
        stream.close()
        raise
