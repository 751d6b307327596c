"""Serialization of plain Python objects as XML elements.

Scalars become text elements, dataclasses and ordinary objects become an
element per public field, sequences an element per item and mappings an
``entry`` element holding a ``key`` and a ``value``. Element names are
derived with :func:`to_element_name`. The object graph is walked with an
explicit stack, so deeply nested data does not hit the recursion limit.

Example:
    >>> @dataclasses.dataclass
    ... class Point:
    ...     x: int
    ...     y: int
    >>> serialize_to_string(Point(1, 2))
    '<point><x>1</x><y>2</y></point>'
"""

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Set, Tuple

from ultra_robust_xml_writer.api.helpers import format_attribute_value, to_element_name
from ultra_robust_xml_writer.api.string_writer import XMLStringWriter
from ultra_robust_xml_writer.shared.config import WriterConfig
from ultra_robust_xml_writer.writer.core import XMLWriter

_SCALARS = (str, bool, int, float, Decimal, date, datetime, time)
_SEQUENCES = (list, tuple, set, frozenset)

# Marks a stack entry that closes the element opened for its object
_CLOSE = object()


@dataclasses.dataclass
class _MapEntry:
    key: Any
    value: Any


class XMLSerializer:
    """Write objects through an existing writer.

    ``None`` values are skipped, both at the top level and as fields or
    items. Objects providing ``to_xml(writer)`` write their own content
    inside the element named for them.
    """

    def __init__(self, xml: Any) -> None:
        """Initialize the serializer.

        Args:
            xml: :class:`XMLWriter` or :class:`XMLStringWriter` to write to;
                objects with ``to_xml`` receive this same object
        """
        self.xml = xml
        self._writer: XMLWriter = xml.writer if isinstance(xml, XMLStringWriter) else xml

    def serialize(self, obj: Any, name: Optional[str] = None) -> int:
        """Write ``obj`` as one element and everything it contains below it.

        Args:
            obj: Object to serialize
            name: Element name; derived from the type name when omitted.
                Either way it is passed through :func:`to_element_name`

        Returns:
            Number of elements written

        Raises:
            TypeError: an object has no XML representation (bytes, for example)
            ValueError: a container contains itself
        """
        writer = self._writer
        count = 0
        active: Set[int] = set()
        stack: List[Tuple[Any, Any]] = [(obj, name)]
        while stack:
            item, label = stack.pop()
            if label is _CLOSE:
                writer.close_element()
                active.discard(id(item))
                continue
            if item is None:
                continue

            element = to_element_name(label or type(item).__name__)
            count += 1
            text = _scalar_text(item)
            if text is not None:
                writer.open_element(element)
                writer.write_text(text)
                writer.close_element()
                continue
            if callable(getattr(item, "to_xml", None)):
                writer.open_element(element)
                item.to_xml(self.xml)
                writer.close_element(element)
                continue

            children = _children(item)
            if id(item) in active:
                raise ValueError(
                    f"Cannot serialize {type(item).__name__}: it contains itself"
                )
            active.add(id(item))
            writer.open_element(element)
            stack.append((item, _CLOSE))
            stack.extend(reversed(children))

        writer.logger.debug("Object serialized", extra={"elements_written": count})
        return count


def serialize_to_string(obj: Any, name: Optional[str] = None,
                        config: Optional[WriterConfig] = None) -> str:
    """Serialize ``obj`` into a string; ``None`` gives an empty string."""
    config = (config or WriterConfig()).override(require_root=False)
    xml = XMLStringWriter(config)
    XMLSerializer(xml).serialize(obj, name)
    return xml.close().getvalue()


def _scalar_text(item: Any) -> Optional[str]:
    if isinstance(item, Enum):
        return item.name
    if isinstance(item, _SCALARS):
        return format_attribute_value(item)
    return None


def _children(item: Any) -> List[Tuple[Any, Optional[str]]]:
    if isinstance(item, _MapEntry):
        return [(item.key, "key"), (item.value, "value")]
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return [(getattr(item, f.name), f.name) for f in dataclasses.fields(item)]
    if isinstance(item, Mapping):
        return [(_MapEntry(key, value), "entry") for key, value in item.items()]
    if isinstance(item, _SEQUENCES):
        return [(child, None) for child in item]
    if (
        isinstance(item, (bytes, bytearray, type))
        or callable(item)
        or not hasattr(item, "__dict__")
    ):
        raise TypeError(f"Cannot serialize {type(item).__name__} as XML")
    return [
        (value, key) for key, value in vars(item).items() if not key.startswith("_")
    ]
