"""In-memory XML writer returning the document as a string."""

from typing import Any, Mapping, Optional

from ultra_robust_xml_writer.api.helpers import (
    AttributeValue,
    XMLWritable,
    set_typed_attribute,
    write_element,
)
from ultra_robust_xml_writer.shared.config import WriterConfig
from ultra_robust_xml_writer.writer.core import XMLWriter
from ultra_robust_xml_writer.writer.sinks import StringSink
from ultra_robust_xml_writer.writer.state import WriterPhase


class XMLStringWriter:
    """Writer collecting its output in memory.

    The full writer contract is available through explicit delegation, plus
    typed attributes and one-call element helpers. Unlike :class:`XMLWriter`
    every mutating method returns ``self`` so calls can be chained.

    Example:
        >>> xml = XMLStringWriter()
        >>> _ = xml.open_element("point").attribute("x", 3).attribute("y", 1.5)
        >>> str(xml.close())
        '<point x="3" y="1.5"/>'
    """

    def __init__(
        self,
        config: Optional[WriterConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self._sink = StringSink()
        self._writer = XMLWriter(self._sink, config, correlation_id)

    def __enter__(self) -> "XMLStringWriter":
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        self._writer.__exit__(exc_type, exc_value, traceback)

    def __str__(self) -> str:
        return self._sink.getvalue()

    @property
    def writer(self) -> XMLWriter:
        """Underlying writer, for helpers that take an :class:`XMLWriter`."""
        return self._writer

    @property
    def phase(self) -> WriterPhase:
        return self._writer.phase

    @property
    def depth(self) -> int:
        return self._writer.depth

    def getvalue(self) -> str:
        """Everything written so far; the pending open tag is not included."""
        return self._sink.getvalue()

    def write_xml_declaration(self, version: str = "1.0",
                              standalone: Optional[bool] = None) -> "XMLStringWriter":
        self._writer.write_xml_declaration(version, standalone)
        return self

    def open_element(self, name: str, namespace_uri: Optional[str] = None,
                     preferred_prefix: Optional[str] = None) -> "XMLStringWriter":
        self._writer.open_element(name, namespace_uri, preferred_prefix)
        return self

    def set_attribute(self, name: str, value: str, namespace_uri: Optional[str] = None,
                      preferred_prefix: Optional[str] = None) -> "XMLStringWriter":
        self._writer.set_attribute(name, value, namespace_uri, preferred_prefix)
        return self

    def attribute(self, name: str, value: AttributeValue,
                  namespace_uri: Optional[str] = None,
                  preferred_prefix: Optional[str] = None) -> "XMLStringWriter":
        """Set an attribute from a string, number, boolean or date value."""
        set_typed_attribute(self._writer, name, value, namespace_uri, preferred_prefix)
        return self

    def declare_namespace(self, prefix: Optional[str], uri: str) -> "XMLStringWriter":
        self._writer.declare_namespace(prefix, uri)
        return self

    def write_text(self, text: str) -> "XMLStringWriter":
        self._writer.write_text(text)
        return self

    def write_cdata(self, data: str) -> "XMLStringWriter":
        self._writer.write_cdata(data)
        return self

    def write_comment(self, comment: str) -> "XMLStringWriter":
        self._writer.write_comment(comment)
        return self

    def write_processing_instruction(self, target: str,
                                     data: Optional[str] = None) -> "XMLStringWriter":
        self._writer.write_processing_instruction(target, data)
        return self

    def element(self, name: str, text: Optional[Any] = None,
                attributes: Optional[Mapping[str, AttributeValue]] = None) -> "XMLStringWriter":
        """Write a complete element in one call."""
        write_element(self._writer, name, text, attributes)
        return self

    def empty_element(self, name: str,
                      attributes: Optional[Mapping[str, AttributeValue]] = None) -> "XMLStringWriter":
        write_element(self._writer, name, None, attributes)
        return self

    def write(self, writable: XMLWritable) -> "XMLStringWriter":
        """Let ``writable`` write itself through this writer."""
        writable.to_xml(self)
        return self

    def close_element(self, name: Optional[str] = None) -> "XMLStringWriter":
        self._writer.close_element(name)
        return self

    def flush(self) -> "XMLStringWriter":
        self._writer.flush()
        return self

    def close(self) -> "XMLStringWriter":
        """Close all open elements and finish the document."""
        self._writer.close()
        return self


def to_string(writable: XMLWritable, config: Optional[WriterConfig] = None) -> str:
    """Serialize ``writable`` into a string.

    The root element is not required, so objects that write a fragment of
    comments or nothing at all serialize to what they wrote.
    """
    config = (config or WriterConfig()).override(require_root=False)
    xml = XMLStringWriter(config)
    writable.to_xml(xml)
    return xml.close().getvalue()
