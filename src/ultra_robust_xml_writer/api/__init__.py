"""Public convenience API for the streaming XML writer.

Key Components:
    XMLStringWriter: In-memory writer returning the document as a string
    Helpers: Typed attribute formatting, one-call elements, element names
    Adapters: Streaming lxml element trees through a writer
    XMLSerializer: Writing dataclasses, mappings and sequences as elements
"""

from .adapters import element_to_string, write_document, write_element_tree
from .helpers import (
    XMLWritable,
    format_attribute_value,
    open_file_writer,
    set_typed_attribute,
    to_element_name,
    write_element,
    write_empty_element,
)
from .serializer import XMLSerializer, serialize_to_string
from .string_writer import XMLStringWriter, to_string

__all__ = [
    "XMLStringWriter",
    "XMLWritable",
    "to_string",
    "format_attribute_value",
    "set_typed_attribute",
    "write_element",
    "write_empty_element",
    "to_element_name",
    "open_file_writer",
    "write_element_tree",
    "write_document",
    "element_to_string",
    "XMLSerializer",
    "serialize_to_string",
]
