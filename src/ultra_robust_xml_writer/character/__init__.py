"""Character layer for the streaming XML writer.

This module provides text and attribute escaping with a configurable policy
for illegal characters, and validation of XML names.
"""

from .escape import (
    ILLEGAL_CHARACTER_PATTERN,
    EscapeContext,
    XMLEscaper,
    encoding_limit,
    escape_attribute_value,
    escape_text,
)
from .names import (
    XML_NAMESPACE,
    XMLNS_NAMESPACE,
    is_valid_name,
    is_valid_ncname,
    is_valid_qname,
    split_qname,
)

__all__ = [
    "ILLEGAL_CHARACTER_PATTERN",
    "EscapeContext",
    "XMLEscaper",
    "encoding_limit",
    "escape_attribute_value",
    "escape_text",
    "XML_NAMESPACE",
    "XMLNS_NAMESPACE",
    "is_valid_name",
    "is_valid_ncname",
    "is_valid_qname",
    "split_qname",
]
