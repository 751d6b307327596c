"""Escaping of character data for XML output.

The escaper maps raw strings to character sequences that survive a
round-trip through a conforming XML parser unchanged. It is stateless apart
from its policy settings, so one instance can be shared by any number of
writers.

Rules applied:

- ``&``, ``<`` and ``>`` are always replaced with entity references.
- A carriage return in text is written as ``&#13;`` so line-end
  normalization does not turn it into a line feed.
- Attribute values additionally escape the double quote and write line
  feed, carriage return and tab as character references so attribute-value
  normalization leaves them intact.
- Characters outside the XML 1.0 ``Char`` production are rejected, removed
  or replaced according to :class:`InvalidCharacterPolicy`.
- When the output encoding cannot represent a character (``ascii`` or
  ``latin-1``), text and attribute values carry it as ``&#xHH;``; names,
  comments, processing instructions and CDATA cannot, so the character is
  reported as invalid there.
"""

import codecs
import re
from enum import Enum
from typing import Dict, Optional, Pattern

from ultra_robust_xml_writer.shared.config import InvalidCharacterPolicy
from ultra_robust_xml_writer.shared.errors import InvalidCharacterError

# Complement of the XML 1.0 Char production
ILLEGAL_CHARACTER_PATTERN = re.compile(
    "[^\t\n\r\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)

_TEXT_SPECIAL = re.compile("[&<>\r]")
_ATTRIBUTE_SPECIAL = re.compile('[&<>"\n\r\t]')

_TEXT_REFERENCES: Dict[str, str] = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\r": "&#13;",
}

_ATTRIBUTE_REFERENCES: Dict[str, str] = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "\n": "&#10;",
    "\r": "&#13;",
    "\t": "&#9;",
}

# Code points at or above the limit cannot be encoded directly
_ENCODING_LIMITS: Dict[str, int] = {
    "ascii": 0x80,
    "iso8859-1": 0x100,
}


class EscapeContext(Enum):
    """Where in the document a string is being written."""
    TEXT_CONTENT = "text_content"
    ATTRIBUTE_VALUE = "attribute_value"
    COMMENT = "comment"
    PROCESSING_INSTRUCTION = "processing_instruction"
    CDATA = "cdata"
    NAME = "name"


def encoding_limit(encoding: str) -> Optional[int]:
    """Return the first code point ``encoding`` cannot represent, if any.

    Only the restrictive encodings the writer knows about are limited;
    everything else is assumed to be a Unicode encoding.
    """
    return _ENCODING_LIMITS.get(codecs.lookup(encoding).name)


class XMLEscaper:
    """Context-aware escaper with a configurable illegal-character policy."""

    def __init__(
        self,
        policy: InvalidCharacterPolicy = InvalidCharacterPolicy.REJECT,
        encoding: str = "utf-8",
        replacement_char: str = "\uFFFD",
    ) -> None:
        """Initialize the escaper.

        Args:
            policy: What to do with characters outside the XML Char production
            encoding: Output encoding, used to decide which characters need
                numeric character references
            replacement_char: Substitute used by the REPLACE policy
        """
        self.policy = policy
        self.encoding = encoding
        self.replacement_char = replacement_char
        self._limit = encoding_limit(encoding)
        self._unencodable: Optional[Pattern[str]] = None
        if self._limit is not None:
            self._unencodable = re.compile(f"[^\\x00-\\x{self._limit - 1:02x}]")

    def escape_text(self, text: str) -> str:
        """Escape character data for element content."""
        text = self._apply_policy(text, EscapeContext.TEXT_CONTENT)
        if _TEXT_SPECIAL.search(text):
            text = _TEXT_SPECIAL.sub(lambda m: _TEXT_REFERENCES[m.group()], text)
        return self._reference_unencodable(text)

    def escape_attribute_value(self, value: str) -> str:
        """Escape an attribute value for a double-quoted attribute."""
        value = self._apply_policy(value, EscapeContext.ATTRIBUTE_VALUE)
        if _ATTRIBUTE_SPECIAL.search(value):
            value = _ATTRIBUTE_SPECIAL.sub(
                lambda m: _ATTRIBUTE_REFERENCES[m.group()], value
            )
        return self._reference_unencodable(value)

    def clean(self, text: str, context: EscapeContext) -> str:
        """Apply the illegal-character policy without any markup escaping.

        Used for comments, processing instructions and CDATA sections, where
        entity references are not recognized.
        """
        text = self._apply_policy(text, context)
        self.check_encodable(text, context)
        return text

    def check_encodable(self, text: str, context: EscapeContext) -> None:
        """Fail if ``text`` holds a character the output encoding cannot carry."""
        if self._unencodable is None:
            return
        match = self._unencodable.search(text)
        if match is not None:
            char = match.group()
            raise InvalidCharacterError(
                f"Character U+{ord(char):04X} cannot be represented in "
                f"{self.encoding} inside {context.value}",
                char,
                match.start(),
                context.value,
            )

    def _apply_policy(self, text: str, context: EscapeContext) -> str:
        match = ILLEGAL_CHARACTER_PATTERN.search(text)
        if match is None:
            return text
        if self.policy is InvalidCharacterPolicy.REMOVE:
            return ILLEGAL_CHARACTER_PATTERN.sub("", text)
        if self.policy is InvalidCharacterPolicy.REPLACE:
            return ILLEGAL_CHARACTER_PATTERN.sub(self.replacement_char, text)
        char = match.group()
        raise InvalidCharacterError(
            f"Illegal XML character U+{ord(char):04X} at position "
            f"{match.start()} in {context.value}",
            char,
            match.start(),
            context.value,
        )

    def _reference_unencodable(self, text: str) -> str:
        if self._unencodable is None:
            return text
        return self._unencodable.sub(lambda m: f"&#x{ord(m.group()):X};", text)


_DEFAULT_ESCAPER = XMLEscaper()


def escape_text(text: str) -> str:
    """Escape ``text`` for element content using the default (rejecting) policy."""
    return _DEFAULT_ESCAPER.escape_text(text)


def escape_attribute_value(value: str) -> str:
    """Escape ``value`` for a double-quoted attribute using the default policy."""
    return _DEFAULT_ESCAPER.escape_attribute_value(value)
