"""Configuration classes for the streaming XML writer.

This module provides an immutable configuration object controlling output
layout, escaping policy and error-recovery policy for :class:`XMLWriter`.
"""

import codecs
import json
import re
from dataclasses import dataclass, fields, replace
from enum import Enum, auto
from typing import Any, Dict, List, Optional


class InvalidCharacterPolicy(Enum):
    """What to do with characters that are not legal in XML 1.0."""

    REJECT = auto()     # Raise InvalidCharacterError
    REMOVE = auto()     # Drop the character silently
    REPLACE = auto()    # Substitute the configured replacement character


class UnbalancedClosePolicy(Enum):
    """How a named close that does not match the innermost element is handled."""

    STRICT = auto()      # Raise UnbalancedCloseError, stack untouched
    AUTO_CLOSE = auto()  # Close open descendants up to the matching ancestor


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


_PREFIX_STEM = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*$")

# Python codec names whose registered (IANA) charset name is spelled differently
_IANA_NAMES = {
    "ascii": "US-ASCII",
    "utf-8": "UTF-8",
    "utf-8-sig": "UTF-8",
    "utf-16": "UTF-16",
    "utf-16-le": "UTF-16LE",
    "utf-16-be": "UTF-16BE",
    "utf-32": "UTF-32",
    "utf-32-le": "UTF-32LE",
    "utf-32-be": "UTF-32BE",
    "shift_jis": "Shift_JIS",
    "euc_jp": "EUC-JP",
    "euc_kr": "EUC-KR",
    "iso2022_jp": "ISO-2022-JP",
    "gb2312": "GB2312",
    "gbk": "GBK",
    "gb18030": "GB18030",
    "big5": "Big5",
    "koi8-r": "KOI8-R",
    "koi8-u": "KOI8-U",
    "mac-roman": "macintosh",
}

_ISO_8859 = re.compile(r"^iso8859-(\d+)$")
_WINDOWS_CODEPAGE = re.compile(r"^cp(125\d)$")


def xml_encoding_name(encoding: str) -> str:
    """Return the charset name to write in the XML declaration for ``encoding``.

    Python accepts many aliases (``latin-1``, ``utf8``, ``cp1252``) that XML
    parsers do not, so the codec is looked up and mapped to its registered
    name.

    Example:
        >>> xml_encoding_name("latin-1")
        'ISO-8859-1'
        >>> xml_encoding_name("utf8")
        'UTF-8'

    Raises:
        LookupError: ``encoding`` is not a known codec
    """
    name = codecs.lookup(encoding).name
    if name in _IANA_NAMES:
        return _IANA_NAMES[name]
    match = _ISO_8859.match(name)
    if match:
        return f"ISO-8859-{match.group(1)}"
    match = _WINDOWS_CODEPAGE.match(name)
    if match:
        return f"windows-{match.group(1)}"
    return name.upper().replace("_", "-")


@dataclass(frozen=True)
class WriterConfig:
    """Immutable configuration for :class:`XMLWriter`.

    Thread-safe to share between writers because it is frozen; each writer
    keeps its own mutable state.
    """

    indent: Optional[str] = None
    encoding: str = "utf-8"
    invalid_characters: InvalidCharacterPolicy = InvalidCharacterPolicy.REJECT
    replacement_char: str = "\uFFFD"  # Unicode replacement character
    unbalanced_close: UnbalancedClosePolicy = UnbalancedClosePolicy.STRICT
    self_close_empty: bool = True
    require_root: bool = True
    validate_names: bool = True
    close_sink: bool = False
    generated_prefix: str = "ns"
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate writer configuration."""
        if self.indent is not None and (
            not isinstance(self.indent, str) or self.indent.strip(" \t") != ""
        ):
            raise ConfigValidationError(
                "indent must contain only spaces and tabs",
                field_name="indent",
                suggestions=["Use '  ' or '\\t'", "Use None to disable indentation"],
            )
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ConfigValidationError(
                f"Unknown encoding: {self.encoding}", field_name="encoding"
            ) from e
        if len(self.replacement_char) != 1:
            raise ConfigValidationError(
                "replacement_char must be a single character",
                field_name="replacement_char",
            )
        code = ord(self.replacement_char)
        if code < 0x20 or 0xD800 <= code <= 0xDFFF or code in (0xFFFE, 0xFFFF):
            raise ConfigValidationError(
                "replacement_char must itself be a legal XML character",
                field_name="replacement_char",
            )
        if not _PREFIX_STEM.match(self.generated_prefix) or (
            self.generated_prefix.lower().startswith("xml")
        ):
            raise ConfigValidationError(
                "generated_prefix must be a valid prefix not starting with 'xml'",
                field_name="generated_prefix",
                suggestions=["Use 'ns'"],
            )

    @property
    def indent_enabled(self) -> bool:
        """Whether newlines and indentation are emitted around tags."""
        return self.indent is not None

    @property
    def declared_encoding(self) -> str:
        """Encoding name written in the XML declaration."""
        return xml_encoding_name(self.encoding)

    def override(self, **kwargs: Any) -> "WriterConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = WriterConfig()
            >>> config.override(indent="  ").indent_enabled
            True
        """
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.name if isinstance(value, Enum) else value
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WriterConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected; enum fields accept their member names.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {sorted(unknown)}",
                suggestions=sorted(known),
            )
        values = dict(data)
        try:
            if isinstance(values.get("invalid_characters"), str):
                values["invalid_characters"] = InvalidCharacterPolicy[
                    values["invalid_characters"]
                ]
            if isinstance(values.get("unbalanced_close"), str):
                values["unbalanced_close"] = UnbalancedClosePolicy[
                    values["unbalanced_close"]
                ]
        except KeyError as e:
            raise ConfigValidationError(f"Unknown policy name: {e}") from e
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "WriterConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    # Preset factory methods
    @classmethod
    def strict(cls) -> "WriterConfig":
        """Every questionable call fails; this is also the default."""
        return cls()

    @classmethod
    def pretty(cls, indent: str = "  ") -> "WriterConfig":
        """Indented output for human readers."""
        return cls(indent=indent)

    @classmethod
    def lenient(cls) -> "WriterConfig":
        """Repair what can be repaired instead of failing."""
        return cls(
            invalid_characters=InvalidCharacterPolicy.REPLACE,
            unbalanced_close=UnbalancedClosePolicy.AUTO_CLOSE,
            require_root=False,
        )
