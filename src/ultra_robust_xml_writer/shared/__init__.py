"""Shared utilities for the streaming XML writer.

This module provides the configuration object, the error taxonomy, result
statistics and logging helpers used across all components.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    InvalidCharacterPolicy,
    UnbalancedClosePolicy,
    WriterConfig,
    xml_encoding_name,
)
from .errors import (
    AttributeAfterContentError,
    DuplicateAttributeError,
    EmptyStackError,
    InvalidCharacterError,
    InvalidContentError,
    InvalidNameError,
    MultipleRootElementsError,
    NamespaceConflictError,
    NoRootElementError,
    UnbalancedCloseError,
    UndeclaredNamespaceError,
    WriterClosedError,
    WriterIOError,
    XMLDeclarationError,
    XMLWriterError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import WriterStatistics

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "InvalidCharacterPolicy",
    "UnbalancedClosePolicy",
    "WriterConfig",
    "xml_encoding_name",
    "AttributeAfterContentError",
    "DuplicateAttributeError",
    "EmptyStackError",
    "InvalidCharacterError",
    "InvalidContentError",
    "InvalidNameError",
    "MultipleRootElementsError",
    "NamespaceConflictError",
    "NoRootElementError",
    "UnbalancedCloseError",
    "UndeclaredNamespaceError",
    "WriterClosedError",
    "WriterIOError",
    "XMLDeclarationError",
    "XMLWriterError",
    "CorrelationLogger",
    "get_logger",
    "WriterStatistics",
]
