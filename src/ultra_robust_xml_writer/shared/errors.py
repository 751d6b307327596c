"""Error taxonomy for the streaming XML writer.

Every failure the writer can report is a distinct subclass of
:class:`XMLWriterError`. Each carries a stable ``code`` equal to its
condition name so host applications can branch either on the class or on
the code string.
"""

from typing import Any, Dict, Optional


class XMLWriterError(Exception):
    """Base class for all writer failures."""

    code = "XMLWriterError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NoRootElementError(XMLWriterError):
    """Content or finalization requested while no element is open."""

    code = "NoRootElement"


class MultipleRootElementsError(XMLWriterError):
    """A second top-level element was opened after the root closed."""

    code = "MultipleRootElements"


class AttributeAfterContentError(XMLWriterError):
    """Attribute or namespace declaration after the open tag was flushed."""

    code = "AttributeAfterContent"


class DuplicateAttributeError(XMLWriterError):
    """The same attribute was set twice on one element."""

    code = "DuplicateAttribute"


class UnbalancedCloseError(XMLWriterError):
    """A close did not match the innermost open element."""

    code = "UnbalancedClose"


class EmptyStackError(XMLWriterError):
    """Pop requested on an empty element stack."""

    code = "EmptyStack"


class InvalidCharacterError(XMLWriterError):
    """A character cannot appear in XML output (or in the target encoding)."""

    code = "InvalidCharacter"

    def __init__(
        self,
        message: str,
        character: str,
        position: int,
        context: str,
    ) -> None:
        super().__init__(
            message,
            {"code_point": f"U+{ord(character):04X}", "position": position,
             "context": context},
        )
        self.character = character
        self.position = position
        self.context = context


class WriterClosedError(XMLWriterError):
    """Any call after the writer was closed."""

    code = "WriterClosed"


class WriterIOError(XMLWriterError):
    """The output sink failed; the original exception is the ``__cause__``."""

    code = "IOError"


class InvalidNameError(XMLWriterError):
    """An element, attribute, prefix or PI target is not a legal XML name."""

    code = "InvalidName"


class InvalidContentError(XMLWriterError):
    """Comment, processing instruction or CDATA content cannot be represented."""

    code = "InvalidContent"


class UndeclaredNamespaceError(XMLWriterError):
    """A prefixed name uses a prefix with no binding in scope."""

    code = "UndeclaredNamespace"


class NamespaceConflictError(XMLWriterError):
    """A prefix would be bound to two URIs within one scope."""

    code = "NamespaceConflict"


class XMLDeclarationError(XMLWriterError):
    """The XML declaration was requested after output started."""

    code = "XMLDeclaration"
