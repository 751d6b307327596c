"""Ultra-Robust XML Writer.

A streaming XML serializer that turns a sequence of open/attribute/text/close
calls into output that is always well-formed XML, without holding the
document in memory. Caller mistakes are reported as precise errors before
anything malformed reaches the output.

Progressive API Disclosure:
- Level 1: Simple helpers - to_string(), serialize_to_string(), element_to_string(),
  XMLStringWriter
- Level 2: Configured streaming writer - XMLWriter with WriterConfig
- Level 3: Custom sinks, object serialization and lxml tree streaming
"""

__version__ = "0.1.0"
__author__ = "Ultra Robust XML Writer Team"

# Progressive API disclosure - Level 1: Simple helpers
from .api import (
    XMLSerializer,
    XMLStringWriter,
    XMLWritable,
    element_to_string,
    open_file_writer,
    serialize_to_string,
    to_string,
    write_element_tree,
)

# Configuration classes for advanced usage
from .shared.config import InvalidCharacterPolicy, UnbalancedClosePolicy, WriterConfig

# Error taxonomy
from .shared.errors import XMLWriterError

# Progressive API disclosure - Level 2: Streaming writer and sinks
from .writer import (
    BinaryStreamSink,
    CallbackSink,
    StringSink,
    TextStreamSink,
    WriterPhase,
    XMLWriter,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple helpers
    "XMLStringWriter",
    "XMLWritable",
    "to_string",
    "serialize_to_string",
    "element_to_string",
    "open_file_writer",

    # Level 2: Streaming writer
    "XMLWriter",
    "WriterPhase",

    # Level 3: Sinks and lxml integration
    "StringSink",
    "TextStreamSink",
    "BinaryStreamSink",
    "CallbackSink",
    "write_element_tree",
    "XMLSerializer",

    # Configuration and errors
    "WriterConfig",
    "InvalidCharacterPolicy",
    "UnbalancedClosePolicy",
    "XMLWriterError",
]
