"""Writer layer for the streaming XML writer.

Key Components:
    XMLWriter: State machine emitting well-formed XML to an output sink
    ElementStack: Stack of open element scopes
    PendingTag: Buffered open tag of the innermost element
    Output sinks: In-memory, text stream, binary stream and callback adapters
"""

from .core import XMLWriter
from .sinks import (
    BinaryStreamSink,
    CallbackSink,
    OutputSink,
    StringSink,
    TextStreamSink,
    as_sink,
)
from .stack import ElementStack
from .state import PendingAttribute, PendingTag, WriterPhase

__all__ = [
    "XMLWriter",
    "WriterPhase",
    "PendingAttribute",
    "PendingTag",
    "ElementStack",
    "OutputSink",
    "StringSink",
    "TextStreamSink",
    "BinaryStreamSink",
    "CallbackSink",
    "as_sink",
]
