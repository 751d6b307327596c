"""Output sinks for the streaming XML writer.

The writer depends on its destination only through ``append(text)``.
``flush()`` and ``close()`` are optional and used when present. The adapters
here wrap the usual destinations: in-memory buffers, text and binary
streams, and plain callables.
"""

import codecs
import io
from typing import Any, Callable, Optional, Protocol


class OutputSink(Protocol):
    """Anything that accepts emitted text fragments."""

    def append(self, text: str) -> None:
        ...


class StringSink:
    """In-memory sink collecting the document as a string."""

    def __init__(self) -> None:
        self._buffer = io.StringIO()

    def append(self, text: str) -> None:
        self._buffer.write(text)

    def getvalue(self) -> str:
        """Return everything appended so far."""
        return self._buffer.getvalue()

    def __len__(self) -> int:
        return self._buffer.tell()


class TextStreamSink:
    """Sink writing to a text stream such as an open text file or ``sys.stdout``."""

    def __init__(self, stream: Any) -> None:
        self.stream = stream

    def append(self, text: str) -> None:
        self.stream.write(text)

    def flush(self) -> None:
        if hasattr(self.stream, "flush"):
            self.stream.flush()

    def close(self) -> None:
        self.stream.close()


class BinaryStreamSink:
    """Sink encoding fragments before writing them to a binary stream.

    All fragments go through one incremental encoder, so encodings that start
    with a byte order mark (``utf-16``, ``utf-32``, ``utf-8-sig``) write it once.
    """

    def __init__(self, stream: Any, encoding: str = "utf-8", errors: str = "strict") -> None:
        """Initialize the sink.

        Args:
            stream: Binary stream with a ``write(bytes)`` method
            encoding: Output encoding
            errors: Codec error handler; ``strict`` surfaces unencodable
                characters as errors from the writer
        """
        self.stream = stream
        self.encoding = encoding
        self.errors = errors
        self._encoder = codecs.getincrementalencoder(encoding)(errors)

    def append(self, text: str) -> None:
        self.stream.write(self._encoder.encode(text))

    def flush(self) -> None:
        tail = self._encoder.encode("", final=True)
        if tail:
            self.stream.write(tail)
        if hasattr(self.stream, "flush"):
            self.stream.flush()

    def close(self) -> None:
        self.flush()
        self.stream.close()


class CallbackSink:
    """Sink forwarding every fragment to a callable."""

    def __init__(self, callback: Callable[[str], Any]) -> None:
        self.callback = callback

    def append(self, text: str) -> None:
        self.callback(text)


def _is_binary_stream(target: Any) -> bool:
    if isinstance(target, (io.RawIOBase, io.BufferedIOBase)):
        return True
    if isinstance(target, io.TextIOBase):
        return False
    mode = getattr(target, "mode", None)
    return isinstance(mode, str) and "b" in mode


def as_sink(target: Any, encoding: str = "utf-8") -> OutputSink:
    """Adapt ``target`` to the sink interface.

    Objects that already have ``append`` (including lists) are used as is;
    binary streams are wrapped with :class:`BinaryStreamSink`, text streams
    with :class:`TextStreamSink` and callables with :class:`CallbackSink`.

    Raises:
        TypeError: ``target`` cannot receive text
    """
    if callable(getattr(target, "append", None)):
        return target
    if hasattr(target, "write"):
        if _is_binary_stream(target):
            return BinaryStreamSink(target, encoding)
        return TextStreamSink(target)
    if callable(target):
        return CallbackSink(target)
    raise TypeError(f"Cannot write XML to {type(target).__name__}")


def sink_flush(sink: OutputSink) -> None:
    """Flush ``sink`` if it supports flushing."""
    flush: Optional[Callable[[], Any]] = getattr(sink, "flush", None)
    if flush is not None:
        flush()


def sink_close(sink: OutputSink) -> None:
    """Close ``sink`` if it supports closing."""
    close: Optional[Callable[[], Any]] = getattr(sink, "close", None)
    if close is not None:
        close()
