"""Core streaming XML writer.

This module implements the writer state machine. Every public call first
checks that it is legal in the current phase, then updates the namespace
registry and element stack, and finally emits markup through the escaper
into the output sink. Output is written as the calls arrive; only the open
tag of the innermost element is held back until its attributes are known.

Example:
    >>> sink = StringSink()
    >>> with XMLWriter(sink) as xml:
    ...     xml.open_element("greeting")
    ...     xml.set_attribute("lang", "en")
    ...     xml.write_text("Hello & welcome")
    >>> sink.getvalue()
    '<greeting lang="en">Hello &amp; welcome</greeting>'
"""

import logging
from typing import Any, Dict, List, Optional

from ultra_robust_xml_writer.character.escape import EscapeContext, XMLEscaper
from ultra_robust_xml_writer.character.names import (
    XML_NAMESPACE,
    XMLNS_NAMESPACE,
    is_valid_ncname,
    is_valid_qname,
    split_qname,
)
from ultra_robust_xml_writer.namespace.registry import NamespaceRegistry
from ultra_robust_xml_writer.namespace.scope import Scope
from ultra_robust_xml_writer.shared.config import UnbalancedClosePolicy, WriterConfig
from ultra_robust_xml_writer.shared.errors import (
    AttributeAfterContentError,
    DuplicateAttributeError,
    EmptyStackError,
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
)
from ultra_robust_xml_writer.shared.logging import get_logger
from ultra_robust_xml_writer.shared.result import WriterStatistics
from ultra_robust_xml_writer.writer.sinks import OutputSink, as_sink, sink_close, sink_flush
from ultra_robust_xml_writer.writer.stack import ElementStack
from ultra_robust_xml_writer.writer.state import PendingAttribute, PendingTag, WriterPhase

# Errors raised by sinks that are reported as WriterIOError
_SINK_ERRORS = (OSError, UnicodeError)


class XMLWriter:
    """Streaming writer that only ever emits well-formed XML.

    A writer owns its phase, element stack and namespace registry
    exclusively. It is not safe for concurrent use from several threads.
    The output sink is not owned: it is closed only by :meth:`close` and
    only when ``config.close_sink`` is set.
    """

    def __init__(
        self,
        sink: Any,
        config: Optional[WriterConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the writer.

        Args:
            sink: Output sink, or anything :func:`as_sink` can adapt
            config: Writer configuration (uses default if None)
            correlation_id: Optional correlation ID for log records;
                falls back to ``config.correlation_id``
        """
        self.config = config or WriterConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_writer")

        self._sink: OutputSink = as_sink(sink, self.config.encoding)
        self._escaper = XMLEscaper(
            self.config.invalid_characters,
            self.config.encoding,
            self.config.replacement_char,
        )
        self._stack = ElementStack()
        self._namespaces = NamespaceRegistry(
            self._stack, self.config.generated_prefix, self.logger
        )

        self._phase = WriterPhase.BEFORE_ROOT
        self._pending: Optional[PendingTag] = None
        self._output_started = False
        self.statistics = WriterStatistics()

    def __enter__(self) -> "XMLWriter":
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        if self._phase is WriterPhase.CLOSED:
            return
        if exc_type is None:
            self.close()
            return
        self.logger.warning(
            "Writer abandoned after exception",
            extra={"open_elements": self._stack.names(),
                   "exception_type": exc_type.__name__},
        )
        self._phase = WriterPhase.CLOSED
        if self.config.close_sink:
            self._call_sink(sink_close, "close")

    # Inspection
    # ----------------------------------------------------------------------

    @property
    def phase(self) -> WriterPhase:
        """Current lifecycle phase."""
        return self._phase

    @property
    def depth(self) -> int:
        """Number of currently open elements."""
        return self._stack.depth()

    @property
    def current_element(self) -> Optional[str]:
        """Qualified name of the innermost open element, or None."""
        return self._stack.peek()

    @property
    def is_closed(self) -> bool:
        return self._phase is WriterPhase.CLOSED

    @property
    def sink(self) -> OutputSink:
        return self._sink

    def resolve_prefix(self, uri: str) -> Optional[str]:
        """Return the prefix currently bound to ``uri``, or None."""
        return self._namespaces.resolve(uri)

    def namespaces_in_scope(self) -> Dict[str, str]:
        """Prefix bindings visible at the current position."""
        return self._namespaces.in_scope()

    # Document level
    # ----------------------------------------------------------------------

    def write_xml_declaration(self, version: str = "1.0",
                              standalone: Optional[bool] = None) -> None:
        """Write ``<?xml ...?>``; only legal before anything else is written."""
        self._ensure_open()
        if self._output_started or self._phase is not WriterPhase.BEFORE_ROOT:
            raise XMLDeclarationError(
                "The XML declaration must be the first thing written"
            )
        if version != "1.0":
            raise XMLDeclarationError(
                f"Unsupported XML version: {version}", {"version": version}
            )
        declaration = f'<?xml version="{version}" encoding="{self.config.declared_encoding}"'
        if standalone is not None:
            declaration += f' standalone="{"yes" if standalone else "no"}"'
        self._emit(declaration + "?>")

    # Elements
    # ----------------------------------------------------------------------

    def open_element(
        self,
        name: str,
        namespace_uri: Optional[str] = None,
        preferred_prefix: Optional[str] = None,
    ) -> None:
        """Open a new element.

        Without a namespace ``name`` is written as given and may carry a
        prefix declared on this element or an ancestor. With a namespace
        ``name`` is the local name and the prefix is resolved (or declared)
        through the namespace registry.

        Args:
            name: Element name (qualified name, or local name with a namespace)
            namespace_uri: Namespace URI; ``""`` means "no namespace"
            preferred_prefix: Prefix to declare if the URI has none in
                scope; ``""`` requests the default namespace

        Raises:
            MultipleRootElementsError: the root element was already closed
            InvalidNameError: the name or prefix is not legal
        """
        self._ensure_open()
        if self._phase is WriterPhase.AFTER_ROOT:
            raise MultipleRootElementsError(
                f"Cannot open <{name}>: the root element has already been closed",
                {"element": name},
            )
        if namespace_uri is None:
            self._check_qname(name, "element")
        else:
            self._check_namespaced_name(name, namespace_uri, preferred_prefix, "element")

        self._before_content()
        parent = self._stack.current_scope
        scope = self._stack.push(name)
        pending = PendingTag(scope)
        if namespace_uri is not None:
            try:
                prefix = self._namespaces.resolve_or_declare(
                    namespace_uri, preferred_prefix, allow_default=True
                )
            except Exception:
                self._stack.pop()
                raise
            scope.name = f"{prefix}:{name}" if prefix else name
            pending.namespace_prefixes[prefix] = namespace_uri

        if not parent.is_document:
            parent.has_children = True
        self._pending = pending
        self._phase = WriterPhase.OPEN_TAG_PENDING
        self.statistics.record_depth(scope.depth)
        self.logger.debug(
            "Element opened", extra={"element": scope.name, "depth": scope.depth}
        )

    def close_element(self, name: Optional[str] = None) -> None:
        """Close the innermost open element.

        An element with no content is written as an empty-element tag.

        Args:
            name: Expected element name (qualified, or the local name given
                to :meth:`open_element`); checked against the innermost
                element when given

        Raises:
            UnbalancedCloseError: no element is open, or ``name`` does not
                match (and cannot be auto-closed under the configured policy)
        """
        self._ensure_open()
        current = self._stack.peek_scope()
        if current is None:
            raise UnbalancedCloseError(
                "Cannot close element: no element is open",
                {"expected": name},
            )
        if name is not None and not current.matches(name):
            distance = self._stack.find(name)
            if (
                self.config.unbalanced_close is UnbalancedClosePolicy.AUTO_CLOSE
                and distance > 0
            ):
                self.logger.warning(
                    "Auto-closing unbalanced elements",
                    extra={"expected": name,
                           "auto_closed": self._stack.names()[-distance:]},
                )
                for _ in range(distance):
                    self._close_current()
            else:
                raise UnbalancedCloseError(
                    f"Cannot close <{name}>: innermost open element is <{current.name}>",
                    {"expected": name, "open": current.name,
                     "open_elements": self._stack.names()},
                )
        self._close_current()

    # Attributes and namespaces
    # ----------------------------------------------------------------------

    def set_attribute(
        self,
        name: str,
        value: str,
        namespace_uri: Optional[str] = None,
        preferred_prefix: Optional[str] = None,
    ) -> None:
        """Add an attribute to the element whose open tag is still pending.

        Attributes are written in the order they are set.

        Raises:
            AttributeAfterContentError: the open tag was already flushed
            DuplicateAttributeError: the attribute is already set
            TypeError: ``value`` is not a string
        """
        self._ensure_open()
        pending = self._require_pending(f"set attribute {name!r}")
        if not isinstance(value, str):
            raise TypeError(
                f"Attribute value must be a string, got {type(value).__name__}"
            )
        if name == "xmlns" or name.startswith("xmlns:"):
            raise InvalidNameError(
                "Namespace declarations must be written with declare_namespace()",
                {"attribute": name},
            )

        if not namespace_uri:
            self._check_qname(name, "attribute")
            escaped = self._escaper.escape_attribute_value(value)
            prefix, local = split_qname(name)
            bound = pending.scope.lookup(prefix) if prefix is not None else None
            if bound is None:
                pending.add_attribute(PendingAttribute(name, escaped))
                return
            # Two prefixes bound to one URI still name the same attribute
            pending.add_attribute(
                PendingAttribute(name, escaped, bound), f"{{{bound}}}{local}"
            )
            return

        self._check_namespaced_name(name, namespace_uri, preferred_prefix, "attribute")
        expanded = f"{{{namespace_uri}}}{name}"
        if pending.has_key(expanded):
            raise DuplicateAttributeError(
                f"Attribute {name!r} in namespace {namespace_uri!r} is already "
                f"set on <{pending.scope.name}>",
                {"attribute": expanded, "element": pending.scope.name},
            )
        escaped = self._escaper.escape_attribute_value(value)
        prefix = self._namespaces.resolve_or_declare(
            namespace_uri, preferred_prefix, allow_default=False
        )
        pending.namespace_prefixes.setdefault(prefix, namespace_uri)
        pending.add_attribute(
            PendingAttribute(f"{prefix}:{name}", escaped, namespace_uri), expanded
        )

    def declare_namespace(self, prefix: Optional[str], uri: str) -> bool:
        """Bind ``prefix`` to ``uri`` on the element whose open tag is pending.

        Args:
            prefix: Prefix to bind; ``""`` or None for the default namespace
            uri: Namespace URI

        Returns:
            True if an ``xmlns`` attribute will be written, False if the
            binding was already in scope

        Raises:
            AttributeAfterContentError: the open tag was already flushed
            NamespaceConflictError: the prefix is bound differently on this
                element or already qualifies one of its names
        """
        self._ensure_open()
        prefix = prefix or ""
        pending = self._require_pending(f"declare namespace prefix {prefix!r}")
        if not isinstance(uri, str):
            raise TypeError(f"Namespace URI must be a string, got {type(uri).__name__}")
        self._escaper.escape_attribute_value(uri)
        if pending.conflicts_with(prefix, uri):
            raise NamespaceConflictError(
                f"Prefix {prefix!r} already qualifies a name on <{pending.scope.name}>",
                {"prefix": prefix, "uri": uri},
            )
        return self._namespaces.declare(prefix, uri)

    # Content
    # ----------------------------------------------------------------------

    def write_text(self, text: str) -> None:
        """Write character data, escaping it as needed.

        Writing an empty string is a no-op and leaves a pending open tag
        pending.

        Raises:
            NoRootElementError: no element is open
            InvalidCharacterError: ``text`` holds an illegal character under
                the REJECT policy
        """
        self._ensure_open()
        if not isinstance(text, str):
            raise TypeError(f"Text must be a string, got {type(text).__name__}")
        if not text:
            return
        self._require_element("write text")
        escaped = self._escaper.escape_text(text)
        self._before_content()
        self._emit(escaped)
        self._stack.current_scope.has_text = True
        self.statistics.text_nodes += 1

    def write_cdata(self, data: str) -> None:
        """Write a CDATA section.

        Raises:
            InvalidContentError: ``data`` contains ``]]>``
        """
        self._ensure_open()
        if not isinstance(data, str):
            raise TypeError(f"CDATA must be a string, got {type(data).__name__}")
        if not data:
            return
        self._require_element("write CDATA")
        data = self._escaper.clean(data, EscapeContext.CDATA)
        if "]]>" in data:
            raise InvalidContentError(
                "CDATA sections must not contain ']]>'", {"context": "cdata"}
            )
        self._before_content()
        self._emit(f"<![CDATA[{data}]]>")
        self._stack.current_scope.has_text = True
        self.statistics.cdata_sections += 1

    def write_comment(self, comment: str) -> None:
        """Write a comment, inside an element or at document level.

        Raises:
            InvalidContentError: the comment contains ``--`` or ends with ``-``
        """
        self._ensure_open()
        if not isinstance(comment, str):
            raise TypeError(f"Comment must be a string, got {type(comment).__name__}")
        comment = self._escaper.clean(comment, EscapeContext.COMMENT)
        if "--" in comment or comment.endswith("-"):
            raise InvalidContentError(
                "A comment must not contain '--' or end with '-'",
                {"context": "comment"},
            )
        self._write_markup(f"<!--{comment}-->")
        self.statistics.comments += 1

    def write_processing_instruction(self, target: str, data: Optional[str] = None) -> None:
        """Write a processing instruction, inside an element or at document level.

        Raises:
            InvalidNameError: ``target`` is not a legal PI target
            InvalidContentError: ``target`` is reserved or ``data`` contains ``?>``
        """
        self._ensure_open()
        if not is_valid_ncname(target):
            raise InvalidNameError(
                f"Invalid processing instruction target: {target!r}",
                {"target": target},
            )
        if target.lower() == "xml":
            raise InvalidContentError(
                "Processing instruction targets matching 'xml' are reserved; "
                "use write_xml_declaration()",
                {"target": target},
            )
        self._escaper.check_encodable(target, EscapeContext.NAME)
        markup = f"<?{target}?>"
        if data:
            data = self._escaper.clean(data, EscapeContext.PROCESSING_INSTRUCTION)
            if "?>" in data:
                raise InvalidContentError(
                    "Processing instruction data must not contain '?>'",
                    {"target": target},
                )
            markup = f"<?{target} {data}?>"
        self._write_markup(markup)
        self.statistics.processing_instructions += 1

    # Lifecycle
    # ----------------------------------------------------------------------

    def flush(self) -> None:
        """Flush the output sink if it supports flushing.

        A pending open tag is not written, since attributes may still follow.
        """
        self._ensure_open()
        self._call_sink(sink_flush, "flush")

    def close(self) -> None:
        """Close every open element (innermost first) and finish the document.

        The sink is flushed and, if ``config.close_sink`` is set, closed.

        Raises:
            NoRootElementError: no root element was written and
                ``config.require_root`` is set
            WriterClosedError: the writer is already closed
        """
        self._ensure_open()
        if self._phase is WriterPhase.BEFORE_ROOT and self.config.require_root:
            raise NoRootElementError("Cannot close writer: no root element was written")
        if self._stack.depth() and self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                "Closing open elements", extra={"open_elements": self._stack.names()}
            )
        while self._stack.depth():
            self._close_current()
        self._call_sink(sink_flush, "flush")
        if self.config.close_sink:
            self._call_sink(sink_close, "close")
        self._phase = WriterPhase.CLOSED
        self.logger.info("Writer closed", extra={"statistics": self.statistics.to_dict()})

    # Internals
    # ----------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._phase is WriterPhase.CLOSED:
            raise WriterClosedError("The writer has been closed")

    def _require_element(self, action: str) -> Scope:
        scope = self._stack.peek_scope()
        if scope is None:
            where = (
                "the root element has already been closed"
                if self._phase is WriterPhase.AFTER_ROOT
                else "no root element has been opened"
            )
            raise NoRootElementError(f"Cannot {action}: {where}", {"phase": self._phase.value})
        return scope

    def _require_pending(self, action: str) -> PendingTag:
        if self._pending is not None:
            return self._pending
        if self._phase is WriterPhase.BEFORE_ROOT:
            raise NoRootElementError(f"Cannot {action}: no element has been opened")
        current = self._stack.peek()
        where = (
            f"the open tag of <{current}> has already been written"
            if current is not None
            else "the document content has already been written"
        )
        raise AttributeAfterContentError(
            f"Cannot {action}: {where}", {"element": current}
        )

    def _check_qname(self, name: str, kind: str) -> None:
        if not isinstance(name, str):
            raise TypeError(f"{kind.capitalize()} name must be a string")
        if self.config.validate_names and not is_valid_qname(name):
            raise InvalidNameError(f"Invalid {kind} name: {name!r}", {kind: name})
        self._escaper.check_encodable(name, EscapeContext.NAME)

    def _check_namespaced_name(
        self,
        name: str,
        namespace_uri: str,
        preferred_prefix: Optional[str],
        kind: str,
    ) -> None:
        if not isinstance(name, str) or not isinstance(namespace_uri, str):
            raise TypeError(f"{kind.capitalize()} name and namespace must be strings")
        if self.config.validate_names and not is_valid_ncname(name):
            raise InvalidNameError(f"Invalid local {kind} name: {name!r}", {kind: name})
        self._escaper.check_encodable(name, EscapeContext.NAME)
        if preferred_prefix:
            if not is_valid_ncname(preferred_prefix) or preferred_prefix == "xmlns":
                raise InvalidNameError(
                    f"Invalid namespace prefix: {preferred_prefix!r}",
                    {"prefix": preferred_prefix},
                )
            self._escaper.check_encodable(preferred_prefix, EscapeContext.NAME)
        if namespace_uri == XMLNS_NAMESPACE:
            raise NamespaceConflictError(
                f"Names cannot be placed in {XMLNS_NAMESPACE}", {"uri": namespace_uri}
            )
        if namespace_uri and namespace_uri != XML_NAMESPACE:
            self._escaper.escape_attribute_value(namespace_uri)

    def _before_content(self) -> None:
        """Flush the pending open tag before content is written into it."""
        if self._pending is not None:
            self._flush_pending(self._pending, self_closing=False)
            self._phase = WriterPhase.IN_CONTENT

    def _flush_pending(self, pending: PendingTag, self_closing: bool, suffix: str = "") -> None:
        self._emit(self._render_open_tag(pending, self_closing) + suffix)
        self._pending = None
        self.statistics.elements_written += 1
        self.statistics.attributes_written += len(pending.attributes)
        self.statistics.namespace_declarations += len(pending.scope.bindings)

    def _render_open_tag(self, pending: PendingTag, self_closing: bool) -> str:
        scope = pending.scope
        self._check_prefixes(pending)
        parts: List[str] = [self._line_break(scope.parent), "<", scope.name]
        for prefix, uri in scope.bindings.items():
            value = self._escaper.escape_attribute_value(uri)
            if prefix:
                parts.append(f' xmlns:{prefix}="{value}"')
            else:
                parts.append(f' xmlns="{value}"')
        for attribute in pending.attributes:
            parts.append(f' {attribute.qname}="{attribute.value}"')
        parts.append("/>" if self_closing else ">")
        return "".join(parts)

    def _check_prefixes(self, pending: PendingTag) -> None:
        """Check the tag's prefixes against its final bindings.

        Raises:
            UndeclaredNamespaceError: a prefix is not bound
            DuplicateAttributeError: two attributes share namespace and local name
        """
        scope = pending.scope
        self._lookup_prefix(scope, scope.name)
        expanded_names: Dict[str, str] = {}
        for attribute in pending.attributes:
            prefix, local = split_qname(attribute.qname)
            uri = self._lookup_prefix(scope, attribute.qname)
            key = attribute.qname if prefix is None else f"{{{uri}}}{local}"
            if key in expanded_names:
                raise DuplicateAttributeError(
                    f"Attributes {expanded_names[key]!r} and {attribute.qname!r} on "
                    f"<{scope.name}> have the same namespace and local name",
                    {"attribute": key, "element": scope.name},
                )
            expanded_names[key] = attribute.qname

    def _lookup_prefix(self, scope: Scope, qname: str) -> Optional[str]:
        prefix, _ = split_qname(qname)
        if prefix is None:
            return None
        uri = scope.lookup(prefix)
        if uri is None:
            raise UndeclaredNamespaceError(
                f"Prefix {prefix!r} used by {qname!r} is not bound to a namespace",
                {"prefix": prefix, "name": qname, "element": scope.name},
            )
        return uri

    def _line_break(self, parent: Optional[Scope]) -> str:
        """Newline and indentation before an item written inside ``parent``."""
        indent = self.config.indent
        if indent is None:
            return ""
        if parent is None or parent.is_document:
            return "\n" if self._output_started else ""
        if parent.has_text:
            return ""
        return "\n" + indent * parent.depth

    def _write_markup(self, markup: str) -> None:
        """Emit a comment or PI at the current position."""
        if self._stack.depth() == 0:
            self._emit(self._line_break(self._stack.document_scope) + markup)
            return
        self._before_content()
        scope = self._stack.current_scope
        self._emit(self._line_break(scope) + markup)
        scope.has_children = True

    def _close_current(self) -> None:
        scope = self._stack.peek_scope()
        if scope is None:
            raise EmptyStackError("Cannot close element: no element is open")
        pending = self._pending
        if pending is not None and pending.scope is scope:
            if self.config.self_close_empty:
                self._flush_pending(pending, self_closing=True)
            else:
                self._flush_pending(pending, self_closing=False, suffix=f"</{scope.name}>")
        else:
            closing = f"</{scope.name}>"
            if self.config.indent is not None and scope.has_children and not scope.has_text:
                closing = "\n" + self.config.indent * (scope.depth - 1) + closing
            self._emit(closing)
        self._stack.pop()
        self._phase = (
            WriterPhase.IN_CONTENT if self._stack.depth() else WriterPhase.AFTER_ROOT
        )
        self.logger.debug(
            "Element closed", extra={"element": scope.name, "depth": scope.depth}
        )

    def _emit(self, text: str) -> None:
        try:
            self._sink.append(text)
        except _SINK_ERRORS as e:
            self.logger.error(
                "Output sink failed",
                extra={"fragment_length": len(text), "phase": self._phase.value},
            )
            raise WriterIOError(f"Output sink failed: {e}") from e
        self._output_started = True
        self.statistics.characters_emitted += len(text)
        self.statistics.fragments_emitted += 1

    def _call_sink(self, operation: Any, label: str) -> None:
        try:
            operation(self._sink)
        except _SINK_ERRORS as e:
            self.logger.error("Output sink failed", extra={"operation": label})
            raise WriterIOError(f"Output sink {label} failed: {e}") from e
