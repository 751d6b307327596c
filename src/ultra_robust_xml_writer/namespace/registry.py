"""Namespace registry for the streaming XML writer.

The registry resolves namespace URIs to prefixes against the scopes held by
the element stack, and declares new bindings on the innermost open element
only when no usable binding is already in scope. Bindings live on the
scopes themselves, so they go out of scope when their element is closed.
"""

from typing import TYPE_CHECKING, Dict, Optional

from ultra_robust_xml_writer.character.names import (
    XML_NAMESPACE,
    XMLNS_NAMESPACE,
    is_valid_ncname,
)
from ultra_robust_xml_writer.namespace.scope import Scope
from ultra_robust_xml_writer.shared.errors import (
    InvalidNameError,
    NamespaceConflictError,
    NoRootElementError,
)
from ultra_robust_xml_writer.shared.logging import CorrelationLogger, get_logger

if TYPE_CHECKING:
    from ultra_robust_xml_writer.writer.stack import ElementStack


class NamespaceRegistry:
    """Prefix/URI bookkeeping over the scopes of an element stack."""

    def __init__(
        self,
        stack: "ElementStack",
        generated_prefix: str = "ns",
        logger: Optional[CorrelationLogger] = None,
    ) -> None:
        """Initialize the registry.

        Args:
            stack: Element stack whose top scope receives new declarations
            generated_prefix: Stem for prefixes invented on collisions
            logger: Logger to report declarations to
        """
        self._stack = stack
        self.generated_prefix = generated_prefix
        self.logger = logger or get_logger(__name__, component="namespace_registry")

    @property
    def current(self) -> Scope:
        """Innermost scope (the document scope when no element is open)."""
        return self._stack.current_scope

    def lookup(self, prefix: str) -> Optional[str]:
        """Return the URI bound to ``prefix`` in the current scope chain."""
        return self.current.lookup(prefix)

    def in_scope(self) -> Dict[str, str]:
        """All prefix bindings visible from the innermost open element."""
        return self.current.in_scope()

    def validate_binding(self, prefix: str, uri: str) -> None:
        """Check that ``prefix`` may be bound to ``uri`` at all.

        Raises:
            InvalidNameError: prefix is not an NCName or is ``xmlns``
            NamespaceConflictError: the binding violates the reserved
                ``xml``/``xmlns`` rules or undeclares a prefix
        """
        if prefix and not is_valid_ncname(prefix):
            raise InvalidNameError(
                f"Invalid namespace prefix: {prefix!r}", {"prefix": prefix}
            )
        if prefix == "xmlns":
            raise InvalidNameError(
                "The 'xmlns' prefix cannot be declared", {"prefix": prefix}
            )
        if uri == XMLNS_NAMESPACE:
            raise NamespaceConflictError(
                f"{XMLNS_NAMESPACE} cannot be bound to a prefix",
                {"prefix": prefix, "uri": uri},
            )
        if (prefix == "xml") != (uri == XML_NAMESPACE):
            raise NamespaceConflictError(
                f"The 'xml' prefix is reserved for {XML_NAMESPACE}",
                {"prefix": prefix, "uri": uri},
            )
        if prefix and not uri:
            raise NamespaceConflictError(
                f"Prefix {prefix!r} cannot be bound to the empty namespace",
                {"prefix": prefix},
            )

    def declare(self, prefix: str, uri: str) -> bool:
        """Bind ``prefix`` to ``uri`` on the innermost open element.

        A binding an enclosing element already provides is not written again,
        but it is remembered so a later conflicting declaration on the same
        element is still refused.

        Returns:
            True if a new ``xmlns`` declaration is needed, False if the same
            binding was already in scope

        Raises:
            NoRootElementError: no element is open
            NamespaceConflictError: the prefix is already declared with a
                different URI on this element
        """
        self.validate_binding(prefix, uri)
        if self._stack.depth() == 0:
            raise NoRootElementError(
                "Namespaces can only be declared on an open element",
                {"prefix": prefix, "uri": uri},
            )
        scope = self.current
        declared = scope.declared(prefix)
        if declared is not None:
            if declared == uri:
                return False
            raise NamespaceConflictError(
                f"Prefix {prefix!r} is already bound to {declared!r} on <{scope.name}>",
                {"prefix": prefix, "uri": uri, "bound": declared},
            )
        if scope.lookup(prefix) == uri:
            scope.restated[prefix] = uri
            return False
        scope.bindings[prefix] = uri
        self.logger.debug(
            "Namespace declared",
            extra={"prefix": prefix, "uri": uri, "depth": scope.depth},
        )
        return True

    def resolve(self, uri: str, allow_default: bool = True) -> Optional[str]:
        """Return an active prefix for ``uri``, innermost first, or None."""
        return self.current.find_prefix(uri, allow_default)

    def resolve_or_declare(
        self,
        uri: str,
        preferred_prefix: Optional[str] = None,
        allow_default: bool = True,
    ) -> str:
        """Return a prefix for ``uri``, declaring one on the current element if needed.

        The preferred prefix is used unless it is already bound to another
        URI in scope, in which case a prefix is generated from the
        configured stem.

        Args:
            uri: Namespace URI (empty string for "no namespace")
            preferred_prefix: Prefix to declare if none is active; ``""``
                requests the default namespace
            allow_default: Whether the default namespace may be used
                (False for attributes)
        """
        existing = self.resolve(uri, allow_default)
        if existing is not None:
            return existing

        if not uri:
            # No-namespace elements can only be expressed by undeclaring the default
            self.declare("", "")
            return ""

        candidate = preferred_prefix
        if candidate == "" and not allow_default:
            candidate = None
        if candidate is not None and self._collides(candidate, uri):
            candidate = None
        if candidate is None:
            candidate = self._generate_prefix()

        self.declare(candidate, uri)
        return candidate

    def _collides(self, prefix: str, uri: str) -> bool:
        bound = self.lookup(prefix)
        if prefix == "":
            return bool(bound) and bound != uri
        return bound is not None and bound != uri

    def _generate_prefix(self) -> str:
        index = 0
        while self.lookup(f"{self.generated_prefix}{index}") is not None:
            index += 1
        return f"{self.generated_prefix}{index}"
