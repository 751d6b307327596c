"""Scope activation records.

A :class:`Scope` is pushed for every open element. It owns the namespace
bindings declared on that element and points back to its parent so prefix
lookups fall through to enclosing elements.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from ultra_robust_xml_writer.character.names import XML_NAMESPACE


@dataclass(eq=False)
class Scope:
    """Namespace and nesting context for one open element.

    Attributes:
        name: Qualified name written in the start and end tags
        local_name: Name as passed by the caller when the element was opened
        parent: Enclosing scope (not owned); None only for the document scope
        bindings: Prefix to URI bindings declared on this element, in
            declaration order
        restated: Bindings requested on this element that an enclosing element
            already provides; they are not written again
        depth: Nesting depth, 0 for the document scope and 1 for the root
        has_text: Character data has been written directly in this element
        has_children: Child elements, comments or PIs have been written
    """

    name: str
    local_name: str = ""
    parent: Optional["Scope"] = None
    bindings: Dict[str, str] = field(default_factory=dict)
    restated: Dict[str, str] = field(default_factory=dict)
    depth: int = 0
    has_text: bool = False
    has_children: bool = False

    def __post_init__(self) -> None:
        if not self.local_name:
            self.local_name = self.name

    @classmethod
    def document(cls) -> "Scope":
        """Create the document-level scope with the predeclared bindings.

        The empty prefix bound to the empty URI means "no default namespace".
        """
        return cls(name="", bindings={"": "", "xml": XML_NAMESPACE})

    @property
    def is_document(self) -> bool:
        """True for the document-level scope that sits below the root element."""
        return self.parent is None

    def matches(self, name: str) -> bool:
        """Check whether ``name`` designates this element in a close call."""
        return name == self.name or name == self.local_name

    def declared(self, prefix: str) -> Optional[str]:
        """Return the URI ``prefix`` was declared with on this element itself."""
        if prefix in self.bindings:
            return self.bindings[prefix]
        return self.restated.get(prefix)

    def lookup(self, prefix: str) -> Optional[str]:
        """Return the URI bound to ``prefix`` here or in an enclosing scope."""
        scope: Optional[Scope] = self
        while scope is not None:
            if prefix in scope.bindings:
                return scope.bindings[prefix]
            scope = scope.parent
        return None

    def find_prefix(self, uri: str, allow_default: bool = True) -> Optional[str]:
        """Return the innermost prefix currently bound to ``uri``.

        A binding shadowed by a deeper redeclaration of the same prefix is
        skipped.

        Args:
            uri: Namespace URI to look for
            allow_default: Whether the empty (default) prefix may be returned;
                attributes never pick up the default namespace
        """
        scope: Optional[Scope] = self
        while scope is not None:
            for prefix, bound in scope.bindings.items():
                if bound != uri or (not prefix and not allow_default):
                    continue
                if self.lookup(prefix) == uri:
                    return prefix
            scope = scope.parent
        return None

    def in_scope(self) -> Dict[str, str]:
        """All bindings visible from this scope, innermost winning."""
        chain = []
        scope: Optional[Scope] = self
        while scope is not None:
            chain.append(scope)
            scope = scope.parent
        visible: Dict[str, str] = {}
        for scope in reversed(chain):
            visible.update(scope.bindings)
        return visible
