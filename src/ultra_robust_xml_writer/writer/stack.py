"""Element stack for the streaming XML writer.

The stack holds one :class:`Scope` per open element, innermost last. Its
depth is the current nesting depth, and closing always pops exactly the top
scope. Nesting is tracked here instead of through recursion, so document
depth is bounded only by memory.
"""

from typing import Iterator, List, Optional

from ultra_robust_xml_writer.namespace.scope import Scope
from ultra_robust_xml_writer.shared.errors import EmptyStackError


class ElementStack:
    """Ordered sequence of open-element scopes."""

    def __init__(self) -> None:
        self._document = Scope.document()
        self._scopes: List[Scope] = []

    def __len__(self) -> int:
        return len(self._scopes)

    def __iter__(self) -> Iterator[Scope]:
        """Iterate scopes from the root element to the innermost one."""
        return iter(self._scopes)

    @property
    def document_scope(self) -> Scope:
        """Scope below the root element holding the predeclared bindings."""
        return self._document

    @property
    def current_scope(self) -> Scope:
        """Innermost open scope, or the document scope if nothing is open."""
        if self._scopes:
            return self._scopes[-1]
        return self._document

    def push(self, name: str, local_name: str = "") -> Scope:
        """Open a new scope for element ``name`` and return it."""
        parent = self.current_scope
        scope = Scope(
            name=name,
            local_name=local_name or name,
            parent=parent,
            depth=parent.depth + 1,
        )
        self._scopes.append(scope)
        return scope

    def pop(self) -> str:
        """Close the innermost scope and return its element name.

        Raises:
            EmptyStackError: no element is open
        """
        return self.pop_scope().name

    def pop_scope(self) -> Scope:
        """Close the innermost scope and return it."""
        if not self._scopes:
            raise EmptyStackError("Cannot pop: no element is open")
        return self._scopes.pop()

    def peek(self) -> Optional[str]:
        """Name of the innermost open element, or None."""
        if self._scopes:
            return self._scopes[-1].name
        return None

    def peek_scope(self) -> Optional[Scope]:
        """Innermost open scope, or None."""
        if self._scopes:
            return self._scopes[-1]
        return None

    def depth(self) -> int:
        """Number of currently open elements."""
        return len(self._scopes)

    def names(self) -> List[str]:
        """Open element names from the root to the innermost."""
        return [scope.name for scope in self._scopes]

    def find(self, name: str) -> int:
        """Distance from the top to the innermost scope matching ``name``.

        Returns:
            0 for the top scope, 1 for its parent and so on; -1 if no open
            element matches
        """
        for distance, scope in enumerate(reversed(self._scopes)):
            if scope.matches(name):
                return distance
        return -1
