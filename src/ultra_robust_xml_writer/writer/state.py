"""Writer phases and the pending open tag.

The open tag of the innermost element is held back until the first piece of
content (or the close) arrives, so attributes and namespace declarations can
still be added to it. :class:`PendingTag` is that buffer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from ultra_robust_xml_writer.namespace.scope import Scope
from ultra_robust_xml_writer.shared.errors import DuplicateAttributeError


class WriterPhase(Enum):
    """Lifecycle phase of a writer."""
    BEFORE_ROOT = "before_root"
    OPEN_TAG_PENDING = "open_tag_pending"
    IN_CONTENT = "in_content"
    AFTER_ROOT = "after_root"
    CLOSED = "closed"


@dataclass
class PendingAttribute:
    """Attribute recorded for a tag that has not been flushed yet.

    Attributes:
        qname: Qualified name as it will be written
        value: Already-escaped attribute value
        namespace_uri: Namespace the prefix resolved to when the attribute was
            set, None for unprefixed names and prefixes not yet bound
    """
    qname: str
    value: str
    namespace_uri: Optional[str] = None


@dataclass
class PendingTag:
    """Open tag of the innermost element, buffered until it is flushed."""

    scope: Scope
    attributes: List[PendingAttribute] = field(default_factory=list)
    keys: Set[str] = field(default_factory=set)
    # Prefixes the tag's own names were resolved to, with their URIs
    namespace_prefixes: Dict[str, str] = field(default_factory=dict)

    def has_key(self, key: str) -> bool:
        """Check whether an attribute identified by ``key`` is already set."""
        return key in self.keys

    def add_attribute(self, attribute: PendingAttribute, *keys: str) -> None:
        """Record ``attribute`` under its identifying keys.

        Raises:
            DuplicateAttributeError: any key is already taken
        """
        all_keys = set(keys) | {attribute.qname}
        taken = all_keys & self.keys
        if taken:
            raise DuplicateAttributeError(
                f"Attribute {attribute.qname!r} is already set on <{self.scope.name}>",
                {"attribute": attribute.qname, "element": self.scope.name},
            )
        self.attributes.append(attribute)
        self.keys.update(all_keys)

    def conflicts_with(self, prefix: str, uri: str) -> bool:
        """True if binding ``prefix`` to ``uri`` would change a name on this tag."""
        used = self.namespace_prefixes.get(prefix)
        return used is not None and used != uri
