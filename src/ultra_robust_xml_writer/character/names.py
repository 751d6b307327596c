"""XML 1.0 name productions.

Element names, attribute names, namespace prefixes and processing
instruction targets are checked against the ``Name`` / ``NCName``
productions of the XML 1.0 (fifth edition) and Namespaces recommendations.
"""

import re
from typing import Optional, Tuple

# NameStartChar without ':'
_NC_START_CHARS = (
    "A-Z_a-z"
    "\u00C0-\u00D6"
    "\u00D8-\u00F6"
    "\u00F8-\u02FF"
    "\u0370-\u037D"
    "\u037F-\u1FFF"
    "\u200C-\u200D"
    "\u2070-\u218F"
    "\u2C00-\u2FEF"
    "\u3001-\uD7FF"
    "\uF900-\uFDCF"
    "\uFDF0-\uFFFD"
    "\U00010000-\U000EFFFF"
)

_NC_CHARS = _NC_START_CHARS + (
    "\\-.0-9"
    "\u00B7"
    "\u0300-\u036F"
    "\u203F-\u2040"
)

_NCNAME = f"[{_NC_START_CHARS}][{_NC_CHARS}]*"

NCNAME_PATTERN = re.compile(f"^{_NCNAME}$")
QNAME_PATTERN = re.compile(f"^{_NCNAME}(?::{_NCNAME})?$")
NAME_PATTERN = re.compile(f"^[:{_NC_START_CHARS}][:{_NC_CHARS}]*$")

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
XMLNS_NAMESPACE = "http://www.w3.org/2000/xmlns/"


def is_valid_name(name: str) -> bool:
    """Check ``name`` against the XML ``Name`` production."""
    return bool(name) and NAME_PATTERN.match(name) is not None


def is_valid_ncname(name: str) -> bool:
    """Check ``name`` against the namespaces ``NCName`` production."""
    return bool(name) and NCNAME_PATTERN.match(name) is not None


def is_valid_qname(name: str) -> bool:
    """Check ``name`` against the namespaces ``QName`` production."""
    return bool(name) and QNAME_PATTERN.match(name) is not None


def split_qname(qname: str) -> Tuple[Optional[str], str]:
    """Split ``prefix:local`` into its parts.

    Returns:
        ``(prefix, local)`` where prefix is None for unprefixed names
    """
    if ":" in qname:
        prefix, local = qname.split(":", 1)
        return prefix, local
    return None, qname
