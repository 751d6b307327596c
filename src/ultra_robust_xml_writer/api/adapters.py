"""Integration adapter streaming lxml element trees through the writer.

The tree is walked with an explicit stack, so documents of any depth can be
written without hitting the recursion limit. Element names, attributes and
namespace declarations go through the normal writer primitives and are
validated and escaped exactly like hand-written calls.
"""

from typing import Any, Dict, List, Optional, Tuple

import lxml.etree as ET

from ultra_robust_xml_writer.shared.config import WriterConfig
from ultra_robust_xml_writer.writer.core import XMLWriter
from ultra_robust_xml_writer.writer.sinks import StringSink


def write_element_tree(writer: XMLWriter, element: Any, with_tail: bool = False) -> int:
    """Write ``element`` and its whole subtree.

    Comments and processing instructions inside the tree are written as
    such, and tails become text after the node they follow. Namespace
    declarations from each element's ``nsmap`` are repeated only where the
    writer does not already have the same binding in scope.

    Args:
        writer: Target writer, positioned where the element may be opened
        element: ``lxml.etree`` element, comment or processing instruction
        with_tail: Also write the tail text of ``element`` itself, which
            requires an enclosing element to be open

    Returns:
        Number of elements written

    Raises:
        TypeError: the tree contains a node kind the writer cannot express,
            such as an entity reference
    """
    count = 0
    stack: List[Tuple[Any, bool]] = [(element, False)]
    while stack:
        node, closing = stack.pop()
        if closing:
            writer.close_element()
            _write_tail(writer, node, node is not element or with_tail)
            continue

        if node.tag is ET.Comment:
            writer.write_comment(node.text or "")
        elif node.tag is ET.ProcessingInstruction:
            writer.write_processing_instruction(node.target, node.text)
        elif isinstance(node.tag, str):
            _open_element(writer, node)
            count += 1
            if node.text:
                writer.write_text(node.text)
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node))
            continue
        else:
            raise TypeError(f"Cannot write lxml node of type {type(node).__name__}")
        _write_tail(writer, node, node is not element or with_tail)

    writer.logger.debug("Element tree written", extra={"elements_written": count})
    return count


def write_document(writer: XMLWriter, tree: Any, xml_declaration: bool = False) -> int:
    """Write a complete document, including comments and PIs around the root.

    Args:
        writer: Writer that has not written anything yet
        tree: ``lxml.etree`` element tree or its root element
        xml_declaration: Start with an XML declaration

    Returns:
        Number of elements written
    """
    root = tree.getroot() if hasattr(tree, "getroot") else tree
    if xml_declaration:
        writer.write_xml_declaration()
    for sibling in reversed(list(root.itersiblings(preceding=True))):
        _write_document_node(writer, sibling)
    count = write_element_tree(writer, root)
    for sibling in root.itersiblings():
        _write_document_node(writer, sibling)
    return count


def element_to_string(element: Any, config: Optional[WriterConfig] = None) -> str:
    """Serialize an lxml element to a string through a fresh writer."""
    sink = StringSink()
    with XMLWriter(sink, config) as xml:
        write_element_tree(xml, element)
    return sink.getvalue()


def _open_element(writer: XMLWriter, node: Any) -> None:
    qname = ET.QName(node)
    namespace = qname.namespace or ""
    prefix = node.prefix if node.prefix is not None else ""
    writer.open_element(qname.localname, namespace, prefix)

    in_scope = writer.namespaces_in_scope()
    for declared_prefix, uri in node.nsmap.items():
        declared_prefix = declared_prefix or ""
        if not declared_prefix and not namespace:
            # An unqualified element keeps the empty default namespace
            continue
        if in_scope.get(declared_prefix) != uri:
            writer.declare_namespace(declared_prefix, uri)

    prefixes = _prefixes_by_uri(node.nsmap)
    for key, value in node.attrib.items():
        if key.startswith("{"):
            uri, local = key[1:].split("}", 1)
            writer.set_attribute(local, value, uri, prefixes.get(uri))
        else:
            writer.set_attribute(key, value)


def _prefixes_by_uri(nsmap: Dict[Optional[str], str]) -> Dict[str, str]:
    return {uri: prefix for prefix, uri in nsmap.items() if prefix}


def _write_tail(writer: XMLWriter, node: Any, enabled: bool) -> None:
    if enabled and node.tail:
        writer.write_text(node.tail)


def _write_document_node(writer: XMLWriter, node: Any) -> None:
    if node.tag is ET.Comment:
        writer.write_comment(node.text or "")
    elif node.tag is ET.ProcessingInstruction:
        writer.write_processing_instruction(node.target, node.text)
    else:
        raise TypeError(f"Cannot write lxml node of type {type(node).__name__} "
                        "outside the root element")
