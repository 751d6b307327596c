#!/usr/bin/env python3
"""
Quick Start Guide for the Ultra-Robust XML Writer.

This example walks through the streaming writer, the string-returning
wrapper, namespaces, error reporting and lxml tree streaming.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lxml import etree

from ultra_robust_xml_writer import (
    StringSink,
    WriterConfig,
    XMLStringWriter,
    XMLWriter,
    XMLWriterError,
    element_to_string,
    to_string,
)


class Book:
    """Domain object that knows how to write itself."""

    def __init__(self, isbn, title, price):
        self.isbn = isbn
        self.title = title
        self.price = price

    def to_xml(self, xml):
        xml.open_element("book").attribute("isbn", self.isbn)
        xml.element("title", self.title)
        xml.element("price", self.price, {"currency": "EUR"})
        xml.close_element("book")


def quick_start_example():
    """Quick start example showing basic usage."""

    print("🚀 QUICK START - Ultra-Robust XML Writer")
    print("=" * 45)

    # Step 1: Stream a document into a sink
    print("\n📄 Step 1: Streaming Writer")
    print("-" * 30)

    sink = StringSink()
    with XMLWriter(sink, WriterConfig.pretty()) as xml:
        xml.write_xml_declaration()
        xml.open_element("catalog")
        xml.set_attribute("version", "2")
        for name in ("alpha", "beta"):
            xml.open_element("entry")
            xml.write_text(f"{name} & friends")
            xml.close_element()

    print(sink.getvalue())
    print(f"✅ Elements written: {xml.statistics.elements_written}")


def namespaces_example():
    """Namespaces are declared only where they are needed."""

    print("\n🏷️  Step 2: Namespaces")
    print("-" * 30)

    xml = XMLStringWriter()
    xml.open_element("feed", "http://www.w3.org/2005/Atom", "")
    xml.open_element("title", "http://www.w3.org/2005/Atom").write_text("News")
    xml.close_element()
    xml.open_element("creator", "http://purl.org/dc/elements/1.1/", "dc")
    xml.write_text("Editorial team")
    print(str(xml.close()))


def error_reporting_example():
    """Mistakes are reported before malformed output is written."""

    print("\n🛑 Step 3: Error Reporting")
    print("-" * 30)

    xml = XMLStringWriter()
    xml.open_element("order").write_text("pending")
    try:
        xml.attribute("id", 42)
    except XMLWriterError as e:
        print(f"  {e.code}: {e.message}")
    print(f"  Output so far: {xml.getvalue()!r}")


def objects_and_trees_example():
    """Objects and lxml trees share the same writer."""

    print("\n🌳 Step 4: Objects and lxml Trees")
    print("-" * 30)

    print(to_string(Book("978-0441013593", "Dune", 9.99)))

    tree = etree.fromstring('<r xmlns:x="urn:x"><x:a href="#">link</x:a><!-- note --></r>')
    print(element_to_string(tree))


def main():
    """Main function."""
    try:
        quick_start_example()
        namespaces_example()
        error_reporting_example()
        objects_and_trees_example()

        print("\n✅ All examples completed successfully!")
        return 0

    except Exception as e:
        print(f"\n❌ Example failed: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
