"""Tests for the streaming writer state machine."""

import logging

import pytest
from lxml import etree

from ultra_robust_xml_writer.character.names import XML_NAMESPACE, XMLNS_NAMESPACE
from ultra_robust_xml_writer.shared.config import (
    InvalidCharacterPolicy,
    UnbalancedClosePolicy,
    WriterConfig,
)
from ultra_robust_xml_writer.shared.errors import (
    AttributeAfterContentError,
    DuplicateAttributeError,
    InvalidCharacterError,
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
from ultra_robust_xml_writer.writer.core import XMLWriter
from ultra_robust_xml_writer.writer.sinks import StringSink
from ultra_robust_xml_writer.writer.state import WriterPhase


def make_writer(**overrides):
    sink = StringSink()
    return XMLWriter(sink, WriterConfig(**overrides)), sink


class RecordingSink:
    """Sink that records fragments and lifecycle calls."""

    def __init__(self):
        self.fragments = []
        self.flushed = 0
        self.closed = False

    def append(self, text):
        self.fragments.append(text)

    def flush(self):
        self.flushed += 1

    def close(self):
        self.closed = True


class FailingSink:
    """Sink whose appends fail after a number of successful fragments."""

    def __init__(self, allowed=0):
        self.allowed = allowed
        self.fragments = []

    def append(self, text):
        if len(self.fragments) >= self.allowed:
            raise OSError("disk full")
        self.fragments.append(text)


class TestBasicOutput:
    """Test suite for the happy path of the writer."""

    def test_element_with_attribute_and_text(self):
        """Test the simplest complete document."""
        xml, sink = make_writer()

        xml.open_element("greeting")
        xml.set_attribute("lang", "en")
        xml.write_text("Hello & welcome")
        xml.close_element()
        xml.close()

        assert sink.getvalue() == '<greeting lang="en">Hello &amp; welcome</greeting>'

    def test_empty_element_self_closes(self):
        """Test that an element without content is written as <x/>."""
        xml, sink = make_writer()

        xml.open_element("x")
        xml.close_element()

        assert sink.getvalue() == "<x/>"

    def test_empty_element_with_explicit_end_tag(self):
        """Test the configured <x></x> form."""
        xml, sink = make_writer(self_close_empty=False)

        xml.open_element("x")
        xml.set_attribute("a", "1")
        xml.close_element()

        assert sink.getvalue() == '<x a="1"></x>'

    def test_close_flushes_open_elements_lifo(self):
        """Test that close() ends every open element innermost first."""
        xml, sink = make_writer()

        xml.open_element("a")
        xml.open_element("b")
        xml.close()

        assert sink.getvalue() == "<a><b/></a>"
        assert xml.phase is WriterPhase.CLOSED

    def test_attributes_in_insertion_order(self):
        """Test that attributes are written in the order they were set."""
        xml, sink = make_writer()

        xml.open_element("r")
        for name in ("zeta", "alpha", "mid"):
            xml.set_attribute(name, name.upper())
        xml.close()

        assert sink.getvalue() == '<r zeta="ZETA" alpha="ALPHA" mid="MID"/>'

    def test_open_tag_buffered_until_content(self):
        """Test that nothing is emitted while the open tag may still grow."""
        xml, sink = make_writer()

        xml.open_element("r")
        xml.set_attribute("a", "1")

        assert sink.getvalue() == ""
        xml.write_text("t")
        assert sink.getvalue() == '<r a="1">t'

    def test_text_round_trips_through_parser(self):
        """Test that parsed output yields the exact original text."""
        xml, sink = make_writer()

        xml.open_element("r")
        xml.write_text("<a & b>")
        xml.close()

        assert etree.fromstring(sink.getvalue()).text == "<a & b>"

    def test_attribute_value_round_trips_through_parser(self):
        """Test that attribute normalization leaves values intact."""
        value = 'quote " and\nnewline\tand tab & <lt>'
        xml, sink = make_writer()

        xml.open_element("r")
        xml.set_attribute("v", value)
        xml.close()

        assert etree.fromstring(sink.getvalue()).get("v") == value

    def test_structure_matches_call_sequence(self):
        """Test that output parses to exactly the structure that was written."""
        xml, sink = make_writer()
        expected = []

        xml.open_element("root")
        for i in range(3):
            xml.open_element("section")
            xml.set_attribute("n", str(i))
            for j in range(i):
                xml.open_element("item")
                xml.write_text(f"{i}.{j}")
                xml.close_element("item")
                expected.append(f"{i}.{j}")
            xml.close_element("section")
        xml.close()

        root = etree.fromstring(sink.getvalue())
        assert root.tag == "root"
        assert [s.get("n") for s in root] == ["0", "1", "2"]
        assert [len(s) for s in root] == [0, 1, 2]
        assert [item.text for item in root.iter("item")] == expected

    def test_deep_nesting(self):
        """Test that deep documents are written without recursion."""
        xml, sink = make_writer()

        for _ in range(5000):
            xml.open_element("n")
        xml.write_text("leaf")
        xml.close()

        output = sink.getvalue()
        assert output.startswith("<n><n>")
        assert output.endswith("leaf" + "</n>" * 5000)
        assert xml.statistics.max_depth == 5000


class TestPhases:
    """Test suite for writer phase transitions."""

    def test_phase_sequence(self):
        """Test the lifecycle phases through a complete document."""
        xml, _ = make_writer()
        assert xml.phase is WriterPhase.BEFORE_ROOT

        xml.open_element("r")
        assert xml.phase is WriterPhase.OPEN_TAG_PENDING

        xml.write_text("t")
        assert xml.phase is WriterPhase.IN_CONTENT

        xml.open_element("c")
        assert xml.phase is WriterPhase.OPEN_TAG_PENDING

        xml.close_element()
        assert xml.phase is WriterPhase.IN_CONTENT

        xml.close_element()
        assert xml.phase is WriterPhase.AFTER_ROOT

        xml.close()
        assert xml.phase is WriterPhase.CLOSED
        assert xml.is_closed

    def test_inspection_properties(self):
        """Test depth and current element reporting."""
        xml, _ = make_writer()
        assert xml.depth == 0
        assert xml.current_element is None

        xml.open_element("a")
        xml.open_element("item", "urn:x", "x")

        assert xml.depth == 2
        assert xml.current_element == "x:item"
        assert xml.resolve_prefix("urn:x") == "x"
        assert xml.namespaces_in_scope()["x"] == "urn:x"

    def test_text_before_root_rejected(self):
        """Test that character data needs an open element."""
        xml, _ = make_writer()

        with pytest.raises(NoRootElementError):
            xml.write_text("stray")

    def test_text_after_root_rejected(self):
        """Test that character data after the root is rejected."""
        xml, _ = make_writer()
        xml.open_element("r")
        xml.close_element()

        with pytest.raises(NoRootElementError, match="already been closed"):
            xml.write_text("stray")

    def test_second_root_rejected(self):
        """Test that only one root element can be written."""
        xml, sink = make_writer()
        xml.open_element("a")
        xml.close_element()

        with pytest.raises(MultipleRootElementsError):
            xml.open_element("b")

        assert sink.getvalue() == "<a/>"
        assert xml.phase is WriterPhase.AFTER_ROOT

    def test_close_before_root_rejected(self):
        """Test that an empty document is an error by default."""
        xml, _ = make_writer()

        with pytest.raises(NoRootElementError):
            xml.close()

        assert xml.phase is WriterPhase.BEFORE_ROOT

    def test_close_before_root_allowed_when_configured(self):
        """Test finalizing an empty document when no root is required."""
        xml, sink = make_writer(require_root=False)

        xml.close()

        assert sink.getvalue() == ""
        assert xml.is_closed

    def test_calls_after_close_rejected(self):
        """Test that a closed writer refuses every call."""
        xml, _ = make_writer()
        xml.open_element("r")
        xml.close()

        with pytest.raises(WriterClosedError):
            xml.open_element("again")
        with pytest.raises(WriterClosedError):
            xml.write_comment("late")
        with pytest.raises(WriterClosedError):
            xml.close()

    def test_document_level_comments_and_pis(self):
        """Test the prologue and epilogue."""
        xml, sink = make_writer()

        xml.write_comment(" generated ")
        xml.write_processing_instruction("xml-stylesheet", 'href="s.xsl"')
        xml.open_element("r")
        xml.close_element()
        xml.write_comment("end")
        xml.close()

        assert sink.getvalue() == (
            '<!-- generated --><?xml-stylesheet href="s.xsl"?><r/><!--end-->'
        )
        assert xml.phase is WriterPhase.CLOSED


class TestAttributes:
    """Test suite for attribute handling."""

    def test_attribute_after_content_rejected(self):
        """Test that attributes cannot follow content."""
        xml, sink = make_writer()
        xml.open_element("a")
        xml.write_text("x")

        with pytest.raises(AttributeAfterContentError):
            xml.set_attribute("id", "1")

        assert sink.getvalue() == "<a>x"
        assert xml.depth == 1

    def test_attribute_after_child_rejected(self):
        """Test that a flushed parent no longer accepts attributes."""
        xml, _ = make_writer()
        xml.open_element("a")
        xml.open_element("b")
        xml.close_element()

        with pytest.raises(AttributeAfterContentError, match="<a>"):
            xml.set_attribute("id", "1")

    def test_attribute_before_root_rejected(self):
        """Test that attributes need an open element."""
        xml, _ = make_writer()

        with pytest.raises(NoRootElementError):
            xml.set_attribute("id", "1")

    def test_duplicate_attribute_rejected(self):
        """Test that an attribute can only be set once per element."""
        xml, sink = make_writer()
        xml.open_element("a")
        xml.set_attribute("id", "1")

        with pytest.raises(DuplicateAttributeError):
            xml.set_attribute("id", "2")

        xml.close()
        assert sink.getvalue() == '<a id="1"/>'

    def test_empty_text_keeps_tag_pending(self):
        """Test that writing empty text is a no-op."""
        xml, sink = make_writer()
        xml.open_element("a")

        xml.write_text("")
        xml.set_attribute("x", "1")
        xml.close()

        assert sink.getvalue() == '<a x="1"/>'

    def test_non_string_value_rejected(self):
        """Test that only strings reach the core primitive."""
        xml, _ = make_writer()
        xml.open_element("a")

        with pytest.raises(TypeError):
            xml.set_attribute("n", 1)

    @pytest.mark.parametrize("name", ["xmlns", "xmlns:p"])
    def test_namespace_declarations_not_attributes(self, name):
        """Test that xmlns attributes must go through declare_namespace."""
        xml, _ = make_writer()
        xml.open_element("a")

        with pytest.raises(InvalidNameError):
            xml.set_attribute(name, "urn:x")

    def test_invalid_attribute_name_rejected(self):
        """Test attribute name validation."""
        xml, _ = make_writer()
        xml.open_element("a")

        with pytest.raises(InvalidNameError):
            xml.set_attribute("1st", "x")


class TestNamespaces:
    """Test suite for namespace declaration and resolution."""

    def test_prefixed_element(self):
        """Test an element in a namespace with a preferred prefix."""
        xml, sink = make_writer()

        xml.open_element("root", "urn:a", "a")
        xml.close()

        assert sink.getvalue() == '<a:root xmlns:a="urn:a"/>'

    def test_default_namespace_reused_by_children(self):
        """Test that children in the same namespace need no declaration."""
        xml, sink = make_writer()

        xml.open_element("root", "urn:a", "")
        xml.open_element("item", "urn:a")
        xml.close()

        assert sink.getvalue() == '<root xmlns="urn:a"><item/></root>'
        root = etree.fromstring(sink.getvalue())
        assert root[0].tag == "{urn:a}item"

    def test_no_namespace_child_undeclares_default(self):
        """Test that an unqualified child resets the default namespace."""
        xml, sink = make_writer()

        xml.open_element("root", "urn:a", "")
        xml.open_element("plain", "")
        xml.close()

        assert sink.getvalue() == '<root xmlns="urn:a"><plain xmlns=""/></root>'
        assert etree.fromstring(sink.getvalue())[0].tag == "plain"

    def test_prefixes_go_out_of_scope(self):
        """Test that a sibling does not see a closed element's prefixes."""
        xml, sink = make_writer()

        xml.open_element("root")
        xml.open_element("A")
        assert xml.declare_namespace("p", "urn:p") is True
        xml.close_element()
        xml.open_element("B")

        assert xml.resolve_prefix("urn:p") is None
        xml.open_element("c", "urn:p", "p")
        xml.close()

        assert sink.getvalue() == (
            '<root><A xmlns:p="urn:p"/><B><p:c xmlns:p="urn:p"/></B></root>'
        )

    def test_undeclared_prefix_rejected_on_flush(self):
        """Test that a literal prefixed name needs a binding in scope."""
        xml, _ = make_writer()
        xml.open_element("root")
        xml.open_element("p:c")

        with pytest.raises(UndeclaredNamespaceError):
            xml.close_element()

    def test_literal_prefix_declared_on_same_element(self):
        """Test declaring the prefix of a literal name after opening it."""
        xml, sink = make_writer()

        xml.open_element("p:root")
        xml.declare_namespace("p", "urn:p")
        xml.close()

        assert etree.fromstring(sink.getvalue()).tag == "{urn:p}root"

    def test_redundant_declaration_skipped(self):
        """Test that a binding already in scope is not repeated."""
        xml, sink = make_writer()

        xml.open_element("root")
        xml.declare_namespace("p", "urn:p")
        xml.open_element("child")
        assert xml.declare_namespace("p", "urn:p") is False
        xml.close()

        assert sink.getvalue() == '<root xmlns:p="urn:p"><child/></root>'

    def test_colliding_preferred_prefix_generates_new_one(self):
        """Test that a prefix bound to another URI is not reused."""
        xml, sink = make_writer()

        xml.open_element("root", "urn:a", "p")
        xml.open_element("child", "urn:b", "p")
        xml.close()

        assert sink.getvalue() == (
            '<p:root xmlns:p="urn:a"><ns0:child xmlns:ns0="urn:b"/></p:root>'
        )
        child = etree.fromstring(sink.getvalue())[0]
        assert child.tag == "{urn:b}child"

    def test_rebinding_prefix_used_by_element_rejected(self):
        """Test that a prefix qualifying the element cannot be rebound on it."""
        xml, _ = make_writer()
        xml.open_element("root", "urn:a", "p")

        with pytest.raises(NamespaceConflictError):
            xml.declare_namespace("p", "urn:b")

    def test_rebinding_default_used_by_element_rejected(self):
        """Test the same rule for the default namespace."""
        xml, _ = make_writer()
        xml.open_element("root", "urn:a", "")

        with pytest.raises(NamespaceConflictError):
            xml.declare_namespace(None, "urn:b")

    def test_declare_namespace_after_content_rejected(self):
        """Test that declarations are only legal on a pending tag."""
        xml, _ = make_writer()
        xml.open_element("root")
        xml.write_text("x")

        with pytest.raises(AttributeAfterContentError):
            xml.declare_namespace("p", "urn:p")

    def test_declare_namespace_before_root_rejected(self):
        """Test that declarations need an open element."""
        xml, _ = make_writer()

        with pytest.raises(NoRootElementError):
            xml.declare_namespace("p", "urn:p")

    def test_xml_prefix_predeclared(self):
        """Test that xml:* attributes need no declaration."""
        xml, sink = make_writer()

        xml.open_element("root")
        xml.set_attribute("lang", "en", XML_NAMESPACE)
        xml.close()

        assert sink.getvalue() == '<root xml:lang="en"/>'

    def test_namespaced_attribute_never_uses_default(self):
        """Test that attributes get a real prefix even for the default URI."""
        xml, sink = make_writer()

        xml.open_element("root", "urn:a", "")
        xml.set_attribute("id", "1", "urn:a", "")
        xml.close()

        assert sink.getvalue() == (
            '<root xmlns="urn:a" xmlns:ns0="urn:a" ns0:id="1"/>'
        )
        assert etree.fromstring(sink.getvalue()).get("{urn:a}id") == "1"

    def test_duplicate_namespaced_attribute_rejected(self):
        """Test duplicates identified by namespace and local name."""
        xml, _ = make_writer()
        xml.open_element("root")
        xml.set_attribute("id", "1", "urn:x", "x")

        with pytest.raises(DuplicateAttributeError):
            xml.set_attribute("id", "2", "urn:x", "y")

    def test_same_local_name_in_different_namespaces(self):
        """Test that equal local names in different namespaces coexist."""
        xml, sink = make_writer()

        xml.open_element("root")
        xml.set_attribute("id", "1", "urn:x", "p")
        xml.set_attribute("id", "2", "urn:y", "p")
        xml.close()

        root = etree.fromstring(sink.getvalue())
        assert root.get("{urn:x}id") == "1"
        assert root.get("{urn:y}id") == "2"

    def test_prefixes_bound_to_same_uri_name_same_attribute(self):
        """Test that p:x and q:x collide when p and q share a namespace."""
        xml, sink = make_writer()
        xml.open_element("a")
        xml.declare_namespace("p", "urn:u")
        xml.declare_namespace("q", "urn:u")
        xml.set_attribute("p:x", "1")

        with pytest.raises(DuplicateAttributeError):
            xml.set_attribute("q:x", "2")

        xml.close()
        root = etree.fromstring(sink.getvalue())
        assert root.attrib == {"{urn:u}x": "1"}

    def test_literal_and_namespaced_attribute_collide(self):
        """Test that a prefixed name and a namespaced call are the same attribute."""
        xml, _ = make_writer()
        xml.open_element("a")
        xml.declare_namespace("p", "urn:u")
        xml.set_attribute("p:x", "1")

        with pytest.raises(DuplicateAttributeError):
            xml.set_attribute("x", "2", "urn:u")

    def test_collision_through_later_declaration_rejected_on_flush(self):
        """Test attributes that only collide once every prefix is bound."""
        xml, sink = make_writer()
        xml.open_element("a")
        xml.declare_namespace("q", "urn:u")
        xml.set_attribute("p:x", "1")
        xml.set_attribute("q:x", "2")
        xml.declare_namespace("p", "urn:u")

        with pytest.raises(DuplicateAttributeError):
            xml.close_element()

        assert sink.getvalue() == ""
        assert xml.depth == 1

    def test_conflicting_declaration_after_redundant_one_rejected(self):
        """Test that a skipped declaration still fixes the prefix on its element."""
        xml, sink = make_writer()
        xml.open_element("r")
        xml.declare_namespace("p", "urn:a")
        xml.open_element("a")
        assert xml.declare_namespace("p", "urn:a") is False

        with pytest.raises(NamespaceConflictError):
            xml.declare_namespace("p", "urn:b")

        xml.close()
        assert sink.getvalue() == '<r xmlns:p="urn:a"><a/></r>'

    def test_shadowing_declaration_allowed_on_child(self):
        """Test that a child may still bind an inherited prefix to a new URI."""
        xml, sink = make_writer()
        xml.open_element("r")
        xml.declare_namespace("p", "urn:a")
        xml.open_element("a")

        assert xml.declare_namespace("p", "urn:b") is True
        xml.close()

        assert sink.getvalue() == '<r xmlns:p="urn:a"><a xmlns:p="urn:b"/></r>'

    def test_reserved_namespace_rejected(self):
        """Test that nothing can be placed in the xmlns namespace."""
        xml, _ = make_writer()

        with pytest.raises(NamespaceConflictError):
            xml.open_element("root", XMLNS_NAMESPACE, "x")

    def test_namespaced_name_must_be_local(self):
        """Test that a namespace requires an unprefixed local name."""
        xml, _ = make_writer()

        with pytest.raises(InvalidNameError):
            xml.open_element("a:b", "urn:a")

    def test_generated_prefix_stem_configurable(self):
        """Test the configured stem for generated prefixes."""
        xml, sink = make_writer(generated_prefix="gen")

        xml.open_element("root", "urn:a")
        xml.close()

        assert sink.getvalue() == '<gen0:root xmlns:gen0="urn:a"/>'

    def test_close_by_local_or_qualified_name(self):
        """Test that named closes accept either form of the name."""
        xml, sink = make_writer()

        xml.open_element("root", "urn:a", "a")
        xml.open_element("item", "urn:a")
        xml.close_element("item")
        xml.close_element("a:root")

        assert sink.getvalue() == '<a:root xmlns:a="urn:a"><a:item/></a:root>'


class TestUnbalancedClose:
    """Test suite for close-element policies."""

    def test_strict_mismatch_leaves_stack_untouched(self):
        """Test the default strict policy."""
        xml, sink = make_writer()
        xml.open_element("a")
        xml.open_element("b")

        with pytest.raises(UnbalancedCloseError):
            xml.close_element("a")

        assert xml.depth == 2
        assert xml.current_element == "b"
        xml.close_element("b")
        xml.close_element("a")
        assert sink.getvalue() == "<a><b/></a>"

    def test_close_with_nothing_open(self):
        """Test that closing without an open element fails."""
        xml, _ = make_writer()

        with pytest.raises(UnbalancedCloseError):
            xml.close_element()

    def test_auto_close_policy(self, caplog):
        """Test closing open descendants up to the matching ancestor."""
        xml, sink = make_writer(unbalanced_close=UnbalancedClosePolicy.AUTO_CLOSE)
        xml.open_element("a")
        xml.open_element("b")
        xml.open_element("c")

        with caplog.at_level(logging.WARNING):
            xml.close_element("a")

        assert sink.getvalue() == "<a><b><c/></b></a>"
        assert xml.phase is WriterPhase.AFTER_ROOT
        record = caplog.records[-1]
        assert record.auto_closed == ["b", "c"]

    def test_auto_close_unknown_name_still_fails(self):
        """Test that auto-close needs a matching ancestor."""
        xml, _ = make_writer(unbalanced_close=UnbalancedClosePolicy.AUTO_CLOSE)
        xml.open_element("a")

        with pytest.raises(UnbalancedCloseError):
            xml.close_element("missing")

        assert xml.depth == 1


class TestMarkup:
    """Test suite for comments, processing instructions and CDATA."""

    def test_comment_inside_element(self):
        """Test that a comment flushes the pending open tag."""
        xml, sink = make_writer()

        xml.open_element("r")
        xml.write_comment("note")
        xml.close()

        assert sink.getvalue() == "<r><!--note--></r>"

    @pytest.mark.parametrize("comment", ["a--b", "ends-", "--"])
    def test_invalid_comments_rejected(self, comment):
        """Test the comment content rules."""
        xml, _ = make_writer()
        xml.open_element("r")

        with pytest.raises(InvalidContentError):
            xml.write_comment(comment)

    def test_processing_instruction_without_data(self):
        """Test a PI with only a target."""
        xml, sink = make_writer()

        xml.open_element("r")
        xml.write_processing_instruction("go")
        xml.close()

        assert sink.getvalue() == "<r><?go?></r>"

    @pytest.mark.parametrize("target", ["xml", "XML", "XmL"])
    def test_reserved_pi_target_rejected(self, target):
        """Test that xml in any case is reserved for the declaration."""
        xml, _ = make_writer()

        with pytest.raises(InvalidContentError):
            xml.write_processing_instruction(target, "data")

    def test_invalid_pi_target_rejected(self):
        """Test PI target name validation."""
        xml, _ = make_writer()

        with pytest.raises(InvalidNameError):
            xml.write_processing_instruction("1go")

    def test_pi_data_cannot_end_instruction(self):
        """Test that PI data may not contain its terminator."""
        xml, _ = make_writer()

        with pytest.raises(InvalidContentError):
            xml.write_processing_instruction("go", "a ?> b")

    def test_cdata_section(self):
        """Test CDATA output and parsing."""
        xml, sink = make_writer()

        xml.open_element("r")
        xml.write_cdata("a < b && c")
        xml.close()

        assert sink.getvalue() == "<r><![CDATA[a < b && c]]></r>"
        assert etree.fromstring(sink.getvalue()).text == "a < b && c"

    def test_cdata_terminator_rejected(self):
        """Test that CDATA content may not contain ]]>."""
        xml, _ = make_writer()
        xml.open_element("r")

        with pytest.raises(InvalidContentError):
            xml.write_cdata("x]]>y")

    def test_cdata_before_root_rejected(self):
        """Test that CDATA needs an open element."""
        xml, _ = make_writer()

        with pytest.raises(NoRootElementError):
            xml.write_cdata("x")


class TestXMLDeclaration:
    """Test suite for the XML declaration."""

    def test_declaration_first(self):
        """Test the default declaration."""
        xml, sink = make_writer()

        xml.write_xml_declaration()
        xml.open_element("r")
        xml.close()

        assert sink.getvalue() == '<?xml version="1.0" encoding="UTF-8"?><r/>'

    @pytest.mark.parametrize("standalone, text", [(True, "yes"), (False, "no")])
    def test_standalone(self, standalone, text):
        """Test the standalone pseudo-attribute."""
        xml, sink = make_writer(encoding="ascii")

        xml.write_xml_declaration(standalone=standalone)

        assert sink.getvalue() == (
            f'<?xml version="1.0" encoding="US-ASCII" standalone="{text}"?>'
        )

    def test_declaration_after_output_rejected(self):
        """Test that the declaration must come first."""
        xml, _ = make_writer()
        xml.write_comment("c")

        with pytest.raises(XMLDeclarationError):
            xml.write_xml_declaration()

    def test_unsupported_version_rejected(self):
        """Test that only XML 1.0 is written."""
        xml, _ = make_writer()

        with pytest.raises(XMLDeclarationError):
            xml.write_xml_declaration("1.1")


class TestCharacterPolicies:
    """Test suite for illegal characters and restrictive encodings."""

    def test_illegal_text_rejected_without_output(self):
        """Test that rejected text leaves the output untouched."""
        xml, sink = make_writer()
        xml.open_element("r")

        with pytest.raises(InvalidCharacterError):
            xml.write_text("bad\x00")

        assert sink.getvalue() == ""
        assert xml.phase is WriterPhase.OPEN_TAG_PENDING

    def test_replace_policy(self):
        """Test replacement of illegal characters."""
        xml, sink = make_writer(
            invalid_characters=InvalidCharacterPolicy.REPLACE, replacement_char="?"
        )

        xml.open_element("r")
        xml.set_attribute("a", "x\x01")
        xml.write_text("y\x02")
        xml.close()

        assert sink.getvalue() == '<r a="x?">y?</r>'

    def test_remove_policy_in_comments(self):
        """Test that the policy also covers comments."""
        xml, sink = make_writer(invalid_characters=InvalidCharacterPolicy.REMOVE)

        xml.open_element("r")
        xml.write_comment("a\x0bb")
        xml.close()

        assert sink.getvalue() == "<r><!--ab--></r>"

    def test_ascii_output_uses_references(self):
        """Test character references for an ASCII-only document."""
        xml, sink = make_writer(encoding="ascii")

        xml.open_element("r")
        xml.set_attribute("name", "Zoë")
        xml.write_text("café")
        xml.close()

        assert sink.getvalue() == '<r name="Zo&#xEB;">caf&#xE9;</r>'
        sink.getvalue().encode("ascii")

    def test_ascii_output_rejects_unencodable_names(self):
        """Test that names cannot be represented with references."""
        xml, _ = make_writer(encoding="ascii")

        with pytest.raises(InvalidCharacterError):
            xml.open_element("café")


class TestSinkInteraction:
    """Test suite for output sink failures and lifecycle."""

    def test_sink_failure_wrapped(self):
        """Test that sink errors surface as WriterIOError with the cause."""
        sink = FailingSink()
        xml = XMLWriter(sink)
        xml.open_element("r")

        with pytest.raises(WriterIOError) as exc_info:
            xml.write_text("x")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert xml.phase is WriterPhase.OPEN_TAG_PENDING
        assert xml.depth == 1

    def test_failed_close_keeps_element_open(self):
        """Test that a failed end tag leaves the stack as it was."""
        sink = FailingSink(allowed=2)
        xml = XMLWriter(sink)
        xml.open_element("r")
        xml.write_text("x")

        with pytest.raises(WriterIOError):
            xml.close_element()

        assert xml.depth == 1
        assert sink.fragments == ["<r>", "x"]

    def test_sink_not_closed_by_default(self):
        """Test that the writer does not own its sink."""
        sink = RecordingSink()
        xml = XMLWriter(sink)
        xml.open_element("r")

        xml.close()

        assert sink.closed is False
        assert sink.flushed == 1
        assert "".join(sink.fragments) == "<r/>"

    def test_sink_closed_when_configured(self):
        """Test close_sink."""
        sink = RecordingSink()
        xml = XMLWriter(sink, WriterConfig(close_sink=True))
        xml.open_element("r")

        xml.close()

        assert sink.closed is True

    def test_flush_does_not_emit_pending_tag(self):
        """Test that flush leaves the pending tag open for attributes."""
        sink = RecordingSink()
        xml = XMLWriter(sink)
        xml.open_element("r")

        xml.flush()
        xml.set_attribute("a", "1")

        assert sink.flushed == 1
        assert sink.fragments == []

    def test_list_as_sink(self):
        """Test that any object with append works as a sink."""
        fragments = []
        xml = XMLWriter(fragments)
        xml.open_element("r")
        xml.write_text("t")
        xml.close()

        assert "".join(fragments) == "<r>t</r>"


class TestContextManager:
    """Test suite for the with-statement protocol."""

    def test_normal_exit_closes(self):
        """Test that leaving the block finishes the document."""
        sink = StringSink()

        with XMLWriter(sink) as xml:
            xml.open_element("a")
            xml.open_element("b")

        assert sink.getvalue() == "<a><b/></a>"
        assert xml.is_closed

    def test_exception_exit_emits_nothing_more(self):
        """Test that an exception abandons the document as it stands."""
        sink = RecordingSink()

        with pytest.raises(RuntimeError):
            with XMLWriter(sink) as xml:
                xml.open_element("a")
                xml.write_text("x")
                raise RuntimeError("boom")

        assert "".join(sink.fragments) == "<a>x"
        assert xml.is_closed
        assert sink.closed is False

    def test_exception_exit_closes_owned_sink(self):
        """Test that an owned sink is still released."""
        sink = RecordingSink()

        with pytest.raises(RuntimeError):
            with XMLWriter(sink, WriterConfig(close_sink=True)) as xml:
                xml.open_element("a")
                raise RuntimeError("boom")

        assert sink.closed is True


class TestStatisticsAndLogging:
    """Test suite for statistics collection and log records."""

    def test_statistics(self):
        """Test counters after a small document."""
        xml, sink = make_writer()

        xml.open_element("root")
        xml.set_attribute("a", "1")
        xml.open_element("child", "urn:x", "x")
        xml.write_text("t")
        xml.close_element()
        xml.write_comment("c")
        xml.close()

        stats = xml.statistics
        assert stats.elements_written == 2
        assert stats.attributes_written == 1
        assert stats.namespace_declarations == 1
        assert stats.text_nodes == 1
        assert stats.comments == 1
        assert stats.max_depth == 2
        assert stats.characters_emitted == len(sink.getvalue())
        assert stats.average_fragment_length > 0

    def test_close_logged_with_correlation_id(self, caplog):
        """Test the INFO record written on close."""
        sink = StringSink()
        xml = XMLWriter(sink, correlation_id="req-7")
        xml.open_element("r")

        with caplog.at_level(logging.INFO, logger="ultra_robust_xml_writer.writer.core"):
            xml.close()

        record = caplog.records[-1]
        assert record.getMessage() == "Writer closed"
        assert record.correlation_id == "req-7"
        assert record.component == "xml_writer"
        assert record.statistics["elements_written"] == 1

    def test_correlation_id_from_config(self):
        """Test that the configured correlation ID is used by default."""
        xml = XMLWriter(StringSink(), WriterConfig(correlation_id="cfg-1"))

        assert xml.logger.correlation_id == "cfg-1"
