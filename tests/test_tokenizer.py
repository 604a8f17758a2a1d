"""
Tests for the markup tokenizer.

Covers:
- Binding names derived from XPath expressions
- XSL instructions, elements, text and comments
- String, element, tree and iterable input
- Malformed markup
"""

import pytest
from lxml import etree

from reverse_xslt.engine.models import ForEach, If, Tag, Text, TokenKind, ValueOf
from reverse_xslt.exceptions import MarkupParseError
from reverse_xslt.tokenizer import (
    MarkupTokenizer,
    for_each_name,
    if_name,
    parse,
    parse_html,
    parse_node,
    sanitize,
    value_of_name,
)


FOR_EACH_NODE = (
    "<xsl:for-each select=\"//a:przeprowadza_wapolnie_podmiot/a:podmiot[not(../../../.. != '')]\">"
    "</xsl:for-each>"
)
IF_NODE = (
    "<xsl:if test=\"(//a:abra != '') and (//czary:kadabra != '') and (//mary:alakazam != '')\">"
    "</xsl:if>"
)
VALUE_OF_NODE = '<xsl:value-of select="//a:abra_kadabra"/>'
TAG_NODE = "<div></div>"
TEXT_NODE = "Hello World"
COMMENT_NODE = "<!-- hello world -->"


class TestNames:
    """Tests for XPath name sanitization."""

    def test_sanitize(self):
        """Test prefixes, keywords and punctuation are removed."""
        assert sanitize("//a:abra_kadabra") == "abra_kadabra"
        assert sanitize("//a:podmiot/a:nazwa") == "podmiot_nazwa"
        assert sanitize("__a--b__") == "a_b"
        assert sanitize("not(//a:x) or //a:y") == "x_y"

    def test_keywords_inside_names_survive(self):
        """Test keywords are only removed as whole words."""
        assert sanitize("//a:notatka") == "notatka"
        assert sanitize("//a:order_and_more") == "order_and_more"

    def test_value_of_name(self):
        """Test value-of names."""
        assert value_of_name("//a:data_publikacji") == "data_publikacji"

    def test_for_each_name(self):
        """Test predicates and parent steps are dropped."""
        assert for_each_name(
            "//a:przeprowadza_wapolnie_podmiot/a:podmiot[not(../../../.. != '')]"
        ) == "przeprowadza_wapolnie_podmiot_podmiot"
        assert for_each_name("../a:items/a:item[a:x[1] = 'y']") == "items_item"

    def test_if_name(self):
        """Test conditions become if_ plus their references."""
        assert if_name(
            "(//a:abra != '') and (//czary:kadabra != '') and (//mary:alakazam != '')"
        ) == "if_abra_kadabra_alakazam"
        assert if_name(
            "(//a:pozycja != '') and (//a:data_publikacji != '') and (//a:biuletyn != '')"
        ) == "if_pozycja_data_publikacji_biuletyn"
        assert if_name("//a:rodzaj_zamowienia = '0'") == "if_rodzaj_zamowienia"

    def test_if_name_deduplicates(self):
        """Test repeated references appear once, in order."""
        assert if_name("//a:x = '1' or //a:y = '2' or //a:x = '3'") == "if_x_y"

    def test_if_name_ignores_functions_and_literals(self):
        """Test function names and string contents are not references."""
        assert if_name("string-length(//a:nazwa) > 0") == "if_nazwa"
        assert if_name("//a:x != 'some text'") == "if_x"


class TestParseNode:
    """Tests for single node tokenization."""

    def test_tag_node(self):
        """Test plain elements become tags."""
        node = etree.fromstring(TAG_NODE)

        result = parse_node(node)

        assert isinstance(result, Tag)
        assert result.kind == TokenKind.TAG
        assert result.name == "div"
        assert result.children == ()

    def test_text_node(self):
        """Test character data becomes text."""
        result = parse_node(etree.fromstring(f"<div>{TEXT_NODE}</div>")).children[0]

        assert result == Text("Hello World")

    def test_value_of_node(self, xsl_document):
        """Test xsl:value-of."""
        root = etree.fromstring(xsl_document % VALUE_OF_NODE)

        assert parse_node(root[0]) == ValueOf("abra_kadabra")

    def test_if_node(self, xsl_document):
        """Test xsl:if."""
        root = etree.fromstring(xsl_document % IF_NODE)

        assert parse_node(root[0]) == If("if_abra_kadabra_alakazam")

    def test_for_each_node(self, xsl_document):
        """Test xsl:for-each."""
        root = etree.fromstring(xsl_document % FOR_EACH_NODE)

        assert parse_node(root[0]) == ForEach("przeprowadza_wapolnie_podmiot_podmiot")

    def test_xsl_text_node(self, xsl_document):
        """Test xsl:text."""
        root = etree.fromstring(xsl_document % "<xsl:text>, </xsl:text>")

        assert parse_node(root[0]) == Text(", ")

    def test_comment_node(self):
        """Test comments produce nothing."""
        root = etree.fromstring(f"<div>{COMMENT_NODE}</div>")

        assert parse_node(root[0]) is None

    def test_unsupported_instruction(self, xsl_document):
        """Test unsupported XSL instructions are skipped."""
        root = etree.fromstring(xsl_document % '<xsl:call-template name="x"/>')

        assert parse_node(root[0]) is None

    def test_children(self):
        """Test children keep order and skip comments."""
        content = "".join([FOR_EACH_NODE, IF_NODE, COMMENT_NODE, VALUE_OF_NODE, TAG_NODE, TEXT_NODE])

        children = parse(f"<div>{content}</div>")[0].children

        assert [child.kind for child in children] == [
            TokenKind.FOR_EACH, TokenKind.IF, TokenKind.VALUE_OF, TokenKind.TAG, TokenKind.TEXT,
        ]
        assert all(child.children == () for child in children)

    def test_nested_instructions(self):
        """Test instruction bodies are tokenized."""
        tokens = parse('<xsl:if test="//a:x != \'\'">x = <xsl:value-of select="//a:x"/></xsl:if>')

        assert tokens == [If("if_x", [Text("x = "), ValueOf("x")])]


class TestParse:
    """Tests for document tokenization."""

    def test_string_input(self):
        """Test markup strings."""
        result = parse("<div></div>")

        assert result == [Tag("div")]

    def test_bytes_input(self):
        """Test UTF-8 markup bytes."""
        assert parse("<p>zażółć</p>".encode("utf-8")) == [Tag("p", [Text("zażółć")])]

    def test_xml_declaration_is_ignored(self):
        """Test a leading XML declaration does not break wrapping."""
        assert parse('<?xml version="1.0" encoding="UTF-8"?><div></div>') == [Tag("div")]

    def test_multiple_roots(self):
        """Test multiple roots give multiple tokens."""
        results = parse("<a></a><b></b><c></c>")

        assert [token.name for token in results] == ["a", "b", "c"]

    def test_element_and_tree_input(self):
        """Test lxml elements and trees."""
        root = etree.fromstring("<div><span>x</span></div>")

        assert parse(root) == [Tag("div", [Tag("span", [Text("x")])])]
        assert parse(etree.ElementTree(root)) == parse(root)

    def test_iterable_input(self):
        """Test iterables of nodes skip comments."""
        root = etree.fromstring(f"<r><a/>{COMMENT_NODE}<b/></r>")

        assert parse(list(root)) == [Tag("a"), Tag("b")]

    def test_without_declared_namespace(self, xsl_document):
        """Test prefix-only fragments parse like declared documents."""
        content = "".join([FOR_EACH_NODE, IF_NODE, COMMENT_NODE, VALUE_OF_NODE, TAG_NODE, TEXT_NODE])

        declared = parse(etree.fromstring(xsl_document % content))[0]

        assert declared.children == tuple(parse(content))

    def test_custom_namespace(self):
        """Test the XSL namespace is configurable."""
        tokenizer = MarkupTokenizer(xsl_namespace="urn:templates")

        tokens = tokenizer.parse('<t:value-of xmlns:t="urn:templates" select="//a:x"/>')

        assert tokens == [ValueOf("x")]

    def test_malformed_markup(self):
        """Test malformed markup raises MarkupParseError."""
        with pytest.raises(MarkupParseError) as exc_info:
            parse("<div><span></div>")

        assert exc_info.value.error_code == "RX-300"

    def test_unsupported_input(self):
        """Test unsupported input types raise MarkupParseError."""
        with pytest.raises(MarkupParseError):
            parse(42)


class TestParseHtml:
    """Tests for HTML instance tokenization."""

    def test_fragment(self):
        """Test HTML fragments with void elements."""
        tokens = parse_html("<b>Price:</b> 120 <br> USD")

        assert tokens == [Tag("b", [Text("Price:")]), Text(" 120 "), Tag("br"), Text(" USD")]

    def test_plain_text(self):
        """Test text without markup."""
        assert parse_html("hello world") == [Text("hello world")]
