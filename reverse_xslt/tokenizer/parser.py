"""
Markup tokenizer.

Turns XSLT template fragments and rendered XML/HTML documents into token
trees for the matching engine:
- xsl:value-of -> ValueOf, xsl:if -> If, xsl:for-each -> ForEach
- xsl:text and character data -> Text
- any other element -> Tag named after its local name
- comments and processing instructions produce nothing
"""

import re
from typing import Iterable, List, Optional, Union

import structlog
from lxml import etree
from lxml import html as lxml_html

from reverse_xslt.config import get_settings
from reverse_xslt.engine.models import ForEach, If, Tag, Text, Token, ValueOf
from reverse_xslt.exceptions import MarkupParseError
from reverse_xslt.tokenizer.names import for_each_name, if_name, value_of_name

logger = structlog.get_logger(__name__)

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")

Markup = Union[str, bytes, etree._Element, etree._ElementTree, Iterable]


class MarkupTokenizer:
    """
    lxml based tokenizer.

    Template fragments usually use the xsl: prefix without declaring it, so
    string input is wrapped in a root element that declares the XSL
    namespace before parsing.
    """

    def __init__(self, xsl_namespace: Optional[str] = None):
        self.xsl_namespace = xsl_namespace or get_settings().xsl_namespace
        # No entity expansion, no network access.
        self._parser = etree.XMLParser(resolve_entities=False, no_network=True)

    def parse(self, markup: Markup) -> List[Token]:
        """
        Tokenize markup.

        Args:
            markup: XML text (str or bytes), an lxml element or tree, or an
                iterable of lxml nodes.

        Returns:
            Tokens for the top-level nodes, in document order.

        Raises:
            MarkupParseError: Markup is not well-formed or of an unsupported type.
        """
        if isinstance(markup, (str, bytes)):
            return self._children(self._parse_fragment(markup))
        if isinstance(markup, etree._ElementTree):
            markup = markup.getroot()
        if isinstance(markup, etree._Element):
            token = self.parse_node(markup)
            return [token] if token is not None else []
        if isinstance(markup, Iterable):
            tokens = []
            for node in markup:
                token = Text(node) if isinstance(node, str) else self.parse_node(node)
                if token is not None:
                    tokens.append(token)
            return tokens
        raise MarkupParseError(
            f"Cannot tokenize {type(markup).__name__}",
            details={"type": type(markup).__name__},
        )

    def parse_html(self, markup: Union[str, bytes]) -> List[Token]:
        """Tokenize an HTML fragment (a rendered instance)."""
        try:
            root = lxml_html.fragment_fromstring(markup, create_parent="div")
        except (etree.ParserError, etree.XMLSyntaxError) as e:
            raise MarkupParseError(f"Invalid HTML: {e}") from e
        return self._children(root)

    def parse_node(self, node: etree._Element) -> Optional[Token]:
        """Tokenize one node; None for nodes that produce no content."""
        if not isinstance(node.tag, str):
            # Comments, processing instructions, entities
            return None

        qname = etree.QName(node)
        if qname.namespace == self.xsl_namespace:
            return self._instruction(qname.localname, node)
        return Tag(qname.localname, self._children(node))

    def _instruction(self, instruction: str, node: etree._Element) -> Optional[Token]:
        if instruction == "value-of":
            return ValueOf(value_of_name(node.get("select", "")))
        if instruction == "if":
            return If(if_name(node.get("test", "")), self._children(node))
        if instruction == "for-each":
            return ForEach(for_each_name(node.get("select", "")), self._children(node))
        if instruction == "text":
            return Text(node.text or "")

        logger.debug("Skipping unsupported XSL instruction", instruction=instruction)
        return None

    def _children(self, element: etree._Element) -> List[Token]:
        tokens: List[Token] = []
        if element.text:
            tokens.append(Text(element.text))
        for child in element:
            token = self.parse_node(child)
            if token is not None:
                tokens.append(token)
            if child.tail:
                tokens.append(Text(child.tail))
        return tokens

    def _parse_fragment(self, markup: Union[str, bytes]) -> etree._Element:
        if isinstance(markup, bytes):
            try:
                markup = markup.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MarkupParseError(f"Markup is not UTF-8: {e}") from e

        markup = _XML_DECLARATION.sub("", markup)
        wrapped = f'<xml xmlns:xsl="{self.xsl_namespace}">{markup}</xml>'
        try:
            return etree.fromstring(wrapped, self._parser)
        except etree.XMLSyntaxError as e:
            raise MarkupParseError(
                f"Invalid markup: {e}",
                details={"line": e.lineno, "column": e.offset},
            ) from e


def get_tokenizer() -> MarkupTokenizer:
    """Get a tokenizer for the configured XSL namespace."""
    return MarkupTokenizer()


def parse(markup: Markup) -> List[Token]:
    return get_tokenizer().parse(markup)


def parse_html(markup: Union[str, bytes]) -> List[Token]:
    return get_tokenizer().parse_html(markup)


def parse_node(node: etree._Element) -> Optional[Token]:
    return get_tokenizer().parse_node(node)
