"""
reverse-xslt - recover the data an XSLT-like template rendered into a document.

Usage:
    template = parse('<b>Price:</b> <xsl:value-of select="//a:price"/> USD')
    instance = parse_html("<b>Price:</b> 120 USD")
    match(template, instance)  # {"price": "120"}
"""

from reverse_xslt.engine import (
    Binding,
    Bindings,
    ConstraintTable,
    ForEach,
    If,
    MatchOptions,
    Tag,
    Text,
    Token,
    TokenKind,
    ValueOf,
    clone,
    is_match,
    match,
)
from reverse_xslt.exceptions import (
    AmbiguousMatch,
    ConsecutiveValueOfToken,
    DisallowedMatch,
    DuplicatedTokenName,
    IllegalMatchUse,
    MarkupParseError,
    MatchError,
    ReverseXSLTError,
    SearchBudgetExceeded,
)
from reverse_xslt.tokenizer import parse, parse_html, parse_node

__version__ = "1.0.0"
__all__ = [
    "parse",
    "parse_html",
    "parse_node",
    "match",
    "is_match",
    "MatchOptions",
    "ConstraintTable",
    "Binding",
    "Bindings",
    "Token",
    "TokenKind",
    "Tag",
    "Text",
    "ValueOf",
    "If",
    "ForEach",
    "clone",
    "ReverseXSLTError",
    "MatchError",
    "IllegalMatchUse",
    "DisallowedMatch",
    "ConsecutiveValueOfToken",
    "AmbiguousMatch",
    "DuplicatedTokenName",
    "SearchBudgetExceeded",
    "MarkupParseError",
]
