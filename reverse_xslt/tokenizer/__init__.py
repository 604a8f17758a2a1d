"""
Markup to token conversion.
"""

from reverse_xslt.tokenizer.names import for_each_name, if_name, sanitize, value_of_name
from reverse_xslt.tokenizer.parser import MarkupTokenizer, get_tokenizer, parse, parse_html, parse_node

__all__ = [
    "MarkupTokenizer",
    "get_tokenizer",
    "parse",
    "parse_html",
    "parse_node",
    "sanitize",
    "value_of_name",
    "if_name",
    "for_each_name",
]
