"""
Reverse-XSLT matching engine.

Infers the inputs of an XSLT-like template from a document it rendered:
1. Both token streams are normalized so tags are the only hard separators
2. The template is aligned head first, backtracking over optional blocks,
   repetition counts and placeholder boundaries
3. The smallest multiplicity that aligns the whole template wins
4. Competing alignments with different bindings are an error, never a guess
"""

from reverse_xslt.engine.matcher import match, is_match, MatchOptions
from reverse_xslt.engine.constraints import ConstraintTable
from reverse_xslt.engine.models import (
    Binding,
    Bindings,
    ForEach,
    If,
    Tag,
    Text,
    Token,
    TokenKind,
    ValueOf,
    clone,
)

__all__ = [
    "match",
    "is_match",
    "MatchOptions",
    "ConstraintTable",
    "Binding",
    "Bindings",
    "ForEach",
    "If",
    "Tag",
    "Text",
    "Token",
    "TokenKind",
    "ValueOf",
    "clone",
]
