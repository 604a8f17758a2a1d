"""
Text normalization for the matching engine.

Whitespace is never significant: every run collapses to a single space and
adjacent text tokens merge, so tags are the only hard separators in a token
stream.
"""

from typing import Iterable, List, Mapping

from reverse_xslt.engine.models import (
    Binding,
    ForEach,
    If,
    Tag,
    Text,
    Token,
    ValueOf,
)


def normalize(text: str) -> str:
    """Collapse whitespace runs to one space and trim."""
    return " ".join(text.split())


def merge_adjacent_text(tokens: Iterable[Token]) -> List[Token]:
    """
    Merge every run of consecutive Text tokens into one normalized Text.

    Non-text tokens keep their relative positions. Children are not visited;
    callers recurse where they need to.
    """
    merged: List[Token] = []
    pending: List[str] = []

    for token in tokens:
        if isinstance(token, Text):
            pending.append(token.value)
            continue
        if pending:
            merged.append(Text(normalize(" ".join(pending))))
            pending = []
        merged.append(token)

    if pending:
        merged.append(Text(normalize(" ".join(pending))))

    return merged


def extract_text(body: Iterable[Token], bindings: Mapping[str, Binding]) -> str:
    """
    Rebuild the text an optional block produced.

    Args:
        body: Tokens of the block.
        bindings: Flat bindings captured while matching the block.

    Returns:
        Normalized text, parts joined by single spaces.
    """
    return normalize(" ".join(_text_parts(body, bindings)))


def _text_parts(body: Iterable[Token], bindings: Mapping[str, Binding]) -> List[str]:
    parts: List[str] = []
    for token in body:
        if isinstance(token, Text):
            parts.append(token.value)
        elif isinstance(token, ValueOf):
            value = bindings.get(token.name, "")
            if isinstance(value, str):
                parts.append(value)
        elif isinstance(token, Tag):
            parts.extend(_text_parts(token.children, bindings))
        elif isinstance(token, If):
            # Nested blocks flatten into the same namespace; only taken ones are bound.
            value = bindings.get(token.name)
            if isinstance(value, str):
                parts.append(value)
        elif isinstance(token, ForEach):
            repetitions = bindings.get(token.name)
            if isinstance(repetitions, list):
                for repetition in repetitions:
                    parts.extend(_text_parts(token.body, repetition))
    return parts
