"""
Token model for the matching engine.

Templates and rendered instances share one representation:
- Tag, Text: concrete tokens, found on both sides
- ValueOf, If, ForEach: template-only constructs

Tokens are frozen dataclasses and child sequences are stored as tuples, so a
tree never changes once built. Equality is structural.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple, Union


class TokenKind(str, Enum):
    """Token kinds."""
    TAG = "tag"
    TEXT = "text"
    VALUE_OF = "value_of"
    IF = "if"
    FOR_EACH = "for_each"


@dataclass(frozen=True)
class Tag:
    """A concrete element with ordered children."""
    name: str
    children: Tuple["Token", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def kind(self) -> TokenKind:
        return TokenKind.TAG


@dataclass(frozen=True)
class Text:
    """A literal text run."""
    value: str

    @property
    def kind(self) -> TokenKind:
        return TokenKind.TEXT

    @property
    def children(self) -> Tuple["Token", ...]:
        return ()


@dataclass(frozen=True)
class ValueOf:
    """Placeholder capturing arbitrary text."""
    name: str

    @property
    def kind(self) -> TokenKind:
        return TokenKind.VALUE_OF

    @property
    def children(self) -> Tuple["Token", ...]:
        return ()


@dataclass(frozen=True)
class If:
    """Optional block: the body is produced zero or one time."""
    name: str
    body: Tuple["Token", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "body", tuple(self.body))

    @property
    def kind(self) -> TokenKind:
        return TokenKind.IF

    @property
    def children(self) -> Tuple["Token", ...]:
        return self.body


@dataclass(frozen=True)
class ForEach:
    """Repeated block: the body is produced zero or more times."""
    name: str
    body: Tuple["Token", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "body", tuple(self.body))

    @property
    def kind(self) -> TokenKind:
        return TokenKind.FOR_EACH

    @property
    def children(self) -> Tuple["Token", ...]:
        return self.body


Token = Union[Tag, Text, ValueOf, If, ForEach]
TOKEN_TYPES = (Tag, Text, ValueOf, If, ForEach)
TEMPLATE_ONLY_TYPES = (ValueOf, If, ForEach)

# A binding is captured text, or one map per ForEach repetition.
Binding = Union[str, List[Dict[str, "Binding"]]]
Bindings = Dict[str, Binding]


def clone(token: Token) -> Token:
    """Return a deep, independent copy of a token tree."""
    if isinstance(token, Tag):
        return Tag(token.name, [clone(child) for child in token.children])
    if isinstance(token, Text):
        return Text(token.value)
    if isinstance(token, ValueOf):
        return ValueOf(token.name)
    if isinstance(token, If):
        return If(token.name, [clone(child) for child in token.body])
    if isinstance(token, ForEach):
        return ForEach(token.name, [clone(child) for child in token.body])
    raise TypeError(f"Not a token: {token!r}")


def is_template_only(token: Token) -> bool:
    """Check whether a token may only appear in templates."""
    return isinstance(token, TEMPLATE_ONLY_TYPES)


def find_template_only(tokens: Iterable[Token]) -> Union[Token, None]:
    """Return the first template-only token found in a tree, depth first."""
    for token in tokens:
        if is_template_only(token):
            return token
        found = find_template_only(token.children)
        if found is not None:
            return found
    return None


def contains_template_only(tokens: Iterable[Token]) -> bool:
    return find_template_only(tokens) is not None
