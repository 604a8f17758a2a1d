"""
Matching engine: infer template inputs from a rendered instance.

The template is consumed head first against the instance. Every token kind
has its own rule; the rules are written in continuation-passing style over
generators, so every choice point (optional block, repetition count,
placeholder boundary) sees how the whole rest of the template fares:

- a rule receives a cursor into the instance, the captures made so far and
  a continuation for "everything after this token";
- it yields every complete result the continuation yields for each way the
  token can consume a prefix of the instance;
- If and ForEach try their multiplicities in ascending order and keep the
  first one that produces a complete result; all complete results at that
  multiplicity must agree, otherwise the match is ambiguous.

Text runs are normalized and merged before matching, so inside a run the
engine works on substrings of one string and tags are the only hard
separators.
"""

import functools
import itertools
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import structlog

from reverse_xslt.config import get_settings
from reverse_xslt.engine.constraints import ConstraintTable
from reverse_xslt.engine.merger import bindings_from_pairs
from reverse_xslt.engine.models import (
    Binding,
    Bindings,
    ForEach,
    If,
    Tag,
    Text,
    Token,
    ValueOf,
    is_template_only,
)
from reverse_xslt.engine.normalization import extract_text, merge_adjacent_text
from reverse_xslt.exceptions import (
    AmbiguousMatch,
    ConsecutiveValueOfToken,
    DisallowedMatch,
    IllegalMatchUse,
    SearchBudgetExceeded,
)

logger = structlog.get_logger(__name__)

Captures = Tuple[Tuple[str, Binding], ...]


@dataclass
class MatchOptions:
    """Search budget for a single match call. None disables a limit."""
    max_steps: Optional[int] = None
    timeout: Optional[float] = None  # seconds

    @classmethod
    def from_settings(cls) -> "MatchOptions":
        settings = get_settings()
        return cls(
            max_steps=settings.max_search_steps,
            timeout=settings.search_timeout_seconds,
        )


# =============================================================================
# Instance cursor
# =============================================================================

class Cursor(NamedTuple):
    """Position in an instance sequence: token index and offset inside a text run."""
    items: Tuple[Token, ...]
    index: int
    offset: int

    @property
    def at_end(self) -> bool:
        return self.index >= len(self.items)

    @property
    def current(self) -> Optional[Token]:
        if self.at_end:
            return None
        return self.items[self.index]

    @property
    def run(self) -> Optional[str]:
        """Full text of the run under the cursor, if the cursor is in one."""
        current = self.current
        if isinstance(current, Text):
            return current.value
        return None

    @property
    def position(self) -> Tuple[int, int]:
        return (self.index, self.offset)

    def remaining(self) -> int:
        """Upper bound on how many non-empty pieces the rest of the scope splits into."""
        units = len(self.items) - self.index
        run = self.run
        if run is not None:
            units += len(run) - self.offset
        return units


def _settle(items: Tuple[Token, ...], index: int, offset: int) -> Cursor:
    """Skip the separating space after a consumed span and any exhausted run."""
    while index < len(items) and isinstance(items[index], Text):
        text = items[index].value
        if offset < len(text) and text[offset] == " ":
            offset += 1
        if offset < len(text):
            break
        index += 1
        offset = 0
    return Cursor(items, index, offset)


# =============================================================================
# Placeholder boundaries
# =============================================================================

class Boundary(str, Enum):
    """What ends a placeholder's span."""
    LITERAL = "literal"    # a literal text follows
    RUN_END = "run_end"    # a tag, or the end of a closed scope, follows
    VALUE_OF = "value_of"  # another placeholder follows
    OPEN = "open"          # an optional or repeated construct follows


class Follow(NamedTuple):
    boundary: Boundary
    literal: str = ""


class Scope(NamedTuple):
    """How a token sequence ends. Closed scopes must consume their whole instance."""
    closed: bool
    tail: Follow


CLOSED_SCOPE = Scope(closed=True, tail=Follow(Boundary.RUN_END))
REPEAT_SCOPE = Scope(closed=False, tail=Follow(Boundary.OPEN))


def _follow(tokens: Sequence[Token], i: int, scope: Scope) -> Follow:
    """Boundary seen by the token at i."""
    if i + 1 >= len(tokens):
        return scope.tail
    following = tokens[i + 1]
    if isinstance(following, Text):
        return Follow(Boundary.LITERAL, following.value)
    if isinstance(following, Tag):
        return Follow(Boundary.RUN_END)
    if isinstance(following, ValueOf):
        return Follow(Boundary.VALUE_OF)
    return Follow(Boundary.OPEN)


# =============================================================================
# Search
# =============================================================================

class _Budget:
    """Step and wall-clock budget shared by a search and its probes."""

    CLOCK_EVERY = 256

    def __init__(self, options: MatchOptions):
        self.max_steps = options.max_steps
        self.deadline = time.monotonic() + options.timeout if options.timeout else None
        self.steps = 0

    def tick(self) -> None:
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            raise SearchBudgetExceeded(
                f"Search exceeded {self.max_steps} steps",
                details={"steps": self.steps},
            )
        if (
            self.deadline is not None
            and self.steps % self.CLOCK_EVERY == 0
            and time.monotonic() > self.deadline
        ):
            raise SearchBudgetExceeded(
                "Search timed out",
                details={"steps": self.steps},
            )


class _Search:
    """
    One alignment search.

    A strict search enforces the ambiguity rules and builds bindings. Its
    probe is a lenient twin that only answers "can this remainder match at
    all"; it is used to tell whether an unanchored placeholder has more than
    one viable end.
    """

    def __init__(self, constraints: ConstraintTable, budget: _Budget, strict: bool = True):
        self.constraints = constraints
        self.budget = budget
        self.strict = strict
        self._probe = _Search(constraints, budget, strict=False) if strict else self

    def run(self, template: Tuple[Token, ...], instance: Tuple[Token, ...]) -> Optional[Bindings]:
        def finish(end: Cursor, captures: Captures) -> Iterator[Bindings]:
            if end.at_end:
                yield bindings_from_pairs(captures)

        results = self._seq(template, 0, _settle(instance, 0, 0), (), finish, CLOSED_SCOPE)
        return self._distinct(results, "<template>")

    def feasible(self, tokens: Sequence[Token], i: int, cursor: Cursor, scope: Scope) -> bool:
        """
        Check whether tokens[i:] can match from cursor up to the end of their own scope.

        The end must also fit what follows the scope: the start of a literal,
        or a tag or the end of input. A repeated body only needs to match
        locally.
        """
        tail = scope.tail

        def local_end(end: Cursor, captures: Captures) -> Iterator[Captures]:
            if scope.closed:
                fits = end.at_end
            elif tail.boundary is Boundary.LITERAL:
                fits = end.run is not None and end.run.startswith(tail.literal, end.offset)
            elif tail.boundary is Boundary.RUN_END:
                fits = end.run is None
            else:
                fits = True
            return iter((captures,) if fits else ())

        return next(iter(self._seq(tokens, i, cursor, (), local_end, scope)), None) is not None

    def _seq(self, tokens, i, cursor, captures, k, scope) -> Iterator:
        self.budget.tick()
        if i == len(tokens):
            return k(cursor, captures)

        token = tokens[i]
        if isinstance(token, Tag):
            return self._tag(token, tokens, i, cursor, captures, k, scope)
        if isinstance(token, Text):
            return self._text(token, tokens, i, cursor, captures, k, scope)
        if isinstance(token, ValueOf):
            return self._value_of(token, tokens, i, cursor, captures, k, scope)
        if isinstance(token, If):
            return self._if(token, tokens, i, cursor, captures, k, scope)
        if isinstance(token, ForEach):
            return self._for_each(token, tokens, i, cursor, captures, k, scope)
        raise IllegalMatchUse(f"Not a token: {token!r}")

    def _tag(self, token: Tag, tokens, i, cursor: Cursor, captures, k, scope):
        current = cursor.current
        if not isinstance(current, Tag) or current.name != token.name:
            return
        after = _settle(cursor.items, cursor.index + 1, 0)

        def close(inner: Cursor, inner_captures: Captures):
            if not inner.at_end:
                return iter(())
            return self._seq(tokens, i + 1, after, inner_captures, k, scope)

        inner_start = _settle(current.children, 0, 0)
        yield from self._seq(token.children, 0, inner_start, captures, close, CLOSED_SCOPE)

    def _text(self, token: Text, tokens, i, cursor: Cursor, captures, k, scope):
        run = cursor.run
        if run is None or not run.startswith(token.value, cursor.offset):
            return
        after = _settle(cursor.items, cursor.index, cursor.offset + len(token.value))
        yield from self._seq(tokens, i + 1, after, captures, k, scope)

    def _value_of(self, token: ValueOf, tokens, i, cursor: Cursor, captures, k, scope):
        for value, after in self._spans(token, tokens, i, cursor, scope):
            yield from self._seq(tokens, i + 1, after, captures + ((token.name, value),), k, scope)

    def _spans(self, token: ValueOf, tokens, i, cursor: Cursor, scope: Scope) -> List[Tuple[str, Cursor]]:
        """Candidate (captured text, cursor after capture) pairs for a placeholder."""
        name = token.name
        run = cursor.run
        if run is None:
            return [("", cursor)] if self.constraints.validates(name, "") else []

        start = cursor.offset
        follow = _follow(tokens, i, scope)
        validate = True

        if follow.boundary is Boundary.LITERAL:
            # Every occurrence; the rest of the template decides between them.
            ends = []
            end = run.find(follow.literal, start)
            while end >= 0:
                ends.append(end)
                end = run.find(follow.literal, end + 1)
        elif follow.boundary is Boundary.RUN_END:
            ends = [len(run)]
        elif name in self.constraints:
            end = self.constraints.prefix_end(name, run, start)
            ends = [end] if end is not None else []
            validate = False
        else:
            # Unanchored and unconstrained. Adjacent placeholders never get here,
            # they are rejected when the template is prepared.
            ends = [
                end for end in range(start, len(run) + 1)
                if end == start or run[end - 1] != " "
            ]

        spans = []
        for end in ends:
            value = run[start:end].strip()
            if validate and not self.constraints.validates(name, value):
                continue
            spans.append((value, _settle(cursor.items, cursor.index, end)))

        if self.strict and follow.boundary is Boundary.OPEN and name not in self.constraints and len(spans) > 1:
            viable = [
                (value, after) for value, after in spans
                if self._probe.feasible(tokens, i + 1, after, scope)
            ]
            if len(viable) > 1:
                logger.debug(
                    "Unanchored placeholder has several viable ends",
                    name=name,
                    candidates=len(viable),
                )
                raise AmbiguousMatch(name, alternatives=[value for value, _ in viable[:5]])
            spans = viable

        return spans

    def _if(self, token: If, tokens, i, cursor: Cursor, captures, k, scope):
        tail = _follow(tokens, i, scope)
        if tail.boundary is Boundary.VALUE_OF:
            tail = Follow(Boundary.OPEN)
        body_scope = Scope(closed=False, tail=tail)

        def skip():
            return self._seq(tokens, i + 1, cursor, captures, k, scope)

        def take():
            def close(after: Cursor, body_captures: Captures):
                if self.strict:
                    body = bindings_from_pairs(body_captures)
                    body_captures = body_captures + ((token.name, extract_text(token.body, body)),)
                return self._seq(tokens, i + 1, after, captures + body_captures, k, scope)

            return self._seq(token.body, 0, cursor, (), close, body_scope)

        return self._choose(token, [skip, take])

    def _for_each(self, token: ForEach, tokens, i, cursor: Cursor, captures, k, scope):
        # Set once `count` repetitions have been laid down; if none could be,
        # no larger count can be either.
        laid = [True]

        def repeat(count: int, at: Cursor, repetitions: tuple):
            if len(repetitions) == count:
                laid[0] = True
                binding = list(repetitions)
                return self._seq(tokens, i + 1, at, captures + ((token.name, binding),), k, scope)

            def close(after: Cursor, body_captures: Captures):
                if after.position == at.position:
                    return iter(())
                repetition = bindings_from_pairs(body_captures) if self.strict else {}
                return repeat(count, after, repetitions + (repetition,))

            return self._seq(token.body, 0, at, (), close, REPEAT_SCOPE)

        def counts():
            limit = cursor.remaining()
            for count in itertools.count():
                if count > limit or not laid[0]:
                    return
                laid[0] = False
                yield functools.partial(repeat, count, cursor, ())

        return self._choose(token, counts())

    def _choose(self, token, branches: Iterable[Callable[[], Iterator]]):
        """Take the first branch with a complete result; a lenient search takes them all."""
        for branch in branches:
            if not self.strict:
                yield from branch()
                continue
            found = self._distinct(branch(), token.name)
            if found is not None:
                yield found
                return

    @staticmethod
    def _distinct(results: Iterable[Bindings], name: str) -> Optional[Bindings]:
        first = None
        for result in results:
            if first is None:
                first = result
            elif result != first:
                raise AmbiguousMatch(name, alternatives=[first, result])
        return first


# =============================================================================
# Preparation
# =============================================================================

def _prepare_template(tokens: Iterable[Token], constraints: ConstraintTable) -> Tuple[Token, ...]:
    """Merge text runs at every level, drop empty text and reject adjacent placeholders."""
    prepared: List[Token] = []
    for token in merge_adjacent_text(tokens):
        if isinstance(token, Text):
            if token.value:
                prepared.append(token)
        elif isinstance(token, Tag):
            prepared.append(Tag(token.name, _prepare_template(token.children, constraints)))
        elif isinstance(token, ValueOf):
            prepared.append(token)
        elif isinstance(token, If):
            prepared.append(If(token.name, _prepare_template(token.body, constraints)))
        elif isinstance(token, ForEach):
            prepared.append(ForEach(token.name, _prepare_template(token.body, constraints)))
        else:
            raise IllegalMatchUse(
                f"Template contains a non-token element: {token!r}",
                details={"type": type(token).__name__},
            )

    for first, second in zip(prepared, prepared[1:]):
        if isinstance(first, ValueOf) and isinstance(second, ValueOf) and first.name not in constraints:
            raise ConsecutiveValueOfToken(first.name, second.name)

    return tuple(prepared)


def _prepare_instance(tokens: Iterable[Token]) -> Tuple[Token, ...]:
    """Merge text runs at every level and drop empty text."""
    prepared: List[Token] = []
    for token in merge_adjacent_text(tokens):
        if isinstance(token, Text):
            if token.value:
                prepared.append(token)
        elif isinstance(token, Tag):
            prepared.append(Tag(token.name, _prepare_instance(token.children)))
        elif is_template_only(token):
            raise DisallowedMatch(token.kind.value, token.name)
        else:
            raise IllegalMatchUse(
                f"Instance contains a non-token element: {token!r}",
                details={"type": type(token).__name__},
            )
    return tuple(prepared)


# =============================================================================
# Public entry points
# =============================================================================

def match(
    template: Sequence[Token],
    instance: Sequence[Token],
    constraints=None,
    options: Optional[MatchOptions] = None,
) -> Optional[Bindings]:
    """
    Infer the bindings that make a template produce an instance.

    Args:
        template: Template token sequence.
        instance: Rendered instance token sequence (Tag and Text only).
        constraints: Optional mapping of placeholder name to regex (str or compiled).
        options: Search budget; defaults come from settings.

    Returns:
        Bindings map on a unique full match, None when the template cannot
        produce the instance.

    Raises:
        IllegalMatchUse: Arguments are not token sequences.
        DisallowedMatch: Instance contains template-only tokens.
        ConsecutiveValueOfToken: Adjacent placeholders cannot be split.
        AmbiguousMatch: Several alignments give different bindings.
        DuplicatedTokenName: A name is bound to two different values.
        SearchBudgetExceeded: The search ran out of steps or time.
    """
    if not isinstance(template, (list, tuple)) or not isinstance(instance, (list, tuple)):
        raise IllegalMatchUse(
            details={
                "template": type(template).__name__,
                "instance": type(instance).__name__,
            },
        )

    table = ConstraintTable.coerce(constraints)
    options = options or MatchOptions.from_settings()

    prepared_instance = _prepare_instance(instance)
    prepared_template = _prepare_template(template, table)

    search = _Search(table, _Budget(options))
    try:
        result = search.run(prepared_template, prepared_instance)
    except RecursionError as e:
        raise SearchBudgetExceeded(
            "Search nested too deeply",
            details={"steps": search.budget.steps},
        ) from e

    logger.debug(
        "Match finished",
        matched=result is not None,
        steps=search.budget.steps,
        bindings=len(result) if result else 0,
    )
    return result


def is_match(
    template: Sequence[Token],
    instance: Sequence[Token],
    constraints=None,
    options: Optional[MatchOptions] = None,
) -> bool:
    """Check whether the template produces the instance. Errors propagate."""
    return match(template, instance, constraints, options) is not None
