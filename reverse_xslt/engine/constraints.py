"""
Constraint table: caller-supplied patterns that validate placeholder captures.
"""

import re
from typing import Dict, List, Mapping, Optional, Pattern, Union

from reverse_xslt.exceptions import IllegalMatchUse

PatternLike = Union[str, Pattern[str]]


class ConstraintTable:
    """
    Mapping from placeholder name to a compiled regular expression.

    Names without an entry are unconstrained. A constraint both validates a
    capture (the whole captured text must match) and, where no literal
    anchors a placeholder, fixes where it ends (the greedy match at the cursor).
    """

    def __init__(self, patterns: Optional[Mapping[str, PatternLike]] = None):
        self._patterns: Dict[str, Pattern[str]] = {}
        for name, pattern in (patterns or {}).items():
            self._patterns[name] = self._compile(name, pattern)

    @classmethod
    def coerce(cls, value: Union[None, "ConstraintTable", Mapping[str, PatternLike]]) -> "ConstraintTable":
        """Build a table from None, a mapping, or an existing table."""
        if isinstance(value, ConstraintTable):
            return value
        if value is None:
            return cls()
        if not isinstance(value, Mapping):
            raise IllegalMatchUse(
                "Constraints must be a mapping of names to patterns",
                details={"type": type(value).__name__},
            )
        return cls(value)

    @staticmethod
    def _compile(name: str, pattern: PatternLike) -> Pattern[str]:
        if isinstance(pattern, re.Pattern):
            return pattern
        if not isinstance(pattern, str):
            raise IllegalMatchUse(
                f"Constraint for {name!r} must be a string or compiled pattern",
                details={"name": name, "type": type(pattern).__name__},
            )
        try:
            return re.compile(pattern)
        except re.error as e:
            raise IllegalMatchUse(
                f"Constraint for {name!r} is not a valid pattern: {e}",
                details={"name": name, "pattern": pattern},
            ) from e

    def __contains__(self, name: object) -> bool:
        return name in self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def names(self) -> List[str]:
        return list(self._patterns)

    def validates(self, name: str, text: str) -> bool:
        """Check a captured text against the constraint; unconstrained names always pass."""
        pattern = self._patterns.get(name)
        if pattern is None:
            return True
        return pattern.fullmatch(text) is not None

    def prefix_end(self, name: str, text: str, pos: int) -> Optional[int]:
        """
        End offset of the greedy match of the constraint anchored at pos.

        Returns None when the name is unconstrained or the pattern does not
        match at pos.
        """
        pattern = self._patterns.get(name)
        if pattern is None:
            return None
        found = pattern.match(text, pos)
        if found is None:
            return None
        return found.end()
