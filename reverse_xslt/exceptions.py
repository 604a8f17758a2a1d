"""
Custom exceptions for reverse-xslt.

Provides a hierarchy of exceptions with error codes for consistent error handling.
A failed match is not an error: the engine returns None for documents the
template did not produce. Everything raised here is a usage or authoring bug.
"""
from typing import Any, Dict, Optional


class ReverseXSLTError(Exception):
    """
    Base exception for all reverse-xslt errors.

    Attributes:
        error_code: Unique error code (e.g., RX-001)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "RX-000"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for reporting."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Matching Errors (RX-1XX)
class MatchError(ReverseXSLTError):
    """Error raised by the matching engine."""
    error_code = "RX-100"

    def __init__(self, message: str = "Matching failed", **kwargs):
        super().__init__(message, **kwargs)


class IllegalMatchUse(MatchError):
    """Template or instance is not a sequence of tokens."""
    error_code = "RX-101"

    def __init__(self, message: str = "Template and instance must be sequences of tokens", **kwargs):
        super().__init__(message, **kwargs)


class DisallowedMatch(MatchError):
    """Instance side contains a template-only construct."""
    error_code = "RX-102"

    def __init__(self, kind: str, name: str, **kwargs):
        message = f"Instance contains template-only token {kind}({name!r})"
        super().__init__(message, details={"kind": kind, "name": name}, **kwargs)


class ConsecutiveValueOfToken(MatchError):
    """Two placeholders are adjacent and nothing fixes the split between them."""
    error_code = "RX-103"

    def __init__(self, first: str, second: str, **kwargs):
        message = (
            f"Placeholders {first!r} and {second!r} are adjacent; "
            f"register a constraint for {first!r} to split them"
        )
        super().__init__(message, details={"first": first, "second": second}, **kwargs)


class AmbiguousMatch(MatchError):
    """More than one alignment succeeds with different bindings."""
    error_code = "RX-104"

    def __init__(self, name: str, alternatives: Optional[list] = None, **kwargs):
        message = f"Ambiguous match at {name!r}"
        super().__init__(
            message,
            details={"name": name, "alternatives": alternatives or []},
            **kwargs,
        )


class DuplicatedTokenName(MatchError):
    """Same name bound to two different values in one scope."""
    error_code = "RX-105"

    def __init__(self, name: str, first: Any, second: Any, **kwargs):
        message = f"Name {name!r} bound to different values: {first!r} and {second!r}"
        super().__init__(
            message,
            details={"name": name, "values": [first, second]},
            **kwargs,
        )


# Resource Errors (RX-2XX)
class SearchBudgetExceeded(ReverseXSLTError):
    """The alignment search ran out of steps or time."""
    error_code = "RX-200"

    def __init__(self, message: str = "Search budget exceeded", **kwargs):
        super().__init__(message, **kwargs)


# Tokenizer Errors (RX-3XX)
class MarkupParseError(ReverseXSLTError):
    """Markup could not be parsed into tokens."""
    error_code = "RX-300"

    def __init__(self, message: str = "Failed to parse markup", **kwargs):
        super().__init__(message, **kwargs)
