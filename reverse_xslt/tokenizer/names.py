"""
Binding names derived from XPath expressions.

Names are restricted to [a-z_], never empty in practice, with no leading,
trailing or doubled underscores:

    //a:pozycja                                   -> pozycja
    //a:podmiot/a:nazwa[not(. = '')]              -> podmiot_nazwa
    (//a:pozycja != '') and (//a:biuletyn != '')  -> if_pozycja_biuletyn
"""

import re
from typing import List

_PREFIX = re.compile(r"[a-z]+:")
_KEYWORD = re.compile(r"(?<![_a-z])(?:not|or|and)(?![_a-z])")
_NON_NAME = re.compile(r"[^_a-z]")
_UNDERSCORES = re.compile(r"_+")

_PREDICATE = re.compile(r"\[[^\[\]]*\]")
_STRING_LITERAL = re.compile(r"'[^']*'|\"[^\"]*\"")
_FUNCTION_CALL = re.compile(r"[\w.:-]+\s*\(")
_OPERATORS = re.compile(r"[\s()=!<>,|+*]+")


def sanitize(expression: str) -> str:
    """Turn an XPath expression into an identifier."""
    name = _PREFIX.sub("", expression)
    name = _KEYWORD.sub("_", name)
    name = _NON_NAME.sub("_", name)
    name = _UNDERSCORES.sub("_", name)
    return name.strip("_")


def _strip_predicates(expression: str) -> str:
    # Innermost first, so nested predicates go too.
    while True:
        stripped = _PREDICATE.sub("", expression)
        if stripped == expression:
            return stripped
        expression = stripped


def value_of_name(select: str) -> str:
    return sanitize(select)


def for_each_name(select: str) -> str:
    """Name of a repeated block: the iterated path without predicates or parent steps."""
    path = _strip_predicates(select)
    steps = [step for step in path.split("/") if step not in ("", ".", "..")]
    return sanitize("/".join(steps))


def _references(test: str) -> List[str]:
    expression = _STRING_LITERAL.sub(" ", test)
    expression = _FUNCTION_CALL.sub("(", expression)
    expression = _strip_predicates(expression)

    references: List[str] = []
    for chunk in _OPERATORS.split(expression):
        name = sanitize(chunk)
        if name and name not in references:
            references.append(name)
    return references


def if_name(test: str) -> str:
    """
    Name of an optional block, built from the paths its condition refers to.

    References are sanitized and de-duplicated in order of appearance;
    string literals and function names are not references.
    """
    references = _references(test)
    if not references:
        return "if"
    return "if_" + "_".join(references)
