"""
Binding merger.

Combines captures from sibling matches into one flat map. A name may be
bound more than once only to equal values.
"""

from typing import Dict, Iterable, Mapping, Tuple

from reverse_xslt.engine.models import Binding, Bindings
from reverse_xslt.exceptions import DuplicatedTokenName


def _put(target: Dict[str, Binding], name: str, value: Binding) -> None:
    if name in target:
        if target[name] != value:
            raise DuplicatedTokenName(name, target[name], value)
        return
    target[name] = value


def merge_bindings(left: Mapping[str, Binding], right: Mapping[str, Binding]) -> Bindings:
    """
    Merge two binding maps.

    Raises:
        DuplicatedTokenName: A name is bound in both maps to different values.
    """
    merged: Bindings = dict(left)
    for name, value in right.items():
        _put(merged, name, value)
    return merged


def bindings_from_pairs(pairs: Iterable[Tuple[str, Binding]]) -> Bindings:
    """
    Fold ordered (name, value) captures of one completed scope into a map.

    Raises:
        DuplicatedTokenName: A name was captured twice with different values.
    """
    merged: Bindings = {}
    for name, value in pairs:
        _put(merged, name, value)
    return merged
