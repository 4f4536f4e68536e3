"""Merges attribute values from search results."""

from __future__ import annotations

from typing import Iterable

from directory.models import Entry, ValueSet


def aggregate(matches: Iterable[Entry], attribute: str) -> ValueSet:
    """Collect every value of ``attribute`` across ``matches``.

    Entries are read in the order given and the first occurrence of a value
    wins. Entries without the attribute add nothing.
    """
    values = ValueSet()
    for match in matches:
        values.update(match.get_values(attribute))
    return values


__all__ = ["aggregate"]
