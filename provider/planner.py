"""Builds the sibling search for an entry."""

from __future__ import annotations

from typing import Iterable

from common.errors import NoParentError
from directory.models import ClassPredicate, Location, SearchDescriptor, SearchScope

from .config import ProviderConfig


def plan(entry_location: Location | str, config: ProviderConfig,
         naming_contexts: Iterable[Location | str] = ()) -> SearchDescriptor:
    """Return the one-level search below the parent of ``entry_location``.

    Raises NoParentError when the entry is a naming context or has a single
    RDN: there is nothing above it to search.
    """
    location = Location.from_dn(entry_location)
    if any(location.is_same_as(suffix) for suffix in naming_contexts):
        raise NoParentError(location)
    base = location.parent()
    if base is None:
        raise NoParentError(location)
    return SearchDescriptor(
        base=base,
        scope=SearchScope.ONE,
        filter=ClassPredicate(class_name=config.source_objectclass),
        attribute=config.source_attribute,
    )


__all__ = ["plan"]
