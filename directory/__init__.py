"""Directory domain models and the in-memory entry tree."""

from .models import (
    ClassPredicate,
    DerivedAttribute,
    Entry,
    Location,
    MatchedEntry,
    SearchDescriptor,
    SearchScope,
    ValueSet,
    coerce_entries,
)
from .tree import DirectoryTree

__all__ = [
    "ClassPredicate",
    "DerivedAttribute",
    "DirectoryTree",
    "Entry",
    "Location",
    "MatchedEntry",
    "SearchDescriptor",
    "SearchScope",
    "ValueSet",
    "coerce_entries",
]
