"""In-memory tree structures used to organize directory entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .models import Entry, Location, normalize_rdn


@dataclass
class DirectoryTree:
    """Tree node holding an optional entry and its child nodes.

    Nodes without an entry are glue: they only exist to connect a suffix
    such as ``dc=example,dc=com`` to the root of the tree.
    """

    rdn: str = ""
    parent: DirectoryTree | None = None
    entry: Entry | None = None
    children: dict[str, DirectoryTree] = field(default_factory=dict)

    def location(self) -> Location:
        if self.parent is None:
            return Location()
        return self.parent.location().child(self.rdn)

    def find(self, location: str | Location) -> DirectoryTree | None:
        node: DirectoryTree | None = self
        for rdn in reversed(Location.from_dn(location).rdns):
            node = node.children.get(normalize_rdn(rdn))
            if node is None:
                return None
        return node

    def add_entry(self, entry: Entry, create_parents: bool = True) -> DirectoryTree:
        """Insert ``entry`` below this node, keyed by its location.

        Raises KeyError when a parent is missing and ``create_parents`` is
        False, and ValueError when an entry already exists at the location.
        """
        node = self
        rdns = list(reversed(entry.location.rdns))
        for depth, rdn in enumerate(rdns):
            key = normalize_rdn(rdn)
            child = node.children.get(key)
            if child is None:
                if not create_parents and depth < len(rdns) - 1:
                    raise KeyError(f"Parent entry of {entry.dn} does not exist")
                child = DirectoryTree(rdn=rdn, parent=node)
                node.children[key] = child
            node = child
        if node.entry is not None:
            raise ValueError(f"Entry {entry.dn} already exists")
        node.entry = entry
        return node

    def child_entries(self) -> Iterator[Entry]:
        for child in self.children.values():
            if child.entry is not None:
                yield child.entry

    def walk(self) -> Iterator[DirectoryTree]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children.values():
            yield from child.walk()

    def entries(self) -> list[Entry]:
        return [node.entry for node in self.walk() if node.entry is not None]

    def naming_contexts(self) -> list[Location]:
        """Locations of the topmost entries, i.e. the suffixes of the tree."""
        found: list[Location] = []
        for child in self.children.values():
            if child.entry is not None:
                found.append(child.location())
            else:
                found.extend(child.naming_contexts())
        return found

    @classmethod
    def from_entries(cls, entries: Iterable[Entry]) -> DirectoryTree:
        root = cls()
        for entry in entries:
            root.add_entry(entry)
        return root


__all__ = ["DirectoryTree"]
