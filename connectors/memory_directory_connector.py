"""
memory_directory_connector.py
-----------------------------
A directory query capability backed by an in-memory DirectoryTree.

Used by the mock directory daemon, by the CLI when it reads a fixture file,
and by the tests. Only simple filters are understood:
equality ``(attr=value)`` and presence ``(attr=*)``.
"""

import logging
import re
import threading
from typing import Any, Callable, Sequence

from common.errors import QueryError, ResultCode
from connectors.directory_interface import DirectoryQueryCapability
from directory.models import Entry, Location, MatchedEntry, SearchScope, coerce_entries
from directory.tree import DirectoryTree

logger = logging.getLogger(__name__)

_FILTER_RE = re.compile(r"^\(\s*([A-Za-z][A-Za-z0-9;-]*)\s*=\s*([^()]*?)\s*\)$")


def parse_filter(filter_text: str) -> Callable[[Entry], bool]:
    """Turn a filter string into a predicate over entries.

    Raises QueryError(FILTER_ERROR) for anything that is not a single
    equality or presence test.
    """
    match = _FILTER_RE.match(filter_text.strip())
    if not match:
        raise QueryError(ResultCode.FILTER_ERROR, f"Unsupported search filter {filter_text!r}")
    attribute, value = match.group(1), match.group(2)
    if value == "*":
        return lambda entry: entry.has_attribute(attribute)
    wanted = value.lower()
    return lambda entry: any(v.lower() == wanted for v in entry.get_values(attribute))


class MemoryDirectoryConnector(DirectoryQueryCapability):
    """ Searches an in-memory directory tree.

    Args:
        tree (DirectoryTree): The tree to search. A new empty tree if not given.
        size_limit (int): Maximum number of entries a search may return.
            None means unlimited.
    """

    def __init__(self, tree: DirectoryTree | None = None, size_limit: int | None = None):
        self.tree = tree if tree is not None else DirectoryTree()
        self.size_limit = size_limit
        self._lock = threading.RLock()

    @classmethod
    def from_fixture(cls, value: Any, size_limit: int | None = None) -> "MemoryDirectoryConnector":
        """Build a connector from a fixture (path, YAML/JSON text, list or mapping)."""
        return cls(DirectoryTree.from_entries(coerce_entries(value)), size_limit=size_limit)

    @property
    def directory_type(self) -> str:
        return "memory"

    @property
    def naming_contexts(self) -> list[Location]:
        with self._lock:
            return self.tree.naming_contexts()

    def add_entry(self, entry: Entry | dict) -> Entry:
        if not isinstance(entry, Entry):
            entry = Entry.model_validate(entry)
        with self._lock:
            self.tree.add_entry(entry)
        logger.debug("Added entry %s", entry.dn)
        return entry

    def get_entry(self, location: Location | str) -> Entry | None:
        with self._lock:
            node = self.tree.find(location)
            return node.entry if node is not None else None

    def entries(self) -> list[Entry]:
        with self._lock:
            return self.tree.entries()

    def search(self, base: Location | str, scope: SearchScope, filter: str,
               requested_attributes: Sequence[str]) -> list[MatchedEntry]:
        try:
            base_location = Location.from_dn(base)
        except ValueError as exc:
            raise QueryError(ResultCode.PROTOCOL_ERROR, f"Invalid base DN {base!r}") from exc
        matches_filter = parse_filter(filter)
        scope = SearchScope(scope)

        with self._lock:
            node = self.tree.find(base_location)
            if node is None or (node.entry is None and not base_location.is_root):
                raise QueryError(ResultCode.NO_SUCH_OBJECT, f"Base entry {base_location} does not exist")
            if scope is SearchScope.ONE:
                candidates = list(node.child_entries())
            else:
                candidates = [n.entry for n in node.walk() if n.entry is not None]

            matches: list[MatchedEntry] = []
            for entry in candidates:
                if not matches_filter(entry):
                    continue
                if self.size_limit is not None and len(matches) >= self.size_limit:
                    raise QueryError(ResultCode.SIZE_LIMIT_EXCEEDED,
                                     f"Search on {base_location} exceeded the size limit of {self.size_limit}")
                matches.append(MatchedEntry(location=entry.location,
                                            attributes=entry.project(requested_attributes)))
        logger.debug("Search base=%s scope=%s filter=%s returned %d entries",
                     base_location, scope.value, filter, len(matches))
        return matches
