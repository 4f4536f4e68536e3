"""Plan, query, aggregate, emit: the virtual attribute computation."""

from __future__ import annotations

from typing import Iterable

from common.diagnostics import DiagnosticsSink, LoggerDiagnostics, LogSeverity
from common.errors import NoParentError, QueryError
from connectors.directory_interface import DirectoryQueryCapability
from directory.models import DerivedAttribute, Entry, Location

from .aggregator import aggregate
from .config import ConfigHolder
from .planner import plan


class PiblingMirrorEngine:
    """Computes the mirrored attribute for one entry at a time.

    The engine keeps no per-request state, so one instance serves concurrent
    requests. Every request reads a single configuration snapshot from
    ``holder`` and runs exactly one search.
    """

    def __init__(self, holder: ConfigHolder, diagnostics: DiagnosticsSink | None = None,
                 naming_contexts: Iterable[Location | str] = ()):
        self.holder = holder
        self.diagnostics = diagnostics if diagnostics is not None else LoggerDiagnostics()
        self.naming_contexts = tuple(Location.from_dn(suffix) for suffix in naming_contexts)

    def generate(self, entry: Entry | Location | str, attribute_name: str,
                 connection: DirectoryQueryCapability) -> DerivedAttribute | None:
        """Return the derived attribute for ``entry``, or None when there is nothing to emit.

        Never raises for request-time problems: a failed search is logged as a
        mild error and yields None.
        """
        config = self.holder.get()
        try:
            location = entry.location if isinstance(entry, Entry) else Location.from_dn(entry)
        except ValueError:
            self._debug(f"Returning no attribute because {entry!r} is not a valid DN")
            return None
        if config is None:
            self._debug(f"Returning no attribute because the provider is not configured (entry {location})")
            return None

        try:
            descriptor = plan(location, config, self.naming_contexts)
        except NoParentError as exc:
            self._debug(f"Returning no attribute because {exc.message}")
            return None

        base, filter_text = descriptor.base, descriptor.filter_text
        try:
            matches = connection.search(base, descriptor.scope, filter_text, [descriptor.attribute])
        except QueryError as exc:
            self.diagnostics.log_message(
                LogSeverity.MILD_ERROR,
                f"Search {filter_text} on base {base} failed with result code "
                f"{exc.result_code.value}: {exc.message}",
            )
            return None

        if not matches:
            self._debug(f"Returning no attribute because the search {filter_text} on base {base} returned no results")
            return None

        values = aggregate(matches, descriptor.attribute)
        if not values:
            self._debug(f"Returning no attribute because attribute {descriptor.attribute} does not have any values "
                        f"in the entries returned by the search {filter_text} on base {base}")
            return None

        attribute = DerivedAttribute(name=attribute_name, values=values)
        self._debug(f"Generated virtual attribute {attribute}")
        return attribute

    def _debug(self, message: str) -> None:
        if self.diagnostics.debug_enabled():
            self.diagnostics.debug_info(message)


__all__ = ["PiblingMirrorEngine"]
