"""Simple server and operation contexts for hosts that do not bring their own."""

from __future__ import annotations

from dataclasses import dataclass, field

from common.diagnostics import DiagnosticsSink, LoggerDiagnostics
from connectors.directory_interface import DirectoryQueryCapability
from connectors.memory_directory_connector import MemoryDirectoryConnector
from directory.models import Location


@dataclass
class DirectoryServerContext:
    """What the provider needs from the server it runs in."""

    connection: DirectoryQueryCapability | None = None
    diagnostics: DiagnosticsSink = field(default_factory=LoggerDiagnostics)
    naming_contexts: tuple[Location, ...] = ()

    def __post_init__(self) -> None:
        self.naming_contexts = tuple(Location.from_dn(suffix) for suffix in self.naming_contexts)

    @classmethod
    def for_memory(cls, connector: MemoryDirectoryConnector,
                   diagnostics: DiagnosticsSink | None = None) -> DirectoryServerContext:
        """Context over an in-memory store, using the store's suffixes as naming contexts."""
        return cls(
            connection=connector,
            diagnostics=diagnostics if diagnostics is not None else LoggerDiagnostics(),
            naming_contexts=tuple(connector.naming_contexts),
        )


@dataclass
class InternalOperationContext:
    """The operation being processed, with the connection it searches through."""

    internal_connection: DirectoryQueryCapability | None = None


__all__ = ["DirectoryServerContext", "InternalOperationContext"]
