from typing import Protocol, Sequence, List, Optional

from common.diagnostics import DiagnosticsSink
from directory.models import Location, MatchedEntry, SearchScope


class DirectorySessionProtocol(Protocol):
    """Interface Protocol for directory session objects.
    To be subclassed by actual session implementations.
    """
    @property
    def directory_type(self) -> str: ...
    @property
    def is_alive(self) -> bool: ...
    def connect(self): ...
    def disconnect(self): ...


class DirectoryQueryCapability(Protocol):
    """
    Protocol for anything that can search a directory.
    Implementations return the matching entries in the store's own order,
    each carrying only the requested attributes.
    Failures (timeout, size limit, missing base, access denied...) are raised
    as common.errors.QueryError with the matching ResultCode.
    """
    def search(self, base: Location | str, scope: SearchScope, filter: str,
               requested_attributes: Sequence[str]) -> List[MatchedEntry]: ...


class OperationContext(Protocol):
    """
    Protocol for the operation in progress when an attribute is generated.
    The internal connection, when set, is used instead of the server one.
    """
    @property
    def internal_connection(self) -> Optional[DirectoryQueryCapability]: ...


class ServerContext(Protocol):
    """
    Protocol for the host the provider runs in.
    Gives the provider its diagnostics sink, a default connection, and the
    naming contexts (suffixes) it serves, which count as hierarchy roots.
    """
    @property
    def diagnostics(self) -> DiagnosticsSink: ...
    @property
    def connection(self) -> Optional[DirectoryQueryCapability]: ...
    @property
    def naming_contexts(self) -> Sequence[Location]: ...
