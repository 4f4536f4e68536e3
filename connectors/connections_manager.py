# connections_manager.py
"""
connections_manager.py
----------------------
Manages directory connections and sessions

Holds in-memory sessions to directory REST APIs.

Creates connectors to directories as needed.
Reuses existing sessions when possible.

"""

import logging

from connectors.directory_interface import DirectorySessionProtocol
from connectors.rest_directory_connector import RestDirectoryConnector, RestDirectorySession

logger = logging.getLogger(__name__)

######################### Sessions #########################


## the manager is this module itself

# variable to hold active sessions:

_active_sessions: dict[tuple[str, str | None], DirectorySessionProtocol] = {}
# key: (hostURL, user) tuple
# value: DirectorySessionProtocol instance
# This allows unique sessions per (hostURL, user) pair.

# create a session. If a matching live session already exists, return it.
def get_session(host_URL: str, user: str | None = None, password: str | None = None,
                directory_type: str = "rest", timeout: float = 5.0) -> DirectorySessionProtocol:
    """
    Get or create a directory session for the given parameters.
    Reuses existing sessions if one matches the (hostURL, user) pair.
    """
    key = (host_URL.rstrip("/"), user)
    if key in _active_sessions:
        return _active_sessions[key]

    if directory_type == "rest":
        session = RestDirectorySession(host_URL, user, password, timeout=timeout)
    # Add other directory types here as needed
    else:
        raise ValueError(f"Unsupported directory type: {directory_type}")

    session.connect()
    _active_sessions[key] = session
    logger.info("Opened %s directory session to %s as %s", directory_type, key[0], user or "anonymous")
    return session


def get_connector(host_URL: str, user: str | None = None, password: str | None = None,
                  timeout: float = 5.0) -> RestDirectoryConnector:
    """Return a search connector over a (possibly reused) REST session."""
    session = get_session(host_URL, user, password, timeout=timeout)
    return RestDirectoryConnector(session)  # type: ignore[arg-type]


def close_sessions() -> None:
    """Disconnect and forget every cached session."""
    while _active_sessions:
        _, session = _active_sessions.popitem()
        session.disconnect()
