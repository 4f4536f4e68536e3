"""
mock_directory.daemon
---------------------
This module implements a mock directory REST API using FastAPI.
It serves an in-memory directory tree, optionally loaded from a YAML or
JSON fixture, and answers the searches issued by the REST directory
connector. Intended for local development, testing, and demonstration
purposes.
"""
import json
import logging
import os
import socket
import sys
from pathlib import Path

import typer
import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from common.app_setup import setup_logging
from common.errors import QueryError, ResultCode
from connectors.memory_directory_connector import MemoryDirectoryConnector
from directory.models import Entry, SearchScope


# Pydantic model for entries on the wire
class EntryModel(BaseModel):
    dn: str = Field(..., min_length=1)
    attributes: dict[str, list[str]] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryModel":
        return cls(dn=entry.dn, attributes=entry.attributes)


class SearchRequest(BaseModel):
    base: str
    scope: SearchScope = SearchScope.ONE
    filter: str = Field(default="(objectclass=*)", min_length=2)
    attributes: list[str] = Field(default_factory=list)


logger = logging.getLogger(__name__)

# In-memory directory store
directory = MemoryDirectoryConnector()

_HTTP_STATUS = {
    ResultCode.NO_SUCH_OBJECT: 404,
    ResultCode.FILTER_ERROR: 400,
    ResultCode.PROTOCOL_ERROR: 400,
    ResultCode.SIZE_LIMIT_EXCEEDED: 413,
    ResultCode.ENTRY_ALREADY_EXISTS: 409,
}

app = FastAPI()


def use_directory(connector: MemoryDirectoryConnector) -> MemoryDirectoryConnector:
    """Replace the served directory (fixtures, tests)."""
    global directory
    directory = connector
    logger.info("Serving %d entries", len(directory.entries()))
    return directory


def _http_error(exc: QueryError) -> HTTPException:
    return HTTPException(
        status_code=_HTTP_STATUS.get(exc.result_code, 500),
        detail={"result_code": exc.result_code.value, "message": exc.message},
    )


def get_server():
    # Helper to get the running server instance
    return getattr(app.state, "uvicorn_server", None)


@app.post("/shutdown")
def shutdown():
    """Shutdown the server gracefully."""
    logger.info("Shutdown requested via /shutdown endpoint.")
    server = get_server()
    if server:
        server.should_exit = True
    return {"message": "Server shutting down"}


@app.get("/status")
def status():
    """Health/status endpoint for the mock directory daemon."""
    server = get_server()
    state = "shutting_down" if server and server.should_exit else "ok"
    return {
        "status": state,
        "entries": len(directory.entries()),
        "naming_contexts": [str(suffix) for suffix in directory.naming_contexts],
    }


@app.get("/entries", response_model=list[EntryModel])
def list_entries() -> list[EntryModel]:
    """List every entry, parents before children."""
    return [EntryModel.from_entry(entry) for entry in directory.entries()]


@app.post("/entries", response_model=EntryModel, status_code=201)
def add_entry(entry: EntryModel) -> EntryModel:
    """Add one entry. Missing parents are created as glue nodes."""
    try:
        new_entry = Entry.model_validate({"location": entry.dn, "attributes": entry.attributes})
    except ValueError:
        new_entry = None
    if new_entry is None or new_entry.location.is_root:
        logger.warning(f"Invalid DN: {entry.dn!r}")
        raise _http_error(QueryError(ResultCode.PROTOCOL_ERROR, f"Invalid DN {entry.dn!r}"))
    if directory.get_entry(new_entry.location) is not None:
        logger.warning(f"Duplicate entry: {entry.dn!r}")
        raise _http_error(QueryError(ResultCode.ENTRY_ALREADY_EXISTS, f"Entry {entry.dn} already exists"))
    try:
        directory.add_entry(new_entry)
    except ValueError:
        logger.warning(f"Duplicate entry: {entry.dn!r}")
        raise _http_error(QueryError(ResultCode.ENTRY_ALREADY_EXISTS, f"Entry {entry.dn} already exists"))
    logger.info(f"Added entry: {new_entry.dn}")
    return EntryModel.from_entry(new_entry)


@app.post("/search", response_model=list[EntryModel])
def search(request: SearchRequest) -> list[EntryModel]:
    """Run a search and return the matching entries in tree order."""
    logger.info(f"Search base={request.base!r} scope={request.scope.value} filter={request.filter!r}")
    try:
        matches = directory.search(request.base, request.scope, request.filter, request.attributes)
    except QueryError as exc:
        logger.warning(f"Search failed: {exc}")
        raise _http_error(exc)
    return [EntryModel.from_entry(match) for match in matches]


app_cli = typer.Typer()

@app_cli.command()
def run(port: int = typer.Option(None, help="Port to run the server on (auto if not set)"),
        data: Path = typer.Option(None, help="YAML or JSON fixture with the directory entries"),
        size_limit: int = typer.Option(None, help="Maximum entries a search may return")):
    """Run the FastAPI app using Uvicorn on localhost, reporting the actual port used."""
    setup_logging(app_name="piblingmirror", daemon=True)
    if data is not None:
        use_directory(MemoryDirectoryConnector.from_fixture(data, size_limit=size_limit))
    elif size_limit is not None:
        directory.size_limit = size_limit
    if port is None or port == 0:
        # Bind to port 0 to get a free port, then close and reuse
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(('127.0.0.1', 0))
            port = s.getsockname()[1]
        logger.info(f"Selected port: {port}")
        print(json.dumps({"event": "port_selected", "port": port}), flush=True)
    else:
        # Check if port is available
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind(('127.0.0.1', port))
            except OSError:
                logger.error(f"ERROR: Port {port} is already in use.")
                sys.exit(98)  # 98 = EADDRINUSE
        logger.info(f"Using port: {port}")
        print(json.dumps({"event": "port_used", "port": port}), flush=True)
    config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level="info")
    server = uvicorn.Server(config)
    app.state.uvicorn_server = server  # Store server instance for shutdown
    logger.info(f"Starting Uvicorn server on port {port}")
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt in main thread")
    logger.info("Server stopped, exiting process")
    os._exit(0)

if __name__ == "__main__":
    app_cli()
