"""
This file is the entry point for the 'mockdirectory' command-line tool.
Run 'mockdirectory' in your shell to start, query and stop mock directory daemons.
"""
import json
import subprocess
import sys
from pathlib import Path

import httpx
import typer

from common.app_setup import setup_logging, monkeypatch_print, print_and_log, print_error

app = typer.Typer(add_completion=False)

# Set up logging for the CLI (not daemon)
logger = setup_logging(app_name="mockdirectory", daemon=False)
monkeypatch_print()


def _daemon_command(port: int | None, data: Path | None) -> list[str]:
    cmd = [sys.executable, '-m', 'mock_directory.daemon', '--port', str(port or 0)]
    if data is not None:
        cmd += ["--data", str(data)]
    return cmd


def _read_port(lines) -> int | None:
    """Return the port announced by the daemon on its first JSON lines."""
    for _, line in zip(range(10), lines):
        try:
            msg = json.loads(line)
        except ValueError:
            continue
        if isinstance(msg, dict) and msg.get("event") in ("port_selected", "port_used"):
            return int(msg["port"])
    return None


@app.command()
def start_server(port: int = typer.Option(None, help="Port to run the server on (auto if not set)"),
                 data: Path = typer.Option(None, exists=True, dir_okay=False, help="Directory fixture to serve")):
    """Start a new mock directory server (daemon) in the background."""
    cmd = _daemon_command(port, data)
    try:
        proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True, close_fds=True)
    except OSError as e:
        print_error(f"Failed to start mock directory: {e}")
        raise typer.Exit(1)
    assert proc.stdout is not None
    selected_port = _read_port(iter(proc.stdout.readline, ""))
    print_and_log(f"Started mock directory with PID {proc.pid} on port {selected_port or 'auto'}.")


@app.command()
def status(port: int = typer.Argument(..., help="Port of the server")):
    """Show the status reported by a running server."""
    try:
        response = httpx.get(f"http://127.0.0.1:{port}/status", timeout=5)
        response.raise_for_status()
    except httpx.HTTPError as e:
        print_error(f"Error contacting server at 127.0.0.1:{port}: {e}")
        raise typer.Exit(1)
    print_and_log(json.dumps(response.json()))


@app.command()
def stop_server(port: int = typer.Argument(..., help="Port of the server")):
    """Gracefully stop a running server via REST API (localhost only)."""
    url = f"http://127.0.0.1:{port}/shutdown"
    try:
        response = httpx.post(url, timeout=5)
    except httpx.HTTPError as e:
        print_error(f"Error contacting server at 127.0.0.1:{port}: {e}")
        raise typer.Exit(1)
    if response.status_code == 200:
        print_and_log(f"Server at 127.0.0.1:{port} stopped gracefully.")
    else:
        print_error(f"Failed to stop server at 127.0.0.1:{port}: {response.status_code} {response.text}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
