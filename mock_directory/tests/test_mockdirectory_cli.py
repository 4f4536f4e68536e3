import socket

from typer.testing import CliRunner

from mock_directory import cli
from mock_directory.cli import app

runner = CliRunner()


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def test_help():
    """Test the help command displays usage information."""
    result = runner.invoke(app, ["--help"])
    print(result.output)
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_stop_server_without_server():
    """Stopping a server that is not there fails gracefully."""
    result = runner.invoke(app, ["stop-server", str(_unused_port())])
    print(result.output)
    assert result.exit_code == 1
    assert "Error contacting server" in result.output


def test_status_without_server():
    result = runner.invoke(app, ["status", str(_unused_port())])
    assert result.exit_code == 1
    assert "Error contacting server" in result.output


def test_stop_server_invalid_port():
    result = runner.invoke(app, ["stop-server", "notaport"])
    assert result.exit_code != 0


def test_daemon_command_line(tmp_path):
    data = tmp_path / "entries.yaml"
    assert cli._daemon_command(None, None)[-2:] == ["--port", "0"]
    assert cli._daemon_command(8389, data)[-4:] == ["--port", "8389", "--data", str(data)]


def test_port_read_from_daemon_output():
    lines = iter(['INFO: starting\n', '{"event": "port_selected", "port": 43210}\n'])
    assert cli._read_port(lines) == 43210
    assert cli._read_port(iter(["[1, 2]\n", "nothing\n"])) is None
