"""
Logging and console output shared by the piblingmirror and mockdirectory tools.

Console messages go through rich; every message printed with print_and_log or
print_error is also written to the log configured by setup_logging.
"""

import builtins
import logging
import logging.handlers
import os
import sys
from typing import Optional

from rich import print as rich_print

LOGFILE_ENV = "PIBLINGMIRROR_LOGFILE"

_console_logger: Optional[logging.Logger] = None


def _log_path(app_name: str, logfile: Optional[str]) -> str:
    if logfile is None:
        logfile = os.environ.get(LOGFILE_ENV)
    if logfile is None:
        log_dir = os.path.expanduser(f"~/.{app_name}")
        os.makedirs(log_dir, exist_ok=True)
        logfile = os.path.join(log_dir, "log.txt")
    return logfile


def setup_logging(app_name: str = "piblingmirror", daemon: bool = False, loglevel: int = logging.INFO,
                  logfile: Optional[str] = None) -> logging.Logger:
    """
    Route the root logger to one handler and return it.

    Daemons log to syslog, or to stderr where /dev/log is missing. Command
    line tools log to ``logfile``, $PIBLINGMIRROR_LOGFILE or ~/.<app_name>/log.txt.
    """
    global _console_logger
    root = logging.getLogger()
    root.setLevel(loglevel)
    if daemon:
        fmt = f'%(asctime)s %(levelname)s %(process)d [{app_name}] %(name)s %(message)s'
        try:
            handler: logging.Handler = logging.handlers.SysLogHandler(address='/dev/log')
        except OSError as e:
            print(f"Syslog unavailable ({e}), logging to stderr", file=sys.stderr)
            handler = logging.StreamHandler()
    else:
        fmt = '%(asctime)s %(levelname)s %(process)d %(name)s %(message)s'
        handler = logging.FileHandler(_log_path(app_name, logfile))
    handler.setFormatter(logging.Formatter(fmt))

    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    _console_logger = root
    root.debug("Logging initialized for %s", app_name)
    return root


def monkeypatch_print():
    """Make the built-in print render rich markup."""
    builtins.print = rich_print


def print_and_log(message: str, **kwargs):
    print(message, **kwargs)
    if _console_logger is not None:
        _console_logger.info(message)


def print_error(message: str, **kwargs):
    """Print ``message`` in red on stderr and log it as an error."""
    print(f'[bold red]{message}[/bold red]', file=sys.stderr, **kwargs)
    if _console_logger is not None:
        _console_logger.error(message)
