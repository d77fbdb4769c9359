"""
Logging configuration — set up once by the CLI entry point.

Every module logs through ``logger = logging.getLogger(__name__)`` and
inherits whatever this installs on the root logger.

Console level precedence:
    -v / --quiet flags  >  CONFSYNC_LOG_LEVEL env var  >  WARNING

A log file can be added with CONFSYNC_LOG_FILE, at its own level via
CONFSYNC_LOG_FILE_LEVEL.  Console output goes to stderr so it never
mixes with the per-file report on stdout.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LEVEL = "CONFSYNC_LOG_LEVEL"
ENV_FILE = "CONFSYNC_LOG_FILE"
ENV_FILE_LEVEL = "CONFSYNC_LOG_FILE_LEVEL"

# -v count → console level; one -v only adds hints to the report.
_VERBOSITY_LEVELS = {2: logging.INFO, 3: logging.DEBUG}

_CONSOLE_FORMAT = "confsync: %(message)s"
_TRACE_FORMAT = "confsync: %(levelname)s %(name)s:%(lineno)d %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def console_level(verbosity: int, quiet: bool, env_level: str | None = None) -> int:
    """Resolve the console level from the CLI flags, then the env var."""
    if quiet:
        return logging.ERROR
    if verbosity >= 2:
        return _VERBOSITY_LEVELS[min(verbosity, 3)]
    return _parse_level(env_level, logging.WARNING)


def setup_logging(
    verbosity: int = 0,
    quiet: bool = False,
    env: Mapping[str, str] | None = None,
) -> None:
    """Install confsync's handlers on the root logger.

    Args:
        verbosity: Number of ``-v`` flags given.
        quiet: ``--quiet`` was given; only errors reach the console.
        env: Where to read the CONFSYNC_LOG_* settings (default: os.environ).
    """
    env = os.environ if env is None else env
    level = console_level(verbosity, quiet, env.get(ENV_LEVEL))

    handlers = [_console_handler(level)]
    log_file = env.get(ENV_FILE)
    if log_file:
        handlers.append(_file_handler(log_file, _parse_level(env.get(ENV_FILE_LEVEL), level)))

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(min(h.level for h in handlers))
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    fmt = _TRACE_FORMAT if level <= logging.DEBUG else _CONSOLE_FORMAT
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    return handler


def _parse_level(name: str | None, fallback: int) -> int:
    """Numeric level for ``name``; ``fallback`` when unset or unknown."""
    if not name:
        return fallback
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else fallback
