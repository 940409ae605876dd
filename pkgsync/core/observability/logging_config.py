"""
Logging configuration — one setup call per pkgsync process.

Every module logs through ``logging.getLogger(__name__)``; this
module only decides where those records go and how they look.

Level precedence:
    --debug  >  --verbose  >  --quiet  >  PKGSYNC_LOG_LEVEL  >  WARNING

An extra file log can be enabled with PKGSYNC_LOG_FILE (and its own
level with PKGSYNC_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "PKGSYNC_LOG_LEVEL"
ENV_FILE = "PKGSYNC_LOG_FILE"
ENV_FILE_LEVEL = "PKGSYNC_LOG_FILE_LEVEL"

# Console formats by verbosity
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_MINIMAL = "%(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path of an additional log file.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = parse_level(level)

    if console_level <= logging.DEBUG:
        fmt, datefmt = _CONSOLE_FORMATS[logging.DEBUG]
    elif console_level <= logging.INFO:
        fmt, datefmt = _CONSOLE_FORMATS[logging.INFO]
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective = console_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        effective = min(effective, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective)
    logging.raiseExceptions = False


def setup_from_flags(debug: bool = False, verbose: bool = False, quiet: bool = False) -> None:
    """CLI helper: flags + PKGSYNC_* environment → setup_logging."""
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )


def parse_level(level: str | None) -> int:
    """Level name → numeric constant; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
