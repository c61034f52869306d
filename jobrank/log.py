"""Logging for the ``jobrank`` package.

Handlers hang off the ``jobrank`` logger, not the root, so an embedding
application keeps control of its own logging. Console output goes to stderr
because stdout carries ranked results. A daily file under ``JOBRANK_LOG_DIR``
(default ``logs/``) receives DEBUG and up unless ``JOBRANK_LOG_FILE`` is off.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

PACKAGE_LOGGER = "jobrank"

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_OFF_VALUES = ("0", "false", "no", "off")


def _level(name: str | None) -> int:
    value = getattr(logging, (name or "INFO").upper(), None)
    return value if isinstance(value, int) else logging.INFO


def _log_dir() -> Path:
    return Path(os.environ.get("JOBRANK_LOG_DIR") or Path(__file__).resolve().parent.parent / "logs")


def _file_handler(formatter: logging.Formatter) -> logging.Handler | None:
    if os.environ.get("JOBRANK_LOG_FILE", "true").strip().lower() in _OFF_VALUES:
        return None
    log_dir = _log_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / f"jobrank_{date.today():%Y-%m-%d}.log", encoding="utf-8")
    except OSError:
        # Read-only checkouts still get console logging.
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def _configure(pkg: logging.Logger) -> None:
    level = _level(os.environ.get("LOG_LEVEL"))
    pkg.setLevel(level)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    pkg.addHandler(console)

    fh = _file_handler(formatter)
    if fh is not None:
        pkg.addHandler(fh)


def get_logger(name: str) -> logging.Logger:
    """Logger under ``jobrank``; the package handlers are installed once."""
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not pkg.handlers:
        _configure(pkg)
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def set_level(name: str) -> None:
    """Change the package level at runtime (``--log-level`` on the CLI)."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(_level(name))
