"""Logging helpers for the provisioner.

* ``setup_logging`` attaches a console handler and a per-run file handler to
  the ``provisioner`` logger (``install_logs/install_<stamp>.log``).
* ``current_run_dir`` / ``get_log_path`` expose where the active log lives.
* ``bind_context`` prefixes messages emitted inside it with a step label.

Child-process output is routed through the ``provisioner.cmd`` logger so every
line a tool prints ends up on the console and in the file.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

__all__ = [
    "LOGGER_NAME",
    "bind_context",
    "current_run_dir",
    "get_log_path",
    "setup_logging",
]

LOGGER_NAME = "provisioner"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_FORMAT = "[%(asctime)s] %(levelname)s %(context)s%(message)s"

_configured = False
_run_dir: Optional[Path] = None
_log_path: Optional[Path] = None
_context: str = ""


class _ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.context = f"[{_context}] " if _context else ""
        return True


def current_run_dir() -> Optional[Path]:
    """Return the directory that currently holds log artefacts."""
    return _run_dir


def get_log_path() -> Optional[Path]:
    """Expose the resolved log file path for modules that need it."""
    return _log_path


def _log_file_name() -> str:
    return time.strftime("install_%Y%m%d_%H%M%S.log")


def _open_file_handler(log_dir: Path) -> logging.FileHandler:
    global _log_path, _run_dir
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        path = log_dir / _log_file_name()
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    except OSError:
        fallback_dir = Path(tempfile.gettempdir()) / "provisioner-logs"
        fallback_dir.mkdir(parents=True, exist_ok=True)
        path = fallback_dir / _log_file_name()
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    _log_path = path
    _run_dir = path.parent
    return handler


def setup_logging(
    log_dir: Union[str, Path, None] = None,
    *,
    level_env: str = "PROVISION_LOG_LEVEL",
    force: bool = False,
) -> Path:
    """
    Configure the ``provisioner`` logger with a console and a file handler.

    Returns the path of the log file for this run. Repeated calls return the
    already-configured path unless ``force`` is set.
    """
    global _configured

    if _configured and not force and _log_path is not None:
        return _log_path

    level_name = os.getenv(level_env, "INFO").upper().strip()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)
    context_filter = _ContextFilter()

    file_handler = _open_file_handler(Path(log_dir) if log_dir is not None else Path("install_logs"))
    console = logging.StreamHandler(sys.stdout)

    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    for handler in (console, file_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        logger.addHandler(handler)
    logger.setLevel(level)

    _configured = True
    assert _log_path is not None
    return _log_path


@contextmanager
def bind_context(label: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with ``label``."""
    global _context
    previous = _context
    _context = label
    try:
        yield
    finally:
        _context = previous
