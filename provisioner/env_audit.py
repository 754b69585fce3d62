from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Any, Dict, Optional

from .runner import Runner

LOG = logging.getLogger(__name__)


def collect_host() -> Dict[str, Any]:
    uname = platform.uname()
    return {
        "system": uname.system,
        "node": uname.node,
        "release": uname.release,
        "version": uname.version,
        "machine": uname.machine,
    }


def describe_host(host: Optional[Dict[str, Any]] = None) -> str:
    info = host or collect_host()
    return " ".join(str(info[key]) for key in ("system", "node", "release", "version", "machine") if info.get(key))


def interpreter_version(python: str, runner: Runner) -> str:
    cp = runner.run([python, "--version"], capture=True)
    text = cp.output
    if cp.ok and text:
        return text.splitlines()[0]
    return "unavailable"


def log_system_python(runner: Runner) -> None:
    LOG.info("System Python version: %s", interpreter_version("python", runner))


def log_active_environment(python: Path, runner: Runner) -> None:
    LOG.info("Active Python environment: %s", python)
    LOG.info("Active Python version: %s", interpreter_version(str(python), runner))
    LOG.info("Operating system: %s", describe_host())
