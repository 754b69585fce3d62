"""
Import probes executed inside the provisioned interpreter.

A successful ``pip install`` does not prove a package is usable (a wheel can
resolve against a missing shared library), so the installer asks the target
interpreter to actually import the module. The child prints one JSON document
and the parent never imports anything itself.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Sequence, cast

from .runner import Runner

LOG = logging.getLogger(__name__)

_PROBE_SCRIPT = r"""
import importlib
import json
import sys

result = {}
for name in sys.argv[1:]:
    entry = {"ok": False, "version": None, "error": None}
    try:
        module = importlib.import_module(name)
        entry["ok"] = True
        entry["version"] = getattr(module, "__version__", None)
    except BaseException as exc:
        entry["error"] = f"{type(exc).__name__}: {exc}"
    result[name] = entry
sys.stdout.write(json.dumps(result))
"""


class ImportProbe(NamedTuple):
    module: str
    ok: bool
    version: Optional[str]
    error: Optional[str]


def _parse(payload: str) -> Dict[str, Any]:
    payload = payload.strip()
    if not payload:
        return {}
    try:
        parsed = json.loads(payload)
    except ValueError:
        return {}
    if isinstance(parsed, dict):
        return cast(Dict[str, Any], parsed)
    return {}


def probe_modules(python: Path, modules: Sequence[str], runner: Runner) -> list[ImportProbe]:
    """Import every name in ``modules`` within one child interpreter."""
    cp = runner.run([str(python), "-c", _PROBE_SCRIPT, *modules], capture=True)
    data = _parse(cp.stdout)
    probes: list[ImportProbe] = []
    for name in modules:
        entry = data.get(name)
        if not isinstance(entry, dict):
            reason = cp.stderr.strip() or f"probe exited with status {cp.returncode}"
            probes.append(ImportProbe(name, False, None, reason))
            continue
        info = cast(Dict[str, Any], entry)
        version = info.get("version")
        probes.append(
            ImportProbe(
                name,
                bool(info.get("ok")),
                str(version) if version is not None else None,
                cast(Optional[str], info.get("error")),
            )
        )
    return probes


def probe_import(python: Path, module: str, runner: Runner) -> ImportProbe:
    return probe_modules(python, [module], runner)[0]


def probe_all(python: Path, modules: Sequence[str], runner: Runner) -> bool:
    """True only when every module imports in the same interpreter session."""
    probes = probe_modules(python, modules, runner)
    for probe in probes:
        if not probe.ok:
            LOG.debug("probe.failed module=%s error=%s", probe.module, probe.error)
    return bool(probes) and all(probe.ok for probe in probes)


__all__ = ["ImportProbe", "probe_all", "probe_import", "probe_modules"]
