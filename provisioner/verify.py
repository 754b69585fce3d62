"""Final manifest + critical import verification."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .installer import PipInstaller
from .probe import ImportProbe, probe_all, probe_import

LOG = logging.getLogger(__name__)


class Verdict(str, enum.Enum):
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"


@dataclass
class VerificationReport:
    verdict: Verdict
    probes: list[ImportProbe] = field(default_factory=list)
    manifest: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.verdict is Verdict.SUCCESS


def write_manifest(pip: PipInstaller, target: Path) -> Optional[Path]:
    """Dump ``pip freeze`` to ``target`` (overwritten). Returns None on failure."""
    cp = pip.freeze()
    if not cp.ok:
        LOG.warning("pip freeze failed; package list not written: %s", cp.stderr.strip() or cp.returncode)
        return None
    lines = cp.lines()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
    except OSError as exc:
        LOG.warning("Could not write %s: %s", target, exc)
        return None
    LOG.info("Installed package list saved to %s", target)
    return target


def finalize_and_verify(
    pip: PipInstaller,
    critical: Mapping[str, str],
    manifest: Path,
) -> VerificationReport:
    """
    Write the manifest, report each critical import, then decide the verdict
    from one probe that imports all of them together.

    ``critical`` maps import name -> display name.
    """
    written = write_manifest(pip, manifest)

    LOG.info("Verifying critical packages...")
    probes: list[ImportProbe] = []
    for module, display in critical.items():
        probe = probe_import(pip.python, module, pip.runner)
        probes.append(probe)
        if probe.ok:
            LOG.info("%s %s", display, probe.version or "(version unknown)")
        else:
            LOG.error("%s is not available: %s", display, probe.error or "import failed")

    if probe_all(pip.python, list(critical), pip.runner):
        LOG.info("SUCCESS: all critical packages are installed correctly")
        verdict = Verdict.SUCCESS
    else:
        LOG.warning("Not all critical packages are available")
        verdict = Verdict.WARNING
    return VerificationReport(verdict=verdict, probes=probes, manifest=written)


__all__ = ["Verdict", "VerificationReport", "finalize_and_verify", "write_manifest"]
