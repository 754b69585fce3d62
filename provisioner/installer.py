"""
pip operations against the provisioned interpreter.

Three install modes are used by the bootstrap sequence:

* ``PipInstaller.require`` - tooling and core packages; failure is fatal.
* ``install_best_effort`` - one batch call, outcome logged, never fatal.
* ``install_with_verified_fallback`` - ordered candidates, each accepted only
  after an import probe succeeds in the target interpreter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from .catalog import Candidate
from .errors import FatalProvisionError
from .probe import probe_import
from .runner import CommandResult, Runner

LOG = logging.getLogger(__name__)


@dataclass
class InstallAttempt:
    spec: str
    import_name: Optional[str] = None
    installed: bool = False
    verified: Optional[bool] = None
    error: Optional[str] = None


@dataclass
class FallbackResult:
    label: str
    ok: bool = False
    candidate: Optional[Candidate] = None
    attempts: list[InstallAttempt] = field(default_factory=list)

    @property
    def tried(self) -> list[str]:
        return [attempt.spec for attempt in self.attempts]


class PipInstaller:
    """Runs ``python -m pip`` for one interpreter."""

    def __init__(self, python: Path, runner: Runner) -> None:
        self.python = python
        self.runner = runner

    def _pip(self, *args: str, capture: bool = False) -> CommandResult:
        return self.runner.run([str(self.python), "-m", "pip", *args], capture=capture)

    def install(self, specs: Sequence[str], *, upgrade: bool = False) -> bool:
        args = ["install"]
        if upgrade:
            args.append("--upgrade")
        args.extend(specs)
        return self._pip(*args).ok

    def require(self, specs: Sequence[str], *, upgrade: bool = False, what: str) -> None:
        if not self.install(specs, upgrade=upgrade):
            raise FatalProvisionError(f"Could not install {what}", step="pip")

    def freeze(self) -> CommandResult:
        return self._pip("freeze", capture=True)


def install_best_effort(pip: PipInstaller, specs: Sequence[str]) -> bool:
    """Install ``specs`` in a single call; report, never raise."""
    LOG.info("Installing basic dependencies...")
    ok = pip.install(specs)
    if ok:
        LOG.info("Basic dependencies installed")
    else:
        LOG.warning("Some basic dependencies could not be installed: %s", " ".join(specs))
    return ok


def install_with_verified_fallback(
    pip: PipInstaller,
    candidates: Sequence[Candidate],
    *,
    label: str = "",
) -> FallbackResult:
    """
    Try ``candidates`` in order and stop at the first one that installs AND
    imports. Exhaustion is reported as a warning in the result, not raised.
    """
    result = FallbackResult(label=label or (candidates[0].spec if candidates else ""))
    for candidate in candidates:
        attempt = InstallAttempt(spec=candidate.spec, import_name=candidate.import_name)
        result.attempts.append(attempt)
        LOG.info("Trying to install %s...", candidate.spec)

        if not pip.install([candidate.spec]):
            attempt.error = "install failed"
            LOG.info("Could not install %s", candidate.spec)
            continue
        attempt.installed = True

        probe = probe_import(pip.python, candidate.import_name, pip.runner)
        attempt.verified = probe.ok
        if probe.ok:
            LOG.info(
                "%s installed and verified (%s %s)",
                candidate.spec,
                candidate.import_name,
                probe.version or "?",
            )
            result.ok = True
            result.candidate = candidate
            return result

        attempt.error = probe.error
        LOG.warning(
            "%s appears installed but %s cannot be imported: %s",
            candidate.spec,
            candidate.import_name,
            probe.error or "unknown error",
        )

    LOG.warning("No %s candidate could be installed and verified (tried: %s)", result.label, ", ".join(result.tried))
    return result


__all__ = [
    "FallbackResult",
    "InstallAttempt",
    "PipInstaller",
    "install_best_effort",
    "install_with_verified_fallback",
]
