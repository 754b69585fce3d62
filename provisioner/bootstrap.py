"""
Provisioning sequence.

  ENSURE_ENV -> INSTALL_TOOLING -> INSTALL_CORE -> INSTALL_BEST_EFFORT
  -> INSTALL_OPENCV -> INSTALL_ONNXRUNTIME -> FINALIZE_AND_VERIFY

The first three steps raise FatalProvisionError on failure; the rest only
log warnings, so every run that gets an environment reaches verification.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, MutableMapping, Optional

from . import catalog
from .config import Settings
from .env_audit import log_active_environment, log_system_python
from .installer import FallbackResult, PipInstaller, install_best_effort, install_with_verified_fallback
from .logging_config import bind_context
from .pyenv import ActiveEnvironment, PyenvManager, ensure_environment
from .runner import Runner
from .verify import VerificationReport, finalize_and_verify

LOG = logging.getLogger(__name__)


@dataclass
class ProvisionOutcome:
    environment: ActiveEnvironment
    best_effort_ok: bool = False
    gated: list[FallbackResult] = field(default_factory=list)
    report: Optional[VerificationReport] = None


def provision(
    settings: Settings,
    runner: Runner,
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> ProvisionOutcome:
    LOG.info("Starting installation")
    log_system_python(runner)

    manager = PyenvManager(settings, runner)
    with bind_context("env"):
        active = ensure_environment(manager, settings.python_version, settings.env_name, environ)
    log_active_environment(active.python, runner)

    outcome = ProvisionOutcome(environment=active)
    pip = PipInstaller(active.python, runner)

    def tooling() -> None:
        LOG.info("Installing basic build tools...")
        pip.require(catalog.TOOLING, upgrade=True, what="basic build tools")

    def core() -> None:
        LOG.info("Installing numpy compatible with Python %s...", settings.python_version)
        pip.require(catalog.CORE, what="numpy")

    def best_effort() -> None:
        outcome.best_effort_ok = install_best_effort(pip, catalog.BEST_EFFORT)

    def opencv() -> None:
        LOG.info("Installing OpenCV (latest compatible version)...")
        outcome.gated.append(install_with_verified_fallback(pip, catalog.OPENCV_CANDIDATES, label="opencv-python"))

    def onnxruntime() -> None:
        LOG.info("Installing onnxruntime...")
        candidates = catalog.onnxruntime_candidates(settings.onnxruntime_spec)
        outcome.gated.append(install_with_verified_fallback(pip, candidates, label="onnxruntime"))

    def finalize() -> None:
        outcome.report = finalize_and_verify(pip, catalog.CRITICAL_IMPORTS, settings.manifest)

    steps: list[tuple[str, Callable[[], None]]] = [
        ("tooling", tooling),
        ("core", core),
        ("best-effort", best_effort),
        ("opencv", opencv),
        ("onnxruntime", onnxruntime),
        ("verify", finalize),
    ]
    total = len(steps)
    for idx, (name, fn) in enumerate(steps, start=1):
        with bind_context(f"{idx}/{total} {name}"):
            fn()
    return outcome


__all__ = ["ProvisionOutcome", "provision"]
