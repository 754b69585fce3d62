"""
pyenv-backed interpreter and virtualenv management.

``ensure_environment`` is destructive by design of the install flow: an
existing virtualenv with the target name is removed without confirmation and
created again from the requested interpreter.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import MutableMapping, Optional

from .config import Settings
from .errors import FatalProvisionError
from .runner import Runner

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveEnvironment:
    name: str
    version: str
    prefix: Path
    python: Path

    @property
    def bin_dir(self) -> Path:
        return self.python.parent


def _env_python(prefix: Path) -> Path:
    if os.name == "nt":
        return prefix / "Scripts" / "python.exe"
    return prefix / "bin" / "python"


class PyenvManager:
    """Thin wrapper over the ``pyenv`` / ``pyenv-virtualenv`` subcommands."""

    def __init__(self, settings: Settings, runner: Runner) -> None:
        self.settings = settings
        self.runner = runner
        self.exe = settings.pyenv
        self._root: Optional[Path] = settings.pyenv_root

    def is_available(self) -> bool:
        return self.runner.which(self.exe) is not None

    def require(self) -> None:
        if not self.is_available():
            raise FatalProvisionError(
                f"{self.exe} is not installed. Please install it first.",
                step="pyenv",
            )
        LOG.info("%s is installed", self.exe)

    @property
    def root(self) -> Path:
        if self._root is None:
            cp = self.runner.run([self.exe, "root"], capture=True)
            lines = cp.lines() if cp.ok else []
            self._root = Path(lines[0]) if lines else Path.home() / ".pyenv"
            LOG.debug("pyenv.root %s", self._root)
        return self._root

    def installed_versions(self) -> list[str]:
        cp = self.runner.run([self.exe, "versions", "--bare"], capture=True)
        return cp.lines() if cp.ok else []

    def has_version(self, version: str) -> bool:
        return version in self.installed_versions()

    def install_version(self, version: str) -> None:
        if self.has_version(version):
            LOG.info("Python %s is available", version)
            return
        LOG.info("Python %s is not installed. Trying to install it...", version)
        if not self.runner.run([self.exe, "install", version]).ok:
            raise FatalProvisionError(f"Could not install Python {version}", step="interpreter")
        LOG.info("Python %s is available", version)

    def virtualenvs(self) -> list[str]:
        cp = self.runner.run([self.exe, "virtualenvs", "--bare"], capture=True)
        return cp.lines() if cp.ok else []

    def has_virtualenv(self, name: str) -> bool:
        suffix = f"/envs/{name}"
        return any(entry == name or entry.endswith(suffix) for entry in self.virtualenvs())

    def delete_virtualenv(self, name: str) -> None:
        LOG.info("Virtual environment %s already exists. Recreating it...", name)
        if not self.runner.run([self.exe, "uninstall", "-f", name]).ok:
            LOG.warning("pyenv uninstall -f %s reported an error", name)

    def create_virtualenv(self, version: str, name: str) -> None:
        LOG.info("Creating virtual environment %s...", name)
        if not self.runner.run([self.exe, "virtualenv", version, name]).ok:
            raise FatalProvisionError("Could not create the virtual environment", step="virtualenv")

    def set_local(self, name: str) -> None:
        LOG.info("Configuring local environment...")
        if not self.runner.run([self.exe, "local", name]).ok:
            raise FatalProvisionError("Could not configure the local environment", step="local")

    def activate(
        self,
        version: str,
        name: str,
        environ: Optional[MutableMapping[str, str]] = None,
    ) -> ActiveEnvironment:
        """Bind ``environ`` (the process environment by default) to the virtualenv."""
        LOG.info("Activating virtual environment...")
        env = os.environ if environ is None else environ
        prefix = self.root / "versions" / name
        python = _env_python(prefix)
        if not python.exists():
            raise FatalProvisionError(
                f"Could not activate the virtual environment ({python} is missing)",
                step="activate",
            )
        active = ActiveEnvironment(name=name, version=version, prefix=prefix, python=python)
        env["VIRTUAL_ENV"] = str(prefix)
        env["PYENV_VERSION"] = name
        path = env.get("PATH", "")
        env["PATH"] = str(active.bin_dir) + (os.pathsep + path if path else "")
        env.pop("PYTHONHOME", None)
        return active


def ensure_environment(
    manager: PyenvManager,
    interpreter_version: str,
    env_name: str,
    environ: Optional[MutableMapping[str, str]] = None,
) -> ActiveEnvironment:
    """
    Make ``env_name`` a fresh virtualenv of ``interpreter_version`` and activate it.

    Raises FatalProvisionError when the tool is missing or any of install,
    create, local or activate fails.
    """
    manager.require()
    manager.install_version(interpreter_version)
    if manager.has_virtualenv(env_name):
        manager.delete_virtualenv(env_name)
    manager.create_virtualenv(interpreter_version, env_name)
    manager.set_local(env_name)
    return manager.activate(interpreter_version, env_name, environ)


__all__ = ["ActiveEnvironment", "PyenvManager", "ensure_environment"]
