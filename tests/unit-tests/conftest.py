# tests/unit-tests/conftest.py
from __future__ import annotations

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

import pytest

from provisioner import logging_config
from provisioner.config import Settings
from provisioner.runner import CommandResult

# distribution -> module it provides
_MODULES = {
    "numpy": "numpy",
    "opencv-python": "cv2",
    "onnxruntime": "onnxruntime",
    "onnxruntime-gpu": "onnxruntime",
}


def _dist_name(spec: str) -> str:
    return re.split(r"[<>=!~\[ ;]", spec, maxsplit=1)[0].strip().lower()


def _pinned_version(spec: str) -> str:
    match = re.search(r"==\s*([\w.]+)", spec)
    return match.group(1) if match else "1.0.0"


class FakeHost:
    """
    In-memory stand-in for pyenv, pip and the probe interpreter.

    ``install_fails``  pip specs whose install exits non-zero
    ``broken``         pip specs that install but leave their module unimportable
    ``pyenv_fails``    pyenv subcommands that exit non-zero (install, virtualenv, local)
    """

    def __init__(
        self,
        root: Path,
        *,
        tools: Iterable[str] = ("pyenv", "python"),
        versions: Iterable[str] = (),
        virtualenvs: Iterable[tuple[str, str]] = (),
        install_fails: Iterable[str] = (),
        broken: Iterable[str] = (),
        pyenv_fails: Iterable[str] = (),
        freeze_fails: bool = False,
    ) -> None:
        self.root = root
        self.tools = set(tools)
        self.versions: List[str] = list(versions)
        self.envs: dict[str, str] = {}
        for name, version in virtualenvs:
            self._make_env(name, version)
        self.install_fails = set(install_fails)
        self.broken = set(broken)
        self.pyenv_fails = set(pyenv_fails)
        self.freeze_fails = freeze_fails
        self.installed: dict[str, str] = {}
        self.importable: dict[str, str] = {}
        self.calls: List[List[str]] = []

    # -- helpers -----------------------------------------------------------
    def _make_env(self, name: str, version: str) -> None:
        python = self.root / "versions" / name / "bin" / "python"
        python.parent.mkdir(parents=True, exist_ok=True)
        python.write_text("#!fake", encoding="utf-8")
        self.envs[name] = version

    def pip_installs(self) -> List[List[str]]:
        return [c[4:] for c in self.calls if c[1:4] == ["-m", "pip", "install"]]

    def pyenv_calls(self, sub: str) -> List[List[str]]:
        return [c for c in self.calls if c[0] == "pyenv" and len(c) > 1 and c[1] == sub]

    # -- Runner protocol ---------------------------------------------------
    def which(self, name: str) -> Optional[str]:
        return f"/usr/bin/{name}" if name in self.tools else None

    def run(self, cmd: Sequence[str], *, capture: bool = False) -> CommandResult:
        argv = [str(part) for part in cmd]
        self.calls.append(argv)
        if argv[0] == "pyenv":
            return self._pyenv(argv[1:])
        if argv[1:] == ["--version"]:
            return CommandResult(0, "Python 3.12.7\n")
        if argv[1:3] == ["-m", "pip"]:
            return self._pip(argv[3:])
        if argv[1] == "-c":
            return self._probe(argv[3:])
        return CommandResult(1, "", f"unexpected command {argv}")

    def _pyenv(self, args: List[str]) -> CommandResult:
        sub = args[0]
        if sub in self.pyenv_fails:
            return CommandResult(1, "", f"pyenv: {sub} failed")
        if sub == "root":
            return CommandResult(0, f"{self.root}\n")
        if sub == "versions":
            lines = list(self.versions)
            for name, version in self.envs.items():
                lines.append(f"{version}/envs/{name}")
                lines.append(name)
            return CommandResult(0, "\n".join(lines) + "\n")
        if sub == "virtualenvs":
            lines = []
            for name, version in self.envs.items():
                lines.append(f"{version}/envs/{name}")
                lines.append(name)
            return CommandResult(0, "\n".join(lines) + "\n")
        if sub == "install":
            self.versions.append(args[1])
            return CommandResult(0, f"Installed Python-{args[1]}\n")
        if sub == "uninstall":
            name = args[-1]
            self.envs.pop(name, None)
            shutil.rmtree(self.root / "versions" / name, ignore_errors=True)
            return CommandResult(0)
        if sub == "virtualenv":
            version, name = args[1], args[2]
            if version not in self.versions:
                return CommandResult(1, "", f"pyenv-virtualenv: `{version}' is not installed")
            self._make_env(name, version)
            return CommandResult(0)
        if sub == "local":
            return CommandResult(0)
        return CommandResult(1, "", f"unknown pyenv command {sub}")

    def _pip(self, args: List[str]) -> CommandResult:
        if args[0] == "freeze":
            if self.freeze_fails:
                return CommandResult(1, "", "freeze failed")
            lines = [f"{name}=={version}" for name, version in sorted(self.installed.items())]
            return CommandResult(0, "\n".join(lines) + "\n")
        specs = [a for a in args[1:] if not a.startswith("-")]
        if any(spec in self.install_fails for spec in specs):
            return CommandResult(1, "ERROR: No matching distribution found")
        for spec in specs:
            dist = _dist_name(spec)
            version = _pinned_version(spec)
            self.installed[dist] = version
            module = _MODULES.get(dist)
            if module is None:
                continue
            if spec in self.broken:
                self.importable.pop(module, None)
            else:
                self.importable[module] = version
        return CommandResult(0, "Successfully installed\n")

    def _probe(self, modules: List[str]) -> CommandResult:
        payload = {}
        for name in modules:
            if name in self.importable:
                payload[name] = {"ok": True, "version": self.importable[name], "error": None}
            else:
                payload[name] = {"ok": False, "version": None, "error": f"ModuleNotFoundError: No module named '{name}'"}
        return CommandResult(0, json.dumps(payload))


@pytest.fixture
def pyenv_root(tmp_path: Path) -> Path:
    root = tmp_path / "pyenv"
    root.mkdir()
    return root


@pytest.fixture
def make_host(pyenv_root: Path) -> Callable[..., FakeHost]:
    def _make(**kwargs: object) -> FakeHost:
        return FakeHost(pyenv_root, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def settings(tmp_path: Path, pyenv_root: Path) -> Settings:
    return Settings(
        python_version="3.12.7",
        env_name="hpe-test",
        pyenv_root=pyenv_root,
        log_dir=tmp_path / "install_logs",
        manifest=tmp_path / "installed_packages.txt",
    )


@pytest.fixture(autouse=True)
def _reset_provisioner_logging() -> Iterator[None]:
    """Drop handlers attached by setup_logging so tests never share a log file."""
    yield
    logger = logging.getLogger(logging_config.LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logging_config._configured = False
