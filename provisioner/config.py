"""
Run settings, resolved once at startup from the process environment.

Environment knobs:
  PROVISION_PYTHON_VERSION    interpreter version to install (default 3.12.7)
  PROVISION_ENV_NAME          virtualenv name (default hpe-yinguobing)
  PROVISION_PYENV             version manager executable (default pyenv)
  PYENV_ROOT                  version manager root; asked from the tool if unset
  PROVISION_LOG_DIR           directory for per-run logs (default install_logs)
  PROVISION_MANIFEST          frozen package list (default installed_packages.txt)
  PROVISION_ONNXRUNTIME_SPEC  extra onnxruntime spec tried before the defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_PYTHON_VERSION = "3.12.7"
DEFAULT_ENV_NAME = "hpe-yinguobing"


def _coerce_optional_str(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None


@dataclass(frozen=True)
class Settings:
    python_version: str = DEFAULT_PYTHON_VERSION
    env_name: str = DEFAULT_ENV_NAME
    pyenv: str = "pyenv"
    pyenv_root: Optional[Path] = None
    log_dir: Path = Path("install_logs")
    manifest: Path = Path("installed_packages.txt")
    onnxruntime_spec: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        def get(key: str) -> Optional[str]:
            return _coerce_optional_str(env.get(key))

        root = get("PYENV_ROOT")
        return cls(
            python_version=get("PROVISION_PYTHON_VERSION") or DEFAULT_PYTHON_VERSION,
            env_name=get("PROVISION_ENV_NAME") or DEFAULT_ENV_NAME,
            pyenv=get("PROVISION_PYENV") or "pyenv",
            pyenv_root=Path(root).expanduser() if root else None,
            log_dir=Path(get("PROVISION_LOG_DIR") or "install_logs"),
            manifest=Path(get("PROVISION_MANIFEST") or "installed_packages.txt"),
            onnxruntime_spec=get("PROVISION_ONNXRUNTIME_SPEC"),
        )

    def with_root(self, root: Path) -> "Settings":
        return replace(self, pyenv_root=root)


__all__ = ["Settings", "DEFAULT_PYTHON_VERSION", "DEFAULT_ENV_NAME"]
