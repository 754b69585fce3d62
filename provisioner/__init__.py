"""
Environment provisioner: pyenv interpreter + virtualenv setup and a gated
install of the ML runtime stack (numpy, OpenCV, onnxruntime).

Exports:
    __version__ : best-effort package version (falls back to "0+unknown")
"""

from __future__ import annotations

try:
    from importlib.metadata import version as _pkg_version
except Exception:  # pragma: no cover
    _pkg_version = None  # type: ignore[assignment]

__all__ = ["__version__"]


def _detect_version() -> str:
    if _pkg_version is None:
        return "0+unknown"
    try:
        return _pkg_version("hpe-provisioner")
    except Exception:
        return "0+unknown"


__version__ = _detect_version()
