"""
Package lists installed by the provisioner, in install order.

Keeping every pin here means the bootstrap sequence, the verification pass and
the tests all agree on what a finished environment contains.
"""

from __future__ import annotations

from typing import NamedTuple, Optional


class Candidate(NamedTuple):
    """One install attempt: the pip requirement and the module that proves it works."""

    spec: str
    import_name: str


TOOLING: tuple[str, ...] = ("pip", "setuptools", "wheel", "cmake", "scikit-build")

CORE: tuple[str, ...] = ("numpy>=1.26.0",)

BEST_EFFORT: tuple[str, ...] = (
    "coloredlogs==15.0.1",
    "flatbuffers==23.5.26",
    "humanfriendly==10.0",
    "mpmath==1.3.0",
    "packaging==23.1",
    "protobuf==4.23.2",
    "sympy==1.12",
)

OPENCV_CANDIDATES: tuple[Candidate, ...] = (
    Candidate("opencv-python>=4.8.0", "cv2"),
    Candidate("opencv-python", "cv2"),
)

# Last known-good builds, newest first; tried only after gpu and cpu wheels fail.
ORT_LEGACY_VERSIONS: tuple[str, ...] = ("1.16.3", "1.16.0", "1.15.1", "1.15.0", "1.14.1")

# import name -> distribution name used in reports
CRITICAL_IMPORTS: dict[str, str] = {
    "numpy": "numpy",
    "cv2": "opencv-python",
    "onnxruntime": "onnxruntime",
}


def onnxruntime_candidates(override: Optional[str] = None) -> tuple[Candidate, ...]:
    """
    Return the ordered onnxruntime candidates: GPU wheel, CPU wheel, then the
    pinned legacy releases. ``override`` (when given) is tried first.
    """
    specs: list[str] = ["onnxruntime-gpu", "onnxruntime"]
    specs.extend(f"onnxruntime=={version}" for version in ORT_LEGACY_VERSIONS)
    if override:
        specs = [override, *(spec for spec in specs if spec != override)]
    return tuple(Candidate(spec, "onnxruntime") for spec in specs)


__all__ = [
    "BEST_EFFORT",
    "CORE",
    "CRITICAL_IMPORTS",
    "Candidate",
    "OPENCV_CANDIDATES",
    "ORT_LEGACY_VERSIONS",
    "TOOLING",
    "onnxruntime_candidates",
]
