"""Exception types raised by the provisioning steps."""

from __future__ import annotations


class FatalProvisionError(RuntimeError):
    """A step failed in a way that must abort the whole run (exit code 1)."""

    def __init__(self, message: str, *, step: str = "") -> None:
        super().__init__(message)
        self.step = step


__all__ = ["FatalProvisionError"]
