# provisioner/runner.py
"""
Synchronous process execution.

``CommandRunner.run`` blocks until the child exits and returns a
``CommandResult``. In streaming mode (the default) the child's combined
stdout/stderr is forwarded line by line to the ``provisioner.cmd`` logger, so
the console and the run log both carry the full tool output. In capture mode
the output is returned to the caller instead and nothing is echoed.

No timeout is applied: a hung installer blocks the run.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Sequence

CMD_LOG = logging.getLogger("provisioner.cmd")
LOG = logging.getLogger(__name__)

# Exit status reported when the executable itself cannot be started.
NOT_FOUND_RC = 127


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr.rstrip()}"
        return (self.stdout or self.stderr).rstrip()

    def lines(self) -> list[str]:
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]


class Runner(Protocol):
    def which(self, name: str) -> Optional[str]: ...

    def run(self, cmd: Sequence[str], *, capture: bool = False) -> CommandResult: ...


class CommandRunner:
    """Default runner backed by :mod:`subprocess`."""

    def __init__(self, *, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = dict(env) if env is not None else None

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)

    def _child_env(self) -> dict[str, str]:
        # Read os.environ at call time so an activated environment is visible.
        base = dict(os.environ)
        if self._env:
            base.update(self._env)
        return base

    def run(self, cmd: Sequence[str], *, capture: bool = False) -> CommandResult:
        argv = [str(part) for part in cmd]
        LOG.debug("exec %s", " ".join(argv))
        try:
            if capture:
                proc = subprocess.run(
                    argv,
                    text=True,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    check=False,
                    env=self._child_env(),
                )
                return CommandResult(proc.returncode, proc.stdout or "", proc.stderr or "")
            return self._stream(argv)
        except FileNotFoundError as exc:
            CMD_LOG.error("%s: %s", argv[0], exc)
            return CommandResult(NOT_FOUND_RC, "", str(exc))

    def _stream(self, argv: list[str]) -> CommandResult:
        p = subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=self._child_env(),
        )
        assert p.stdout is not None
        collected: list[str] = []
        try:
            for raw in iter(p.stdout.readline, b""):
                line = raw.decode("utf-8", "replace").rstrip("\r\n")
                collected.append(line)
                if line:
                    CMD_LOG.info("%s", line)
        finally:
            p.stdout.close()
            rc = p.wait()
        return CommandResult(int(rc), "\n".join(collected), "")


__all__ = ["CommandResult", "CommandRunner", "Runner", "NOT_FOUND_RC"]
