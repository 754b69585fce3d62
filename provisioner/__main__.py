"""
`python -m provisioner` forwards to the Typer CLI defined in `provisioner.cli`.
"""

from __future__ import annotations

from provisioner.cli import run

if __name__ == "__main__":  # pragma: no cover
    run()
