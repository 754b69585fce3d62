# provisioner/cli.py
from __future__ import annotations

import logging
import sys

import typer
from colorama import Fore, Style
from colorama import init as colorama_init

from .bootstrap import provision
from .config import Settings
from .errors import FatalProvisionError
from .logging_config import setup_logging
from .runner import CommandRunner
from .verify import Verdict

LOGGER = logging.getLogger("provisioner")

app = typer.Typer(add_completion=False, rich_markup_mode="rich")

_RULE = "=" * 69


def _banner(color: str, *lines: str) -> None:
    typer.echo(f"{color}{_RULE}")
    for line in lines:
        typer.echo(line)
    typer.echo(f"{_RULE}{Style.RESET_ALL}")


@app.command()
def main() -> None:
    """Provision the pyenv virtualenv and install the ML runtime packages."""
    settings = Settings.from_env()
    log_path = setup_logging(settings.log_dir, force=True)
    typer.echo(f"All logs will be saved to {log_path}")

    try:
        outcome = provision(settings, CommandRunner())
    except FatalProvisionError as exc:
        LOGGER.critical("ERROR: %s", exc)
        LOGGER.critical("Check the log file %s for details", log_path)
        raise typer.Exit(1)

    if outcome.report is not None and outcome.report.verdict is Verdict.SUCCESS:
        _banner(Fore.GREEN, "Installation COMPLETE. All packages are ready.")
    else:
        _banner(
            Fore.YELLOW,
            "WARNING: some packages were not installed correctly.",
            f"Check the log file {log_path} for details.",
        )
    LOGGER.info("Installation finished. Check the log for possible errors: %s", log_path)
    typer.echo(f"Check the log file {log_path} for details and possible errors.")


def run() -> None:
    colorama_init()
    try:
        app()
    except KeyboardInterrupt:  # pragma: no cover
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    run()
