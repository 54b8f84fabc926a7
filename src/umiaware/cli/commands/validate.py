"""Installation validation command."""

from __future__ import annotations

import sys

import click

from umiaware import __version__
from umiaware.cli.exit_codes import EXIT_ERROR


@click.command()
def validate() -> None:
    """Validate umiaware installation and dependencies."""
    from umiaware.utils.validators import validate_installation

    click.echo("Validating umiaware installation...")
    issues = validate_installation()

    if not issues:
        click.echo("All checks passed!")
        click.echo(f"  umiaware version: {__version__}")
    else:
        click.echo("Issues found:")
        for issue in issues:
            click.echo(f"  - {issue}")
        sys.exit(EXIT_ERROR)
