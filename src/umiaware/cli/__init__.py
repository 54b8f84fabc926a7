"""Command line interface (umiaware)."""

from umiaware.cli.main import cli, main

__all__ = ["cli", "main"]
