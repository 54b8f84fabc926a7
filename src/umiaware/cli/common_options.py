"""Shared Click options for the umiaware CLI.

Every option defaults to None (or is a count) so that values left unset on the
command line fall back to the config file, then to built-in defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, TypeVar

import click

F = TypeVar("F", bound=Callable[..., None])


def input_option(func: F) -> F:
    """Input alignment file option."""
    return click.option(
        "-i",
        "--input",
        "input_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        required=False,
        help="Coordinate-sorted input SAM/BAM file",
    )(func)


def output_option(func: F) -> F:
    """Output alignment file option."""
    return click.option(
        "-o",
        "--output",
        "output_file",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Output SAM/BAM file with duplicates flagged",
    )(func)


def metrics_option(func: F) -> F:
    """Metrics table option."""
    return click.option(
        "-M",
        "--metrics",
        "metrics_file",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Write duplication metrics (TSV) to this file",
    )(func)


def config_option(func: F) -> F:
    """Configuration file option."""
    return click.option(
        "-c",
        "--config",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Configuration file (YAML)",
    )(func)


def edit_distance_option(func: F) -> F:
    """UMI edit distance option."""
    return click.option(
        "--edit-distance-to-join",
        type=click.IntRange(min=0),
        default=None,
        help="Maximum Hamming distance for two UMIs to be joined [default: 1]",
    )(func)


def add_inferred_umi_option(func: F) -> F:
    """Inferred UMI on/off switch."""
    return click.option(
        "--add-inferred-umi/--no-add-inferred-umi",
        default=None,
        help="Write the most common UMI of each group to the inferred UMI tag [default: off]",
    )(func)


def umi_tag_options(func: F) -> F:
    """UMI tag options."""
    func = click.option(
        "--umi-tag",
        default=None,
        help="SAM tag holding the raw UMI [default: RX]",
    )(func)
    return click.option(
        "--inferred-umi-tag",
        default=None,
        help="SAM tag receiving the inferred UMI [default: RI]",
    )(func)


def strategy_option(func: F) -> F:
    """Duplicate-set strategy option."""
    from umiaware.modules.strategies import available_strategies

    return click.option(
        "--strategy",
        type=click.Choice(available_strategies()),
        default=None,
        help="Duplicate-set strategy [default: umi-aware]",
    )(func)


def verbose_option(func: F) -> F:
    """Verbosity option."""
    return click.option(
        "-v",
        "--verbose",
        count=True,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG)",
    )(func)


def log_file_option(func: F) -> F:
    """Log file option."""
    return click.option(
        "--log-file",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help="Path for log file output",
    )(func)
