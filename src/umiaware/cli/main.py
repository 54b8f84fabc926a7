"""Click application entrypoint for umiaware."""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from types import FrameType
from typing import Optional

import click
from click.core import ParameterSource

from umiaware import __version__
from umiaware.cli.exit_codes import (
    EXIT_ERROR,
    EXIT_SIGINT,
    EXIT_SIGTERM,
    EXIT_SUCCESS,
    EXIT_USAGE,
)
from umiaware.exceptions import UmiAwareError
from umiaware.utils.logging import get_logger

from .commands.config import init_config
from .commands.validate import validate
from .common_options import (
    add_inferred_umi_option,
    config_option,
    edit_distance_option,
    input_option,
    log_file_option,
    metrics_option,
    output_option,
    strategy_option,
    umi_tag_options,
    verbose_option,
)
from .pipeline import RunOptions, run_from_options


def _handle_signal(signum: int, frame: Optional[FrameType]) -> None:
    """Handle interrupt signals for graceful shutdown."""
    sig_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
    click.echo(f"\n{sig_name} received, shutting down...", err=True)
    raise KeyboardInterrupt(sig_name)


def _print_version(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if value and not ctx.resilient_parsing:
        click.echo(f"umiaware {__version__}")
        ctx.exit()


@click.group(
    context_settings=dict(help_option_names=["-h", "--help"]),
    invoke_without_command=True,
)
@click.option(
    "-V",
    "--version",
    is_flag=True,
    is_eager=True,
    expose_value=False,
    callback=_print_version,
    help="Show the version and exit.",
)
@input_option
@output_option
@metrics_option
@config_option
@edit_distance_option
@add_inferred_umi_option
@umi_tag_options
@strategy_option
@verbose_option
@log_file_option
@click.pass_context
def cli(
    ctx: click.Context,
    input_file: Optional[Path],
    output_file: Optional[Path],
    metrics_file: Optional[Path],
    config: Optional[Path],
    edit_distance_to_join: Optional[int],
    add_inferred_umi: Optional[bool],
    umi_tag: Optional[str],
    inferred_umi_tag: Optional[str],
    strategy: Optional[str],
    verbose: int,
    log_file: Optional[Path],
) -> None:
    """umiaware: UMI-aware duplicate marking for coordinate-sorted BAM files.

    Run directly as: umiaware -i <in.bam> -o <out.bam> [options]
    """
    if ctx.invoked_subcommand:
        return

    if config is None and (input_file is None or output_file is None):
        click.echo("Error: --input and --output are required (or provide them via -c)", err=True)
        click.echo("Try 'umiaware --help' for usage.", err=True)
        sys.exit(EXIT_USAGE)

    logger = get_logger("cli")

    # Only an explicit switch overrides the config file
    if ctx.get_parameter_source("add_inferred_umi") is not ParameterSource.COMMANDLINE:
        add_inferred_umi = None

    opts = RunOptions(
        input_file=input_file,
        output_file=output_file,
        metrics_file=metrics_file,
        config_path=config,
        edit_distance_to_join=edit_distance_to_join,
        add_inferred_umi=add_inferred_umi,
        umi_tag=umi_tag,
        inferred_umi_tag=inferred_umi_tag,
        strategy=strategy,
        verbose=verbose,
        log_file=log_file,
    )

    try:
        result = run_from_options(opts, logger)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(EXIT_SIGINT)
    except UmiAwareError as exc:
        logger.error(f"umiaware error: {exc}")
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)

    metrics = result.metrics
    click.echo(f"Output: {result.output_files['alignments']}")
    if "metrics" in result.output_files:
        click.echo(f"Metrics: {result.output_files['metrics']}")
    click.echo(f"records={metrics['total_records']}")
    click.echo(f"positional_sets={metrics['positional_sets']}")
    click.echo(f"output_sets={metrics['output_sets']}")
    click.echo(f"duplicates_marked={metrics['duplicates_marked']}")


cli.add_command(init_config)
cli.add_command(validate)


def main(argv: list[str] | None = None) -> int:
    """Main entry point with signal handling."""
    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        cli(argv)
        return EXIT_SUCCESS
    except KeyboardInterrupt as exc:
        return EXIT_SIGTERM if str(exc) == "SIGTERM" else EXIT_SIGINT
    except SystemExit as exc:
        # Preserve explicit exit codes from cli()
        if exc.code is None:
            return EXIT_SUCCESS
        return exc.code if isinstance(exc.code, int) else EXIT_ERROR
    except Exception as exc:
        click.echo(f"Error: {exc}", err=True)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
