"""Duplicate-marking execution helpers for the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from umiaware.config import Config, load_config
from umiaware.exceptions import PipelineError
from umiaware.modules.base import ModuleResult
from umiaware.modules.duplicate_marker import DuplicateMarker
from umiaware.modules.strategies import get_strategy
from umiaware.utils.logging import level_from_verbosity, setup_logging


@dataclass
class RunOptions:
    """Container for command line values; None means use config or default."""

    input_file: Optional[Path] = None
    output_file: Optional[Path] = None
    metrics_file: Optional[Path] = None
    config_path: Optional[Path] = None
    edit_distance_to_join: Optional[int] = None
    add_inferred_umi: Optional[bool] = None
    umi_tag: Optional[str] = None
    inferred_umi_tag: Optional[str] = None
    strategy: Optional[str] = None
    verbose: int = 0
    log_file: Optional[Path] = None


def resolve_config(opts: RunOptions) -> Config:
    """Merge defaults, config file and CLI values (later wins) into a validated Config."""
    cfg = load_config(opts.config_path) if opts.config_path else Config()

    for key in ("input_file", "output_file", "metrics_file"):
        value = getattr(opts, key)
        if value is not None:
            setattr(cfg, key, value)

    for key in ("edit_distance_to_join", "add_inferred_umi", "umi_tag", "inferred_umi_tag", "strategy"):
        value = getattr(opts, key)
        if value is not None:
            setattr(cfg.umi, key, value)

    if opts.log_file is not None:
        cfg.runtime.log_file = opts.log_file

    cfg.validate()
    return cfg


def configure_logging(opts: RunOptions, cfg: Config) -> None:
    """CLI verbosity wins over the config file's log level."""
    if opts.verbose:
        level = level_from_verbosity(opts.verbose)
    else:
        level = logging.getLevelName(str(cfg.runtime.log_level).upper())
    setup_logging(level=level, log_file=cfg.runtime.log_file)


def execute_marking(cfg: Config, logger: logging.Logger) -> ModuleResult:
    """
    Run the duplicate marker for a resolved configuration.

    Raises:
        PipelineError: If the marker reports failure
    """
    strategy = get_strategy(cfg.umi.strategy, **cfg.umi.strategy_params())
    logger.info(
        f"Marking duplicates in {cfg.input_file} with strategy '{cfg.umi.strategy}' "
        f"(edit distance {cfg.umi.edit_distance_to_join})"
    )

    result = DuplicateMarker(strategy=strategy).run(
        input_file=cfg.input_file,
        output_file=cfg.output_file,
        metrics_file=cfg.metrics_file,
    )
    if not result.success:
        raise PipelineError(result.error_message or "Duplicate marking failed")
    return result


def run_from_options(opts: RunOptions, logger: logging.Logger) -> ModuleResult:
    """Resolve configuration, set up logging and run."""
    cfg = resolve_config(opts)
    configure_logging(opts, cfg)
    return execute_marking(cfg, logger)
