"""Configuration management for umiaware."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from umiaware.constants import (
    DEFAULT_ADD_INFERRED_UMI,
    DEFAULT_EDIT_DISTANCE_TO_JOIN,
    DEFAULT_STRATEGY,
    INFERRED_UMI_TAG,
    UMI_TAG,
)
from umiaware.exceptions import ConfigurationError

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class RuntimeConfig:
    """Runtime configuration."""

    log_level: str = "WARNING"
    log_file: Optional[Path] = None


@dataclass
class UmiConfig:
    """UMI clustering configuration."""

    edit_distance_to_join: int = DEFAULT_EDIT_DISTANCE_TO_JOIN
    add_inferred_umi: bool = DEFAULT_ADD_INFERRED_UMI
    umi_tag: str = UMI_TAG
    inferred_umi_tag: str = INFERRED_UMI_TAG
    # 'umi-aware' | 'positional'
    strategy: str = DEFAULT_STRATEGY

    def strategy_params(self) -> Dict[str, Any]:
        """Keyword arguments for the UMI-aware strategy."""
        return {
            "edit_distance_to_join": self.edit_distance_to_join,
            "add_inferred_umi": self.add_inferred_umi,
            "umi_tag": self.umi_tag,
            "inferred_umi_tag": self.inferred_umi_tag,
        }


@dataclass
class Config:
    """Main configuration class."""

    # Required parameters (set via CLI or config file)
    input_file: Optional[Path] = None
    output_file: Optional[Path] = None
    metrics_file: Optional[Path] = None

    # Sub-configurations
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    umi: UmiConfig = field(default_factory=UmiConfig)

    # Convenience properties
    @property
    def edit_distance_to_join(self) -> int:
        return self.umi.edit_distance_to_join

    @edit_distance_to_join.setter
    def edit_distance_to_join(self, value: int) -> None:
        self.umi.edit_distance_to_join = value

    @property
    def add_inferred_umi(self) -> bool:
        return self.umi.add_inferred_umi

    @add_inferred_umi.setter
    def add_inferred_umi(self, value: bool) -> None:
        self.umi.add_inferred_umi = value

    def validate(self) -> None:
        """Validate configuration."""
        from umiaware.modules.strategies import available_strategies

        if not self.input_file:
            raise ConfigurationError("Input file is required")
        if not self.output_file:
            raise ConfigurationError("Output file is required")
        if not Path(self.input_file).exists():
            raise ConfigurationError(f"Input file not found: {self.input_file}")

        umi = self.umi
        if isinstance(umi.edit_distance_to_join, bool) or not isinstance(
            umi.edit_distance_to_join, int
        ):
            raise ConfigurationError("umi.edit_distance_to_join must be an integer")
        if umi.edit_distance_to_join < 0:
            raise ConfigurationError("umi.edit_distance_to_join must be >= 0")
        if not isinstance(umi.add_inferred_umi, bool):
            raise ConfigurationError(
                f"umi.add_inferred_umi must be true or false, got {umi.add_inferred_umi!r}"
            )
        for name in ("umi_tag", "inferred_umi_tag"):
            tag = getattr(umi, name)
            if not isinstance(tag, str) or len(tag) != 2:
                raise ConfigurationError(f"umi.{name} must be a two-character SAM tag, got {tag!r}")
        if umi.umi_tag == umi.inferred_umi_tag:
            raise ConfigurationError("umi.umi_tag and umi.inferred_umi_tag must differ")
        if umi.strategy not in available_strategies():
            raise ConfigurationError(
                f"Unknown strategy '{umi.strategy}'. Available: {', '.join(available_strategies())}"
            )
        if str(self.runtime.log_level).upper() not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid runtime.log_level: {self.runtime.log_level}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""

        def path_to_str(obj):
            if isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: path_to_str(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [path_to_str(item) for item in obj]
            return obj

        return path_to_str(asdict(self))


_TOP_LEVEL_KEYS = {"input_file", "output_file", "metrics_file", "runtime", "umi"}


def load_config(path: Path) -> Config:
    """Load configuration from YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {path}")

    unknown = sorted(set(data) - _TOP_LEVEL_KEYS)
    if unknown:
        raise ConfigurationError("Unsupported config option(s): " + ", ".join(unknown))

    cfg = Config()

    for key in ("input_file", "output_file", "metrics_file"):
        if data.get(key) is not None:
            setattr(cfg, key, Path(data[key]))

    if data.get("runtime"):
        for key, value in data["runtime"].items():
            if hasattr(cfg.runtime, key):
                if key == "log_file" and value:
                    value = Path(value)
                setattr(cfg.runtime, key, value)

    if data.get("umi"):
        for key, value in data["umi"].items():
            if not hasattr(cfg.umi, key):
                raise ConfigurationError(f"Unsupported umi option: {key}")
            setattr(cfg.umi, key, value)

    return cfg


def save_config(cfg: Config, path: Path) -> None:
    """Save configuration to YAML file."""
    data = cfg.to_dict()
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
