"""
Shared plumbing for umiaware processing modules.

A module validates its keyword inputs, does its work in ``execute`` and
reports through a ``ModuleResult``; ``run`` wraps the two with timing and
logging and turns any exception into a failed result.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from umiaware.utils.logging import LogTemplates, get_logger


@dataclass
class ModuleResult:
    """Outcome of one module run: produced files, metrics and warnings."""

    success: bool
    module_name: str
    output_files: dict[str, Path] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    error_message: Optional[str] = None
    execution_time: float = 0.0

    def add_output(self, key: str, path: Union[str, Path]) -> None:
        self.output_files[key] = Path(path)

    def add_metric(self, key: str, value: Any) -> None:
        self.metrics[key] = value

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)


class ModuleBase(ABC):
    """Validate-then-execute skeleton shared by processing modules."""

    def __init__(
        self,
        name: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.name = name or type(self).__name__
        self.logger = logger or get_logger(self.name)

    def validate_input_file(self, file_path: Union[str, Path], file_type: str = "input") -> Path:
        """
        Check that ``file_path`` is an existing regular file.

        Empty files are accepted with a warning.

        Raises:
            FileNotFoundError: If nothing exists at the path
            ValueError: If the path is a directory or other non-file
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"{file_type} file not found: {path}")
        if not path.is_file():
            raise ValueError(f"{file_type} is not a file: {path}")
        if path.stat().st_size == 0:
            self.logger.warning(f"{file_type} file is empty: {path}")
        return path

    def validate_output_dir(self, output_dir: Union[str, Path]) -> Path:
        path = Path(output_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @abstractmethod
    def validate_inputs(self, **kwargs: Any) -> bool:
        """Raise if the keyword inputs cannot be processed."""

    @abstractmethod
    def execute(self, **kwargs: Any) -> ModuleResult:
        """Do the module's work on already validated inputs."""

    def _report(self, result: ModuleResult) -> None:
        if result.success:
            self.logger.info(
                LogTemplates.MODULE_SUCCESS.format(
                    module_name=self.name, duration=result.execution_time
                )
            )
        else:
            self.logger.error(
                LogTemplates.MODULE_FAILURE.format(module_name=self.name, error=result.error_message)
            )
        for warning in result.warnings:
            self.logger.warning(warning)

    def run(self, **kwargs: Any) -> ModuleResult:
        """Validate, execute and time the module; never raises."""
        started = time.time()
        self.logger.info(LogTemplates.MODULE_START.format(module_name=self.name))

        try:
            self.validate_inputs(**kwargs)
            result = self.execute(**kwargs)
        except Exception as e:
            self.logger.debug(f"{self.name} raised", exc_info=True)
            result = ModuleResult(success=False, module_name=self.name, error_message=str(e))

        result.module_name = self.name
        result.execution_time = time.time() - started
        self._report(result)
        return result
