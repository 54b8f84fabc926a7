"""Validation utilities for umiaware."""

from __future__ import annotations

import importlib
from typing import List


def validate_installation() -> List[str]:
    """
    Validate umiaware installation and dependencies.

    Returns:
        List of validation issues (empty if all good)
    """
    issues = []

    required_modules = ["pysam", "networkx", "pandas", "yaml", "click"]

    for module in required_modules:
        try:
            importlib.import_module(module)
        except ImportError:
            issues.append(f"Missing Python module: {module}")

    try:
        from umiaware.config import Config  # noqa: F401
        from umiaware.modules.duplicate_marker import DuplicateMarker  # noqa: F401
        from umiaware.modules.umi_splitter import UmiAwareDuplicateSetIterator  # noqa: F401
    except ImportError as e:
        issues.append(f"umiaware module import error: {e}")

    return issues
