"""
Duplicate-set strategies for the duplicate marker.

A strategy turns the positional duplicate sets of an alignment file into the
sets the marker actually flags. Strategies are looked up by name so the
marker can be configured rather than subclassed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from typing import Any

from umiaware.constants import (
    DEFAULT_ADD_INFERRED_UMI,
    DEFAULT_EDIT_DISTANCE_TO_JOIN,
    INFERRED_UMI_TAG,
    UMI_TAG,
)
from umiaware.exceptions import ConfigurationError
from umiaware.modules.duplicate_sets import DuplicateSet
from umiaware.modules.umi_splitter import UmiAwareDuplicateSetIterator


class DuplicateSetStrategy(ABC):
    """Base class for duplicate-set strategies."""

    name: str = ""

    @abstractmethod
    def wrap(self, source: Iterable[DuplicateSet]) -> Iterator[DuplicateSet]:
        """
        Produce the duplicate sets to mark from positional ``source`` sets.

        Closing the returned iterator (when it supports ``close``) must close
        ``source``.
        """
        pass


class PositionalStrategy(DuplicateSetStrategy):
    """Mark duplicates by position only."""

    name = "positional"

    def wrap(self, source: Iterable[DuplicateSet]) -> Iterator[DuplicateSet]:
        return iter(source)


class UmiAwareStrategy(DuplicateSetStrategy):
    """Split positional duplicate sets by UMI similarity before marking."""

    name = "umi-aware"

    def __init__(
        self,
        edit_distance_to_join: int = DEFAULT_EDIT_DISTANCE_TO_JOIN,
        add_inferred_umi: bool = DEFAULT_ADD_INFERRED_UMI,
        umi_tag: str = UMI_TAG,
        inferred_umi_tag: str = INFERRED_UMI_TAG,
    ) -> None:
        self.edit_distance_to_join = edit_distance_to_join
        self.add_inferred_umi = add_inferred_umi
        self.umi_tag = umi_tag
        self.inferred_umi_tag = inferred_umi_tag

    def wrap(self, source: Iterable[DuplicateSet]) -> UmiAwareDuplicateSetIterator:
        return UmiAwareDuplicateSetIterator(
            source,
            edit_distance_to_join=self.edit_distance_to_join,
            add_inferred_umi=self.add_inferred_umi,
            umi_tag=self.umi_tag,
            inferred_umi_tag=self.inferred_umi_tag,
        )


_STRATEGIES: dict[str, type[DuplicateSetStrategy]] = {
    PositionalStrategy.name: PositionalStrategy,
    UmiAwareStrategy.name: UmiAwareStrategy,
}


def available_strategies() -> list[str]:
    """List registered strategy names."""
    return sorted(_STRATEGIES)


def get_strategy(name: str, **params: Any) -> DuplicateSetStrategy:
    """
    Create a registered strategy.

    UMI parameters are passed to the umi-aware strategy; the positional
    strategy ignores them.

    Raises:
        ConfigurationError: If ``name`` is not registered
    """
    try:
        strategy_cls = _STRATEGIES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown duplicate-set strategy '{name}'. Available: {', '.join(available_strategies())}"
        ) from None

    if strategy_cls is UmiAwareStrategy:
        return UmiAwareStrategy(**params)
    return strategy_cls()
