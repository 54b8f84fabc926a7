"""
UMI Splitter - UMI-aware refinement of positional duplicate sets

Takes the duplicate sets produced by a positional source and splits each one
into UMI groups: reads whose UMIs are connected through chains of UMIs within
``edit_distance_to_join`` of each other stay together, all others are
separated. Optionally the most common UMI of every group is written to the
inferred-UMI tag of its reads.

Processing is lazy: one positional set is fetched only once the groups of the
previous one have been consumed.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from typing import Any

from umiaware.constants import (
    DEFAULT_ADD_INFERRED_UMI,
    DEFAULT_EDIT_DISTANCE_TO_JOIN,
    INFERRED_UMI_TAG,
    UMI_TAG,
)
from umiaware.modules.consensus import assign_consensus_umi
from umiaware.modules.duplicate_sets import DuplicateSet
from umiaware.modules.umi_graph import cluster_barcodes
from umiaware.utils.logging import get_logger

logger = get_logger("umi_splitter")


def split_duplicate_set(
    duplicate_set: DuplicateSet,
    edit_distance_to_join: int = DEFAULT_EDIT_DISTANCE_TO_JOIN,
    add_inferred_umi: bool = DEFAULT_ADD_INFERRED_UMI,
    umi_tag: str = UMI_TAG,
    inferred_umi_tag: str = INFERRED_UMI_TAG,
) -> list[DuplicateSet]:
    """
    Split one positional duplicate set into UMI groups.

    If any record lacks ``umi_tag`` the set is returned unchanged as the only
    group. Otherwise the distinct UMIs (sorted) are clustered and every record
    goes to the group of its UMI; groups are returned in ascending group id and
    keep the input order of their records.

    Raises:
        BarcodeLengthMismatch: If UMIs within the set differ in length
    """
    records = duplicate_set.records
    if any(not record.has_tag(umi_tag) for record in records):
        logger.debug(f"Duplicate set of {len(records)} records has reads without {umi_tag}, kept whole")
        return [duplicate_set]

    umis = [record.get_tag(umi_tag) for record in records]
    groups = cluster_barcodes(sorted(set(umis)), edit_distance_to_join)

    sub_sets = [DuplicateSet() for _ in range(len(set(groups.values())))]
    for record, umi in zip(records, umis):
        sub_sets[groups[umi] - 1].add(record)

    if add_inferred_umi:
        for sub_set in sub_sets:
            assign_consensus_umi(sub_set, umi_tag=umi_tag, inferred_umi_tag=inferred_umi_tag)

    return sub_sets


class UmiAwareDuplicateSetIterator:
    """Iterator over UMI groups of the duplicate sets yielded by ``source``.

    Holds a buffer of groups from the most recent positional set. When the
    buffer is empty the next positional set is fetched, split and buffered;
    iteration ends once the source is exhausted and the buffer drained.

    Closing the iterator closes the source (when it has a ``close`` method).
    Instances are not safe to share between consumers.
    """

    def __init__(
        self,
        source: Iterable[DuplicateSet],
        edit_distance_to_join: int = DEFAULT_EDIT_DISTANCE_TO_JOIN,
        add_inferred_umi: bool = DEFAULT_ADD_INFERRED_UMI,
        umi_tag: str = UMI_TAG,
        inferred_umi_tag: str = INFERRED_UMI_TAG,
    ) -> None:
        if edit_distance_to_join < 0:
            raise ValueError(f"edit_distance_to_join must be >= 0, got {edit_distance_to_join}")
        self._source = source
        self._source_iter: Iterator[DuplicateSet] = iter(source)
        self.edit_distance_to_join = edit_distance_to_join
        self.add_inferred_umi = add_inferred_umi
        self.umi_tag = umi_tag
        self.inferred_umi_tag = inferred_umi_tag
        self._pending: deque[DuplicateSet] = deque()
        self._closed = False

        # Running totals for reporting
        self.input_sets = 0
        self.output_sets = 0
        self.missing_umi_sets = 0

    def __iter__(self) -> "UmiAwareDuplicateSetIterator":
        return self

    def __next__(self) -> DuplicateSet:
        if self._closed:
            raise StopIteration
        while not self._pending:
            # Propagates StopIteration and source errors unchanged
            duplicate_set = next(self._source_iter)
            self._pending.extend(self._process(duplicate_set))
        return self._pending.popleft()

    def _process(self, duplicate_set: DuplicateSet) -> list[DuplicateSet]:
        sub_sets = split_duplicate_set(
            duplicate_set,
            edit_distance_to_join=self.edit_distance_to_join,
            add_inferred_umi=self.add_inferred_umi,
            umi_tag=self.umi_tag,
            inferred_umi_tag=self.inferred_umi_tag,
        )
        self.input_sets += 1
        self.output_sets += len(sub_sets)
        if sub_sets and sub_sets[0] is duplicate_set:
            self.missing_umi_sets += 1
        return sub_sets

    def close(self) -> None:
        """Close the upstream source; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self._pending.clear()
        close = getattr(self._source, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "UmiAwareDuplicateSetIterator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
