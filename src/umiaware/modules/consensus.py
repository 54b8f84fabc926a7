"""Consensus (inferred) UMI assignment for UMI groups."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Optional

from umiaware.constants import INFERRED_UMI_TAG, UMI_TAG
from umiaware.modules.duplicate_sets import DuplicateSet


def consensus_umi(barcodes: Iterable[str]) -> Optional[str]:
    """Return the most common barcode.

    Ties go to the barcode seen first. Returns None for an empty input.
    """
    counts = Counter(barcodes)
    if not counts:
        return None
    # most_common keeps insertion order among equal counts
    return counts.most_common(1)[0][0]


def assign_consensus_umi(
    duplicate_set: DuplicateSet,
    umi_tag: str = UMI_TAG,
    inferred_umi_tag: str = INFERRED_UMI_TAG,
) -> Optional[str]:
    """
    Stamp the group's most common raw UMI onto every record.

    Args:
        duplicate_set: One UMI group
        umi_tag: Tag holding the raw UMI
        inferred_umi_tag: Tag receiving the consensus UMI

    Returns:
        The consensus UMI written, or None for an empty set
    """
    inferred = consensus_umi(record.get_tag(umi_tag) for record in duplicate_set)
    if inferred is None:
        return None
    for record in duplicate_set:
        record.set_tag(inferred_umi_tag, inferred, value_type="Z")
    return inferred
