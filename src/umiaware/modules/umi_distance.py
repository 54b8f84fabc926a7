"""Hamming distance between UMI barcodes."""

from __future__ import annotations

from typing import Optional

from umiaware.exceptions import BarcodeLengthMismatch


def hamming_distance(first: Optional[str], second: Optional[str]) -> int:
    """
    Count the positions at which two barcodes differ.

    Two absent barcodes compare as identical. Barcodes of different lengths,
    or a present barcode compared against an absent one, have no defined
    distance.

    Args:
        first: First barcode (or None)
        second: Second barcode (or None)

    Returns:
        Number of mismatched positions

    Raises:
        BarcodeLengthMismatch: If the barcodes do not have matching lengths
    """
    if first is None and second is None:
        return 0
    if first is None or second is None or len(first) != len(second):
        raise BarcodeLengthMismatch(first, second)
    return sum(1 for a, b in zip(first, second) if a != b)
