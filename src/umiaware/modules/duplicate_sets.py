"""
Duplicate Sets - Positional grouping of alignment records

This module groups coordinate-sorted alignment records into duplicate sets:
records that share reference, unclipped 5' position and strand (and, for
paired reads, the mate's unclipped 5' position and strand) are presumed
PCR or optical duplicates of one another.

Key features:
- DuplicateSet container shared by the positional source, the UMI splitter
  and the duplicate marker
- Clip-aware 5' coordinates so soft-clipped duplicates still group together
- Per-reference buffering so reverse-strand reads sorted by leftmost
  position still meet their duplicates
- Mate 5' ends taken from the MC tag, so clipping on the mate does not
  split duplicate pairs
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Any, Optional, Union

import pysam

from umiaware.constants import MATE_CIGAR_TAG, MATE_SCORE_TAG, MIN_BASE_QUALITY_FOR_SCORE
from umiaware.exceptions import FileFormatError
from umiaware.utils.logging import get_logger

logger = get_logger("duplicate_sets")

# CIGAR operations that do not consume the reference but hide 5' bases
_CLIP_OPS = {4, 5}
# M, D, N, =, X
_REFERENCE_OPS = {0, 2, 3, 7, 8}
_CIGAR_CODES = {op: code for code, op in enumerate("MIDNSHP=X")}
_CIGAR_RE = re.compile(r"(\d+)([MIDNSHP=X])")


class DuplicateSet:
    """An ordered group of records presumed to be duplicates."""

    def __init__(self, records: Optional[Iterable[Any]] = None) -> None:
        self._records: list[Any] = list(records) if records is not None else []

    @property
    def records(self) -> list[Any]:
        return self._records

    @property
    def size(self) -> int:
        return len(self._records)

    def add(self, record: Any) -> None:
        self._records.append(record)

    def representative(self, score: Optional[Callable[[Any], int]] = None) -> Any:
        """Return the highest scoring record (first wins ties).

        ``score`` defaults to ``read_score``.
        """
        if not self._records:
            raise ValueError("Empty duplicate set has no representative")
        score = score or read_score
        best = self._records[0]
        best_score = score(best)
        for record in self._records[1:]:
            current = score(record)
            if current > best_score:
                best, best_score = record, current
        return best

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"DuplicateSet(size={len(self._records)})"


def read_score(record: pysam.AlignedSegment) -> int:
    """Sum of base qualities at or above MIN_BASE_QUALITY_FOR_SCORE."""
    qualities = record.query_qualities
    if qualities is None:
        return 0
    return sum(q for q in qualities if q >= MIN_BASE_QUALITY_FOR_SCORE)


def pair_score(record: pysam.AlignedSegment) -> int:
    """Score of the whole template: the read plus its mate's ``ms`` tag when present."""
    score = read_score(record)
    if has_mapped_mate(record) and record.has_tag(MATE_SCORE_TAG):
        score += int(record.get_tag(MATE_SCORE_TAG))
    return score


def has_mapped_mate(record: pysam.AlignedSegment) -> bool:
    return record.is_paired and not record.mate_is_unmapped


def _clipped_bases(cigar: Iterable[tuple[int, int]]) -> int:
    clipped = 0
    for op, length in cigar:
        if op not in _CLIP_OPS:
            break
        clipped += length
    return clipped


def parse_cigar(cigar_string: str) -> list[tuple[int, int]]:
    """Parse a CIGAR string into pysam-style (operation, length) tuples."""
    return [(_CIGAR_CODES[op], int(length)) for length, op in _CIGAR_RE.findall(cigar_string)]


def unclipped_five_prime(record: pysam.AlignedSegment) -> int:
    """Return the 5' reference coordinate the read would have without clipping."""
    cigar = record.cigartuples or []
    if record.is_reverse:
        return record.reference_end + _clipped_bases(reversed(cigar))
    return record.reference_start - _clipped_bases(cigar)


def mate_unclipped_five_prime(record: pysam.AlignedSegment) -> int:
    """
    Return the mate's unclipped 5' coordinate from the ``MC`` tag.

    Without an ``MC`` tag only the mate's alignment start is known, and that
    start is returned as is.
    """
    start = record.next_reference_start
    if not record.has_tag(MATE_CIGAR_TAG):
        return start
    cigar = parse_cigar(record.get_tag(MATE_CIGAR_TAG))
    if record.mate_is_reverse:
        end = start + sum(length for op, length in cigar if op in _REFERENCE_OPS)
        return end + _clipped_bases(reversed(cigar))
    return start - _clipped_bases(cigar)


def is_duplicate_candidate(record: pysam.AlignedSegment) -> bool:
    """Only primary, mapped alignments take part in duplicate detection."""
    return not (record.is_unmapped or record.is_secondary or record.is_supplementary)


def duplicate_key(record: pysam.AlignedSegment) -> tuple:
    """
    Build the positional key shared by duplicates of ``record``.

    The key holds reference id, unclipped 5' position and strand; reads with a
    mapped mate add the mate's reference id, unclipped 5' position and strand.
    """
    key: tuple = (record.reference_id, unclipped_five_prime(record), record.is_reverse)
    if has_mapped_mate(record):
        key += (record.next_reference_id, mate_unclipped_five_prime(record), record.mate_is_reverse)
    return key


class PositionalDuplicateSetIterator:
    """Yield positional duplicate sets from coordinate-sorted records.

    Records of one reference are buffered, grouped by ``duplicate_key`` and
    emitted in the order of each group's first record. Records that are not
    duplicate candidates form singleton sets.

    Once every set of a reference has been consumed (that is, when the next
    set is requested), ``on_reference_done`` receives that reference's records
    in input order. Callers use it to write records out while only one
    reference is held in memory.

    Raises:
        FileFormatError: If a reference reappears after another one started
    """

    def __init__(
        self,
        records: Iterable[pysam.AlignedSegment],
        close_callback: Optional[Callable[[], None]] = None,
        header: Optional[pysam.AlignmentHeader] = None,
    ) -> None:
        self._close_callback = close_callback
        self._closed = False
        self._sets = self._generate(iter(records))
        self.header = header
        self.on_reference_done: Optional[Callable[[list], None]] = None
        self.sets_yielded = 0
        self.records_read = 0

    @classmethod
    def from_alignment_file(cls, path: Union[str, Path]) -> "PositionalDuplicateSetIterator":
        """Open a coordinate-sorted SAM/BAM file and iterate its duplicate sets."""
        alignment_file = pysam.AlignmentFile(str(path), "r")
        sort_order = alignment_file.header.to_dict().get("HD", {}).get("SO")
        if sort_order not in (None, "coordinate"):
            alignment_file.close()
            raise FileFormatError(
                f"Input must be coordinate sorted, found sort order '{sort_order}': {path}"
            )
        logger.debug(f"Opened {path} for positional grouping")
        return cls(
            alignment_file.fetch(until_eof=True),
            close_callback=alignment_file.close,
            header=alignment_file.header,
        )

    def _flush(self, buffer: dict[tuple, DuplicateSet], records: list) -> Iterator[DuplicateSet]:
        yield from buffer.values()
        if self.on_reference_done is not None and records:
            self.on_reference_done(records)

    def _generate(self, records: Iterator[pysam.AlignedSegment]) -> Iterator[DuplicateSet]:
        buffer: dict[tuple, DuplicateSet] = {}
        reference_records: list = []
        current_reference: Optional[int] = None
        finished_references: set[int] = set()

        for index, record in enumerate(records):
            self.records_read += 1
            if record.reference_id != current_reference:
                if record.reference_id in finished_references:
                    raise FileFormatError(
                        f"Records are not coordinate sorted: reference {record.reference_id} "
                        f"reappears at record {index + 1}"
                    )
                if current_reference is not None:
                    finished_references.add(current_reference)
                yield from self._flush(buffer, reference_records)
                buffer, reference_records = {}, []
                current_reference = record.reference_id

            reference_records.append(record)
            if is_duplicate_candidate(record):
                key = duplicate_key(record)
            else:
                key = ("single", index)
            buffer.setdefault(key, DuplicateSet()).add(record)

        yield from self._flush(buffer, reference_records)

    def __iter__(self) -> "PositionalDuplicateSetIterator":
        return self

    def __next__(self) -> DuplicateSet:
        if self._closed:
            raise StopIteration
        duplicate_set = next(self._sets)
        self.sets_yielded += 1
        return duplicate_set

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._close_callback is not None:
            self._close_callback()

    def __enter__(self) -> "PositionalDuplicateSetIterator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
