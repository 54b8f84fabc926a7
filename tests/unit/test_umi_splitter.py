"""Tests for UMI-aware splitting of duplicate sets."""

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from umiaware.exceptions import BarcodeLengthMismatch
from umiaware.modules.duplicate_sets import DuplicateSet
from umiaware.modules.umi_splitter import UmiAwareDuplicateSetIterator, split_duplicate_set


def _umis(duplicate_set):
    return [record.get_tag("RX") for record in duplicate_set]


class RecordingSource:
    """Iterable of duplicate sets that remembers how far it was read."""

    def __init__(self, sets, fail_at=None):
        self._sets = list(sets)
        self._fail_at = fail_at
        self.pulled = 0
        self.close_calls = 0

    def __iter__(self):
        return self

    def __next__(self):
        if self._fail_at is not None and self.pulled == self._fail_at:
            raise IOError("truncated alignment file")
        if self.pulled >= len(self._sets):
            raise StopIteration
        duplicate_set = self._sets[self.pulled]
        self.pulled += 1
        return duplicate_set

    def close(self):
        self.close_calls += 1


class TestSplitDuplicateSet:
    """Test cases for split_duplicate_set."""

    def test_threshold_one_joins_close_umis(self, make_read):
        reads = [make_read(u) for u in ("AAAA", "AAAA", "AAAT", "TTTT")]
        sub_sets = split_duplicate_set(DuplicateSet(reads), edit_distance_to_join=1)

        assert [len(s) for s in sub_sets] == [3, 1]
        assert _umis(sub_sets[0]) == ["AAAA", "AAAA", "AAAT"]
        assert _umis(sub_sets[1]) == ["TTTT"]

    def test_threshold_zero_groups_exact_values(self, make_read):
        reads = [make_read(u) for u in ("AAAA", "AAAA", "AAAT", "TTTT")]
        sub_sets = split_duplicate_set(DuplicateSet(reads), edit_distance_to_join=0)

        assert sorted(len(s) for s in sub_sets) == [1, 1, 2]
        assert sorted(tuple(_umis(s)) for s in sub_sets) == [
            ("AAAA", "AAAA"),
            ("AAAT",),
            ("TTTT",),
        ]

    def test_missing_umi_keeps_set_whole(self, make_read):
        dup_set = DuplicateSet([make_read("AAAA"), make_read(), make_read("TTTT")])
        sub_sets = split_duplicate_set(dup_set, edit_distance_to_join=0)

        assert len(sub_sets) == 1
        assert sub_sets[0] is dup_set
        assert len(sub_sets[0]) == 3

    def test_missing_umi_skips_consensus(self, make_read):
        reads = [make_read("AAAA"), make_read()]
        split_duplicate_set(DuplicateSet(reads), add_inferred_umi=True)
        assert not any(read.has_tag("RI") for read in reads)

    def test_length_mismatch_raises(self, make_read):
        dup_set = DuplicateSet([make_read("AC"), make_read("ACG")])
        with pytest.raises(BarcodeLengthMismatch) as exc_info:
            split_duplicate_set(dup_set)
        assert {exc_info.value.first, exc_info.value.second} == {"AC", "ACG"}

    def test_consensus_written_to_group(self, make_read):
        reads = [make_read(u) for u in ("AAAA", "AAAA", "AAAT")]
        sub_sets = split_duplicate_set(DuplicateSet(reads), add_inferred_umi=True)

        assert len(sub_sets) == 1
        assert [read.get_tag("RI") for read in reads] == ["AAAA"] * 3

    def test_consensus_per_group(self, make_read):
        reads = [make_read(u) for u in ("AAAA", "TTTT", "AAAT", "TTTA", "TTTT")]
        split_duplicate_set(DuplicateSet(reads), edit_distance_to_join=1, add_inferred_umi=True)
        assert reads[0].get_tag("RI") == reads[2].get_tag("RI")
        assert [reads[i].get_tag("RI") for i in (1, 3, 4)] == ["TTTT"] * 3

    def test_no_inferred_tag_by_default(self, make_read):
        reads = [make_read("AAAA"), make_read("AAAA")]
        split_duplicate_set(DuplicateSet(reads))
        assert not any(read.has_tag("RI") for read in reads)

    def test_partition_is_complete(self, make_read):
        umis = ["ACGT", "ACGA", "TTTT", "GGGG", "GGGC", "ACGT", "CCCC"]
        reads = [make_read(u) for u in umis]
        sub_sets = split_duplicate_set(DuplicateSet(reads), edit_distance_to_join=1)

        emitted = [read for s in sub_sets for read in s]
        assert len(emitted) == len(reads)
        assert {id(r) for r in emitted} == {id(r) for r in reads}
        assert all(len(s) > 0 for s in sub_sets)

    def test_input_order_kept_within_group(self, make_read):
        reads = [make_read(u) for u in ("AAAT", "TTTT", "AAAA", "AAAT")]
        sub_sets = split_duplicate_set(DuplicateSet(reads), edit_distance_to_join=1)
        group = next(s for s in sub_sets if len(s) == 3)
        assert group.records == [reads[0], reads[2], reads[3]]

    def test_groups_are_far_apart(self, make_read):
        from umiaware.modules.umi_distance import hamming_distance

        reads = [make_read(u) for u in ("AAAA", "AACC", "CCCC", "AAAC")]
        sub_sets = split_duplicate_set(DuplicateSet(reads), edit_distance_to_join=1)
        for i, first in enumerate(sub_sets):
            for second in sub_sets[i + 1:]:
                for a in _umis(first):
                    for b in _umis(second):
                        assert hamming_distance(a, b) > 1

    def test_custom_umi_tag(self, make_read):
        reads = [make_read(), make_read(), make_read()]
        for read, umi in zip(reads, ("AAAA", "CCCC", "AAAA")):
            read.set_tag("BX", umi)
        sub_sets = split_duplicate_set(DuplicateSet(reads), edit_distance_to_join=0, umi_tag="BX")
        assert sorted(len(s) for s in sub_sets) == [1, 2]

    def test_single_record(self, make_read):
        read = make_read("ACGT")
        sub_sets = split_duplicate_set(DuplicateSet([read]))
        assert [s.records for s in sub_sets] == [[read]]


class TestUmiAwareDuplicateSetIterator:
    """Test cases for UmiAwareDuplicateSetIterator."""

    def test_drains_each_set_before_next(self, make_read):
        first = DuplicateSet([make_read(u) for u in ("AAAA", "TTTT")])
        second = DuplicateSet([make_read("CCCC")])
        source = RecordingSource([first, second])
        iterator = UmiAwareDuplicateSetIterator(source, edit_distance_to_join=0)

        assert source.pulled == 0
        next(iterator)
        assert source.pulled == 1
        next(iterator)
        assert source.pulled == 1
        next(iterator)
        assert source.pulled == 2
        with pytest.raises(StopIteration):
            next(iterator)

    def test_output_order_follows_source(self, make_read):
        first = DuplicateSet([make_read("AAAA")])
        second = DuplicateSet([make_read("CCCC"), make_read("GGGG")])
        iterator = UmiAwareDuplicateSetIterator([first, second], edit_distance_to_join=0)
        assert [_umis(s) for s in iterator] == [["AAAA"], ["CCCC"], ["GGGG"]]

    def test_empty_source(self):
        assert list(UmiAwareDuplicateSetIterator([])) == []

    def test_empty_set_skipped(self, make_read):
        tail = DuplicateSet([make_read("AAAA")])
        iterator = UmiAwareDuplicateSetIterator([DuplicateSet(), tail])
        assert [s.records for s in iterator] == [tail.records]

    def test_missing_umi_set_passed_through(self, make_read):
        dup_set = DuplicateSet([make_read("AAAA"), make_read(), make_read("TTTT")])
        iterator = UmiAwareDuplicateSetIterator([dup_set])
        assert list(iterator) == [dup_set]
        assert iterator.missing_umi_sets == 1

    def test_counters(self, make_read):
        sets = [
            DuplicateSet([make_read(u) for u in ("AAAA", "AAAA", "AAAT", "TTTT")]),
            DuplicateSet([make_read("ACGT"), make_read()]),
        ]
        iterator = UmiAwareDuplicateSetIterator(sets, edit_distance_to_join=1)
        assert len(list(iterator)) == 3
        assert iterator.input_sets == 2
        assert iterator.output_sets == 3
        assert iterator.missing_umi_sets == 1

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            UmiAwareDuplicateSetIterator([], edit_distance_to_join=-1)

    def test_length_mismatch_propagates(self, make_read):
        iterator = UmiAwareDuplicateSetIterator([DuplicateSet([make_read("AC"), make_read("ACG")])])
        with pytest.raises(BarcodeLengthMismatch):
            next(iterator)

    def test_source_error_propagates(self, make_read):
        source = RecordingSource([DuplicateSet([make_read("AAAA")])], fail_at=1)
        iterator = UmiAwareDuplicateSetIterator(source)
        next(iterator)
        with pytest.raises(IOError, match="truncated"):
            next(iterator)

    def test_close_closes_source_once(self, make_read):
        source = RecordingSource([DuplicateSet([make_read("AAAA")])])
        iterator = UmiAwareDuplicateSetIterator(source)
        iterator.close()
        iterator.close()
        assert source.close_calls == 1
        assert list(iterator) == []

    def test_close_discards_buffered_sets(self, make_read):
        dup_set = DuplicateSet([make_read(u) for u in ("AAAA", "CCCC", "GGGG")])
        iterator = UmiAwareDuplicateSetIterator([dup_set], edit_distance_to_join=0)
        next(iterator)
        iterator.close()
        with pytest.raises(StopIteration):
            next(iterator)

    def test_close_without_source_close(self):
        iterator = UmiAwareDuplicateSetIterator([])
        iterator.close()

    def test_context_manager(self, make_read):
        source = RecordingSource([DuplicateSet([make_read("AAAA")])])
        with UmiAwareDuplicateSetIterator(source) as iterator:
            assert len(list(iterator)) == 1
        assert source.close_calls == 1

    def test_independent_iterators(self, make_read):
        first = UmiAwareDuplicateSetIterator(
            [DuplicateSet([make_read(u) for u in ("AAAA", "TTTT")])], edit_distance_to_join=0
        )
        second = UmiAwareDuplicateSetIterator(
            [DuplicateSet([make_read(u) for u in ("CCCC", "CCCA")])], edit_distance_to_join=1
        )
        assert len(next(second)) == 2
        assert len(next(first)) == 1
        assert len(next(first)) == 1
