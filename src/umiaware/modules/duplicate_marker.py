"""
Duplicate Marker - Flag PCR/optical duplicates in an alignment file

Reads a coordinate-sorted SAM/BAM file, groups records into positional
duplicate sets, hands those sets to the configured duplicate-set strategy
(positional only, or UMI-aware splitting) and flags every template of a set
except its representative with the duplicate bit. Both reads of a pair always
carry the same flag: the decision taken for the first read seen is applied to
its mate.

Records are streamed: each reference is written to the output, in input order
and with the input header, as soon as all of its sets have been marked. A
one-row metrics table can be written alongside.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd
import pysam

from umiaware.constants import OUTPUT_DECIMAL_PRECISION
from umiaware.exceptions import FileFormatError
from umiaware.modules.base import ModuleBase, ModuleResult
from umiaware.modules.duplicate_sets import (
    DuplicateSet,
    PositionalDuplicateSetIterator,
    has_mapped_mate,
    is_duplicate_candidate,
    pair_score,
)
from umiaware.modules.strategies import DuplicateSetStrategy, UmiAwareStrategy
from umiaware.utils.logging import LogTemplates

_WRITE_MODES = {".bam": "wb", ".sam": "w"}


@dataclass
class DuplicationMetrics:
    """Statistics for one duplicate-marking run."""

    total_records: int = 0
    candidate_records: int = 0
    positional_sets: int = 0
    output_sets: int = 0
    missing_umi_sets: int = 0
    duplicates_marked: int = 0

    @property
    def duplication_fraction(self) -> float:
        if self.candidate_records == 0:
            return 0.0
        return self.duplicates_marked / self.candidate_records

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["duplication_fraction"] = round(self.duplication_fraction, OUTPUT_DECIMAL_PRECISION)
        return data


def write_metrics(metrics: DuplicationMetrics, path: Union[str, Path]) -> Path:
    """Write metrics as a one-row tab-separated table."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame([metrics.to_dict()]).to_csv(path, sep="\t", index=False)
    return path


def mark_duplicate_set(duplicate_set: DuplicateSet, pair_decisions: dict[str, bool]) -> int:
    """
    Flag every template of ``duplicate_set`` except the best one.

    ``pair_decisions`` maps the name of each pair whose first read has been
    decided to that read's duplicate flag. Mates found in it take the stored
    flag (and the entry is dropped); a set that holds the mate of a kept pair
    keeps that mate as its representative. Otherwise the representative is the
    undecided record with the highest ``pair_score``.

    Returns:
        Number of records flagged as duplicates
    """
    def decided(record: pysam.AlignedSegment) -> bool:
        return has_mapped_mate(record) and record.query_name in pair_decisions

    undecided = [record for record in duplicate_set if not decided(record)]
    representative = next(
        (r for r in duplicate_set if decided(r) and not pair_decisions[r.query_name]),
        None,
    )
    if representative is None and undecided:
        representative = DuplicateSet(undecided).representative(score=pair_score)

    flagged = 0
    for record in duplicate_set:
        if decided(record):
            record.is_duplicate = pair_decisions.pop(record.query_name)
        else:
            record.is_duplicate = record is not representative
            if has_mapped_mate(record):
                pair_decisions[record.query_name] = record.is_duplicate
        flagged += record.is_duplicate
    return flagged


class DuplicateMarker(ModuleBase):
    """Mark duplicates using a pluggable duplicate-set strategy."""

    def __init__(self, strategy: Optional[DuplicateSetStrategy] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.strategy = strategy or UmiAwareStrategy()

    def validate_inputs(self, **kwargs: Any) -> bool:
        input_file = kwargs.get("input_file")
        output_file = kwargs.get("output_file")
        if input_file is None or output_file is None:
            raise ValueError("input_file and output_file are required")

        self.validate_input_file(input_file, "Alignment")
        output_path = Path(output_file)
        if output_path.suffix.lower() not in _WRITE_MODES:
            raise FileFormatError(
                f"Unsupported output format '{output_path.suffix}': use one of "
                f"{', '.join(sorted(_WRITE_MODES))}"
            )
        self.validate_output_dir(output_path.parent)
        return True

    def execute(self, **kwargs: Any) -> ModuleResult:
        input_file = Path(kwargs["input_file"])
        output_file = Path(kwargs["output_file"])
        metrics_file = kwargs.get("metrics_file")

        result = ModuleResult(success=False, module_name=self.name)
        mode = _WRITE_MODES[output_file.suffix.lower()]

        source = PositionalDuplicateSetIterator.from_alignment_file(input_file)
        with source, pysam.AlignmentFile(str(output_file), mode, header=source.header) as out:

            def write_reference(records: list[pysam.AlignedSegment]) -> None:
                for record in records:
                    out.write(record)

            source.on_reference_done = write_reference
            metrics = self.mark_sets(source)

        self.logger.info(LogTemplates.FILE_LOADED.format(count=metrics.total_records, path=input_file))
        self.logger.info(
            LogTemplates.FILE_CREATED.format(path=output_file, size=output_file.stat().st_size)
        )

        result.add_output("alignments", output_file)
        if metrics_file:
            result.add_output("metrics", write_metrics(metrics, metrics_file))

        for key, value in metrics.to_dict().items():
            result.add_metric(key, value)
        if metrics.missing_umi_sets:
            result.add_warning(
                f"{metrics.missing_umi_sets} duplicate sets contained reads without a UMI "
                "and were marked by position only"
            )

        self.logger.info(
            LogTemplates.SPLIT_STATS.format(
                input_sets=metrics.positional_sets, output_sets=metrics.output_sets
            )
        )
        self.logger.info(
            LogTemplates.MARKING_STATS.format(
                duplicates=metrics.duplicates_marked,
                total=metrics.total_records,
                percent=metrics.duplication_fraction * 100,
            )
        )
        result.success = True
        return result

    def mark_duplicates(self, records: Iterable[pysam.AlignedSegment]) -> DuplicationMetrics:
        """Flag duplicates in coordinate-sorted ``records`` in place."""
        return self.mark_sets(PositionalDuplicateSetIterator(records))

    def mark_sets(self, source: PositionalDuplicateSetIterator) -> DuplicationMetrics:
        """
        Flag duplicates in the sets produced by the strategy from ``source``.

        Every record gets its duplicate flag rewritten, so stale flags from an
        earlier run are cleared. Closes ``source`` when done.
        """
        metrics = DuplicationMetrics()
        pair_decisions: dict[str, bool] = {}
        duplicate_sets = self.strategy.wrap(source)

        try:
            for duplicate_set in duplicate_sets:
                metrics.output_sets += 1
                if not is_duplicate_candidate(duplicate_set.records[0]):
                    for record in duplicate_set:
                        record.is_duplicate = False
                    continue
                metrics.candidate_records += len(duplicate_set)
                metrics.duplicates_marked += mark_duplicate_set(duplicate_set, pair_decisions)
        finally:
            close = getattr(duplicate_sets, "close", None)
            if close is not None:
                close()
            source.close()

        if pair_decisions:
            self.logger.debug(f"{len(pair_decisions)} pairs had no mate among the candidates")

        metrics.total_records = source.records_read
        metrics.positional_sets = source.sets_yielded
        metrics.missing_umi_sets = getattr(duplicate_sets, "missing_umi_sets", 0)
        return metrics
