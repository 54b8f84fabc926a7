"""Pytest configuration for umiaware tests."""

import logging
import sys
from pathlib import Path

import pysam
import pytest

# Add src directory to Python path
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


HEADER_DICT = {
    "HD": {"VN": "1.6", "SO": "coordinate"},
    "SQ": [{"SN": "chr1", "LN": 100000}, {"SN": "chr2", "LN": 100000}],
}


@pytest.fixture(autouse=True)
def reset_logging_after_test():
    """Reset umiaware logger state after each test.

    setup_logging() sets propagate=False, which would break caplog in
    subsequent tests.
    """
    yield
    app_logger = logging.getLogger("umiaware")
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
    app_logger.setLevel(logging.NOTSET)
    app_logger.propagate = True


@pytest.fixture
def header():
    return pysam.AlignmentHeader.from_dict(HEADER_DICT)


@pytest.fixture
def make_read(header):
    """Factory for in-memory alignment records."""
    counter = {"n": 0}

    def _make(
        umi=None,
        pos=1000,
        reference_id=0,
        reverse=False,
        cigar="40M",
        quality=30,
        name=None,
        flag=None,
    ):
        counter["n"] += 1
        read = pysam.AlignedSegment(header)
        read.query_name = name or f"read{counter['n']}"
        read.query_sequence = "ACGT" * 10
        read.flag = flag if flag is not None else (16 if reverse else 0)
        read.reference_id = reference_id
        read.reference_start = pos
        read.mapping_quality = 60
        read.cigarstring = cigar
        read.query_qualities = pysam.qualitystring_to_array(chr(quality + 33) * 40)
        if umi is not None:
            read.set_tag("RX", umi)
        return read

    return _make


@pytest.fixture
def write_bam(header, tmp_path):
    """Write records to a BAM file and return its path."""

    def _write(records, name="input.bam"):
        path = tmp_path / name
        with pysam.AlignmentFile(str(path), "wb", header=header) as out:
            for record in records:
                out.write(record)
        return path

    return _write


@pytest.fixture
def make_pair(make_read):
    """Factory for an FR pair: read 1 forward at ``pos``, read 2 reverse at ``mate_pos``."""

    def _make(
        name,
        umi=None,
        pos=1000,
        mate_pos=1200,
        qualities=(30, 30),
        cigars=("40M", "40M"),
        mate_cigar_tags=True,
    ):
        # paired, proper pair, mate reverse, first in pair / paired, proper pair, reverse, second
        read1 = make_read(umi, pos=pos, cigar=cigars[0], quality=qualities[0], name=name, flag=99)
        read2 = make_read(umi, pos=mate_pos, cigar=cigars[1], quality=qualities[1], name=name, flag=147)
        for read, mate in ((read1, read2), (read2, read1)):
            read.next_reference_id = mate.reference_id
            read.next_reference_start = mate.reference_start
            if mate_cigar_tags:
                read.set_tag("MC", mate.cigarstring)
        return read1, read2

    return _make
