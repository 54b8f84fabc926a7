"""Unified constants for umiaware.

Tag names and defaults shared by the splitting core, the duplicate marker and
the configuration layer.
"""

# ================== SAM Tags ==================
# Raw UMI sequence as read from the library
UMI_TAG: str = "RX"

# Consensus UMI written to every read of a UMI group
INFERRED_UMI_TAG: str = "RI"

# CIGAR string of the mate (used for its unclipped 5' position)
MATE_CIGAR_TAG: str = "MC"

# Sum of the mate's base qualities, as written by samtools fixmate -m
MATE_SCORE_TAG: str = "ms"


# ================== Clustering Defaults ==================
# Maximum Hamming distance for two UMIs to be joined directly
DEFAULT_EDIT_DISTANCE_TO_JOIN: int = 1

# Whether to write the consensus UMI to INFERRED_UMI_TAG
DEFAULT_ADD_INFERRED_UMI: bool = False

# Duplicate-set strategy used when none is configured
DEFAULT_STRATEGY: str = "umi-aware"


# ================== Duplicate Marking ==================
# Bases below this quality do not count towards a read's score
MIN_BASE_QUALITY_FOR_SCORE: int = 15


# ================== Output Constants ==================
# Default decimal precision for floating point values in metrics output
OUTPUT_DECIMAL_PRECISION: int = 6
