"""Version information for umiaware."""

__version__ = "0.3.0"
__author__ = "umiaware developers"
__license__ = "MIT"
__description__ = "UMI-aware duplicate marking for coordinate-sorted BAM files"
