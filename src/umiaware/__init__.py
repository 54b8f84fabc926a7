"""umiaware: UMI-aware splitting of positional duplicate sets."""

from umiaware.__version__ import __version__
from umiaware.exceptions import BarcodeLengthMismatch, UmiAwareError

__all__ = ["__version__", "BarcodeLengthMismatch", "UmiAwareError"]
