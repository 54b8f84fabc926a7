"""Custom exceptions for umiaware."""


class UmiAwareError(Exception):
    """Base exception for all umiaware errors."""

    pass


class ConfigurationError(UmiAwareError):
    """Raised when configuration is invalid or missing."""

    pass


class PipelineError(UmiAwareError):
    """Raised when a pipeline module fails."""

    pass


class FileFormatError(UmiAwareError):
    """Raised when file format is invalid or unsupported."""

    pass


class BarcodeLengthMismatch(UmiAwareError):
    """Raised when two UMI barcodes of different lengths are compared."""

    def __init__(self, first=None, second=None, message=""):
        """Initialize BarcodeLengthMismatch with the offending barcodes.

        Args:
            first: First barcode of the comparison
            second: Second barcode of the comparison
            message: Optional override for the error message
        """
        super().__init__(
            message or f"Barcode {first} and {second} do not have matching lengths."
        )
        self.first = first
        self.second = second
