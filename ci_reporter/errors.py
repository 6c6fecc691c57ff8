"""Errors raised by the attempt store and reducer."""


class ReporterError(Exception):
    """Base class for reporter errors."""


class OrderingError(ReporterError):
    """Raised when an attempt index does not follow the recorded attempts."""


class InvariantViolation(ReporterError):
    """Raised when reduction meets a test record with no attempts."""


class StoreClosedError(ReporterError):
    """Raised when an attempt is recorded after the run was finalized."""
