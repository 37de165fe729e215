"""Error types raised by the tracking and backup engine."""


class CalorieTrackerError(Exception):
    """Base class for all engine errors."""


class InvalidAmountError(CalorieTrackerError, ValueError):
    """Raised when an amount cannot be used as a scaling divisor or target.

    Callers recover by supplying a corrected amount.
    """


class MalformedBackupError(CalorieTrackerError):
    """Raised when a backup document cannot be parsed or is unversioned."""


class UnsupportedVersionError(MalformedBackupError):
    """Raised when a backup declares a schema version this codec cannot read."""

    def __init__(self, version: int) -> None:
        super().__init__(f"Unsupported backup version: {version}")
        self.version = version


class StorageFailureError(CalorieTrackerError):
    """Raised when the persistence layer rejects a write."""
