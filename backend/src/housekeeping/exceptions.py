"""Housekeeping error types."""

from typing import Optional


class HousekeepingError(Exception):
    """Base exception for housekeeping operations."""
    pass


class HousekeepingConfigError(HousekeepingError):
    """Raised when housekeeping thresholds are missing or invalid.

    Always raised before the sweeper touches the store.
    """
    pass


class SweepPassError(HousekeepingError):
    """Raised when a sweep pass fails against the store.

    The failing pass has been rolled back; passes that finished earlier in
    the same sweep stay committed.

    Attributes:
        sweep_pass: Name of the pass that failed
        cause: Underlying exception
    """

    def __init__(self, sweep_pass: str, cause: Optional[BaseException] = None):
        self.sweep_pass = sweep_pass
        self.cause = cause
        message = f"Housekeeping pass '{sweep_pass}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
