"""Errors raised by the stats engine.

Missing history is not an error: services return None for it.
"""


class StatsError(Exception):
    """Base class for stats engine failures."""


class InvalidTimezone(StatsError, ValueError):
    """Unknown IANA timezone identifier."""

    def __init__(self, timezone: str):
        self.timezone = timezone
        super().__init__(f"Unknown timezone: {timezone!r}")


class InvalidArgument(StatsError, ValueError):
    """Bad selector, limit or date range. Raised before any storage call."""


class StorageUnavailable(StatsError):
    """The snapshot store failed or did not answer in time."""
