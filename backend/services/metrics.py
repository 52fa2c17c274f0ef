"""Metric selectors shared by the stats services.

Each metric belongs to exactly one snapshot family, and the family decides how
its daily rows are read: account snapshots are plotted as-is, lifetime
counters are differenced day over day.
"""

import enum
from typing import TypeVar

from services.errors import InvalidArgument


class SnapshotFamily(str, enum.Enum):
    """Kind of daily row a metric is stored in."""
    ACCOUNT = "account"              # point-in-time totals
    TOOT_COUNTERS = "toot_counters"  # lifetime cumulative counters


class SeriesMode(str, enum.Enum):
    """How a chart series is derived from daily rows."""
    RAW = "raw"
    DELTA = "delta"


class LabelMode(str, enum.Enum):
    """Chart label format."""
    LONG = "long"  # "Oct 19, 2026"
    ISO = "iso"    # "2026-10-19"


class Period(str, enum.Enum):
    """Calendar period used for KPIs."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Metric(str, enum.Enum):
    """A single stored field that can be charted or summarized."""
    FOLLOWERS = "followers"
    FOLLOWING = "following"
    STATUSES = "statuses"
    REPLIES = "replies"
    BOOSTS = "boosts"
    FAVOURITES = "favourites"

    @property
    def family(self) -> SnapshotFamily:
        return _METRIC_FIELDS[self][0]

    @property
    def field(self) -> str:
        return _METRIC_FIELDS[self][1]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def series_mode(self) -> SeriesMode:
        if self.family == SnapshotFamily.TOOT_COUNTERS:
            return SeriesMode.DELTA
        return SeriesMode.RAW


_METRIC_FIELDS: dict[Metric, tuple[SnapshotFamily, str]] = {
    Metric.FOLLOWERS: (SnapshotFamily.ACCOUNT, "followers_count"),
    Metric.FOLLOWING: (SnapshotFamily.ACCOUNT, "following_count"),
    Metric.STATUSES: (SnapshotFamily.ACCOUNT, "statuses_count"),
    Metric.REPLIES: (SnapshotFamily.TOOT_COUNTERS, "replies_count"),
    Metric.BOOSTS: (SnapshotFamily.TOOT_COUNTERS, "boosts_count"),
    Metric.FAVOURITES: (SnapshotFamily.TOOT_COUNTERS, "favourites_count"),
}

E = TypeVar("E", bound=enum.Enum)


def parse_selector(enum_cls: type[E], value: E | str, what: str) -> E:
    """Coerce a string or enum member into `enum_cls`, raising InvalidArgument."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(str(member.value) for member in enum_cls)
        raise InvalidArgument(f"Unknown {what}: {value!r} (expected one of {choices})") from None
