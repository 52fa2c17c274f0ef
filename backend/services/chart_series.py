"""Chart series for a metric over a range of local calendar days."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from services.errors import InvalidArgument
from services.metrics import LabelMode, Metric, SeriesMode, parse_selector
from services.periods import ONE_DAY, load_timezone
from services.snapshot_store import DailySnapshot, SnapshotStore

logger = logging.getLogger(__name__)

# Fixed English month abbreviations so labels never depend on the process locale
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class ChartPoint:
    label: str
    value: Optional[int]


def format_day_label(day: date, label_mode: LabelMode) -> str:
    """Render a local calendar day as a chart label."""
    if label_mode == LabelMode.ISO:
        return day.isoformat()
    return f"{_MONTHS[day.month - 1]} {day.day}, {day.year}"


def raw_points(snapshots: Sequence[DailySnapshot], metric: Metric, label_mode: LabelMode) -> list[ChartPoint]:
    """One point per row, carrying the stored value unchanged."""
    return [
        ChartPoint(label=format_day_label(snapshot.day, label_mode), value=snapshot.value(metric))
        for snapshot in snapshots
    ]


def delta_points(
    snapshots: Sequence[DailySnapshot],
    metric: Metric,
    label_mode: LabelMode,
    first_day: Optional[date] = None,
) -> list[ChartPoint]:
    """Day-over-day increase of a lifetime counter.

    The first row only serves as a baseline. Drops are clamped to 0.
    Points before `first_day` are not emitted.
    """
    points: list[ChartPoint] = []
    previous: Optional[DailySnapshot] = None

    for snapshot in snapshots:
        value = None
        if previous is not None:
            value = max(0, snapshot.value(metric) - previous.value(metric))
        previous = snapshot

        if value is None or (first_day is not None and snapshot.day < first_day):
            continue
        points.append(ChartPoint(label=format_day_label(snapshot.day, label_mode), value=value))

    return points


async def build_series(
    store: SnapshotStore,
    account_id: str,
    metric: Metric | str,
    timezone: str,
    date_from: date,
    date_to: date,
    mode: Optional[SeriesMode | str] = None,
    label_mode: LabelMode | str = LabelMode.ISO,
) -> list[ChartPoint]:
    """Chart points for `metric` on local days date_from..date_to (inclusive).

    Delta metrics read one extra day before `date_from` as the baseline for
    the first point. Days without a computable value are left out, so the
    result can be shorter than the range.
    """
    metric = parse_selector(Metric, metric, "metric")
    label_mode = parse_selector(LabelMode, label_mode, "label mode")
    load_timezone(timezone)

    expected_mode = metric.series_mode
    if mode is not None and parse_selector(SeriesMode, mode, "series mode") != expected_mode:
        raise InvalidArgument(
            f"{metric.value} is a {metric.family.value} metric and only supports {expected_mode.value} mode"
        )
    if date_from > date_to:
        raise InvalidArgument(f"date_from {date_from} is after date_to {date_to}")

    if expected_mode == SeriesMode.RAW:
        snapshots = await store.range_of(metric.family, account_id, date_from, date_to)
        points = raw_points(snapshots, metric, label_mode)
    else:
        snapshots = await store.range_of(metric.family, account_id, date_from - ONE_DAY, date_to)
        points = delta_points(snapshots, metric, label_mode, first_day=date_from)

    logger.debug(f"Built {len(points)} {metric.value} points for account {account_id}")
    return points
