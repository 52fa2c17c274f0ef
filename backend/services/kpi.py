"""Period KPIs: current vs previous week/month/year for one metric.

A period's total is the change in the stored value between the day before the
period starts and the period's last day (today for the running period).
"Value at day D" is the latest row on or before D. A missing boundary row
means insufficient history and yields None, never 0.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_timezone
from typing import Optional

from services.metrics import Metric, Period, parse_selector
from services.periods import ONE_DAY, days_since_period_start, local_today, period_start, previous_period_start
from services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KpiSummary:
    previous_period: Optional[int]
    current_period_progress: Optional[int]
    current_period: Optional[int]

    @property
    def trend(self) -> Optional[float]:
        return kpi_trend(self)


def kpi_trend(summary: KpiSummary) -> Optional[float]:
    """Extrapolated change of the running period against the previous one.

    The current total is scaled to a per-elapsed-day rate before comparing:
    (current / progress - previous) / previous. Undefined (None) whenever any
    input is missing or zero.
    """
    current = summary.current_period
    progress = summary.current_period_progress
    previous = summary.previous_period
    if not current or not progress or not previous:
        return None
    return (current / progress - previous) / previous


def _difference(end_value: Optional[int], start_value: Optional[int]) -> Optional[int]:
    if end_value is None or start_value is None:
        return None
    # Counter resets and follower losses both floor at 0
    return max(0, end_value - start_value)


async def _value_at(store: SnapshotStore, metric: Metric, account_id: str, day: date) -> Optional[int]:
    snapshot = await store.latest_of(metric.family, account_id, on_or_before=day)
    if snapshot is None:
        return None
    return snapshot.value(metric)


async def compute_kpi(
    store: SnapshotStore,
    account_id: str,
    timezone: str,
    period: Period | str,
    metric: Metric | str,
    now: Optional[datetime] = None,
) -> KpiSummary:
    """KPI summary for the running `period` in the account's timezone."""
    period = parse_selector(Period, period, "period")
    metric = parse_selector(Metric, metric, "metric")
    now = now or datetime.now(dt_timezone.utc)

    elapsed = days_since_period_start(period, now, timezone)
    today = local_today(now, timezone)
    current_start = period_start(period, today)
    previous_start = previous_period_start(period, today)

    value_today = await _value_at(store, metric, account_id, today)
    value_before_current = await _value_at(store, metric, account_id, current_start - ONE_DAY)
    value_before_previous = await _value_at(store, metric, account_id, previous_start - ONE_DAY)

    summary = KpiSummary(
        previous_period=_difference(value_before_current, value_before_previous),
        current_period_progress=elapsed,
        current_period=_difference(value_today, value_before_current),
    )
    logger.debug(
        f"KPI {metric.value}/{period.value} for account {account_id}: "
        f"current={summary.current_period} previous={summary.previous_period} elapsed={elapsed}"
    )
    return summary
