"""Latest known value of a metric, shown next to its chart."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from services.metrics import Metric, parse_selector
from services.snapshot_store import SnapshotStore


@dataclass(frozen=True)
class TotalSnapshot:
    amount: int
    day: date


async def get_total(store: SnapshotStore, account_id: str, metric: Metric | str) -> Optional[TotalSnapshot]:
    """Most recent stored value, or None if the account has no rows yet."""
    metric = parse_selector(Metric, metric, "metric")
    snapshot = await store.latest_of(metric.family, account_id)
    if snapshot is None:
        return None
    return TotalSnapshot(amount=snapshot.value(metric), day=snapshot.day)
