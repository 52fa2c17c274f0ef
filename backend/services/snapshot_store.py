"""Read access to daily snapshots and toots for one account.

The store only fetches: range reads come back ascending by day with both
bounds inclusive, and "no row" is None rather than an exception. Any failure
of the underlying session, including a missed deadline, surfaces as
StorageUnavailable. Retries are left to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from models.daily_account_stats import DailyAccountStats
from models.daily_toot_stats import DailyTootStats
from models.toot import Toot
from services.errors import InvalidArgument, StorageUnavailable
from services.metrics import Metric, SnapshotFamily

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountSnapshot:
    """Point-in-time account totals for one day."""
    account_id: str
    day: date
    followers_count: int
    following_count: int
    statuses_count: int

    family = SnapshotFamily.ACCOUNT

    def value(self, metric: Metric) -> int:
        if metric.family != self.family:
            raise InvalidArgument(f"{metric.value} is not stored in account snapshots")
        return getattr(self, metric.field)


@dataclass(frozen=True)
class CounterSnapshot:
    """Lifetime engagement counters for one day."""
    account_id: str
    day: date
    replies_count: int
    boosts_count: int
    favourites_count: int

    family = SnapshotFamily.TOOT_COUNTERS

    def value(self, metric: Metric) -> int:
        if metric.family != self.family:
            raise InvalidArgument(f"{metric.value} is not stored in toot counter snapshots")
        return getattr(self, metric.field)


DailySnapshot = Union[AccountSnapshot, CounterSnapshot]


@dataclass(frozen=True)
class ContentRecord:
    """A toot with its engagement counters."""
    id: str
    account_id: str
    created_at: datetime
    replies_count: int
    reblogs_count: int
    favourites_count: int
    content: Optional[str] = None
    url: Optional[str] = None


def _to_snapshot(family: SnapshotFamily, row) -> DailySnapshot:
    if family == SnapshotFamily.ACCOUNT:
        return AccountSnapshot(
            account_id=row.account_id,
            day=row.day,
            followers_count=row.followers_count or 0,
            following_count=row.following_count or 0,
            statuses_count=row.statuses_count or 0,
        )
    return CounterSnapshot(
        account_id=row.account_id,
        day=row.day,
        replies_count=row.replies_count or 0,
        boosts_count=row.boosts_count or 0,
        favourites_count=row.favourites_count or 0,
    )


def _to_content(row: Toot) -> ContentRecord:
    return ContentRecord(
        id=row.id,
        account_id=row.account_id,
        created_at=row.created_at,
        replies_count=row.replies_count or 0,
        reblogs_count=row.reblogs_count or 0,
        favourites_count=row.favourites_count or 0,
        content=row.content,
        url=row.url,
    )


_MODELS = {
    SnapshotFamily.ACCOUNT: DailyAccountStats,
    SnapshotFamily.TOOT_COUNTERS: DailyTootStats,
}


class SnapshotStore:
    """Snapshot and toot reader bound to one session."""

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self._db = db
        self._timeout = timeout if timeout is not None else get_settings().storage_timeout_seconds

    async def _scalars(self, query) -> list:
        try:
            result = await asyncio.wait_for(self._db.execute(query), timeout=self._timeout)
            return list(result.scalars())
        except asyncio.TimeoutError as e:
            logger.warning(f"Snapshot query timed out after {self._timeout}s")
            raise StorageUnavailable(f"Storage did not answer within {self._timeout}s") from e
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Snapshot query failed: {e}")
            raise StorageUnavailable(f"Storage query failed: {e}") from e

    async def range_of(
        self,
        family: SnapshotFamily,
        account_id: str,
        date_from: date,
        date_to: date,
    ) -> list[DailySnapshot]:
        """Rows with date_from <= day <= date_to, ascending by day."""
        model = _MODELS[family]
        query = (
            select(model)
            .where(
                model.account_id == account_id,
                model.day >= date_from,
                model.day <= date_to,
            )
            .order_by(model.day.asc())
        )
        rows = await self._scalars(query)
        logger.debug(f"range_of {family.value} {account_id} {date_from}..{date_to}: {len(rows)} rows")
        return [_to_snapshot(family, row) for row in rows]

    async def latest_of(
        self,
        family: SnapshotFamily,
        account_id: str,
        on_or_before: Optional[date] = None,
    ) -> Optional[DailySnapshot]:
        """Row with the greatest day, optionally capped at `on_or_before`."""
        model = _MODELS[family]
        query = select(model).where(model.account_id == account_id)
        if on_or_before is not None:
            query = query.where(model.day <= on_or_before)
        query = query.order_by(model.day.desc()).limit(1)

        rows = await self._scalars(query)
        if not rows:
            return None
        return _to_snapshot(family, rows[0])

    async def content_between(
        self,
        account_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[ContentRecord]:
        """Toots with start <= created_at < end. Either bound may be omitted."""
        query = select(Toot).where(Toot.account_id == account_id)
        if start is not None:
            query = query.where(Toot.created_at >= start)
        if end is not None:
            query = query.where(Toot.created_at < end)

        rows = await self._scalars(query)
        logger.debug(f"content_between {account_id} {start}..{end}: {len(rows)} toots")
        return [_to_content(row) for row in rows]
