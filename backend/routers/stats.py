"""Stats router - charts, KPIs, totals and top toots for one account."""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import get_db
from middleware.rate_limit import limiter
from models.account import Account
from services.chart_series import build_series
from services.csv_export import export_series_csv
from services.errors import InvalidArgument, InvalidTimezone, StatsError, StorageUnavailable
from services.kpi import compute_kpi
from services.metrics import LabelMode, Metric, Period, parse_selector
from services.periods import load_timezone, resolve_timeframe
from services.ranking import RankBy, top_content
from services.snapshot_store import SnapshotStore
from services.totals import get_total

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/accounts/{account_id}", tags=["stats"])
settings = get_settings()


# ============== Response Models ==============

class ChartPointResponse(BaseModel):
    label: str
    value: int


class KpiResponse(BaseModel):
    metric: str
    period: str
    previous_period: Optional[int]
    current_period_progress: Optional[int]
    current_period: Optional[int]
    trend: Optional[float]


class TotalResponse(BaseModel):
    metric: str
    amount: int
    day: date


class RankedTootResponse(BaseModel):
    id: str
    content: Optional[str]
    url: Optional[str]
    created_at: datetime
    replies_count: int
    reblogs_count: int
    favourites_count: int
    rank: int


class TopTootsResponse(BaseModel):
    timeframe: str
    ranking: str
    toots: list[RankedTootResponse]


# ============== Dependencies ==============

async def get_account(
    account_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Account:
    """Load the account and make sure its timezone is usable."""
    query = select(Account).where(Account.id == account_id)
    try:
        result = await asyncio.wait_for(db.execute(query), timeout=settings.storage_timeout_seconds)
    except (asyncio.TimeoutError, SQLAlchemyError, OSError) as e:
        logger.warning(f"Account lookup failed for {account_id}: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable") from e
    account = result.scalar_one_or_none()
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")

    try:
        load_timezone(account.timezone)
    except InvalidTimezone as e:
        logger.warning(f"Account {account.id} has an invalid timezone: {account.timezone!r}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    return account


def _parse(enum_cls, value, what: str):
    try:
        return parse_selector(enum_cls, value, what)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _http_error(error: StatsError) -> HTTPException:
    """Translate a stats engine error into an HTTP error."""
    if isinstance(error, StorageUnavailable):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage unavailable")
    return HTTPException(status_code=400, detail=str(error))


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ============== Endpoints ==============

@router.get("/toots/top", response_model=TopTootsResponse)
@limiter.limit(settings.stats_rate_limit)
async def get_top_toots(
    request: Request,  # Required for rate limiting - must be named 'request'
    account: Annotated[Account, Depends(get_account)],
    db: Annotated[AsyncSession, Depends(get_db)],
    ranking: str = Query(RankBy.TOP.value),
    timeframe: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
):
    """
    Get the account's best performing toots.

    - ranking: top (boosts + replies), replies, boosts or favourites
    - timeframe: thisweek, lastmonth, last7days, ... (default last30days)
    - limit: number of toots, capped at the configured maximum
    """
    rank_by = _parse(RankBy, ranking, "ranking")
    limit = min(limit or settings.top_toots_default_limit, settings.top_toots_max_limit)

    try:
        frame = resolve_timeframe(timeframe, account.timezone, _now())
        ranked = await top_content(
            SnapshotStore(db), account.id, rank_by,
            date_from=frame.start, date_to=frame.end, limit=limit,
        )
    except StatsError as e:
        raise _http_error(e) from e

    logger.info(f"Top toots for account {account.id}: {len(ranked)} by {rank_by.value} ({frame.name})")
    return TopTootsResponse(
        timeframe=frame.name,
        ranking=rank_by.value,
        toots=[
            RankedTootResponse(
                id=item.toot.id,
                content=item.toot.content,
                url=item.toot.url,
                created_at=item.toot.created_at,
                replies_count=item.toot.replies_count,
                reblogs_count=item.toot.reblogs_count,
                favourites_count=item.toot.favourites_count,
                rank=item.rank,
            )
            for item in ranked
        ],
    )


@router.get("/{metric}/chart", response_model=list[ChartPointResponse])
@limiter.limit(settings.stats_rate_limit)
async def get_chart(
    request: Request,
    metric: str,
    account: Annotated[Account, Depends(get_account)],
    db: Annotated[AsyncSession, Depends(get_db)],
    timeframe: Optional[str] = None,
    labels: str = Query(LabelMode.ISO.value, pattern="^(iso|long)$"),
):
    """
    Get daily chart points for a metric.

    Follower/following/status counts are plotted as stored; replies, boosts
    and favourites as day-over-day gains.
    """
    metric = _parse(Metric, metric, "metric")

    try:
        frame = resolve_timeframe(timeframe, account.timezone, _now())
        points = await build_series(
            SnapshotStore(db), account.id, metric, account.timezone,
            frame.first_day, frame.last_day, label_mode=labels,
        )
    except StatsError as e:
        raise _http_error(e) from e

    return [ChartPointResponse(label=point.label, value=point.value) for point in points]


@router.get("/{metric}/csv")
@limiter.limit(settings.stats_rate_limit)
async def download_chart_csv(
    request: Request,
    metric: str,
    account: Annotated[Account, Depends(get_account)],
    db: Annotated[AsyncSession, Depends(get_db)],
    timeframe: Optional[str] = None,
):
    """
    Download the chart series as a semicolon separated CSV file.
    """
    metric = _parse(Metric, metric, "metric")

    try:
        frame = resolve_timeframe(timeframe, account.timezone, _now())
        points = await build_series(
            SnapshotStore(db), account.id, metric, account.timezone,
            frame.first_day, frame.last_day,
        )
    except StatsError as e:
        raise _http_error(e) from e

    filename = f"{metric.value}-{account.id}-{frame.name}.csv"
    return Response(
        content=export_series_csv(points, metric),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )


@router.get("/{metric}/kpi/{period}", response_model=KpiResponse)
@limiter.limit(settings.stats_rate_limit)
async def get_kpi(
    request: Request,
    metric: str,
    period: str,
    account: Annotated[Account, Depends(get_account)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Get the running week/month/year total against the previous one.

    trend is null when there is not enough history to compare.
    """
    metric = _parse(Metric, metric, "metric")
    period = _parse(Period, period, "period")

    try:
        summary = await compute_kpi(SnapshotStore(db), account.id, account.timezone, period, metric, now=_now())
    except StatsError as e:
        raise _http_error(e) from e

    return KpiResponse(
        metric=metric.value,
        period=period.value,
        previous_period=summary.previous_period,
        current_period_progress=summary.current_period_progress,
        current_period=summary.current_period,
        trend=summary.trend,
    )


@router.get("/{metric}/total", response_model=TotalResponse)
@limiter.limit(settings.stats_rate_limit)
async def get_metric_total(
    request: Request,
    metric: str,
    account: Annotated[Account, Depends(get_account)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Get the latest stored value of a metric and the day it was recorded.
    """
    metric = _parse(Metric, metric, "metric")

    try:
        total = await get_total(SnapshotStore(db), account.id, metric)
    except StatsError as e:
        raise _http_error(e) from e

    if total is None:
        raise HTTPException(status_code=404, detail="No data yet")

    return TotalResponse(metric=metric.value, amount=total.amount, day=total.day)
