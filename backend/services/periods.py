"""Calendar periods and timeframes in an account's local timezone.

Weeks start on Monday (ISO). "Days since period start" counts whole local
days already elapsed: 0 on the first day of the period, 6 on a Sunday.
Day boundaries are local midnights, so a DST switch day is one calendar day
even though it lasts 23 or 25 hours.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from services.errors import InvalidArgument, InvalidTimezone
from services.metrics import Period, parse_selector

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
DEFAULT_TIMEFRAME = "last30days"


@lru_cache(maxsize=512)
def load_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name, accepting spaces for underscores."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidTimezone(str(name))
    normalized = name.strip().replace(" ", "_")
    try:
        return ZoneInfo(normalized)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezone(name) from e


def _require_aware(now: datetime) -> datetime:
    if now.tzinfo is None or now.utcoffset() is None:
        raise InvalidArgument("Reference instant must be timezone-aware")
    return now


def local_today(now: datetime, timezone: str) -> date:
    """Calendar date of `now` in `timezone`."""
    return _require_aware(now).astimezone(load_timezone(timezone)).date()


def local_midnight(day: date, timezone: str) -> datetime:
    """UTC instant of local midnight starting `day`."""
    local = datetime.combine(day, time.min, tzinfo=load_timezone(timezone))
    return local.astimezone(dt_timezone.utc)


def period_start(period: Period | str, day: date) -> date:
    """First calendar day of the period containing `day`."""
    period = parse_selector(Period, period, "period")
    if period == Period.WEEK:
        return day - timedelta(days=day.weekday())
    if period == Period.MONTH:
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def previous_period_start(period: Period | str, day: date) -> date:
    """First calendar day of the period before the one containing `day`."""
    period = parse_selector(Period, period, "period")
    return period_start(period, period_start(period, day) - ONE_DAY)


def days_since_period_start(period: Period | str, now: datetime, timezone: str) -> int:
    """Whole local days elapsed in the current period as of `now`."""
    today = local_today(now, timezone)
    return (today - period_start(period, today)).days


@dataclass(frozen=True)
class Timeframe:
    """Resolved range: inclusive local days plus the matching half-open instants."""
    name: str
    first_day: date
    last_day: date
    start: datetime
    end: datetime


def _timeframe(name: str, first_day: date, last_day: date, timezone: str) -> Timeframe:
    return Timeframe(
        name=name,
        first_day=first_day,
        last_day=last_day,
        start=local_midnight(first_day, timezone),
        end=local_midnight(last_day + ONE_DAY, timezone),
    )


def resolve_timeframe(name: str | None, timezone: str, now: datetime) -> Timeframe:
    """Turn a symbolic timeframe such as "thismonth" into concrete bounds.

    Unknown names fall back to the last 30 days.
    """
    today = local_today(now, timezone)
    key = (name or DEFAULT_TIMEFRAME).strip().lower()

    if key in ("thisweek", "thismonth", "thisyear"):
        period = Period(key[len("this"):])
        return _timeframe(key, period_start(period, today), today, timezone)

    if key in ("lastweek", "lastmonth", "lastyear"):
        period = Period(key[len("last"):])
        end = period_start(period, today)
        return _timeframe(key, previous_period_start(period, today), end - ONE_DAY, timezone)

    if key == "last7days":
        return _timeframe(key, today - timedelta(days=7), today - ONE_DAY, timezone)

    if key != DEFAULT_TIMEFRAME:
        logger.debug(f"Unknown timeframe {name!r}, using {DEFAULT_TIMEFRAME}")
    return _timeframe(DEFAULT_TIMEFRAME, today - timedelta(days=30), today, timezone)
