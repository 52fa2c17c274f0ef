from datetime import date

import pytest

from services.errors import InvalidArgument
from services.metrics import Metric
from services.totals import TotalSnapshot, get_total
from tests.factories import UnusedStore, add_account_rows, add_counter_rows


async def test_total_is_latest_row(db_session, store, account) -> None:
    await add_account_rows(db_session, account.id, {
        date(2026, 10, 1): {"followers": 10, "statuses": 40},
        date(2026, 10, 3): {"followers": 14, "statuses": 44},
        date(2026, 10, 2): {"followers": 12, "statuses": 42},
    })

    assert await get_total(store, account.id, Metric.FOLLOWERS) == TotalSnapshot(amount=14, day=date(2026, 10, 3))
    assert await get_total(store, account.id, "statuses") == TotalSnapshot(amount=44, day=date(2026, 10, 3))


async def test_total_reads_the_metric_family(db_session, store, account) -> None:
    await add_counter_rows(db_session, account.id, {date(2026, 10, 2): {"boosts": 321}})

    assert await get_total(store, account.id, Metric.BOOSTS) == TotalSnapshot(amount=321, day=date(2026, 10, 2))
    assert await get_total(store, account.id, Metric.FOLLOWERS) is None


async def test_total_is_absent_without_rows(store, account) -> None:
    assert await get_total(store, account.id, Metric.REPLIES) is None


async def test_total_rejects_unknown_metric() -> None:
    with pytest.raises(InvalidArgument):
        await get_total(UnusedStore(), "acc-1", "views")
