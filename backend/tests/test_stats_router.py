import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config import get_settings
from database import get_db
from main import app
from models import Account
from routers import stats as stats_router_module
from tests.factories import FailingSession, add_account_rows, add_counter_rows, add_toot


@pytest_asyncio.fixture
async def client(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


def _today():
    return datetime.now(timezone.utc).date()


async def test_health(client) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_app_is_titled_from_settings(client) -> None:
    response = await client.get("/")

    assert response.json()["name"] == get_settings().app_name
    assert app.title == get_settings().app_name


async def test_chart_returns_raw_follower_points(client, db_session, account) -> None:
    today = _today()
    await add_account_rows(db_session, account.id, {
        today - timedelta(days=2): {"followers": 10},
        today - timedelta(days=1): {"followers": 12},
    })

    response = await client.get(f"/api/accounts/{account.id}/followers/chart", params={"timeframe": "last30days"})

    assert response.status_code == 200
    assert response.json() == [
        {"label": (today - timedelta(days=2)).isoformat(), "value": 10},
        {"label": (today - timedelta(days=1)).isoformat(), "value": 12},
    ]


async def test_chart_returns_boost_deltas(client, db_session, account) -> None:
    today = _today()
    await add_counter_rows(db_session, account.id, {
        today - timedelta(days=3): {"boosts": 10},
        today - timedelta(days=2): {"boosts": 7},
        today - timedelta(days=1): {"boosts": 20},
    })

    response = await client.get(f"/api/accounts/{account.id}/boosts/chart")

    assert response.status_code == 200
    assert [point["value"] for point in response.json()] == [0, 13]


async def test_csv_download(client, db_session, account) -> None:
    today = _today()
    await add_account_rows(db_session, account.id, {today - timedelta(days=1): {"followers": 42}})

    response = await client.get(f"/api/accounts/{account.id}/followers/csv", params={"timeframe": "last30days"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert f"followers-{account.id}-last30days.csv" in response.headers["content-disposition"]
    assert response.text == f"Date;Followers\n{(today - timedelta(days=1)).isoformat()};42\n"


async def test_kpi_shape_and_undefined_trend(client, account) -> None:
    response = await client.get(f"/api/accounts/{account.id}/replies/kpi/week")

    assert response.status_code == 200
    body = response.json()
    assert body["metric"] == "replies"
    assert body["period"] == "week"
    assert body["current_period"] is None
    assert body["previous_period"] is None
    assert body["trend"] is None
    assert 0 <= body["current_period_progress"] <= 6


async def test_total_and_missing_total(client, db_session, account) -> None:
    missing = await client.get(f"/api/accounts/{account.id}/favourites/total")
    assert missing.status_code == 404

    await add_counter_rows(db_session, account.id, {_today(): {"favourites": 77}})
    response = await client.get(f"/api/accounts/{account.id}/favourites/total")

    assert response.status_code == 200
    assert response.json() == {"metric": "favourites", "amount": 77, "day": _today().isoformat()}


async def test_top_toots(client, db_session, account) -> None:
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    await add_toot(db_session, account.id, "t1", yesterday, reblogs=2, replies=1)
    await add_toot(db_session, account.id, "t2", yesterday - timedelta(hours=1), reblogs=7)
    await add_toot(db_session, account.id, "t3", yesterday, favourites=5)

    response = await client.get(f"/api/accounts/{account.id}/toots/top", params={"ranking": "top", "limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["timeframe"] == "last30days"
    assert [(toot["id"], toot["rank"]) for toot in body["toots"]] == [("t2", 7), ("t1", 3)]


@pytest.mark.parametrize(
    "path",
    [
        "/likes/chart",
        "/boosts/kpi/decade",
        "/impressions/total",
    ],
)
async def test_unknown_selectors_are_bad_requests(client, account, path: str) -> None:
    response = await client.get(f"/api/accounts/{account.id}{path}")

    assert response.status_code == 400


async def test_unknown_ranking_is_bad_request(client, account) -> None:
    response = await client.get(f"/api/accounts/{account.id}/toots/top", params={"ranking": "likes"})

    assert response.status_code == 400


async def test_unknown_account(client) -> None:
    response = await client.get("/api/accounts/nope/followers/total")

    assert response.status_code == 404


async def test_account_with_invalid_timezone(client, db_session) -> None:
    db_session.add(Account(id="acc-bad", timezone="Atlantis/Capital"))
    await db_session.commit()

    response = await client.get("/api/accounts/acc-bad/followers/chart")

    assert response.status_code == 400
    assert "Atlantis/Capital" in response.json()["detail"]


async def test_storage_failure_is_service_unavailable() -> None:
    async def failing_db():
        yield FailingSession()

    app.dependency_overrides[get_db] = failing_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
            response = await http.get("/api/accounts/acc-1/followers/total")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503


class BrokenConnectionSession:
    async def execute(self, *_, **__):
        raise ConnectionResetError("connection reset by peer")


class SlowSession:
    async def execute(self, *_, **__):
        await asyncio.sleep(5)


@pytest.mark.parametrize("session_cls", [BrokenConnectionSession, SlowSession])
async def test_account_lookup_failures_are_service_unavailable(monkeypatch, session_cls) -> None:
    monkeypatch.setattr(stats_router_module.settings, "storage_timeout_seconds", 0.01)

    async def broken_db():
        yield session_cls()

    app.dependency_overrides[get_db] = broken_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
            response = await http.get("/api/accounts/acc-1/followers/kpi/month")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
