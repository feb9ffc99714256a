"""Dashboard aggregate tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.dashboard import router as dashboard_router
from olimpo.dashboard.service import (
    DASHBOARD_CACHE_KEY,
    SPANISH_MONTHS,
    month_start,
    one_month_before,
    percent_change,
)
from olimpo.db.models import User
from tests.conftest import make_user


class TestDateHelpers:
    def test_month_start_same_month(self):
        moment = datetime(2025, 3, 22, 15, 30, tzinfo=timezone.utc)
        assert month_start(moment) == datetime(2025, 3, 1, tzinfo=timezone.utc)

    def test_month_start_crosses_year(self):
        moment = datetime(2025, 2, 10, tzinfo=timezone.utc)
        assert month_start(moment, 3) == datetime(2024, 11, 1, tzinfo=timezone.utc)
        assert month_start(moment, 14) == datetime(2023, 12, 1, tzinfo=timezone.utc)

    def test_month_start_forward(self):
        moment = datetime(2025, 12, 5, tzinfo=timezone.utc)
        assert month_start(moment, -1) == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_one_month_before_clamps(self):
        assert one_month_before(datetime(2025, 3, 31)) == datetime(2025, 2, 28)
        assert one_month_before(datetime(2025, 1, 15)) == datetime(2024, 12, 15)


class TestPercentChange:
    def test_growth(self):
        assert percent_change(15, 10) == 50.0

    def test_decline(self):
        assert percent_change(5, 10) == -50.0

    def test_from_zero_is_full_growth(self):
        assert percent_change(3, 0) == 100.0
        assert percent_change(0, 0) == 100.0


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the stats cache."""

    def __init__(self, *, broken: bool = False) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.broken = broken

    async def get(self, key: str) -> str | None:
        if self.broken:
            msg = "redis down"
            raise RedisConnectionError(msg)
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        if self.broken:
            msg = "redis down"
            raise RedisConnectionError(msg)
        self.store[key] = value
        self.ttls[key] = ttl


async def _seed(client: AsyncClient, admin_headers: dict[str, str], member: User) -> None:
    await client.post(
        "/api/memberships",
        headers=admin_headers,
        json={"user_id": member.id, "type": "monthly", "start_date": date.today().isoformat(), "price": 15000},
    )
    await client.post(
        "/api/memberships",
        headers=admin_headers,
        json={
            "user_id": member.id,
            "type": "annual",
            "start_date": (date.today() - timedelta(days=400)).isoformat(),
            "price": 120000,
        },
    )
    await client.post("/api/memberships/check-expired", headers=admin_headers)
    await client.post("/api/attendance", headers=admin_headers, json={"user_id": member.id})
    post = await client.post(
        "/api/blog",
        headers=admin_headers,
        json={"title": "Consejos de hidratación", "content": "Tomá agua antes, durante y después.", "status": "published"},
    )
    await client.get(f"/api/blog/slug/{post.json()['slug']}")


@pytest.mark.asyncio
async def test_dashboard_requires_admin(client: AsyncClient, member_headers: dict[str, str]) -> None:
    assert (await client.get("/api/dashboard/stats")).status_code == 401
    assert (await client.get("/api/dashboard/stats", headers=member_headers)).status_code == 403


@pytest.mark.asyncio
async def test_stats_payload(
    client: AsyncClient, admin_headers: dict[str, str], member_user: User
) -> None:
    await _seed(client, admin_headers, member_user)

    response = await client.get("/api/dashboard/stats", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()

    memberships = data["memberships"]
    assert memberships["total"] == 2
    assert memberships["active"] == 1
    assert memberships["expired"] == 1
    assert memberships["pending"] == 0
    assert memberships["byType"] == {"monthly": 1, "annual": 1}
    assert memberships["revenueCurrentMonth"] == 135000.0

    attendance = data["attendance"]
    assert attendance["totalToday"] == 1
    assert attendance["totalWeek"] == 1
    assert attendance["totalMonth"] == 1
    assert attendance["averagePerDay"] == pytest.approx(1 / 30)
    assert len(attendance["peakHours"]) == 5
    assert attendance["peakHours"][0] == {"hour": datetime.now(timezone.utc).hour, "count": 1}

    blog = data["blog"]
    assert blog["totalPosts"] == 1
    assert blog["totalViews"] == 1
    assert blog["mostViewedPosts"][0]["title"] == "Consejos de hidratación"

    assert data["newUsers"] == {"count": 2, "percentChange": 100.0}


@pytest.mark.asyncio
async def test_section_endpoints(client: AsyncClient, admin_headers: dict[str, str], member_user: User) -> None:
    await _seed(client, admin_headers, member_user)

    assert (await client.get("/api/dashboard/memberships", headers=admin_headers)).json()["total"] == 2
    assert (await client.get("/api/dashboard/attendance", headers=admin_headers)).json()["totalToday"] == 1
    assert (await client.get("/api/dashboard/blog", headers=admin_headers)).json()["totalViews"] == 1
    assert (await client.get("/api/dashboard/users", headers=admin_headers)).json()["count"] == 2


@pytest.mark.asyncio
async def test_monthly_revenue_series(
    client: AsyncClient, admin_headers: dict[str, str], member_user: User
) -> None:
    await _seed(client, admin_headers, member_user)

    series = (await client.get("/api/dashboard/revenue", headers=admin_headers)).json()
    assert len(series) == 12
    now = datetime.now(timezone.utc)
    assert series[-1] == {"month": SPANISH_MONTHS[now.month - 1], "revenue": 135000.0}
    assert series[0]["month"] == SPANISH_MONTHS[month_start(now, 11).month - 1]
    assert sum(p["revenue"] for p in series[:-1]) == 0


@pytest.mark.asyncio
async def test_daily_attendance_series(
    client: AsyncClient, admin_headers: dict[str, str], member_user: User
) -> None:
    await _seed(client, admin_headers, member_user)

    series = (await client.get("/api/dashboard/attendance/daily", headers=admin_headers)).json()
    assert len(series) == 30
    today = datetime.now(timezone.utc)
    assert series[-1] == {"date": today.strftime("%d/%m"), "count": 1}
    assert series[0]["date"] == (today - timedelta(days=29)).strftime("%d/%m")
    assert sum(p["count"] for p in series) == 1


@pytest.mark.asyncio
async def test_new_user_change_against_previous_month(
    client: AsyncClient, admin_headers: dict[str, str], db_session: AsyncSession
) -> None:
    """Four sign-ups last month and one (the admin) this month is a 75% drop."""
    last_month = month_start(datetime.now(timezone.utc), 1) + timedelta(days=2)
    for i in range(4):
        user = await make_user(f"viejo{i}@example.com")
        await db_session.execute(update(User).where(User.id == user.id).values(created_at=last_month))
    await db_session.commit()

    response = await client.get("/api/dashboard/users", headers=admin_headers)
    assert response.json() == {"count": 1, "percentChange": -75.0}


@pytest.mark.asyncio
async def test_stats_cached_in_redis(
    client: AsyncClient, admin_headers: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    fake = FakeRedis()
    monkeypatch.setattr(dashboard_router, "get_optional_redis", lambda: fake)

    first = await client.get("/api/dashboard/stats", headers=admin_headers)
    assert DASHBOARD_CACHE_KEY in fake.store
    assert fake.ttls[DASHBOARD_CACHE_KEY] == 30

    # New data does not show up until the cached copy expires.
    await client.post(
        "/api/blog",
        headers=admin_headers,
        json={"title": "Post posterior", "content": "Contenido suficiente largo.", "status": "published"},
    )
    second = await client.get("/api/dashboard/stats", headers=admin_headers)
    assert second.json() == first.json()
    assert second.json()["blog"]["totalPosts"] == 0


@pytest.mark.asyncio
async def test_stats_survive_redis_errors(
    client: AsyncClient, admin_headers: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(dashboard_router, "get_optional_redis", lambda: FakeRedis(broken=True))
    response = await client.get("/api/dashboard/stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["newUsers"]["count"] == 1
