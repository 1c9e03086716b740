from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from spendtrack.api.deps import get_today_provider
from spendtrack.main import app
from spendtrack.models.expense import Expense
from spendtrack.services.analytics import get_spending_analytics, percent_change
from spendtrack.services.expense_store import ExpenseStore

from fakes import FIXED_TODAY

USER_ID = "user-1"


async def _seed(store: ExpenseStore, rows) -> None:
    for amount, category, day, title in rows:
        await store.insert(
            Expense(user_id=USER_ID, amount=amount, category=category, date=day, title=title)
        )


def test_percent_change_edges() -> None:
    assert percent_change(150, 100) == 50.0
    assert percent_change(50, 100) == -50.0
    assert percent_change(0, 0) == 0.0
    assert percent_change(10, 0) is None


@pytest.mark.asyncio
async def test_month_analytics_compares_with_previous_month(session: AsyncSession) -> None:
    store = ExpenseStore(session)
    await _seed(
        store,
        [
            (300, "Food & Dining", date(2025, 4, 2), "Birthday dinner"),
            (100, "Food & Dining", date(2025, 4, 10), "Lunch"),
            (200, "Travel", date(2025, 4, 12), "Train"),
            (200, "Food & Dining", date(2025, 3, 8), "Groceries run"),
            (50, "Shopping", date(2025, 3, 20), "Socks"),
            (999, "Shopping", date(2025, 2, 20), "Old purchase"),
        ],
    )

    result = await get_spending_analytics(store, USER_ID, timeframe="month", today=FIXED_TODAY)

    assert (result.period_start, result.period_end) == ("2025-04-01", "2025-04-30")
    assert result.total_spent == 600
    assert result.avg_daily_spent == 20.0
    assert [(p.name, p.value) for p in result.category_breakdown] == [
        ("Food & Dining", 400),
        ("Travel", 200),
    ]
    assert len(result.spending_trend) == 30
    assert result.spending_trend[1].amount == 300
    assert result.top_expenses[0].title == "Birthday dinner"

    assert result.comparison.previous_period_total == 250
    assert result.comparison.percent_change == 140.0
    by_name = {point.name: point for point in result.category_comparison}
    assert by_name["Food & Dining"].percent_change == 100.0
    assert by_name["Travel"].percent_change is None
    assert by_name["Shopping"].current_value == 0
    assert by_name["Shopping"].percent_change == -100.0


@pytest.mark.asyncio
async def test_custom_range_compares_with_preceding_window(session: AsyncSession) -> None:
    store = ExpenseStore(session)
    await _seed(
        store,
        [
            (40, "Groceries", date(2025, 4, 5), "Milk"),
            (80, "Groceries", date(2025, 4, 2), "Rice"),
        ],
    )

    result = await get_spending_analytics(
        store,
        USER_ID,
        timeframe="custom",
        today=FIXED_TODAY,
        custom_start=date(2025, 4, 4),
        custom_end=date(2025, 4, 6),
    )

    assert result.total_spent == 40
    assert result.comparison.previous_period_total == 80
    assert result.comparison.percent_change == -50.0


@pytest.mark.asyncio
async def test_analytics_endpoint(client: AsyncClient, alice_headers) -> None:
    app.dependency_overrides[get_today_provider] = lambda: (lambda: FIXED_TODAY)
    await client.post(
        "/expenses/manual",
        json={"title": "Cab", "amount": 70, "category": "Transportation", "date": "2025-04-15"},
        headers=alice_headers,
    )

    response = await client.get("/analytics", params={"timeframe": "day"}, headers=alice_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["timeframe"] == "day"
    assert body["total_spent"] == 70
    assert body["comparison"]["percent_change"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"timeframe": "decade"},
        {"timeframe": "custom"},
        {"timeframe": "custom", "custom_start": "2025-04-10", "custom_end": "2025-04-01"},
    ],
)
async def test_analytics_rejects_bad_timeframes(
    client: AsyncClient, alice_headers, params
) -> None:
    response = await client.get("/analytics", params=params, headers=alice_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_analytics_requires_token(client: AsyncClient) -> None:
    response = await client.get("/analytics")
    assert response.status_code == 401
