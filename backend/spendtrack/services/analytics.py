from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date

from spendtrack.models.expense import Expense
from spendtrack.schemas.analytics import (
    AnalyticsResponse,
    CategoryComparisonPoint,
    CategoryPoint,
    PeriodComparison,
    TopExpense,
    TrendPoint,
)
from spendtrack.services.expense_store import ExpenseStore
from spendtrack.services.periods import DateRange, previous_period, resolve_timeframe

TOP_EXPENSE_LIMIT = 5


def category_totals(expenses: Sequence[Expense]) -> tuple[dict[str, float], float]:
    totals: dict[str, float] = defaultdict(float)
    grand_total = 0.0
    for expense in expenses:
        amount = float(expense.amount or 0.0)
        totals[expense.category] += amount
        grand_total += amount
    return dict(totals), grand_total


def percent_change(current: float, previous: float) -> float | None:
    if previous > 0:
        return round((current - previous) / previous * 100, 2)
    if current > 0:
        return None
    return 0.0


def build_analytics(
    timeframe: str,
    period: DateRange,
    current_expenses: Sequence[Expense],
    previous_expenses: Sequence[Expense],
) -> AnalyticsResponse:
    current_totals, total_spent = category_totals(current_expenses)
    previous_totals, previous_total = category_totals(previous_expenses)

    daily: dict[date, float] = defaultdict(float)
    for expense in current_expenses:
        daily[expense.date] += float(expense.amount or 0.0)

    breakdown = sorted(
        (CategoryPoint(name=name, value=round(value, 2)) for name, value in current_totals.items()),
        key=lambda point: point.value,
        reverse=True,
    )

    comparison_points = [
        CategoryComparisonPoint(
            name=point.name,
            current_value=point.value,
            previous_value=round(previous_totals.get(point.name, 0.0), 2),
            percent_change=percent_change(point.value, previous_totals.get(point.name, 0.0)),
        )
        for point in breakdown
    ]
    for name, value in previous_totals.items():
        if name not in current_totals:
            comparison_points.append(
                CategoryComparisonPoint(
                    name=name,
                    current_value=0.0,
                    previous_value=round(value, 2),
                    percent_change=-100.0,
                )
            )

    top_expenses = sorted(current_expenses, key=lambda e: float(e.amount or 0.0), reverse=True)

    return AnalyticsResponse(
        timeframe=timeframe,
        period_start=period.start.isoformat(),
        period_end=period.end.isoformat(),
        total_spent=round(total_spent, 2),
        avg_daily_spent=round(total_spent / max(1, period.days), 2),
        category_breakdown=breakdown,
        spending_trend=[
            TrendPoint(date=day.isoformat(), amount=round(daily.get(day, 0.0), 2))
            for day in period.iter_days()
        ],
        top_expenses=[
            TopExpense(
                title=expense.title,
                amount=expense.amount,
                category=expense.category,
                date=expense.date.isoformat(),
            )
            for expense in top_expenses[:TOP_EXPENSE_LIMIT]
        ],
        comparison=PeriodComparison(
            current_period_total=round(total_spent, 2),
            previous_period_total=round(previous_total, 2),
            percent_change=percent_change(total_spent, previous_total),
        ),
        category_comparison=comparison_points,
    )


async def get_spending_analytics(
    store: ExpenseStore,
    user_id: str,
    *,
    timeframe: str,
    today: date,
    custom_start: date | None = None,
    custom_end: date | None = None,
) -> AnalyticsResponse:
    period = resolve_timeframe(
        timeframe,
        today=today,
        custom_start=custom_start,
        custom_end=custom_end,
    )
    comparison = previous_period(period, timeframe)
    current_expenses = await store.query(user_id, period.start, period.end)
    previous_expenses = await store.query(user_id, comparison.start, comparison.end)
    return build_analytics(timeframe, period, current_expenses, previous_expenses)
