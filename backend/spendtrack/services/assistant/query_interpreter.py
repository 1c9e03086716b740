from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
import logging

from spendtrack.models.expense import Expense
from spendtrack.services.categories import (
    EXPENSE_CATEGORIES,
    CategoryNormalizer,
    find_category_in_text,
)
from spendtrack.services.expense_store import ExpenseStore
from spendtrack.services.llm.gateway import GatewayError, LanguageModelGateway
from spendtrack.services.llm.parser_utils import ParseError
from spendtrack.services.llm.prompts import build_query_prompt
from spendtrack.services.llm.types import ChatMessage, QueryParameters
from spendtrack.services.periods import (
    describe_time_period,
    find_month_name,
    normalize_time_expression,
    resolve_time_period,
)

logger = logging.getLogger(__name__)

QUERY_APOLOGY = (
    "I couldn't process your query. Please try asking in a different way, like "
    "'How much did I spend this month?' or 'What were my food expenses yesterday?'"
)
TOP_CATEGORY_LIMIT = 3


def format_amount(value: float, symbol: str = "₹") -> str:
    rounded = round(value, 2)
    if rounded == int(rounded):
        return f"{symbol}{int(rounded):,}"
    return f"{symbol}{rounded:,.2f}"


def keyword_query_parameters(message: str) -> QueryParameters:
    low = (message or "").lower()
    if "today" in low:
        time_period = "today"
    elif "yesterday" in low:
        time_period = "yesterday"
    elif "week" in low:
        time_period = "this week"
    elif "month" in low:
        time_period = normalize_time_expression(low)
    else:
        time_period = find_month_name(low) or "this month"
    return QueryParameters(category=find_category_in_text(low), time_period=time_period)


@dataclass(slots=True)
class SpendingSummary:
    total: float
    count: int
    top_categories: list[tuple[str, float]] = field(default_factory=list)


def summarize_expenses(
    expenses: Sequence[Expense],
    *,
    include_breakdown: bool,
) -> SpendingSummary:
    total = 0.0
    by_category: dict[str, float] = defaultdict(float)
    for expense in expenses:
        amount = float(expense.amount or 0.0)
        total += amount
        by_category[expense.category] += amount

    top: list[tuple[str, float]] = []
    if include_breakdown and len(expenses) > 1:
        top = sorted(by_category.items(), key=lambda item: item[1], reverse=True)[
            :TOP_CATEGORY_LIMIT
        ]
    return SpendingSummary(total=round(total, 2), count=len(expenses), top_categories=top)


def format_summary(
    summary: SpendingSummary,
    *,
    category: str | None,
    time_period: str,
    currency_symbol: str = "₹",
) -> str:
    category_text = f"on {category}" if category else "in total"
    plural = "" if summary.count == 1 else "s"
    sentence = (
        f"You spent {format_amount(summary.total, currency_symbol)} {category_text} "
        f"{describe_time_period(time_period)} ({summary.count} transaction{plural})."
    )
    if summary.top_categories:
        breakdown = ", ".join(
            f"{name} ({format_amount(amount, currency_symbol)})"
            for name, amount in summary.top_categories
        )
        sentence += f" Top categories: {breakdown}"
    return sentence


def format_no_results(category: str | None, time_period: str) -> str:
    scope = f" for {category}" if category else ""
    return f"No expenses found{scope} {describe_time_period(time_period)}."


class QueryInterpreter:
    def __init__(
        self,
        gateway: LanguageModelGateway,
        normalizer: CategoryNormalizer,
        store: ExpenseStore,
        *,
        currency_symbol: str = "₹",
        today: Callable[[], date] = date.today,
    ):
        self.gateway = gateway
        self.normalizer = normalizer
        self.store = store
        self.currency_symbol = currency_symbol
        self._today = today

    async def extract_parameters(self, message: str) -> QueryParameters:
        try:
            payload = await self.gateway.complete_json(
                [
                    ChatMessage(role="system", content=build_query_prompt(EXPENSE_CATEGORIES)),
                    ChatMessage(role="user", content=message),
                ]
            )
        except (GatewayError, ParseError) as exc:
            logger.warning("Query parameter extraction failed, using keywords: %s", exc)
            return keyword_query_parameters(message)

        category = payload.get("category")
        time_period = payload.get("time_period")
        if not isinstance(category, str) or category.strip().lower() in {"", "null", "none"}:
            category = None
        if not isinstance(time_period, str) or not time_period.strip():
            time_period = keyword_query_parameters(message).time_period
        return QueryParameters(category=category, time_period=time_period.strip().lower())

    async def answer(self, message: str, user_id: str) -> str:
        try:
            params = await self.extract_parameters(message)
            period = resolve_time_period(params.time_period, today=self._today())

            category_filter = None
            if params.category:
                category_filter = await self.normalizer.normalize(params.category)

            expenses = await self.store.query(
                user_id,
                period.start,
                period.end,
                category=category_filter,
            )
            if not expenses:
                return format_no_results(category_filter, params.time_period)

            summary = summarize_expenses(expenses, include_breakdown=category_filter is None)
            return format_summary(
                summary,
                category=category_filter,
                time_period=params.time_period,
                currency_symbol=self.currency_symbol,
            )
        except Exception:
            logger.exception("Failed to answer spending query for user %s", user_id)
            return QUERY_APOLOGY
