from __future__ import annotations

import calendar
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta
import logging
import re
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

Timeframe = Literal["day", "week", "month", "quarter", "year", "custom"]
TIMEFRAMES: tuple[str, ...] = ("day", "week", "month", "quarter", "year", "custom")

MONTH_NAMES: tuple[str, ...] = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)
MONTH_ABBREVIATIONS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}
MONTH_LOOKUP: dict[str, int] = {
    **{name: index for index, name in enumerate(MONTH_NAMES, start=1)},
    **MONTH_ABBREVIATIONS,
}
MONTH_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(MONTH_LOOKUP, key=len, reverse=True)) + r")\b",
    re.I,
)
MONTH_PREPOSITION_PATTERN = re.compile(r"\b(?:in|for|of)\s+$", re.I)

TODAY_LABELS = {"today"}
YESTERDAY_LABELS = {"yesterday"}
WEEK_LABELS = {"this week", "current week", "the week", "week"}
MONTH_LABELS = {"this month", "current month", "the month", "month"}
LAST_MONTH_LABELS = {"last month", "previous month"}


class InvalidPeriodError(ValueError):
    """Raised when a timeframe or custom range cannot be resolved."""


@dataclass(slots=True, frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidPeriodError(
                f"Range start {self.start} is after range end {self.end}."
            )

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def iter_days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def as_dict(self) -> dict[str, str]:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}


def today_for_timezone(timezone_name: str) -> date:
    try:
        return datetime.now(ZoneInfo(timezone_name)).date()
    except ZoneInfoNotFoundError:
        logger.warning("Unknown timezone %r, using the host date", timezone_name)
        return date.today()


def _first_day_of_month(value: date) -> date:
    return value.replace(day=1)


def _last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _shift_months(value: date, delta_months: int) -> date:
    month_index = (value.month - 1) + delta_months
    year = value.year + (month_index // 12)
    month = (month_index % 12) + 1
    return date(year, month, 1)


def find_month(text: str) -> int | None:
    """Return the month number of the first month name or abbreviation in text."""
    match = MONTH_PATTERN.search(text or "")
    if not match:
        return None
    return MONTH_LOOKUP[match.group(1).lower()]


def find_month_name(text: str) -> str | None:
    month = find_month(text)
    if month is None:
        return None
    return MONTH_NAMES[month - 1]


def is_bare_month(text: str) -> bool:
    return (text or "").strip().lower() in MONTH_LOOKUP


def find_month_mention(text: str) -> str | None:
    """Return the month a message refers to, ignoring the modal verb "may".

    "may" only counts as the month when it is the whole message or follows
    "in", "for" or "of".
    """
    text = text or ""
    if is_bare_month(text):
        return MONTH_NAMES[MONTH_LOOKUP[text.strip().lower()] - 1]
    for match in MONTH_PATTERN.finditer(text):
        word = match.group(1).lower()
        if word == "may" and not MONTH_PREPOSITION_PATTERN.search(text[: match.start()]):
            continue
        return MONTH_NAMES[MONTH_LOOKUP[word] - 1]
    return None


def month_range(month: int, today: date) -> DateRange:
    return DateRange(
        start=date(today.year, month, 1),
        end=_last_day_of_month(today.year, month),
    )


def resolve_time_period(label: str | None, today: date | None = None) -> DateRange:
    today = today or date.today()
    normalized = " ".join((label or "").lower().split())

    if normalized in TODAY_LABELS:
        return DateRange(start=today, end=today)
    if normalized in YESTERDAY_LABELS:
        yesterday = today - timedelta(days=1)
        return DateRange(start=yesterday, end=yesterday)
    if normalized in WEEK_LABELS:
        return DateRange(start=today - timedelta(days=today.weekday()), end=today)
    if normalized in MONTH_LABELS:
        return DateRange(start=_first_day_of_month(today), end=today)
    if normalized in LAST_MONTH_LABELS:
        start = _shift_months(today, -1)
        return DateRange(start=start, end=_last_day_of_month(start.year, start.month))

    month = find_month(normalized)
    if month is not None:
        return month_range(month, today)

    return DateRange(start=today - timedelta(days=30), end=today)


def normalize_time_expression(text: str) -> str:
    low = (text or "").lower()
    if re.search(r"whole month|entire month|full month|this month|current month", low):
        return "this month"
    if re.search(r"last month|previous month", low):
        return "last month"
    if re.search(r"this week|current week", low):
        return "this week"
    if "today" in low:
        return "today"
    if "yesterday" in low:
        return "yesterday"
    month_name = find_month_name(low)
    if month_name:
        return month_name
    return "this month"


def describe_time_period(label: str) -> str:
    normalized = " ".join((label or "").lower().split())
    if normalized in TODAY_LABELS:
        return "today"
    if normalized in YESTERDAY_LABELS:
        return "yesterday"
    if normalized in {"this week", "current week"}:
        return "this week"
    if normalized in {"this month", "current month"}:
        return "this month"
    if normalized in LAST_MONTH_LABELS:
        return "last month"
    month_name = find_month_name(normalized)
    if month_name:
        return f"in {month_name.capitalize()}"
    return f"for {normalized}" if normalized else "in the last 30 days"


def _quarter_start(value: date) -> date:
    return date(value.year, ((value.month - 1) // 3) * 3 + 1, 1)


def resolve_timeframe(
    timeframe: str,
    today: date | None = None,
    custom_start: date | None = None,
    custom_end: date | None = None,
) -> DateRange:
    today = today or date.today()
    if timeframe == "day":
        return DateRange(start=today, end=today)
    if timeframe == "week":
        return DateRange(start=today - timedelta(days=today.weekday()), end=today)
    if timeframe == "month":
        return DateRange(
            start=_first_day_of_month(today),
            end=_last_day_of_month(today.year, today.month),
        )
    if timeframe == "quarter":
        return DateRange(start=_quarter_start(today), end=today)
    if timeframe == "year":
        return DateRange(start=date(today.year, 1, 1), end=today)
    if timeframe == "custom":
        if custom_start is None or custom_end is None:
            raise InvalidPeriodError("Custom timeframe requires custom_start and custom_end.")
        return DateRange(start=custom_start, end=custom_end)
    raise InvalidPeriodError(f"Unsupported timeframe '{timeframe}'.")


def previous_period(current: DateRange, timeframe: str = "custom") -> DateRange:
    """Return the comparison window immediately preceding ``current``.

    Calendar granularities compare against the previous full calendar unit
    (month, quarter, year); everything else uses a window of the same
    day-length that ends the day before ``current`` starts.
    """
    if timeframe == "month":
        start = _shift_months(current.start, -1)
        return DateRange(start=start, end=_last_day_of_month(start.year, start.month))
    if timeframe == "quarter":
        quarter_start = _quarter_start(current.start)
        start = _shift_months(quarter_start, -3)
        return DateRange(start=start, end=quarter_start - timedelta(days=1))
    if timeframe == "year":
        year = current.start.year - 1
        return DateRange(start=date(year, 1, 1), end=date(year, 12, 31))
    if timeframe == "week":
        end = current.start - timedelta(days=1)
        return DateRange(start=end - timedelta(days=6), end=end)

    end = current.start - timedelta(days=1)
    return DateRange(start=end - timedelta(days=current.days - 1), end=end)
