from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
import logging
import math

from pydantic import BaseModel

from spendtrack.services.categories import CategoryNormalizer
from spendtrack.services.llm.gateway import LanguageModelGateway
from spendtrack.services.llm.prompts import build_extraction_prompt
from spendtrack.services.llm.types import ChatMessage

logger = logging.getLogger(__name__)

EXTRACTION_FAILED_MESSAGE = "Failed to parse expense details."
UNDERSTANDING_FAILED_MESSAGE = "Could not understand the expense details."
INCOMPLETE_MESSAGE = "Incomplete expense information."


class ExpenseValidationError(ValueError):
    """Raised when an extracted expense is missing required fields."""


class ExtractedExpense(BaseModel):
    amount: float | str | None = None
    category: str | None = None
    date: str | None = None
    title: str | None = None


class ExtractionFailure(BaseModel):
    error: str


@dataclass(slots=True)
class ValidatedExpense:
    amount: float
    category: str
    date: date
    title: str


def _parse_amount(value: float | str | None) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(str(value).replace(",", "").strip())
    except ValueError:
        return None
    if math.isnan(amount) or math.isinf(amount):
        return None
    return amount


def _parse_date(value: str | None, today: date) -> date | None:
    cleaned = (value or "").strip().lower()
    if not cleaned:
        return None
    if cleaned == "today":
        return today
    if cleaned == "yesterday":
        return today - timedelta(days=1)
    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        return None


def validate_extracted_expense(extracted: ExtractedExpense, today: date) -> ValidatedExpense:
    amount = _parse_amount(extracted.amount)
    category = (extracted.category or "").strip()
    title = " ".join((extracted.title or "").split())
    incurred = _parse_date(extracted.date, today)
    if amount is None or amount < 0 or not category or not title or incurred is None:
        raise ExpenseValidationError(INCOMPLETE_MESSAGE)
    return ValidatedExpense(
        amount=round(amount, 2),
        category=category,
        date=incurred,
        title=title,
    )


class ExpenseExtractor:
    def __init__(
        self,
        gateway: LanguageModelGateway,
        normalizer: CategoryNormalizer,
        today: Callable[[], date] = date.today,
    ):
        self.gateway = gateway
        self.normalizer = normalizer
        self._today = today

    async def extract(self, message: str) -> ExtractedExpense | ExtractionFailure:
        today = self._today().isoformat()
        try:
            payload = await self.gateway.complete_json(
                [
                    ChatMessage(role="system", content=build_extraction_prompt(today)),
                    ChatMessage(role="user", content=message),
                ]
            )
        except Exception as exc:
            logger.warning("Expense extraction failed: %s", exc)
            return ExtractionFailure(error=EXTRACTION_FAILED_MESSAGE)

        error = payload.get("error")
        if error:
            return ExtractionFailure(
                error=str(error) if isinstance(error, str) else UNDERSTANDING_FAILED_MESSAGE
            )

        try:
            extracted = ExtractedExpense.model_validate(
                {key: payload.get(key) for key in ("amount", "category", "date", "title")}
            )
        except ValueError as exc:
            logger.warning("Expense extraction returned unexpected shape: %s", exc)
            return ExtractionFailure(error=EXTRACTION_FAILED_MESSAGE)

        if extracted.category and extracted.category.strip():
            extracted.category = await self.normalizer.normalize(extracted.category)
        return extracted
