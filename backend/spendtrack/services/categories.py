from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from spendtrack.services.llm.prompts import build_category_prompt
from spendtrack.services.llm.types import ChatMessage

if TYPE_CHECKING:
    from spendtrack.services.llm.gateway import LanguageModelGateway

logger = logging.getLogger(__name__)

EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Bills & Utilities",
    "Entertainment",
    "Travel",
    "Education",
    "Health & Fitness",
    "Personal Care",
    "Home & Rent",
    "Groceries",
    "Investments",
    "Insurance",
    "Gifts & Donations",
    "Other",
)
FALLBACK_CATEGORY = "Other"


def is_known_category(value: str | None) -> bool:
    return value in EXPENSE_CATEGORIES


def find_category_in_text(text: str) -> str | None:
    low = (text or "").lower()
    for category in EXPENSE_CATEGORIES:
        if category.lower() in low:
            return category
    return None


class CategoryNormalizer:
    def __init__(self, gateway: LanguageModelGateway):
        self.gateway = gateway

    async def normalize(self, user_category: str | None) -> str:
        phrase = " ".join((user_category or "").split())
        if not phrase:
            return FALLBACK_CATEGORY

        try:
            answer = await self.gateway.complete(
                [
                    ChatMessage(
                        role="system",
                        content=build_category_prompt(phrase, EXPENSE_CATEGORIES),
                    ),
                    ChatMessage(role="user", content=phrase),
                ]
            )
        except Exception as exc:
            logger.warning("Category mapping failed for %r: %s", phrase, exc)
            return FALLBACK_CATEGORY

        mapped = answer.strip().strip("\"'")
        if mapped in EXPENSE_CATEGORIES:
            return mapped
        logger.warning("Category mapping returned unknown category %r", mapped)
        return FALLBACK_CATEGORY
