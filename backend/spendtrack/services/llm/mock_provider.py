import json
import re
from datetime import date, timedelta

from spendtrack.services.categories import EXPENSE_CATEGORIES
from spendtrack.services.llm.base import CompletionProvider
from spendtrack.services.llm.prompts import (
    CATEGORY_PROMPT_HEADER,
    EXTRACTION_PROMPT_HEADER,
    INTENT_SYSTEM_PROMPT,
    QUERY_PROMPT_HEADER,
)
from spendtrack.services.llm.types import ChatMessage
from spendtrack.services.periods import normalize_time_expression

AMOUNT_PATTERN = re.compile(r"(?:INR|USD|RS\.?|₹|\$)?\s*(\d+(?:,\d{3})*(?:\.\d{1,2})?)", re.I)
TODAY_PATTERN = re.compile(r"assume today (\d{4}-\d{2}-\d{2})")
PHRASE_PATTERN = re.compile(
    r"\b(?:on|for)\s+([a-z][a-z &'-]*?)"
    r"(?=\s+(?:today|yesterday|at|on|for)\b|[.,!?]|$)",
    re.I,
)

CATEGORY_KEYWORDS: dict[str, str] = {
    "grocer": "Groceries",
    "vegetable": "Groceries",
    "supermarket": "Groceries",
    "food": "Food & Dining",
    "lunch": "Food & Dining",
    "dinner": "Food & Dining",
    "breakfast": "Food & Dining",
    "restaurant": "Food & Dining",
    "coffee": "Food & Dining",
    "pizza": "Food & Dining",
    "uber": "Transportation",
    "taxi": "Transportation",
    "cab": "Transportation",
    "bus": "Transportation",
    "fuel": "Transportation",
    "petrol": "Transportation",
    "transport": "Transportation",
    "flight": "Travel",
    "hotel": "Travel",
    "travel": "Travel",
    "trip": "Travel",
    "rent": "Home & Rent",
    "electricity": "Bills & Utilities",
    "internet": "Bills & Utilities",
    "bill": "Bills & Utilities",
    "movie": "Entertainment",
    "netflix": "Entertainment",
    "concert": "Entertainment",
    "doctor": "Health & Fitness",
    "medicine": "Health & Fitness",
    "gym": "Health & Fitness",
    "salon": "Personal Care",
    "haircut": "Personal Care",
    "course": "Education",
    "book": "Education",
    "tuition": "Education",
    "stock": "Investments",
    "mutual fund": "Investments",
    "insurance": "Insurance",
    "gift": "Gifts & Donations",
    "donation": "Gifts & Donations",
    "charity": "Gifts & Donations",
    "shopping": "Shopping",
    "clothes": "Shopping",
    "shoes": "Shopping",
}

QUERY_HINTS = ("how much", "what did", "what were", "show", "total", "expenses")
EXPENSE_HINTS = ("spent", "paid", "bought", "purchased", "paying")


def _map_category(text: str) -> str | None:
    low = text.lower()
    for category in EXPENSE_CATEGORIES:
        if category.lower() in low:
            return category
    for key, value in CATEGORY_KEYWORDS.items():
        if key in low:
            return value
    return None


def _detect_intent(text: str) -> str:
    low = text.lower().strip()
    has_amount = bool(re.search(r"\d", low))
    if low.endswith("?") or any(hint in low for hint in QUERY_HINTS):
        if not (has_amount and any(hint in low for hint in EXPENSE_HINTS)):
            return "query"
    if has_amount and any(hint in low for hint in EXPENSE_HINTS):
        return "add_expense"
    return "chitchat"


def _extract_expense(text: str, today: date) -> dict[str, object]:
    amount_match = AMOUNT_PATTERN.search(text)
    if not amount_match:
        return {"error": "Could not understand the expense details."}

    phrase_match = PHRASE_PATTERN.search(text)
    phrase = phrase_match.group(1).strip() if phrase_match else ""
    if not phrase or phrase[0].isdigit():
        phrase = _map_category(text) or "expense"
    incurred = today - timedelta(days=1) if "yesterday" in text.lower() else today
    return {
        "amount": float(amount_match.group(1).replace(",", "")),
        "category": phrase.lower(),
        "date": incurred.isoformat(),
        "title": phrase.title()[:40],
    }


class MockCompletionProvider(CompletionProvider):
    async def create_completion(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        system = next((m.content for m in messages if m.role == "system"), "")
        user = next((m.content for m in reversed(messages) if m.role == "user"), "")

        if system.startswith(INTENT_SYSTEM_PROMPT[:40]):
            return json.dumps({"intent": _detect_intent(user)})
        if system.startswith(CATEGORY_PROMPT_HEADER):
            return _map_category(user) or "Other"
        if system.startswith(EXTRACTION_PROMPT_HEADER):
            today_match = TODAY_PATTERN.search(system)
            today = date.fromisoformat(today_match.group(1)) if today_match else date.today()
            return json.dumps(_extract_expense(user, today))
        if system.startswith(QUERY_PROMPT_HEADER):
            return json.dumps(
                {
                    "category": _map_category(user),
                    "time_period": normalize_time_expression(user),
                }
            )
        return (
            "I can help you log expenses and answer spending questions. "
            "Try 'I spent 200 on groceries today' or 'How much did I spend this month?'."
        )
