from enum import Enum
import logging

from spendtrack.services.llm.gateway import LanguageModelGateway
from spendtrack.services.llm.prompts import INTENT_SYSTEM_PROMPT
from spendtrack.services.llm.types import ChatMessage

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    ADD_EXPENSE = "add_expense"
    QUERY = "query"
    CHITCHAT = "chitchat"


def coerce_intent(value: object) -> Intent:
    if isinstance(value, str):
        try:
            return Intent(value.strip().lower())
        except ValueError:
            pass
    return Intent.CHITCHAT


class IntentClassifier:
    def __init__(self, gateway: LanguageModelGateway):
        self.gateway = gateway

    async def classify(self, message: str) -> Intent:
        try:
            payload = await self.gateway.complete_json(
                [
                    ChatMessage(role="system", content=INTENT_SYSTEM_PROMPT),
                    ChatMessage(role="user", content=message),
                ]
            )
        except Exception as exc:
            logger.warning("Intent detection failed, defaulting to chitchat: %s", exc)
            return Intent.CHITCHAT
        return coerce_intent(payload.get("intent"))
