from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
import logging

from spendtrack.models.expense import Expense
from spendtrack.services.assistant.context import (
    ConversationContext,
    ConversationContextStore,
)
from spendtrack.services.assistant.extractor import (
    ExpenseExtractor,
    ExpenseValidationError,
    ExtractionFailure,
    validate_extracted_expense,
)
from spendtrack.services.assistant.intent import Intent, IntentClassifier
from spendtrack.services.assistant.query_interpreter import QueryInterpreter, format_amount
from spendtrack.services.expense_store import ExpenseStore, PersistenceError
from spendtrack.services.llm.gateway import LanguageModelGateway
from spendtrack.services.llm.prompts import CHITCHAT_SYSTEM_PROMPT
from spendtrack.services.llm.types import ChatMessage
from spendtrack.services.periods import find_month_mention, is_bare_month

logger = logging.getLogger(__name__)

CHITCHAT_FALLBACK = (
    "I'm here to help with your expenses. You can ask me things like "
    "'How much did I spend this month?' or tell me about new expenses like "
    "'I spent ₹200 on lunch today'."
)
GENERIC_ERROR = "Something went wrong while processing your message."
TROUBLE_UNDERSTANDING = (
    "I'm having trouble understanding that. Try asking about your spending like "
    "'How much did I spend today?' or add an expense like 'I spent ₹250 on dinner'."
)


@dataclass(slots=True)
class AssistantReply:
    status_code: int
    message: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status_code < 400

    @classmethod
    def ok(cls, message: str) -> AssistantReply:
        return cls(status_code=200, message=message)

    @classmethod
    def client_error(cls, error: str) -> AssistantReply:
        return cls(status_code=400, error=error)

    @classmethod
    def server_error(cls, error: str = GENERIC_ERROR) -> AssistantReply:
        return cls(status_code=500, error=error, message=TROUBLE_UNDERSTANDING)


@dataclass(slots=True)
class Turn:
    user_id: str
    message: str
    context: ConversationContext | None = None
    previous_intent: Intent | None = None
    intent: Intent | None = None


Stage = Callable[[Turn], Awaitable[AssistantReply | None]]


def month_query(month: str) -> str:
    return f"How much did I spend in {month}?"


class ConversationOrchestrator:
    """Runs one assistant turn through an ordered list of stages.

    Each stage either answers the turn or returns ``None`` to fall through:
    month shortcut, context refresh, bare-month follow-up, intent
    classification, intent dispatch and finally the chitchat reply.
    """

    def __init__(
        self,
        *,
        gateway: LanguageModelGateway,
        classifier: IntentClassifier,
        extractor: ExpenseExtractor,
        interpreter: QueryInterpreter,
        store: ExpenseStore,
        contexts: ConversationContextStore,
        today: Callable[[], date] = date.today,
        currency_symbol: str = "₹",
        month_shortcut_enabled: bool = True,
    ):
        self.gateway = gateway
        self.classifier = classifier
        self.extractor = extractor
        self.interpreter = interpreter
        self.store = store
        self.contexts = contexts
        self.currency_symbol = currency_symbol
        self.month_shortcut_enabled = month_shortcut_enabled
        self._today = today
        self._handlers: dict[Intent, Stage] = {
            Intent.ADD_EXPENSE: self._handle_add_expense,
            Intent.QUERY: self._handle_query,
        }

    @property
    def stages(self) -> list[Stage]:
        return [
            self._month_shortcut,
            self._refresh_context,
            self._bare_month_follow_up,
            self._classify,
            self._dispatch,
            self._chitchat,
        ]

    async def handle_turn(self, user_id: str, message: str) -> AssistantReply:
        turn = Turn(user_id=user_id, message=message.strip())
        try:
            for stage in self.stages:
                reply = await stage(turn)
                if reply is not None:
                    return reply
        except ExpenseValidationError as exc:
            return AssistantReply.client_error(str(exc))
        except PersistenceError as exc:
            logger.error("Persistence failure for user %s: %s", user_id, exc)
            return AssistantReply.server_error(str(exc))
        except Exception:
            logger.exception("Assistant turn failed for user %s", user_id)
            return AssistantReply.server_error()
        return AssistantReply.ok(CHITCHAT_FALLBACK)

    async def _month_shortcut(self, turn: Turn) -> AssistantReply | None:
        if not self.month_shortcut_enabled:
            return None
        month = find_month_mention(turn.message)
        if month is None:
            return None
        return AssistantReply.ok(
            await self.interpreter.answer(month_query(month), turn.user_id)
        )

    async def _refresh_context(self, turn: Turn) -> AssistantReply | None:
        turn.context = self.contexts.touch(turn.user_id)
        turn.previous_intent = turn.context.last_intent
        return None

    async def _bare_month_follow_up(self, turn: Turn) -> AssistantReply | None:
        if turn.previous_intent != Intent.QUERY or not is_bare_month(turn.message):
            return None
        turn.intent = Intent.QUERY
        if turn.context is not None:
            turn.context.last_intent = Intent.QUERY
            turn.context.last_query = turn.message
        return AssistantReply.ok(
            await self.interpreter.answer(month_query(turn.message.lower()), turn.user_id)
        )

    async def _classify(self, turn: Turn) -> AssistantReply | None:
        turn.intent = await self.classifier.classify(turn.message)
        if turn.context is not None:
            turn.context.last_intent = turn.intent
        return None

    async def _dispatch(self, turn: Turn) -> AssistantReply | None:
        handler = self._handlers.get(turn.intent) if turn.intent else None
        if handler is None:
            return None
        return await handler(turn)

    async def _handle_add_expense(self, turn: Turn) -> AssistantReply:
        extraction = await self.extractor.extract(turn.message)
        if isinstance(extraction, ExtractionFailure):
            return AssistantReply.client_error(extraction.error)

        validated = validate_extracted_expense(extraction, today=self._today())
        record = await self.store.insert(
            Expense(
                user_id=turn.user_id,
                amount=validated.amount,
                category=validated.category,
                date=validated.date,
                title=validated.title,
            )
        )
        amount = format_amount(record.amount, self.currency_symbol)
        return AssistantReply.ok(
            f"✅ Added {amount} for {record.title} ({record.category}) "
            f"on {record.date.isoformat()}."
        )

    async def _handle_query(self, turn: Turn) -> AssistantReply:
        if turn.context is not None:
            turn.context.last_query = turn.message
        return AssistantReply.ok(await self.interpreter.answer(turn.message, turn.user_id))

    async def _chitchat(self, turn: Turn) -> AssistantReply:
        try:
            reply = await self.gateway.complete(
                [
                    ChatMessage(role="system", content=CHITCHAT_SYSTEM_PROMPT),
                    ChatMessage(role="user", content=turn.message),
                ]
            )
        except Exception as exc:
            logger.warning("Chitchat generation failed: %s", exc)
            return AssistantReply.ok(CHITCHAT_FALLBACK)
        reply = reply.strip()
        return AssistantReply.ok(reply or CHITCHAT_FALLBACK)
