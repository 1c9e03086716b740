from collections.abc import Callable
from datetime import date, timedelta
from functools import lru_cache, partial

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from spendtrack.core.config import get_settings
from spendtrack.core.db import get_session
from spendtrack.core.security import decode_access_token
from spendtrack.services.assistant.context import ConversationContextStore
from spendtrack.services.assistant.extractor import ExpenseExtractor
from spendtrack.services.assistant.intent import IntentClassifier
from spendtrack.services.assistant.orchestrator import ConversationOrchestrator
from spendtrack.services.assistant.query_interpreter import QueryInterpreter
from spendtrack.services.categories import CategoryNormalizer
from spendtrack.services.expense_store import ExpenseStore
from spendtrack.services.llm.base import CompletionProvider
from spendtrack.services.llm.gateway import LanguageModelGateway
from spendtrack.services.llm.provider_factory import (
    ProviderNotConfiguredError,
    build_gateway,
    get_completion_provider,
)
from spendtrack.services.periods import today_for_timezone

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
    )
    try:
        payload = decode_access_token(token)
    except ValueError:
        raise unauthorized
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise unauthorized
    return subject.strip()


def get_today_provider() -> Callable[[], date]:
    return partial(today_for_timezone, get_settings().llm_timezone)


async def get_llm_provider() -> CompletionProvider:
    try:
        return get_completion_provider()
    except ProviderNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


async def get_gateway(
    provider: CompletionProvider = Depends(get_llm_provider),
) -> LanguageModelGateway:
    return build_gateway(provider)


@lru_cache
def get_context_store() -> ConversationContextStore:
    settings = get_settings()
    return ConversationContextStore(
        ttl=timedelta(minutes=settings.chat_context_ttl_minutes),
        max_entries=settings.chat_context_max_entries,
    )


async def get_expense_store(
    session: AsyncSession = Depends(get_session),
) -> ExpenseStore:
    return ExpenseStore(session)


async def get_orchestrator(
    gateway: LanguageModelGateway = Depends(get_gateway),
    store: ExpenseStore = Depends(get_expense_store),
    contexts: ConversationContextStore = Depends(get_context_store),
    today: Callable[[], date] = Depends(get_today_provider),
) -> ConversationOrchestrator:
    settings = get_settings()
    normalizer = CategoryNormalizer(gateway)
    return ConversationOrchestrator(
        gateway=gateway,
        classifier=IntentClassifier(gateway),
        extractor=ExpenseExtractor(gateway, normalizer, today=today),
        interpreter=QueryInterpreter(
            gateway,
            normalizer,
            store,
            currency_symbol=settings.currency_symbol,
            today=today,
        ),
        store=store,
        contexts=contexts,
        today=today,
        currency_symbol=settings.currency_symbol,
        month_shortcut_enabled=settings.chat_month_shortcut_enabled,
    )
