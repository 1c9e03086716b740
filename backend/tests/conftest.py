from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from spendtrack.api.deps import get_context_store, get_llm_provider
from spendtrack.core.db import get_session
from spendtrack.core.security import create_access_token
from spendtrack.main import app
from spendtrack.models import expense as _expense  # noqa: F401
from spendtrack.services.assistant.context import ConversationContextStore
from spendtrack.services.llm.mock_provider import MockCompletionProvider


@pytest.fixture
async def session() -> AsyncIterator[AsyncSession]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with session_maker() as db_session:
        yield db_session

    await engine.dispose()


@pytest.fixture
def context_store() -> ConversationContextStore:
    return ConversationContextStore()


@pytest.fixture
async def client(context_store: ConversationContextStore) -> AsyncIterator[AsyncClient]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async def override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as db_session:
            yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_context_store] = lambda: context_store
    app.dependency_overrides[get_llm_provider] = lambda: MockCompletionProvider()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()
    await engine.dispose()


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def alice_headers() -> dict[str, str]:
    return auth_headers("user-alice")


@pytest.fixture
def bob_headers() -> dict[str, str]:
    return auth_headers("user-bob")
