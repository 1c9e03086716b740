import pytest
from httpx import AsyncClient

from spendtrack.api.deps import get_llm_provider, get_today_provider
from spendtrack.main import app
from spendtrack.services.llm.prompts import EXTRACTION_PROMPT_HEADER, INTENT_SYSTEM_PROMPT

from fakes import FIXED_TODAY, RoutingProvider


@pytest.fixture
def fixed_today() -> None:
    app.dependency_overrides[get_today_provider] = lambda: (lambda: FIXED_TODAY)


@pytest.mark.asyncio
async def test_interact_requires_token(client: AsyncClient) -> None:
    response = await client.post("/chatbot/interact", json={"message": "hello"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_interact_rejects_bad_token(client: AsyncClient) -> None:
    response = await client.post(
        "/chatbot/interact",
        json={"message": "hello"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_interact_rejects_empty_message(client: AsyncClient, alice_headers) -> None:
    response = await client.post("/chatbot/interact", json={"message": ""}, headers=alice_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_add_then_query_flow(client: AsyncClient, alice_headers, fixed_today) -> None:
    added = await client.post(
        "/chatbot/interact",
        json={"message": "I spent 200 on groceries today"},
        headers=alice_headers,
    )
    assert added.status_code == 200
    assert added.json() == {
        "success": True,
        "message": "✅ Added ₹200 for Groceries (Groceries) on 2025-04-15.",
    }

    listed = await client.get("/expenses/list", headers=alice_headers)
    expenses = listed.json()["expenses"]
    assert len(expenses) == 1
    assert expenses[0]["category"] == "Groceries"
    assert expenses[0]["amount"] == 200

    asked = await client.post(
        "/chatbot/interact",
        json={"message": "How much did I spend this month?"},
        headers=alice_headers,
    )
    assert asked.status_code == 200
    assert asked.json()["message"] == "You spent ₹200 in total this month (1 transaction)."


@pytest.mark.asyncio
async def test_expenses_are_scoped_to_the_caller(
    client: AsyncClient, alice_headers, bob_headers, fixed_today
) -> None:
    await client.post(
        "/chatbot/interact",
        json={"message": "I spent 500 on rent today"},
        headers=alice_headers,
    )

    asked = await client.post(
        "/chatbot/interact",
        json={"message": "How much did I spend this month?"},
        headers=bob_headers,
    )
    assert asked.json()["message"] == "No expenses found this month."


@pytest.mark.asyncio
async def test_chitchat_reply(client: AsyncClient, alice_headers) -> None:
    response = await client.post(
        "/chatbot/interact", json={"message": "hello there"}, headers=alice_headers
    )
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["message"]


@pytest.mark.asyncio
async def test_extraction_error_shape(client: AsyncClient, alice_headers) -> None:
    provider = RoutingProvider(
        {
            INTENT_SYSTEM_PROMPT[:40]: '{"intent": "add_expense"}',
            EXTRACTION_PROMPT_HEADER: '{"error": "Could not understand the expense details."}',
        }
    )
    app.dependency_overrides[get_llm_provider] = lambda: provider

    response = await client.post(
        "/chatbot/interact", json={"message": "I paid some"}, headers=alice_headers
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Could not understand the expense details."}
