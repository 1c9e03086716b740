import pytest

from spendtrack.services.categories import (
    EXPENSE_CATEGORIES,
    CategoryNormalizer,
    find_category_in_text,
)
from spendtrack.services.llm.gateway import GatewayError

from fakes import ScriptedProvider, make_gateway


def test_fixed_category_set_has_fifteen_members() -> None:
    assert len(EXPENSE_CATEGORIES) == 15
    assert EXPENSE_CATEGORIES[-1] == "Other"


@pytest.mark.asyncio
async def test_normalizer_accepts_exact_member() -> None:
    provider = ScriptedProvider(["Groceries"])
    normalizer = CategoryNormalizer(make_gateway(provider))

    assert await normalizer.normalize("veggies") == "Groceries"
    sent = provider.calls[0]["messages"]
    assert "Food & Dining" in sent[0].content
    assert sent[1].content == "veggies"


@pytest.mark.asyncio
async def test_normalizer_strips_whitespace_and_quotes() -> None:
    normalizer = CategoryNormalizer(make_gateway(ScriptedProvider(['  "Travel"\n'])))
    assert await normalizer.normalize("flight to goa") == "Travel"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "answer",
    ["groceries", "Groceries and food", "The best match is Groceries.", ""],
)
async def test_normalizer_rejects_answers_outside_the_set(answer: str) -> None:
    normalizer = CategoryNormalizer(make_gateway(ScriptedProvider([answer])))
    assert await normalizer.normalize("veggies") == "Other"


@pytest.mark.asyncio
async def test_normalizer_falls_back_to_other_on_gateway_failure() -> None:
    provider = ScriptedProvider([GatewayError("down")] * 3)
    normalizer = CategoryNormalizer(make_gateway(provider))
    assert await normalizer.normalize("Groceries") == "Other"


@pytest.mark.asyncio
async def test_normalizer_skips_call_for_blank_phrase() -> None:
    provider = ScriptedProvider([])
    normalizer = CategoryNormalizer(make_gateway(provider))
    assert await normalizer.normalize("   ") == "Other"
    assert provider.calls == []


def test_find_category_in_text_is_case_insensitive() -> None:
    assert find_category_in_text("what did i spend on TRAVEL?") == "Travel"
    assert find_category_in_text("coffee") is None
