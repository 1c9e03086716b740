import pytest

from spendtrack.services.llm.gateway import GatewayError, LanguageModelGateway
from spendtrack.services.llm.parser_utils import ParseError
from spendtrack.services.llm.prompts import JSON_ONLY_INSTRUCTION
from spendtrack.services.llm.types import ChatMessage

from fakes import ScriptedProvider, make_gateway

MESSAGES = [
    ChatMessage(role="system", content="You classify things."),
    ChatMessage(role="user", content="hello"),
]


@pytest.mark.asyncio
async def test_structured_call_appends_json_instruction_and_uses_low_temperature() -> None:
    provider = ScriptedProvider(['{"intent": "chitchat"}'])
    gateway = make_gateway(provider)

    text = await gateway.complete(MESSAGES, structured_output=True)

    assert text == '{"intent": "chitchat"}'
    call = provider.calls[0]
    assert call["json_mode"] is True
    assert call["temperature"] == 0.1
    sent = call["messages"]
    assert sent[0].content.endswith(JSON_ONLY_INSTRUCTION)
    assert MESSAGES[0].content == "You classify things."


@pytest.mark.asyncio
async def test_open_ended_call_uses_higher_temperature_without_json_mode() -> None:
    provider = ScriptedProvider(["Hi!"])
    gateway = make_gateway(provider)

    assert await gateway.complete(MESSAGES) == "Hi!"
    assert provider.calls[0]["json_mode"] is False
    assert provider.calls[0]["temperature"] == 0.7
    assert provider.calls[0]["messages"][0].content == "You classify things."


@pytest.mark.asyncio
async def test_retries_with_exponential_backoff_then_succeeds() -> None:
    delays: list[float] = []

    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    provider = ScriptedProvider([RuntimeError("boom"), RuntimeError("boom"), "ok"])
    gateway = LanguageModelGateway(provider, sleep=record_sleep)

    assert await gateway.complete(MESSAGES) == "ok"
    assert delays == [1.0, 2.0]
    assert len(provider.calls) == 3


@pytest.mark.asyncio
async def test_raises_gateway_error_after_three_attempts() -> None:
    provider = ScriptedProvider([RuntimeError("down")] * 4)
    gateway = make_gateway(provider)

    with pytest.raises(GatewayError, match="down"):
        await gateway.complete(MESSAGES, structured_output=True)
    assert len(provider.calls) == 3


@pytest.mark.asyncio
async def test_retries_do_not_repeat_json_instruction() -> None:
    provider = ScriptedProvider([RuntimeError("flaky"), "{}"])
    gateway = make_gateway(provider)

    await gateway.complete(MESSAGES, structured_output=True)
    last_system = provider.calls[-1]["messages"][0].content
    assert last_system.count(JSON_ONLY_INSTRUCTION.strip()) == 1


@pytest.mark.asyncio
async def test_complete_json_surfaces_parse_error() -> None:
    gateway = make_gateway(ScriptedProvider(["not json at all"]))
    with pytest.raises(ParseError):
        await gateway.complete_json(MESSAGES)
