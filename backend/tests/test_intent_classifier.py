import pytest

from spendtrack.services.assistant.intent import Intent, IntentClassifier

from fakes import ScriptedProvider, make_gateway


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("reply", "expected"),
    [
        ('{"intent": "add_expense"}', Intent.ADD_EXPENSE),
        ('Here: {"intent": "query"}', Intent.QUERY),
        ('{"intent": "CHITCHAT"}', Intent.CHITCHAT),
        ('{"intent": "delete_everything"}', Intent.CHITCHAT),
        ('{"intent": 42}', Intent.CHITCHAT),
        ('{"mood": "happy"}', Intent.CHITCHAT),
        ("I'm sorry, I can't help with that.", Intent.CHITCHAT),
    ],
)
async def test_classifier_output_is_always_a_known_intent(reply: str, expected: Intent) -> None:
    classifier = IntentClassifier(make_gateway(ScriptedProvider([reply])))
    intent = await classifier.classify("anything")
    assert intent == expected
    assert intent in set(Intent)


@pytest.mark.asyncio
async def test_classifier_defaults_to_chitchat_when_gateway_fails() -> None:
    provider = ScriptedProvider([RuntimeError("network")] * 3)
    classifier = IntentClassifier(make_gateway(provider))

    assert await classifier.classify("I spent 20 on tea") == Intent.CHITCHAT
    assert len(provider.calls) == 3
    assert provider.calls[0]["json_mode"] is True
