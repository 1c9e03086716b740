import json

import pytest

from spendtrack.services.llm.parser_utils import (
    ParseError,
    extract_json,
    normalize_message_content,
)


def test_extract_json_parses_clean_object() -> None:
    assert extract_json('{"intent": "query"}') == {"intent": "query"}


def test_extract_json_recovers_object_from_surrounding_text() -> None:
    text = 'Sure! Here you go:\n{"amount": 200, "category": "groceries"}\nHope that helps.'
    assert extract_json(text) == {"amount": 200, "category": "groceries"}


def test_extract_json_raises_when_no_braces() -> None:
    with pytest.raises(ParseError, match="No JSON structure"):
        extract_json("I think this is a query.")


def test_extract_json_raises_when_brace_block_is_invalid() -> None:
    with pytest.raises(ParseError, match="Could not extract"):
        extract_json("answer: {intent: query}")


def test_extract_json_rejects_empty_and_non_object_payloads() -> None:
    with pytest.raises(ParseError):
        extract_json("")
    with pytest.raises(ParseError):
        extract_json("[1, 2, 3]")


def test_normalize_message_content_from_text_blocks() -> None:
    payload = {"intent": "chitchat"}
    content = [{"type": "text", "text": json.dumps(payload)}]
    assert normalize_message_content(content) == json.dumps(payload)


def test_normalize_message_content_from_dict_payload() -> None:
    normalized = normalize_message_content({"intent": "query"})
    assert normalized.startswith("{")
    assert '"intent"' in normalized
    assert normalize_message_content(None) == ""
