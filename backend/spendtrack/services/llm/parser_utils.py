import json
import re
from typing import Any

JSON_BLOCK_PATTERN = re.compile(r"\{[\s\S]*\}")


class ParseError(ValueError):
    """Raised when a model response does not contain a usable JSON object."""


def normalize_message_content(content: object) -> str:
    if isinstance(content, str):
        return content
    if content is None:
        return ""
    if isinstance(content, list):
        chunks: list[str] = []
        for block in content:
            if isinstance(block, str):
                chunks.append(block)
                continue
            if isinstance(block, dict):
                text = block.get("text")
                if isinstance(text, str):
                    chunks.append(text)
                    continue
            chunks.append(json.dumps(block))
        return "\n".join(chunks)
    if isinstance(content, dict):
        text = content.get("text")
        if isinstance(text, str):
            return text
        return json.dumps(content)
    return str(content)


def _parse_direct(text: str) -> Any:
    return json.loads(text)


def _parse_brace_block(text: str) -> Any:
    match = JSON_BLOCK_PATTERN.search(text)
    if not match:
        raise ParseError("No JSON structure found in response")
    return json.loads(match.group(0))


def extract_json(text: str | None) -> dict[str, Any]:
    if not text or not text.strip():
        raise ParseError("Empty response from language model")

    try:
        data = _parse_direct(text.strip())
    except json.JSONDecodeError:
        try:
            data = _parse_brace_block(text)
        except json.JSONDecodeError as exc:
            raise ParseError("Could not extract valid JSON from response") from exc

    if not isinstance(data, dict):
        raise ParseError("Expected a JSON object in response")
    return data
