import httpx

from spendtrack.services.llm.base import CompletionProvider
from spendtrack.services.llm.parser_utils import normalize_message_content
from spendtrack.services.llm.types import ChatMessage


class OpenAICompletionProvider(CompletionProvider):
    def __init__(self, api_key: str, model: str, timeout_seconds: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds

    async def create_completion(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        payload: dict[str, object] = {
            "model": self.model,
            "messages": [message.as_payload() for message in messages],
            "temperature": temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        timeout = httpx.Timeout(self.timeout_seconds, connect=10.0)
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(
                "https://api.openai.com/v1/chat/completions",
                json=payload,
                headers=headers,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
            return normalize_message_content(content)
