from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
import logging
from typing import Any

from spendtrack.services.llm.base import CompletionProvider
from spendtrack.services.llm.parser_utils import extract_json
from spendtrack.services.llm.prompts import JSON_ONLY_INSTRUCTION
from spendtrack.services.llm.types import ChatMessage

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class GatewayError(RuntimeError):
    """Raised when the completion service fails after all retries."""


class LanguageModelGateway:
    def __init__(
        self,
        provider: CompletionProvider,
        *,
        max_retries: int = 2,
        backoff_base_seconds: float = 1.0,
        structured_temperature: float = 0.1,
        chat_temperature: float = 0.7,
        sleep: Sleep = asyncio.sleep,
    ):
        self.provider = provider
        self.max_retries = max(0, max_retries)
        self.backoff_base_seconds = backoff_base_seconds
        self.structured_temperature = structured_temperature
        self.chat_temperature = chat_temperature
        self._sleep = sleep

    def _prepare_messages(
        self,
        messages: Sequence[ChatMessage],
        structured_output: bool,
    ) -> list[ChatMessage]:
        prepared = [message.model_copy() for message in messages]
        if structured_output and prepared and prepared[0].role == "system":
            prepared[0] = ChatMessage(
                role="system",
                content=prepared[0].content + JSON_ONLY_INSTRUCTION,
            )
        return prepared

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        structured_output: bool = False,
    ) -> str:
        prepared = self._prepare_messages(messages, structured_output)
        temperature = (
            self.structured_temperature if structured_output else self.chat_temperature
        )
        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                return await self.provider.create_completion(
                    prepared,
                    temperature=temperature,
                    json_mode=structured_output,
                )
            except Exception as exc:
                if attempt == attempts - 1:
                    logger.error(
                        "Completion failed after %d attempts: %s", attempts, exc
                    )
                    raise GatewayError(f"Language model request failed: {exc}") from exc
                delay = self.backoff_base_seconds * (2**attempt)
                logger.warning(
                    "Completion attempt %d/%d failed (%s); retrying in %.1fs",
                    attempt + 1,
                    attempts,
                    exc,
                    delay,
                )
                await self._sleep(delay)
        raise GatewayError("Language model request was not attempted.")

    async def complete_json(self, messages: Sequence[ChatMessage]) -> dict[str, Any]:
        text = await self.complete(messages, structured_output=True)
        return extract_json(text)
