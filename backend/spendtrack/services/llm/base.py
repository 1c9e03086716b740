from abc import ABC, abstractmethod

from spendtrack.services.llm.types import ChatMessage


class CompletionProvider(ABC):
    @abstractmethod
    async def create_completion(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        raise NotImplementedError
