from spendtrack.core.config import Settings, get_settings
from spendtrack.services.llm.base import CompletionProvider
from spendtrack.services.llm.gateway import LanguageModelGateway
from spendtrack.services.llm.groq_provider import GroqCompletionProvider
from spendtrack.services.llm.mock_provider import MockCompletionProvider
from spendtrack.services.llm.openai_provider import OpenAICompletionProvider

SUPPORTED_PROVIDERS = ("mock", "groq", "openai")


class ProviderNotConfiguredError(RuntimeError):
    """Raised when a non-mock provider is selected but not configured."""


def _provider_name(settings: Settings) -> str:
    name = settings.llm_provider.lower().strip()
    return name if name in SUPPORTED_PROVIDERS else "mock"


def get_completion_provider(settings: Settings | None = None) -> CompletionProvider:
    settings = settings or get_settings()
    provider = _provider_name(settings)

    if provider == "groq":
        if not settings.groq_api_key:
            raise ProviderNotConfiguredError(
                "Groq API key is missing. Set GROQ_API_KEY in backend .env."
            )
        return GroqCompletionProvider(
            api_key=settings.groq_api_key.strip(),
            model=settings.groq_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )
    if provider == "openai":
        if not settings.openai_api_key:
            raise ProviderNotConfiguredError(
                "OpenAI API key is missing. Set OPENAI_API_KEY in backend .env."
            )
        return OpenAICompletionProvider(
            api_key=settings.openai_api_key.strip(),
            model=settings.openai_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )
    return MockCompletionProvider()


def build_gateway(
    provider: CompletionProvider,
    settings: Settings | None = None,
) -> LanguageModelGateway:
    settings = settings or get_settings()
    return LanguageModelGateway(
        provider,
        max_retries=settings.llm_max_retries,
        backoff_base_seconds=settings.llm_backoff_base_seconds,
        structured_temperature=settings.llm_structured_temperature,
        chat_temperature=settings.llm_chat_temperature,
    )
