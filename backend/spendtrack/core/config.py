from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Spendtrack API"
    log_level: str = "INFO"
    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    database_url: str = "sqlite+aiosqlite:///./spendtrack.db"
    cors_allow_origins: str = "http://localhost:5173"
    llm_provider: str = "mock"
    llm_timezone: str = "Asia/Kolkata"
    llm_timeout_seconds: float = 30.0
    llm_max_retries: int = 2
    llm_backoff_base_seconds: float = 1.0
    llm_structured_temperature: float = 0.1
    llm_chat_temperature: float = 0.7
    groq_api_key: str | None = None
    groq_model: str = "llama-3.1-8b-instant"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    currency_symbol: str = "₹"
    chat_context_ttl_minutes: int = 30
    chat_context_max_entries: int = 10_000
    chat_month_shortcut_enabled: bool = True

    @property
    def cors_origins(self) -> list[str]:
        return [x.strip() for x in self.cors_allow_origins.split(",") if x.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
