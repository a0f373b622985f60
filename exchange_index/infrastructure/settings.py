# exchange_index/infrastructure/settings.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class ChatSettings(BaseSettings):
    """LLM backend settings, read from ANTHROPIC_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ANTHROPIC_",
        extra="ignore",
        frozen=True,
        case_sensitive=False,
    )

    api_key: str = ""
    base_url: str = "https://api.anthropic.com"
    api_version: str = "2023-06-01"
    model: str = "claude-3-5-haiku-20241022"
    max_tokens: int = 2048
    timeout_seconds: float = 60.0


def get_chat_settings() -> ChatSettings:
    return ChatSettings()
