from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BARISTA_AUTH_", extra="ignore")
    # Reject flow invocations whose context carries no headers at all.
    require_headers: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    # Model reference in "provider/model" form
    default_model: str = "googleai/gemini-2.0-flash"

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    gemini_api_key: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    request_timeout_seconds: float = 60.0
    # Generation parameters applied to every prompt; unset leaves the model default
    generation_temperature: float | None = None
    generation_max_tokens: int | None = None

    # Nested settings
    auth: AuthSettings = AuthSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
