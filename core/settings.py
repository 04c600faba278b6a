from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Provide clear, concise, and accurate "
    "responses. Be friendly and professional in your interactions."
)


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=False)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)
    APP_VERSION: str = Field(default="1.0.0")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "prod"


class SqliteSettings(CustomSettings):
    DATABASE_PATH: str = Field(default="messages.db")
    DATABASE_URL: str = Field(default="")
    DATABASE_ECHO: bool = Field(default=False)

    @model_validator(mode="before")
    def validate_sqlite_url(cls, data: dict):
        if isinstance(data, dict) and not data.get("DATABASE_URL"):
            path = data.get("DATABASE_PATH", "messages.db")
            data["DATABASE_URL"] = f"sqlite+aiosqlite:///{path}"
        return data


class OpenAISettings(CustomSettings):
    """Configuration for the chat completion collaborator.

    Env vars:
    - OPENAI_API_KEY
    - OPENAI_MODEL
    - OPENAI_MAX_TOKENS
    - OPENAI_TEMPERATURE
    - SYSTEM_PROMPT
    """

    OPENAI_API_KEY: SecretStr = Field(default="")
    OPENAI_MODEL: str = Field(default="gpt-4.1-mini")
    OPENAI_MAX_TOKENS: int = Field(default=1000)
    OPENAI_TEMPERATURE: float = Field(default=0.7)
    SYSTEM_PROMPT: str = Field(default=DEFAULT_SYSTEM_PROMPT)


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: SqliteSettings = Field(default_factory=SqliteSettings)
    OPENAI: OpenAISettings = Field(default_factory=OpenAISettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
