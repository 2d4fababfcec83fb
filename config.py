from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the MindfulMe backend.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,   # env var names are case-sensitive
        extra="ignore",
    )

    # these will read from ENV, DEBUG and LOG_LEVEL in env/system
    env: str = Field(default="local", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # optional; AI endpoints check it per request
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key",
        alias="OPENAI_API_KEY",
    )
    model_json: str = Field(default="gpt-4.1", alias="OPENAI_MODEL_JSON")
    model_text: str = Field(default="gpt-4.1", alias="OPENAI_MODEL_TEXT")
    model_vision: str = Field(default="gpt-4o", alias="OPENAI_MODEL_VISION")
    model_audio: str = Field(default="gpt-4o-audio-preview", alias="OPENAI_MODEL_AUDIO")
    image_model: str = Field(default="dall-e-3", alias="OPENAI_IMAGE_MODEL")

    # "memory" or "firestore"
    store_backend: str = Field(default="memory", alias="STORE_BACKEND")
    firebase_credentials: Optional[str] = Field(
        default=None,
        description="Path to a Firebase service-account JSON file",
        alias="FIREBASE_CREDENTIALS",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
