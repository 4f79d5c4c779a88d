"""Environment-driven configuration helpers for ReceiptLab."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from receiptlab.errors import ConfigurationError

logger = logging.getLogger(__name__)

ProviderName = Literal["gemini-pro", "gemini-flash", "openai-dalle", "openai-vision"]


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    google_api_key: str = Field(default="", validation_alias="GOOGLE_GENERATIVE_AI_API_KEY")
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")

    image_provider: ProviderName = Field(default="gemini-pro")
    prompt_style: Literal["photorealistic", "typography"] = Field(default="photorealistic")

    vercel_url: str = Field(default="", validation_alias="VERCEL_URL")
    public_base_url: str = Field(default="", validation_alias="NEXT_PUBLIC_BASE_URL")
    reference_image_dir: Path | None = Field(default=None)

    request_timeout: float = Field(default=120.0, gt=0)
    default_stake: float = Field(default=100.0, gt=0)

    @property
    def reference_base_url(self) -> str:
        if self.vercel_url:
            return f"https://{self.vercel_url}"
        return self.public_base_url or "http://localhost:3000"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read the environment and .env once; every caller shares the same Settings."""

    settings = Settings()
    logger.debug("Image provider %s, prompt style %s", settings.image_provider, settings.prompt_style)
    return settings


def get_google_api_key() -> str:
    """Return the Gemini API key or raise a helpful error."""

    key = os.getenv("GOOGLE_GENERATIVE_AI_API_KEY") or get_settings().google_api_key
    if not key:
        raise ConfigurationError(
            "GOOGLE_GENERATIVE_AI_API_KEY must be provided. "
            "Set it in .env for local dev or in the deployment environment."
        )
    return key


def get_openai_api_key() -> str:
    key = os.getenv("OPENAI_API_KEY") or get_settings().openai_api_key
    if not key:
        raise ConfigurationError(
            "OPENAI_API_KEY must be provided. Set it in .env or in the deployment environment."
        )
    return key
