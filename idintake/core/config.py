"""
Centralized application settings using Pydantic.

All environment variables are read once and validated. Accessors are cached,
so collaborators built in the application lifespan see one consistent view.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings

from idintake.core.constants import (
    INTAKE_TIMEOUT_SECONDS,
    MAX_IMAGE_SIZE_MB,
    POLL_INTERVAL_SECONDS,
    POLL_MAX_ATTEMPTS,
    RECOGNIZER_CLIENT_TIMEOUT_SECONDS,
    REFERENCE_CACHE_TTL_SECONDS,
    REFERENCE_RESULT_LIMIT,
)


class RecognizerSettings(BaseSettings):
    """OCR recognizer (Azure Read API) configuration."""

    RECOGNIZER_ENDPOINT: str = ""
    RECOGNIZER_SUBSCRIPTION_KEY: SecretStr = SecretStr("")
    RECOGNIZER_POLL_INTERVAL_SECONDS: float = POLL_INTERVAL_SECONDS
    RECOGNIZER_POLL_MAX_ATTEMPTS: int = POLL_MAX_ATTEMPTS
    RECOGNIZER_CLIENT_TIMEOUT_SECONDS: float = RECOGNIZER_CLIENT_TIMEOUT_SECONDS
    RECOGNIZER_VERIFY_SSL: bool = True
    RECOGNIZER_MAX_ATTEMPTS: int = 1  # Whole-submission attempts on unreachable

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}

    @property
    def is_configured(self) -> bool:
        return bool(
            self.RECOGNIZER_ENDPOINT.strip()
            and self.RECOGNIZER_SUBSCRIPTION_KEY.get_secret_value()
        )


class ReferenceSettings(BaseSettings):
    """Geographic reference store configuration."""

    REFERENCE_SOURCE: Literal["file", "postgrest"] = "file"
    REFERENCE_DATA_PATH: Optional[Path] = None
    REFERENCE_API_URL: str = ""
    REFERENCE_API_KEY: SecretStr = SecretStr("")
    REFERENCE_RESULT_LIMIT: int = REFERENCE_RESULT_LIMIT
    REFERENCE_CACHE_TTL_SECONDS: float = REFERENCE_CACHE_TTL_SECONDS
    RANKING_STRATEGY: Literal["first", "similarity"] = "first"

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class AppSettings(BaseSettings):
    """General application settings."""

    APP_NAME: str = "idintake"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    INTAKE_TIMEOUT_SECONDS: float = INTAKE_TIMEOUT_SECONDS
    MAX_IMAGE_SIZE_MB: int = MAX_IMAGE_SIZE_MB

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_recognizer_settings() -> RecognizerSettings:
    return RecognizerSettings()


@lru_cache(maxsize=1)
def get_reference_settings() -> ReferenceSettings:
    return ReferenceSettings()


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    return AppSettings()
