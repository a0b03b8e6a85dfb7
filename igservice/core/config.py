from functools import lru_cache
from typing import Optional
import logging
import os

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Client configuration settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="IGSERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Web service settings
    BASE_URL: Optional[str] = None

    # Pagination defaults for view/app calls
    ROWS_PER_PAGE: int = 25
    START_ROW: int = 1

    # Transport settings; None leaves requests unbounded
    REQUEST_TIMEOUT: Optional[float] = None

    # Logging settings
    LOG_LEVEL: str = "INFO"
    ENABLE_STRUCTURED_LOGGING: bool = False

    @field_validator("ROWS_PER_PAGE", "START_ROW")
    @classmethod
    def check_positive(cls, v: int) -> int:
        """Pagination values must be positive."""
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.rstrip("/") or None


def load_env_file(env_file: str = ".env") -> bool:
    """
    Load environment variables from specified .env file.

    Args:
        env_file: Path to the .env file, relative to the working directory.

    Returns:
        bool: True if the file was found and loaded.
    """
    env_path = os.path.join(os.getcwd(), env_file)
    if os.path.exists(env_path):
        load_dotenv(env_path)
        get_settings.cache_clear()
        return True
    logger.warning(f"Environment file {env_path} not found")
    return False


@lru_cache()
def get_settings() -> Settings:
    """
    Get client settings with caching for efficiency.

    Returns:
        Settings: Client settings instance
    """
    return Settings()
