"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
import logging

DEFAULT_TRANSLATIONS_PATH = Path(__file__).resolve().parent / "data" / "translations.tsv"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    environment: str = "development"
    log_dir: str = "logs"

    # GitHub issue store (required for the submission path only)
    github_token: str = ""
    github_owner: str = ""
    github_repo: str = ""
    github_labels: Annotated[list[str], NoDecode] = []
    github_api_url: str = "https://api.github.com"
    github_user_agent: str = "tsc-event-survey-web-2025-12"
    github_timeout_seconds: float = 15.0  # Bound for every single upstream call
    github_max_list_pages: int = 10  # Open-issue pages scanned for stale submissions

    # CORS (empty = reflect any origin)
    allowed_origins: Annotated[list[str], NoDecode] = []

    # Reporting
    report_csv_url: str = ""  # Remote CSV export; takes precedence over the path
    report_csv_path: str = ""
    report_cache_seconds: float = 60.0
    report_fetch_timeout_seconds: float = 15.0

    # Translations
    translations_path: Path = DEFAULT_TRANSLATIONS_PATH
    default_language: str = "en"

    @field_validator("github_labels", "allowed_origins", mode="before")
    @classmethod
    def parse_comma_separated(cls, value):
        """Parse comma-separated lists from environment variables."""
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("value must be provided as a string or sequence")

    @field_validator("github_token", "github_owner", "github_repo", mode="before")
    @classmethod
    def strip_secret(cls, value):
        if value is None:
            return ""
        return str(value).strip()

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate numeric bounds and normalize URLs."""
        logger = logging.getLogger(__name__)

        if self.github_timeout_seconds <= 0:
            raise ValueError("github_timeout_seconds must be positive")
        if self.github_max_list_pages < 1:
            raise ValueError("github_max_list_pages must be at least 1")
        if self.report_cache_seconds < 0:
            raise ValueError("report_cache_seconds cannot be negative")

        self.github_api_url = self.github_api_url.rstrip("/")
        self.default_language = self.default_language.strip().lower() or "en"

        if self.environment == "production" and not self.github_token:
            logger.warning("GITHUB_TOKEN is not set; submissions will fail with a configuration error")

        return self

    @property
    def missing_github_settings(self) -> list[str]:
        """Names of the environment variables the submission path still needs."""
        required = {
            "GITHUB_TOKEN": self.github_token,
            "GITHUB_OWNER": self.github_owner,
            "GITHUB_REPO": self.github_repo,
        }
        return [name for name, value in required.items() if not value]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
