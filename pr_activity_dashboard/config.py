"""
Application configuration management
"""

from datetime import date
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items"""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings, read once at startup and never mutated"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # GitHub API Configuration
    github_token: str = Field("")
    github_owner: str = Field("")
    github_repos: str = Field("")
    github_api_base_url: str = Field("https://api.github.com")
    per_page: int = Field(100, ge=1, le=100)
    max_pages: int = Field(500, ge=1)
    request_timeout: float = Field(30.0)

    # Pacing
    rate_limit_delay: float = Field(1.0, ge=0)
    comment_fetch_delay: float = Field(0.5, ge=0)

    # Analysis Configuration
    min_comment_length: int = Field(5, ge=0)
    max_comment_length: int = Field(5000, ge=1)
    excluded_users: str = Field("dependabot[bot],github-actions[bot]")

    # Filter defaults
    default_label: str = Field("")
    default_user: str = Field("")
    default_start_date: date = Field(date(2025, 1, 10))
    default_end_date: date = Field(date(2025, 1, 31))

    # Database Configuration
    database_url: str = Field("sqlite:///./analysis.db")

    # Application Configuration
    app_name: str = Field("PR Activity Dashboard")
    app_version: str = Field("1.0.0")
    debug: bool = Field(False)
    host: str = Field("127.0.0.1")
    port: int = Field(8000)

    # Logging Configuration
    log_level: str = Field("INFO")
    log_format: str = Field("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    @property
    def repositories(self) -> list[str]:
        """Configured repository names, without the owner prefix"""
        return [repo.split("/")[-1] for repo in split_csv(self.github_repos)]

    @property
    def excluded_user_list(self) -> list[str]:
        return split_csv(self.excluded_users)

    def validate_required(self) -> None:
        """
        Check the settings a run cannot start without

        Raises:
            ConfigurationError: If the token, owner or repository list is missing
        """
        if not self.github_token:
            raise ConfigurationError("Invalid or missing GitHub token (set GITHUB_TOKEN)")
        if not self.github_owner:
            raise ConfigurationError("GitHub owner is required (set GITHUB_OWNER)")
        if not self.repositories:
            raise ConfigurationError("At least one repository must be specified (set GITHUB_REPOS)")
        if self.min_comment_length > self.max_comment_length:
            raise ConfigurationError("MIN_COMMENT_LENGTH must not exceed MAX_COMMENT_LENGTH")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_github_headers(settings: Settings) -> dict:
    """Get GitHub API headers with authentication"""
    return {
        "Authorization": f"Bearer {settings.github_token}",
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": f"{settings.app_name}/{settings.app_version}",
    }
