"""
Application Configuration Module.

Manages application settings and environment variables using Pydantic for validation.
Provides centralized configuration management with type safety and validation.

Features:
- Environment variable loading and validation
- Secure credential management
- Automation identity settings (merge bot login, CI bot name)
- Re-run wait tuning for the GitHub status poller
"""

from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logger import LogManager


class Settings(BaseSettings):
    """
    Application configuration settings with validation.

    Attributes:
        app_name (str): Name of the application
        dev (bool): Debug mode flag
        log_dir (str): Directory for log files
        log_level (int): Logging level (default: info)
        github_token (Optional[SecretStr]): GitHub API authentication token
        github_repo_urls (str): Comma-separated repository URLs
        bot_login (str): Login the automation posts comments as
        ci_bot_name (str): Login the CI system listens to for re-test requests
        pending_timeout_seconds (int): How long to wait for a re-run to start
        pending_poll_seconds (int): Interval between status polls while waiting
    """

    # Application settings
    app_name: str = Field(default="Mungegithub", description="Application name")
    dev: bool = Field(default=False, description="Debug mode")
    log_dir: str = Field(default="logs", description="Logging directory")
    log_level: int = Field(default=20, description="Logging level, default info")

    # GitHub configuration
    github_token: Optional[SecretStr] = Field(default=None, description="GitHub token")
    github_repo_urls: str = Field(
        default="", description="Comma-separated GitHub repository URLs to munge"
    )

    # Automation identities
    bot_login: str = Field(
        default="k8s-merge-robot", description="Login of the automation account"
    )
    ci_bot_name: str = Field(
        default="k8s-bot", description="Login the CI system takes commands from"
    )

    # Re-run wait
    pending_timeout_seconds: int = Field(
        default=300, description="Seconds to wait for CI to report pending"
    )
    pending_poll_seconds: int = Field(
        default=10, description="Seconds between combined status polls"
    )

    @property
    def repository_urls(self) -> List[str]:
        """
        Get list of repository URLs from configuration.

        Splits and cleans the comma-separated repository URLs string.

        Returns:
            List[str]: List of cleaned repository URLs
        """
        return [url.strip() for url in self.github_repo_urls.split(",") if url.strip()]

    @field_validator("pending_timeout_seconds", "pending_poll_seconds")
    def ensure_positive(cls, v: int) -> int:
        """
        Reject non-positive wait settings.

        Args:
            v (int): Number of seconds

        Returns:
            int: The validated value
        """
        if v <= 0:
            raise ValueError("must be a positive number of seconds")
        return v

    # Configure env file loading
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )


# Create global settings instance
settings = Settings()

# Initialize logging configuration
logger = LogManager(
    app_name=settings.app_name.lower(),
    log_dir=settings.log_dir,
    development=settings.dev,
    level=settings.log_level,
).logger
