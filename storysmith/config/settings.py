"""
Configuration settings for the application.
Loads environment variables and provides type-safe configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Shell story micro-syntax
    shell_stories_heading: str = Field(
        default="Shell Stories", description="Heading label of the shell stories section"
    )
    story_separator: str = Field(default="⟩", description="Glyph between story title and description")
    story_id_pattern: str = Field(
        default=r"^[a-z]+\d+$", description="Regex a code-marked story id must match (e.g. st001)"
    )
    screens_label: str = Field(default="SCREENS:", description="Label of the nested screens item")
    dependencies_label: str = Field(
        default="DEPENDENCIES:", description="Label of the nested dependencies item"
    )

    # Atlassian Configuration
    atlassian_base_url: str = Field(default="https://example.atlassian.net", description="Atlassian base URL")
    atlassian_email: str = Field(default="user@example.com", description="Atlassian user email")
    atlassian_api_token: str = Field(default="", description="Atlassian API token")

    # HTTP
    http_timeout: float = Field(default=30.0, description="Request timeout in seconds")
    http_max_retries: int = Field(default=3, description="Retry attempts for timeouts and network errors")


# Global settings instance
settings = Settings()
