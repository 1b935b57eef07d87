"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """LLM API configuration."""

    model: str = Field(
        default="anthropic/claude-sonnet-4-20250514",
        description="LiteLLM model string, e.g. 'anthropic/claude-sonnet-4-20250514', "
                    "'openai/gpt-4o'. The provider prefix tells LiteLLM which API "
                    "to route the request to.",
    )
    max_tokens: int = Field(default=4096, description="Maximum tokens in response")
    temperature: float = Field(default=0.3, description="Sampling temperature")
    api_key: str = Field(default="", description="API key for the model's provider")

    model_config = SettingsConfigDict(env_prefix="LLM_")


class AgentSettings(BaseSettings):
    """Agent loop configuration."""

    max_tool_iterations: int = Field(
        default=10,
        ge=1,
        description="Maximum model round trips per user message. A run that is "
                    "still calling tools when the cap is hit ends with the text "
                    "gathered so far.",
    )

    model_config = SettingsConfigDict(env_prefix="AGENT_")


class WikiSettings(BaseSettings):
    """OSRS Wiki and real-time prices API configuration."""

    api_url: str = Field(
        default="https://oldschool.runescape.wiki/api.php",
        description="MediaWiki API endpoint",
    )
    prices_url: str = Field(
        default="https://prices.runescape.wiki/api/v1/osrs",
        description="Base URL of the real-time Grand Exchange prices API",
    )
    page_url: str = Field(
        default="https://oldschool.runescape.wiki/w/",
        description="Prefix used to build human-readable article links",
    )
    user_agent: str = Field(
        default="RuneAgent/0.1 (RuneLite assistant)",
        description="User-Agent header; the wiki asks API clients to identify themselves",
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    max_page_chars: int = Field(
        default=8000, gt=0, description="Wiki page extracts are truncated to this length"
    )
    max_search_results: int = Field(
        default=10, ge=1, description="Upper bound for the search_wiki limit argument"
    )

    model_config = SettingsConfigDict(env_prefix="WIKI_")


class HostSettings(BaseSettings):
    """Local client state backing the plugin, config and player tools."""

    state_file: Path | None = Field(
        default=None,
        description="JSON snapshot of plugins, config and player stats. "
                    "Config and plugin changes are written back to it. "
                    "If None, state lives in memory only.",
    )

    model_config = SettingsConfigDict(env_prefix="HOST_")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Sub-configurations
    llm: LLMSettings = Field(default_factory=LLMSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    wiki: WikiSettings = Field(default_factory=WikiSettings)
    host: HostSettings = Field(default_factory=HostSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
