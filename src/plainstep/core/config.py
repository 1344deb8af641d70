"""
PlainStep Configuration Module

Handles all configuration settings using pydantic-settings.
Settings come from the process environment, a project ``.env`` file and
an optional per-environment file such as ``config/.qa.env``.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserName(str, Enum):
    """Browser engines Playwright can launch."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class ClassifierKind(str, Enum):
    """Available intent classifier back-ends."""

    PATTERN = "pattern"
    LLM = "llm"


class LLMProvider(str, Enum):
    """Supported LLM providers for the LLM intent classifier."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and env files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Target
    environment: str = Field(default="qa")
    base_url: str = Field(default="http://localhost:3000")

    # Browser
    browser: BrowserName = Field(default=BrowserName.CHROMIUM)
    headless: bool = Field(default=True)
    slow_mo: int = Field(default=0)
    timeout_ms: int = Field(default=10000)
    viewport_width: Optional[int] = Field(default=None)
    viewport_height: Optional[int] = Field(default=None)

    # Execution
    retries: int = Field(default=2, ge=0)
    retry_backoff_ms: int = Field(default=1000, ge=0)
    parallel: bool = Field(default=True)
    max_workers: int = Field(default=2, ge=1)

    # Artifacts
    enable_screenshots: bool = Field(default=True)
    enable_video: bool = Field(default=False)
    enable_tracing: bool = Field(default=False)
    report_dir: str = Field(default="./test-results")
    registry_dir: str = Field(default="./registries")
    test_data_dir: str = Field(default="./testdata")
    config_dir: str = Field(default="./config")

    # Logging
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="./logs")

    # Intent classification
    intent_classifier: ClassifierKind = Field(default=ClassifierKind.PATTERN)
    default_llm_provider: LLMProvider = Field(default=LLMProvider.ANTHROPIC)
    default_model: str = Field(default="claude-sonnet-4-20250514")
    anthropic_api_key: Optional[SecretStr] = Field(default=None)
    openai_api_key: Optional[SecretStr] = Field(default=None)

    def get_api_key(self, provider: Optional[LLMProvider] = None) -> Optional[str]:
        """Get the API key for the specified or default provider."""
        provider = provider or self.default_llm_provider

        key_map = {
            LLMProvider.ANTHROPIC: self.anthropic_api_key,
            LLMProvider.OPENAI: self.openai_api_key,
        }

        secret = key_map.get(provider)
        return secret.get_secret_value() if secret else None

    @property
    def viewport(self) -> Optional[dict[str, int]]:
        """Viewport size for new browser contexts, if one is configured."""
        if self.viewport_width and self.viewport_height:
            return {"width": self.viewport_width, "height": self.viewport_height}
        return None


def environment_file(config_dir: str, environment: str) -> Path:
    """Path of the key-value file holding one environment's settings."""
    return Path(config_dir) / f".{environment}.env"


def load_settings(environment: Optional[str] = None, **overrides) -> Settings:
    """
    Build the settings for one run.

    The project ``.env`` is read first, then ``<config_dir>/.<environment>.env``
    on top of it. Process environment variables and explicit overrides win
    over both files.

    Args:
        environment: Environment name (e.g. "qa"); defaults to ENVIRONMENT
        **overrides: Field values that take precedence over every source

    Returns:
        A fresh Settings instance
    """
    base = Settings()
    environment = environment or base.environment
    config_dir = overrides.get("config_dir", base.config_dir)

    env_files: list[Path] = [Path(".env")]
    env_path = environment_file(config_dir, environment)
    if env_path.exists():
        env_files.append(env_path)

    return Settings(_env_file=tuple(env_files), environment=environment, **overrides)
