"""
Application Configuration Management

Provides a single validated settings object built from the environment and
an optional .env file. The settings are constructed once at process start
and handed to every component that needs a credential or a path; nothing
else in the package reads the environment directly.

Design Considerations:
- Secure handling of API keys through SecretStr
- Central validation before any component is constructed
- Default values matching the original single-run deployment
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings

from inbox_insights.errors import ConfigurationError

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class AppSettings(BaseSettings):
    """
    Runtime configuration with environment-variable loading and validation.

    Provider API keys are mandatory for every enabled pipeline. Everything
    else has a default suitable for running the CLI from the project root.
    """
    # Provider credentials
    GROQ_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="API key for the Groq chat completion provider (email pipeline)"
    )
    OPENAI_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="API key for the OpenAI provider (Upwork market analysis)"
    )

    # Models
    EMAIL_MODEL: str = Field(
        default="llama-3.3-70b-versatile",
        description="Model used by the classify/summarize/evaluate/improve stages"
    )
    MARKET_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Model used by the skill-demand and portfolio stages"
    )

    # Mailbox
    GMAIL_CREDENTIALS_PATH: str = Field(
        default="credentials.json",
        description="OAuth client secrets file for the installed-app flow"
    )
    GMAIL_TOKEN_PATH: str = Field(
        default="token.json",
        description="Cached OAuth token location"
    )

    # Output and logging
    OUTPUT_DIR: str = Field(
        default="public",
        description="Directory receiving all JSON results and debug dumps"
    )
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FILE: Optional[str] = Field(
        default="logs/inbox_insights.log",
        description="Log file path, empty to log to the console only"
    )

    # Pipelines
    RUN_EMAIL_PIPELINE: bool = Field(default=True)
    RUN_UPWORK_PIPELINE: bool = Field(default=True)
    UPWORK_WINDOW_START: datetime = Field(
        default=datetime.fromisoformat("2025-03-04T00:00:00+05:30"),
        description="Inclusive start of the Upwork analysis window"
    )
    UPWORK_WINDOW_END: datetime = Field(
        default=datetime.fromisoformat("2025-03-06T23:59:59+05:30"),
        description="Inclusive end of the Upwork analysis window"
    )

    @field_validator("GROQ_API_KEY", "OPENAI_API_KEY")
    @classmethod
    def validate_api_key(cls, value: Optional[SecretStr]) -> Optional[SecretStr]:
        """Reject keys that are present but blank."""
        if value is not None and not value.get_secret_value().strip():
            raise ValueError("API key must not be empty")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def validate_pipelines(self) -> "AppSettings":
        if self.RUN_EMAIL_PIPELINE and self.GROQ_API_KEY is None:
            raise ValueError("GROQ_API_KEY is required when RUN_EMAIL_PIPELINE is enabled")
        if self.RUN_UPWORK_PIPELINE and self.OPENAI_API_KEY is None:
            raise ValueError("OPENAI_API_KEY is required when RUN_UPWORK_PIPELINE is enabled")
        if self.UPWORK_WINDOW_END < self.UPWORK_WINDOW_START:
            raise ValueError("UPWORK_WINDOW_END must not precede UPWORK_WINDOW_START")
        return self

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.LOG_LEVEL)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }


def load_settings(env_file: Optional[str] = ".env", **overrides) -> AppSettings:
    """
    Build and validate the application settings.

    Args:
        env_file: Optional .env file to read in addition to the environment
        **overrides: Explicit values taking precedence over the environment

    Returns:
        Validated settings object

    Raises:
        ConfigurationError: If a required key is missing or a value is invalid
    """
    try:
        return AppSettings(_env_file=env_file, **overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
