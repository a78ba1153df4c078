"""
Configuration system using Pydantic for type-safe settings management.

Settings are read from the process environment (``TOKEN``, ``SECRET``,
``VERIFY``, ``PORT``, ...) and can optionally be loaded from a YAML file that
references environment variables with ``${VAR}`` placeholders.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nodeschoolbot.exceptions import ConfigurationError


class BotSettings(BaseSettings):
    """Main bot settings.

    Only ``token`` and ``secret`` are required; everything else defaults to
    the NodeSchool organization setup.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    token: SecretStr = Field(..., description="API token of the bot's technical account")
    secret: SecretStr = Field(..., description="Shared webhook secret used for payload signatures")
    verify: bool = Field(default=True, description="Verify X-Hub-Signature on incoming deliveries")
    host: str = Field(default="0.0.0.0", description="Interface the webhook server binds to")  # nosec B104
    port: int = Field(default=8080, ge=1, le=65535, description="Port the webhook server listens on")

    bot_handle: str = Field(default="nodeschoolbot", description="Login the bot is mentioned as")
    organization: str = Field(default="nodeschool", description="Organization the bot manages")
    team_id: int = Field(default=1660004, description="ID of the organizers team")
    team_name: str = Field(default="chapter-organizers", description="Slug of the organizers team")

    api_url: str = Field(default="https://api.github.com", description="REST API base URL")
    web_url: str = Field(default="https://github.com", description="Web UI base URL used in reply links")
    request_timeout: float = Field(default=30.0, gt=0, description="Timeout in seconds for API calls")
    log_level: str = Field(default="INFO", description="Minimum log level")

    @field_validator("bot_handle")
    @classmethod
    def strip_handle(cls, value: str) -> str:
        """Accept the handle with or without its leading ``@``."""
        return value[1:] if value.startswith("@") else value

    @field_validator("api_url", "web_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def mention(self) -> str:
        """The mention prefix used in comments, e.g. ``@nodeschoolbot``."""
        return f"@{self.bot_handle}"

    @classmethod
    def load(cls, config_path: str | None = None) -> BotSettings:
        """Load settings from a YAML file or from the environment.

        Args:
            config_path: Optional path to a YAML configuration file

        Returns:
            BotSettings instance

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        if config_path:
            return cls.from_yaml(config_path)

        try:
            return cls()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid or missing settings: {_summarize(e)}") from e

    @classmethod
    def from_yaml(cls, config_path: str) -> BotSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} syntax for environment variable substitution.
        Values missing from the file fall back to the environment.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            BotSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid or missing settings: {_summarize(e)}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))


def _summarize(error: ValidationError) -> str:
    """Render a validation error as ``field: message`` pairs."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "settings"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
