"""Configuration management for surface_pruner."""

from typing import Any, List, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings.

    Every field can be set from the environment with the ``SURFACE_PRUNER_``
    prefix, e.g. ``SURFACE_PRUNER_EXCLUDE_PREFIXES='["/api/content"]'``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SURFACE_PRUNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Pruning
    exclude_prefixes: List[str] = Field(
        default_factory=lambda: ["/api/content"],
        description="Paths starting with any of these prefixes are removed",
    )
    path_parameters: List[str] = Field(
        default_factory=lambda: ["app"],
        description="Path parameters supplied out of band and stripped from operations",
    )
    case_sensitive_paths: bool = Field(default=False)

    # Output
    output_format: Literal["json", "yaml"] = Field(default="json")

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level '{value}'")
        return level

    @field_validator("exclude_prefixes")
    @classmethod
    def _check_prefixes(cls, value: List[str]) -> List[str]:
        for prefix in value:
            if not prefix.startswith("/"):
                raise ValueError(f"path prefix '{prefix}' must start with '/'")
        return value


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, applying explicit overrides.

    Overrides whose value is ``None`` are ignored so CLI options that were
    not given fall through to the environment.

    Raises:
        ConfigurationError: If any value fails validation
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as e:
        first = e.errors()[0]
        setting = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid setting {setting or '<unknown>'}: {first.get('msg')}",
            setting=setting or None,
            cause=e,
        ) from e
