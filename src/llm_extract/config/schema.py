"""Settings schema and validation using Pydantic.

Defines the settings that tune extraction behavior, with type coercion and
defaults. Environment variables use the ``LLM_EXTRACT_`` prefix.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "LLM_EXTRACT_"


class ExtractSettings(BaseSettings):
    """Pydantic settings schema for extraction behavior."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,  # Only used when explicitly requested
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    max_text_size: int = Field(
        default=1_000_000,
        description="Longest input processed; longer text is truncated",
        ge=1,
    )

    enable_label_patterns: bool = Field(
        default=True,
        description="Try 'Value:', 'Boolean:' and 'String:' labels before generic scalar heuristics",
    )

    case_insensitive_fields: bool = Field(
        default=True,
        description="Match JSON keys to record fields ignoring case",
    )

    include_example: bool = Field(
        default=True,
        description="Render an example payload in shape descriptions",
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return self.model_dump()


def field_names() -> tuple[str, ...]:
    return tuple(ExtractSettings.model_fields)


def env_var_for(field_name: str) -> str:
    return f"{ENV_PREFIX}{field_name.upper()}"
