"""
Kinx Language Server Settings

Environment variables use the KINX_ prefix.
Example: KINX_COMPILER_PATH=/opt/kinx/bin/kinx, KINX_COMPILE_TIMEOUT=5
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kinx_lsp.common.exceptions import ConfigurationError

DEFAULT_COMPILER = "kinx"


class KinxSettings(BaseSettings):
    """Server settings: compiler invocation and logging."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="KINX_",
        extra="ignore",
    )

    # ========================================================================
    # Compiler
    # ========================================================================
    compiler_path: str = DEFAULT_COMPILER
    compile_timeout: float = Field(default=10.0, gt=0)  # seconds
    end_marker: str = "__END__"

    # ========================================================================
    # Logging
    # ========================================================================
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    @field_validator("compiler_path", mode="before")
    @classmethod
    def _default_when_blank(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_COMPILER
        return value.strip() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    def with_overrides(self, **overrides: Any) -> "KinxSettings":
        """
        Return a validated copy with the given fields replaced.

        None values are ignored so partial client payloads keep current values.

        Raises:
            ConfigurationError: If an override fails validation
        """
        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return self
        try:
            return type(self).model_validate({**self.model_dump(), **updates})
        except ValidationError as e:
            raise ConfigurationError("Invalid settings override", {"fields": sorted(updates)}) from e


@lru_cache(maxsize=1)
def get_settings() -> KinxSettings:
    """Process-wide settings (cached)."""
    return KinxSettings()
