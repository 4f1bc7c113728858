from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TAILSCALE_PATH = "/usr/bin/tailscale"
FALLBACK_TAILSCALE_PATH = "/usr/local/bin/tailscale"
DEFAULT_OUTPUT_LIMIT_BYTES = 1024 * 1024
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    tailscale_path: str = Field(default=DEFAULT_TAILSCALE_PATH)
    tailscale_fallback_path: str = Field(default=FALLBACK_TAILSCALE_PATH)
    output_limit_bytes: int = Field(default=DEFAULT_OUTPUT_LIMIT_BYTES)
    command_timeout_seconds: Optional[float] = Field(default=30.0)

    log_level: str = Field(default="INFO")
    log_file: str = Field(default="")

    model_config = SettingsConfigDict(
        env_prefix="TAILMESH_",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        issues: list[str] = []
        if not self.tailscale_path.strip():
            issues.append("TAILMESH_TAILSCALE_PATH must not be empty.")
        if self.output_limit_bytes <= 0:
            issues.append("TAILMESH_OUTPUT_LIMIT_BYTES must be positive.")
        if self.command_timeout_seconds is not None and self.command_timeout_seconds < 0:
            issues.append("TAILMESH_COMMAND_TIMEOUT_SECONDS must not be negative.")
        if self.log_level.strip().upper() not in _LOG_LEVELS:
            issues.append(f"TAILMESH_LOG_LEVEL must be one of {', '.join(sorted(_LOG_LEVELS))}.")
        if issues:
            raise ValueError(" ".join(issues))
        self.log_level = self.log_level.strip().upper()
        return self

    @property
    def timeout(self) -> Optional[float]:
        if not self.command_timeout_seconds:
            return None
        return self.command_timeout_seconds


@lru_cache
def get_settings() -> Settings:
    return Settings()
