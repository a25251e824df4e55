# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings. Every field can
be set through a WISP_-prefixed environment variable (e.g. WISP_SERVE_PREFIX).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WISP_",
        extra="ignore",
    )

    # === Serving ===
    serve_prefix: str = "wisp"
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    # === Identity resolution ===
    plc_directory_url: str = "https://plc.directory"
    handle_resolver_url: str = (
        "https://api.bsky.app/xrpc/com.atproto.identity.resolveHandle"
    )
    resolution_cache_ttl_s: float = 3600.0

    # === Network ===
    request_timeout_s: float = 30.0
    request_origin: str = ""
    retry_max_attempts: int = 3
    retry_initial_delay_s: float = 1.0
    retry_backoff_factor: float = 2.0
    retry_max_delay_s: float = 10.0

    # === Manifest ===
    manifest_cache_ttl_s: float = 3600.0

    # === Cache ===
    cache_backend: Literal["json", "sqlite", "memory"] = "json"
    cache_root: Path = Path("~/.wispview/cache")
    blob_cache_max_bytes: int = 5 * 1024 * 1024

    # === Control channel ===
    control_timeout_s: float = 5.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("serve_prefix")
    @classmethod
    def validate_serve_prefix(cls, v: str) -> str:  # noqa: N805
        """The prefix is a single path segment; surrounding slashes are dropped."""
        cleaned = v.strip().strip("/")
        if not cleaned or "/" in cleaned:
            raise ValueError("serve_prefix must be a single non-empty path segment")
        return cleaned

    @field_validator("plc_directory_url", "handle_resolver_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.retry_max_attempts < 1:
            errors.append("RETRY_MAX_ATTEMPTS must be >= 1")

        if self.retry_initial_delay_s > self.retry_max_delay_s:
            errors.append("RETRY_INITIAL_DELAY_S must be <= RETRY_MAX_DELAY_S")

        if self.blob_cache_max_bytes < 0:
            errors.append("BLOB_CACHE_MAX_BYTES must be >= 0")

        if self.control_timeout_s <= 0:
            errors.append("CONTROL_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    def base_path(self, did: str, site_name: str) -> str:
        """Serving root for one site, e.g. /wisp/did:plc:abc/mysite/."""
        return f"/{self.serve_prefix}/{did}/{site_name}/"


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
