"""Settings for nifi-spine.

Order of precedence (highest → lowest):
    1. Environment variables (``NIFI_SERVER_URL``, ``NIFI_TOKEN``, ...)
    2. ``.env`` file in the working directory
    3. Defaults below

Examples:
    >>> from nifispine.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.timeout
    30.0
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NifiSettings(BaseSettings):
    """Connection and output settings shared by the client and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="NIFI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Server ───────────────────────────────────────────────────
    server_url: str | None = Field(default=None, description="Base URL, e.g. https://nifi:8443")
    root_id: str | None = Field(
        default=None,
        description="Root process group id; looked up from the server when unset",
    )

    # ── Auth ─────────────────────────────────────────────────────
    username: str | None = None
    password: SecretStr | None = None
    token: SecretStr | None = Field(default=None, description="Pre-issued bearer token")

    # ── Transport ────────────────────────────────────────────────
    verify_tls: bool = True
    ca_bundle: Path | None = None
    timeout: float = Field(default=30.0, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = "WARNING"
    json_logs: bool | None = None

    @field_validator("server_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        return value.rstrip("/") if value else value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return value

    def verify(self) -> bool | str:
        """Value for httpx's ``verify`` argument."""
        if not self.verify_tls:
            return False
        if self.ca_bundle is not None:
            return str(self.ca_bundle)
        return True


_settings: NifiSettings | None = None


def get_settings(_force_reload: bool = False) -> NifiSettings:
    """Return the process-wide settings, building them on first use."""
    global _settings
    if _settings is None or _force_reload:
        _settings = NifiSettings()
    return _settings


__all__ = ["NifiSettings", "get_settings"]
