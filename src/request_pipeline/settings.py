"""Pipeline settings from environment variables and code defaults.

Priority chain (highest to lowest):
  1. Init kwargs
  2. Env vars - ``REQUEST_PIPELINE_*`` prefix
  3. Code defaults
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["PipelineSettings", "get_settings"]


class PipelineSettings(BaseSettings):
    """Settings for response formatting and logging.

    Attributes:
        cors_enabled: Attach ``Access-Control-*`` headers to every response.
        cors_allow_origin: Value of ``Access-Control-Allow-Origin``.
        cors_allow_headers: Value of ``Access-Control-Allow-Headers``.
        cors_allow_methods: Value of ``Access-Control-Allow-Methods``.
        cors_allow_credentials: Send ``Access-Control-Allow-Credentials: true``.
        internal_error_message: Message returned for every INTERNAL failure.
        log_json: Render log entries as JSON lines.
        verbose: Log at DEBUG instead of INFO.
    """

    model_config = SettingsConfigDict(
        env_prefix="REQUEST_PIPELINE_",
        frozen=True,
        extra="ignore",
    )

    cors_enabled: bool = True
    cors_allow_origin: str = "*"
    cors_allow_headers: str = "Content-Type,Authorization,X-Api-Key,X-Request-Id"
    cors_allow_methods: str = "GET,POST,PUT,DELETE,OPTIONS"
    cors_allow_credentials: bool = False
    internal_error_message: str = "Internal server error"
    log_json: bool = False
    verbose: bool = False

    def response_headers(self) -> dict[str, str]:
        """Headers attached to every transport response."""
        headers = {"Content-Type": "application/json"}
        if self.cors_enabled:
            headers["Access-Control-Allow-Origin"] = self.cors_allow_origin
            headers["Access-Control-Allow-Headers"] = self.cors_allow_headers
            headers["Access-Control-Allow-Methods"] = self.cors_allow_methods
            if self.cors_allow_credentials:
                headers["Access-Control-Allow-Credentials"] = "true"
        return headers


@lru_cache(maxsize=1)
def get_settings() -> PipelineSettings:
    """Return the process-wide settings, read once from the environment."""
    return PipelineSettings()
