"""
Signup Consent - Configuration

Endpoints, cookie attributes and flow constants for the reconciliation
engine. Values are loaded from environment variables prefixed with
``SIGNUP_CONSENT_`` (or a ``.env`` file) with defaults suitable for a local
Fides deployment.
"""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signup_consent.core.enums import ConsentMethod, ServingComponent


class ReconcilerConfig(BaseSettings):
    """
    Configuration for the consent reconciler and its remote clients.

    For example, SIGNUP_CONSENT_API_BASE_URL sets ``api_base_url``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SIGNUP_CONSENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ═══════════════════════════════════════════════════════════════
    # REMOTE ENDPOINTS
    # ═══════════════════════════════════════════════════════════════

    location_endpoint: str = Field(
        default="https://cdn-api.ethyca.com/location",
        description="Geolocation lookup returning {location, country}",
    )
    api_base_url: str = Field(
        default="http://localhost:8080/api/v1",
        description="Base URL of the privacy experience/preference API",
    )
    request_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout applied to every remote call"
    )

    # ═══════════════════════════════════════════════════════════════
    # FLOW CONSTANTS
    # ═══════════════════════════════════════════════════════════════

    experience_page_size: int = Field(
        default=50, description="Page size for the privacy-experience query"
    )
    notice_key_suffix: str = Field(
        default="signup", description="Notice keys ending with this suffix govern the flow"
    )
    serving_component: ServingComponent = Field(
        default=ServingComponent.OVERLAY,
        description="Surface reported to the notices-served endpoint",
    )
    consent_method: ConsentMethod = Field(
        default=ConsentMethod.BUTTON,
        description="Method reported with every preference",
    )

    # ═══════════════════════════════════════════════════════════════
    # LOCAL CONSENT RECORD
    # ═══════════════════════════════════════════════════════════════

    cookie_name: str = Field(default="fides_consent")
    cookie_path: str = Field(default="/")
    cookie_max_age_seconds: int = Field(default=31_536_000, gt=0)
    schema_version: str = Field(
        default="0.9.0", description="Version tag written into new consent records"
    )

    # ═══════════════════════════════════════════════════════════════
    # LOGGING
    # ═══════════════════════════════════════════════════════════════

    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    @field_validator("location_endpoint", "api_base_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Expected an absolute http(s) URL, got {v!r}")
        return v.rstrip("/")

    @field_validator("experience_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError("experience_page_size must be between 1 and 100")
        return v

    @field_validator("notice_key_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("notice_key_suffix must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    def api_url(self, path: str) -> str:
        """Join a path onto the API base URL."""
        return f"{self.api_base_url}/{path.lstrip('/')}"


# Singleton instance for global access
_config: ReconcilerConfig | None = None


def get_config() -> ReconcilerConfig:
    """Get the process-wide reconciler configuration."""
    global _config
    if _config is None:
        _config = ReconcilerConfig()
    return _config


def configure(config: ReconcilerConfig | None) -> None:
    """
    Replace the process-wide configuration.

    Passing ``None`` resets it so the next ``get_config()`` reloads from the
    environment.
    """
    global _config
    _config = config
