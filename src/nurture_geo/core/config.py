"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_KNOWN_PROVIDERS = ("linz", "google", "maptiler")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Geocoding, general
    geocoder_fallback_order: str = Field(
        default="linz,google,maptiler",
        description="Comma-separated provider priority order for the geocoding chain",
    )
    geocoder_cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="Lifetime of cached geocoding results in seconds",
        gt=0,
    )
    geocoder_batch_size: int = Field(
        default=10,
        description="Addresses geocoded concurrently per batch chunk",
        gt=0,
    )
    geocoder_batch_delay: float = Field(
        default=1.0,
        description="Seconds to wait between batch chunks",
        ge=0,
    )
    geocoder_country: str = Field(
        default="nz",
        description="ISO country code used to bias provider requests",
        min_length=2,
        max_length=2,
    )

    @field_validator("geocoder_fallback_order")
    @classmethod
    def validate_fallback_order(cls, v: str) -> str:
        names = [p.strip().lower() for p in v.split(",") if p.strip()]
        unknown = [n for n in names if n not in _KNOWN_PROVIDERS]
        if unknown:
            msg = f"Unknown geocoder provider(s) {unknown}. Available: {list(_KNOWN_PROVIDERS)}"
            raise ValueError(msg)
        return v

    @property
    def geocoder_fallback_order_list(self) -> list[str]:
        """Parse fallback order string into a list of provider names.

        Returns:
            List of provider names in fallback order.
        """
        if not self.geocoder_fallback_order.strip():
            return []
        return [p.strip().lower() for p in self.geocoder_fallback_order.split(",") if p.strip()]

    # Geocoding, LINZ
    linz_enabled: bool = Field(
        default=True,
        description="Enable LINZ address search (requires API key)",
    )
    linz_api_key: str | None = Field(
        default=None,
        description="LINZ API key",
    )
    linz_timeout: float = Field(
        default=10.0,
        description="LINZ request timeout in seconds",
        gt=0,
    )
    linz_confidence_threshold: float = Field(
        default=0.6,
        description="Minimum confidence a LINZ result must exceed",
        ge=0,
        le=1,
    )

    # Geocoding, Google Maps
    google_maps_enabled: bool = Field(
        default=True,
        description="Enable Google Maps geocoder (requires API key)",
    )
    google_maps_api_key: str | None = Field(
        default=None,
        description="Google Maps Geocoding API key",
    )
    google_maps_timeout: float = Field(
        default=10.0,
        description="Google Maps request timeout in seconds",
        gt=0,
    )
    google_maps_confidence_threshold: float = Field(
        default=0.7,
        description="Minimum confidence a Google Maps result must exceed",
        ge=0,
        le=1,
    )

    # Geocoding, MapTiler
    maptiler_enabled: bool = Field(
        default=True,
        description="Enable MapTiler geocoder (requires API key)",
    )
    maptiler_api_key: str | None = Field(
        default=None,
        description="MapTiler API key",
    )
    maptiler_timeout: float = Field(
        default=10.0,
        description="MapTiler request timeout in seconds",
        gt=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
