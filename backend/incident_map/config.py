"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Dataset (output of the offline PDF scraping / geocoding pipeline)
    dataset_path: str = "data/incidents.json"
    dataset_reload_interval_minutes: int = 5  # 0 disables the reload job

    # Google Maps
    google_maps_api_key: str | None = None
    map_id: str = "PALO_ALTO_INCIDENT_MAP"
    map_default_lat: float = 37.4419
    map_default_lng: float = -122.1430
    map_default_zoom: int = 13
    map_search_zoom: int = 15

    # Autocomplete bias (approximate Palo Alto bounds)
    search_bounds_north: float = 37.47
    search_bounds_south: float = 37.39
    search_bounds_east: float = -122.07
    search_bounds_west: float = -122.20
    map_country: str = "us"

    # API settings
    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = ["*"]  # Restrict in production
    rate_limit_per_minute: int = 60

    # Environment
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
