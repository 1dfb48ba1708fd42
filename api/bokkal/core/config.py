from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "bokkal-api"
    environment: str = "dev"
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    auth_timeout_seconds: float = 5.0
    geocoder_base_url: str = "https://photon.komoot.io"
    # Petite Côte geofence (minLon, minLat, maxLon, maxLat), Dakar and Rufisque excluded.
    geocoder_bbox: str = "-17.15,14.05,-16.70,14.60"
    geocoder_bias_lat: float = 14.45
    geocoder_bias_lon: float = -17.0
    geocoder_language: str = "fr"
    geocoder_limit: int = 5
    geocoder_timeout_seconds: float = 5.0
    location_min_query_length: int = 2
    location_external_min_query_length: int = 3
    location_local_sufficient_count: int = 3
    location_max_results: int = 5
    location_debounce_seconds: float = 0.4
    admin_page_size: int = 20
    otel_enabled: bool = True
    otel_service_name: str = "bokkal-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="BOKKAL_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
