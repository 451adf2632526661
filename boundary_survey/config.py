"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Field Survey Parameters
    default_proximity_threshold_m: float = Field(
        default=1.0,
        description="Initial arrival radius in meters for a new survey session"
    )
    min_proximity_threshold_m: float = Field(
        default=1.0,
        description="Lower clamp for the arrival radius in meters"
    )
    max_proximity_threshold_m: float = Field(
        default=50.0,
        description="Upper clamp for the arrival radius in meters"
    )

    # Geodesy
    earth_radius_m: float = Field(
        default=6_371_000.0,
        description="Mean Earth radius used for haversine distances"
    )
    area_ellipsoid: str = Field(
        default="sphere",
        description="Figure used for polygon area: 'sphere' (mean radius) or a pyproj ellipsoid name such as 'WGS84'"
    )

    # Location Feed
    nearby_point_threshold_m: float = Field(
        default=10.0,
        description="Radius in meters for flagging a nearby unplotted boundary point"
    )
    gps_excellent_accuracy_m: float = Field(
        default=3.0,
        description="Fixes at or below this accuracy are rated excellent"
    )
    gps_poor_accuracy_m: float = Field(
        default=10.0,
        description="Fixes above this accuracy are rated poor"
    )

    # Export
    export_default_filename: str = Field(
        default="boundary-coordinates",
        description="Base filename (without extension) for coordinate exports"
    )

    # Remote Coordinate Import
    coordinate_source_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds when fetching a remote coordinate file"
    )
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of attempts for remote coordinate fetches"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=1,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=5,
        description="Maximum wait time in seconds between retries"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=600,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Boundary Survey Engine",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
