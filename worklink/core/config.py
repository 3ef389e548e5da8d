"""Configuration management for worklink."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store Configuration
    sqlite_db_path: str = Field(default="./worklink_data/worklink.db", description="SQLite document store path")

    # OpenRouter Configuration
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key for task extraction")
    model_id: str = Field(
        default="google/gemini-2.5-flash",
        description="Model ID used by the task extraction agent",
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment reported to Logfire")

    # Lifecycle Configuration
    mark_applied_on_apply: bool = Field(
        default=True,
        description="Advance OPEN tasks to APPLIED when the first worker applies",
    )

    # Live Tracking Configuration
    tracking_tick_seconds: float = Field(default=5.0, gt=0, description="Seconds between simulated position updates")
    tracking_step_fraction: float = Field(
        default=0.05, gt=0, le=1, description="Fraction of the remaining distance covered per tick"
    )
    tracking_arrival_epsilon_km: float = Field(
        default=0.03, gt=0, description="Distance under which the tracked worker counts as arrived"
    )
    tracking_speed_km_per_minute: float = Field(
        default=0.5, gt=0, description="Average travel speed used for the initial ETA estimate"
    )

    # Map Viewport Configuration
    map_padding_ratio: float = Field(default=0.4, ge=0, description="Padding added around fitted map bounds")
    map_min_delta_degrees: float = Field(
        default=0.01, gt=0, description="Padding used when every map point coincides"
    )

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # Geometry
    EARTH_RADIUS_KM: float = 6371.0
    VIEWPORT_MARGIN: tuple[float, float] = (5.0, 95.0)  # Keeps markers on the canvas
    VIEWPORT_MARGIN_LOOSE: tuple[float, float] = (-20.0, 120.0)  # Lets markers drift off-canvas

    # Applications
    DEFAULT_WORKER_RATING: float = 5.0  # Rating shown for workers without reviews yet

    # Task Posting
    FALLBACK_TITLE_LENGTH: int = 20  # Characters of the raw prompt kept in a fallback title
    DEFAULT_TASK_DATE: str = "Flexible"

    # Live Tracking
    MIN_ETA_MINUTES: int = 1

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 100

    # Store
    DISPATCH_MAX_ATTEMPTS: int = 2  # Initial write plus one retry after a version conflict

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
