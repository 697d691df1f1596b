"""
Crew Planning API configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from CREWPLAN_* environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="CREWPLAN_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Crew Planning & Assignment Scheduling API"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "info"

    # Audit log listing
    audit_page_size: int = 50

    # Dashboard thresholds
    min_crew_per_project: int = 3
    departure_window_days: int = 7


# Global settings instance
settings = Settings()
