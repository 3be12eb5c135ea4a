"""
Configuration settings for the Commander Tracker web client
Loads environment variables and provides application settings
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Service Configuration
    environment: str = Field(default="development", env="ENVIRONMENT")
    port: int = Field(default=3000, env="PORT")

    # Tracker backend (REST API this client calls)
    api_base_url: str = Field(default="http://localhost:5001/api", env="API_BASE_URL")

    # Session Configuration
    session_cookie_name: str = Field(default="edht_session", env="SESSION_COOKIE_NAME")
    session_ttl: int = Field(default=7 * 24 * 3600, env="SESSION_TTL")  # matches backend JWT lifetime
    session_max_entries: int = Field(default=5000, env="SESSION_MAX_ENTRIES")
    cookie_secure: bool = Field(default=False, env="COOKIE_SECURE")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # Timeout Configuration
    external_api_timeout: int = Field(default=15, env="EXTERNAL_API_TIMEOUT")
    external_api_connect_timeout: int = Field(default=5, env="EXTERNAL_API_CONNECT_TIMEOUT")
    external_api_write_timeout: int = Field(default=5, env="EXTERNAL_API_WRITE_TIMEOUT")

    # Redirect plain HTTP to HTTPS when running in production behind a proxy
    force_https: bool = Field(default=True, env="FORCE_HTTPS")

    # Contact form has no backend endpoint; submission is simulated
    contact_delay_seconds: float = Field(default=1.0, env="CONTACT_DELAY_SECONDS")

    # CORS Configuration
    allowed_origins: list = Field(
        default=["*"],
        env="ALLOWED_ORIGINS"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()


# Global settings instance
settings = get_settings()
