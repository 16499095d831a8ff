"""
Application configuration using pydantic-settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "NGO Command Center"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/api/v1"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:3001"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    # Supabase (identity provider and hosted tables)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_KEY: Optional[str] = None
    # Local development only: trust X-User-Id instead of a bearer token
    AUTH_DISABLED: bool = False

    # Command pipeline
    INTENT_CONFIDENCE_FLOOR: float = 0.35
    CONFIRMATION_CONFIDENCE_THRESHOLD: float = 0.6
    CONFIRMATION_TTL_SECONDS: int = 120
    HANDLER_TIMEOUT_SECONDS: float = 15.0
    DURATION_PER_PARAMETER_SECONDS: float = 0.5
    MAX_INPUT_LENGTH: int = 1000
    MAX_SUGGESTIONS: int = 8

    # History & analytics
    HISTORY_CAPACITY: int = 50
    TREND_DAYS: int = 7
    MAX_MOST_USED: int = 5

    # Monitoring
    REALTIME_INTERVAL_SECONDS: float = 30.0
    PROACTIVE_INTERVAL_SECONDS: float = 300.0
    SSE_PING_INTERVAL_SECONDS: float = 30.0
    LOW_SUCCESS_RATE_THRESHOLD: float = 0.8

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
