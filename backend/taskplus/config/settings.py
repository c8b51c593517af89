"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "taskplus_dev"
    mongo_timeout_ms: int = 5000

    # Session tokens (HS256 signed, carried in a cookie or bearer header)
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 7 * 24 * 60
    cookie_name: str = "sid"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # CORS - set to "*" to allow all origins
    cors_origins: str = "http://localhost:5173"

    # Scheduler (notification outbox delivery)
    scheduler_enabled: bool = True
    scheduler_interval_seconds: int = 10
    notification_max_retries: int = 5
    notification_batch_size: int = 50

    # Support workflow
    stuck_ticket_threshold_minutes: int = 60

    # Environment
    environment: str = "development"
    debug: bool = True

    # Default password for seeded users. Change this in production!
    seed_password: str = "Passw0rd!"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
