"""Configuration settings for the intervention service."""
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""
    APP_NAME: str = "Interventions"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    # File-backed SQLite by default so worker processes share the same DB.
    DATABASE_URL: str = "sqlite:///./interventions.db"
    # Busy timeout handed to the DB driver; storage calls fail instead of blocking forever.
    DB_TIMEOUT_SECONDS: float = 30.0
    SEED_SAMPLE_DATA: bool = False

    # Classifier thresholds: a metric strictly below its threshold counts as "low"
    STRESS_LOW_THRESHOLD: float = 2.0
    SLEEP_LOW_THRESHOLD: float = 5.0
    STEPS_LOW_THRESHOLD: int = 3000
    MINUTES_LOW_THRESHOLD: int = 10

    RECENCY_WINDOW_DAYS: int = 7
    DEFAULT_INTERACTION_LIMIT: int = 10
    DEFAULT_LANGUAGE: str = "en"
    # Reject step responses whose shape does not match the step type
    STRICT_RESPONSE_VALIDATION: bool = True

    # Allow extra environment variables (so .env can contain unrelated vars)
    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
