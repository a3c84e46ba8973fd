from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (or a .env file).

    The SIMULATE_* flags are debugging aids: they inject slow queries and
    random failures into the product service so that timeouts, error
    handling and log correlation can be observed on a running instance.
    """
    APP_NAME: str = "Product Catalog Service"
    APP_VERSION: str = "1.0.0"

    DATABASE_URL: str = "sqlite:///./products.db"

    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_THRESHOLD_MS: int = 1000

    SEED_SAMPLE_DATA: bool = True

    SIMULATE_SLOW_QUERIES: bool = False
    SLOW_QUERY_DELAY_SECONDS: float = 3.0
    SIMULATE_RANDOM_ERRORS: bool = False
    RANDOM_ERROR_RATE: float = 0.3

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
