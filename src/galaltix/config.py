from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    session_secret_key: str
    cors_origins: list[str] = []
    sequence_max_attempts: int = Field(default=5, ge=1, le=10)  # Optimistic retries before the timestamp fallback
    sequence_backoff_ms: int = Field(default=50, ge=0)  # Delay before retry n is backoff * n

    model_config = {
        "env_file": [".env"],
        "env_prefix": "GALALTIX_",
        "extra": "ignore",
    }
