from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # database & redis
    # Plain strings so both postgresql:// and sqlite:// URLs are accepted
    DATABASE_URL: str = "sqlite:///./source_watch.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # external APIs
    PARALLEL_API_KEY: str | None = None
    PARALLEL_BASE_URL: str = "https://api.parallel.ai"
    PARALLEL_BETA_HEADER: str = "search-extract-2025-10-10"
    PARALLEL_TIMEOUT_SECONDS: int = 60

    # search query generation (Parallel chat completions, OpenAI-compatible)
    QUERY_GEN_MODEL: str = "speed"
    # Hard cap on concurrent LLM calls per process
    LLM_MAX_CONCURRENCY: int = 4

    # extraction
    EXTRACT_BATCH_SIZE: int = 10
    REFRESH_INTERVAL_MINUTES: int = 360

    # cors
    FRONTEND_ORIGIN: str | None = None
    # Explicit debug-only switch for wide-open CORS in non-prod envs
    CORS_ALLOW_ALL_ORIGINS: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
