from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Literal


DEFAULT_JWT_SECRET = "change-me-jwt-secret"


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.
    Uses pydantic for validation and type safety.
    """
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = ["*"]

    # "memory" keeps users and posts in process; "database" uses database_url
    storage_backend: Literal["database", "memory"] = "database"
    database_url: str = "sqlite:///./blog.db"
    database_echo: bool = False

    # Token signing secret must be kept private
    # Changing this invalidates every issued token
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24

    # Argon2 cost parameters (argon2-cffi defaults)
    password_hash_time_cost: int = 3
    password_hash_memory_cost: int = 65536
    password_hash_parallelism: int = 4

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance. Load once, reuse throughout application lifecycle.
    """
    return Settings()
