"""
Application settings loaded from environment variables.
"""
import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime configuration for the chat backend."""
    ollama_base_url: str = Field(default="http://localhost:11434/", description="Base URL used to bootstrap the first server")
    upload_dir: str = Field(default="./uploads", description="Directory holding uploaded file blobs")
    database_url: str = Field(default="sqlite:///./chat_backend.db")
    jwt_secret: str = Field(default="change-me")
    jwt_ttl_minutes: int = 1440
    default_model: str = "deepseek-r1:1.5b"
    health_check_interval_seconds: int = 120
    probe_timeout_seconds: float = 5.0
    generation_timeout_seconds: float = 120.0
    share_base_url: str = "http://localhost:3000"
    cors_origins: List[str] = Field(default_factory=lambda: [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ])
    create_default_user: bool = False
    enable_health_monitor: bool = True
    sql_echo: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and a .env file if present)."""
        load_dotenv()
        defaults = cls()
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", defaults.ollama_base_url),
            upload_dir=os.getenv("UPLOAD_DIR", defaults.upload_dir),
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            jwt_secret=os.getenv("JWT_SECRET", defaults.jwt_secret),
            jwt_ttl_minutes=int(os.getenv("JWT_TTL_MINUTES", defaults.jwt_ttl_minutes)),
            default_model=os.getenv("DEFAULT_MODEL", defaults.default_model),
            health_check_interval_seconds=int(
                os.getenv("HEALTH_CHECK_INTERVAL_SECONDS", defaults.health_check_interval_seconds)
            ),
            probe_timeout_seconds=float(os.getenv("PROBE_TIMEOUT_SECONDS", defaults.probe_timeout_seconds)),
            generation_timeout_seconds=float(
                os.getenv("GENERATION_TIMEOUT_SECONDS", defaults.generation_timeout_seconds)
            ),
            share_base_url=os.getenv("SHARE_BASE_URL", defaults.share_base_url),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else defaults.cors_origins,
            create_default_user=_env_bool("CREATE_DEFAULT_USER", defaults.create_default_user),
            enable_health_monitor=_env_bool("ENABLE_HEALTH_MONITOR", defaults.enable_health_monitor),
            sql_echo=_env_bool("SQL_ECHO", defaults.sql_echo),
        )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings.from_env()
