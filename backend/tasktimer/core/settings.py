"""Application settings and configuration utilities."""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

BACKEND_DIR = Path(__file__).parent.parent.parent


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Immutable application settings derived from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Focus Task Timer")
    version: str = os.getenv("PROJECT_VERSION", "0.1.0")
    api_prefix: str = os.getenv("API_PREFIX", "/api")
    environment: str = os.getenv("ENVIRONMENT", "local")

    # Timer engine
    tick_interval_seconds: float = float(os.getenv("TICK_INTERVAL_SECONDS", "1.0"))
    rollover_interval_seconds: float = float(os.getenv("ROLLOVER_INTERVAL_SECONDS", "60.0"))
    resync_interval_seconds: float = float(os.getenv("RESYNC_INTERVAL_SECONDS", "30.0"))
    focus_flush_every: int = int(os.getenv("FOCUS_FLUSH_EVERY", "10"))
    reset_on_uncomplete: bool = _env_bool("RESET_ON_UNCOMPLETE", "true")
    complete_on_exhaust: bool = _env_bool("COMPLETE_ON_EXHAUST", "false")

    # Auth
    token_ttl_days: int = int(os.getenv("TOKEN_TTL_DAYS", "365"))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    jwt_secret: str = os.getenv("JWT_SECRET", "change-this-secret-key-in-production-please")

    # Client side
    api_base_url: str = os.getenv("API_BASE_URL", "http://localhost:8000/api")
    token_cache_path: str = os.getenv(
        "TOKEN_CACHE_PATH", str(BACKEND_DIR / ".tasktimer" / "auth.json")
    )
    local_storage_dir: str = os.getenv(
        "LOCAL_STORAGE_DIR", str(BACKEND_DIR / ".tasktimer")
    )

    @property
    def database_path(self) -> str:
        """Return path to SQLite database file."""
        db_path = os.getenv("DATABASE_PATH")
        if db_path:
            return db_path
        # Default: tasktimer.db in backend directory
        return str(BACKEND_DIR / "tasktimer.db")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()
