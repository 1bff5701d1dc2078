from datetime import UTC, datetime
from pathlib import Path

from pydantic_settings import BaseSettings


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Keeps datetimes naive so they stay compatible with SQLite
    (which doesn't store tz info).
    """
    return datetime.now(UTC).replace(tzinfo=None)


class Settings(BaseSettings):
    app_name: str = "Lingocards"
    database_url: str = f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'lingocards.db'}"
    default_required_score: float = 80.0
    share_token_ttl_days: int = 7
    frontend_url: str = "http://localhost:5173"
    reorder_offset: int = 1000  # temporary order values used during a reorder
    leaderboard_size: int = 10
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    user_id_header: str = "X-User-Id"
    user_role_header: str = "X-User-Role"
    log_level: str = "INFO"
    debug: bool = False

    model_config = {"env_prefix": "LINGOCARDS_", "env_file": ".env"}


settings = Settings()
