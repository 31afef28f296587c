"""
Process-wide configuration, resolved once at startup.
Values come from the environment (a local .env is loaded first). DATABASE_URL and JWT_SECRET are required;
everything else has a default. Build a Settings directly in tests instead of touching the environment.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_TOKEN_EXPIRE_DAYS = 30
DEFAULT_BCRYPT_ROUNDS = 10
DEFAULT_CHAT_TIMEOUT_SEC = 30.0

REQUIRED_VARS = ("DATABASE_URL", "JWT_SECRET")


class ConfigError(RuntimeError):
    """Raised when required startup configuration is missing or malformed."""


def normalize_database_url(url: str) -> str:
    # Heroku sets DATABASE_URL to postgres://; SQLAlchemy 2.x expects postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str
    access_token_expire_days: int = DEFAULT_TOKEN_EXPIRE_DAYS
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    chat_webhook_url: str | None = None
    chat_timeout_sec: float = DEFAULT_CHAT_TIMEOUT_SEC
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from os.environ. Raises ConfigError naming every missing required variable."""
        load_dotenv()
        missing = [name for name in REQUIRED_VARS if not os.environ.get(name)]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            database_url=normalize_database_url(os.environ["DATABASE_URL"]),
            jwt_secret=os.environ["JWT_SECRET"],
            access_token_expire_days=_int_env("ACCESS_TOKEN_EXPIRE_DAYS", DEFAULT_TOKEN_EXPIRE_DAYS),
            bcrypt_rounds=_int_env("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS),
            chat_webhook_url=os.environ.get("CHAT_WEBHOOK_URL") or None,
            chat_timeout_sec=_float_env("CHAT_TIMEOUT_SEC", DEFAULT_CHAT_TIMEOUT_SEC),
            cors_origins=origins or ["*"],
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
