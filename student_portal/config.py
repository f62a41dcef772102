import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

# Load a local .env file if present (no-op otherwise).
load_dotenv()


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Read once at startup and never mutated. Tests build their own instance with
    keyword overrides, e.g. ``Config(DB_DSN=str(tmp_path / "portal.sqlite"))``.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set PORTAL_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: PORTAL_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("PORTAL_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("PORTAL_DB_PATH", "./student_portal.sqlite")
    )

    # development|production|test. Only "development" exposes error details in 500 responses.
    APP_ENV: str = os.environ.get("APP_ENV", "development")

    # Insert the demo students/courses/fees/events on startup when the DB is empty.
    SEED_DEMO_DATA: bool = _env_bool("PORTAL_SEED_DEMO_DATA", False) is True

    # -----------------
    # Auth (JWT)
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set AUTH_JWT_SECRET to a strong random value.
    # Changing it invalidates every outstanding token.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "dev_change_me")
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", "1440"))  # 24h

    # -----------------
    # CORS (development)
    # -----------------
    # The SPA dev server runs on :5173/:5174 (Vite) or :3000.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5173,http://localhost:5174,http://localhost:3000",
    )

    @property
    def is_development(self) -> bool:
        return (self.APP_ENV or "").strip().lower() == "development"

    def cors_origins(self) -> List[str]:
        return [o.strip() for o in (self.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]


def load_config() -> Config:
    return Config()
