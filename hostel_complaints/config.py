"""
hostel_complaints/config.py
───────────────────────────
Environment-driven settings shared by both roles.

Values come from the process environment after .env has been loaded.
Variables already present in the environment win over the .env file, so a
deployment can override single values without editing it.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")

DEFAULT_PORTS = {"student": 3000, "technician": 5000}
DEV_ENVIRONMENTS = {"development", "dev", "local", "test", "testing"}
LOG_FORMAT = "[%(asctime)s] %(levelname)s in %(name)s: %(message)s"


def env_bool(name, default=False):
    val = os.environ.get(name)
    if val is None:
        return default
    return str(val).strip().lower() in ("1", "true", "yes", "on")


def env_int(name, default):
    val = os.environ.get(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {val!r}")


def database_url() -> str:
    """DATABASE_URL if set, otherwise a PostgreSQL URL built from DB_* parts."""
    explicit = os.environ.get("DATABASE_URL", "").strip()
    if explicit:
        return explicit

    url = URL.create(
        "postgresql+psycopg2",
        username=os.environ.get("DB_USER", "postgres"),
        password=os.environ.get("DB_PASSWORD") or None,
        host=os.environ.get("DB_HOST", "localhost"),
        port=env_int("DB_PORT", 5432),
        database=os.environ.get("DB_NAME", "studentsdata"),
    )
    return url.render_as_string(hide_password=False)


def load_settings(role: str) -> dict:
    """Snapshot of every setting the app reads, for one role."""
    app_env = os.environ.get("APP_ENV", "development").strip().lower()

    return {
        "ROLE":                     role,
        "DATABASE_URL":             database_url(),
        "DB_POOL_SIZE":             env_int("DB_POOL_SIZE", 5),
        "DB_MAX_OVERFLOW":          env_int("DB_MAX_OVERFLOW", 10),
        "SECRET_KEY":               os.environ.get("SESSION_SECRET", "dev-session-secret"),
        "SESSION_LIFETIME_MINUTES": env_int("SESSION_LIFETIME_MINUTES", 30),
        "SESSION_COOKIE_NAME":      f"complaints_{role}_sid",
        "SESSION_COOKIE_HTTPONLY":  True,
        "SESSION_COOKIE_SAMESITE":  "Lax",
        "SESSION_COOKIE_SECURE":    app_env not in DEV_ENVIRONMENTS,
        "HOST":                     os.environ.get("HOST", "127.0.0.1").strip(),
        "PORT":                     env_int("PORT", DEFAULT_PORTS.get(role, 3000)),
        "DEBUG":                    env_bool("APP_DEBUG", False),
        "APP_ENV":                  app_env,
        "LOG_LEVEL":                os.environ.get("LOG_LEVEL", "INFO").upper(),
    }


def masked_url(url: str) -> str:
    """Database URL safe for log output."""
    return make_url(url).render_as_string(hide_password=True)


def configure_logging(level="INFO"):
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level)
