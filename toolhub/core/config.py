"""Configuration helpers for the Flask application."""

import logging
import os
from typing import Any, Dict

try:  # pragma: no cover - optional dependency
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional dependency
    load_dotenv = None  # type: ignore

DEV_JWT_SECRET = "toolhub-dev-secret"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def load_environment() -> None:
    """Load environment variables from a .env file when available."""
    if load_dotenv is not None:
        load_dotenv()


def _is_development() -> bool:
    return os.environ.get("FLASK_ENV", "").lower() == "development"


def get_auth_settings() -> Dict[str, Any]:
    """Return JWT and password hashing settings derived from environment variables."""
    secret = os.environ.get("JWT_SECRET")
    if not secret:
        if not _is_development():
            raise RuntimeError("JWT_SECRET must be set")
        secret = DEV_JWT_SECRET
    try:
        session_hours = int(os.environ.get("SESSION_HOURS", "24"))
        bcrypt_rounds = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    except ValueError as exc:
        raise RuntimeError("SESSION_HOURS and BCRYPT_ROUNDS must be integers") from exc
    return {
        "secret": secret,
        "admin_secret": os.environ.get("ADMIN_JWT_SECRET") or secret,
        "algorithm": "HS256",
        "session_hours": session_hours,
        "bcrypt_rounds": bcrypt_rounds,
    }


def get_app_settings() -> Dict[str, Any]:
    return {
        "base_url": os.environ.get("BASE_URL", "http://localhost:3000").rstrip("/"),
        "client_origin": os.environ.get("CLIENT_ORIGIN", "http://localhost:3000").rstrip("/"),
        "log_level": os.environ.get("LOG_LEVEL", "INFO").upper(),
        "cookie_secure": os.environ.get("COOKIE_SECURE", "0").lower() in ("1", "true", "yes"),
    }


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    logging.getLogger("toolhub").setLevel(getattr(logging, level, logging.INFO))
