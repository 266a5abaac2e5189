"""Password hashing and session token helpers."""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
from flask import request
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def hash_password(password: str, rounds: int = 12) -> str:
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not isinstance(password, str) or not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_token(claims: Dict[str, Any], secret: str, hours: int = 24) -> str:
    """Sign ``claims`` as an HS256 JWT valid for ``hours``."""
    now = datetime.utcnow()
    to_encode = dict(claims)
    to_encode.update({"iat": now, "exp": now + timedelta(hours=hours)})
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def decode_token(token: Optional[str], secret: str) -> Optional[Dict[str, Any]]:
    """Return the token claims, or None when the token is missing, forged or expired."""
    if not token:
        return None
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.info("Rejected session token: %s", exc)
        return None


def read_token(cookie_name: str) -> Optional[str]:
    token = request.cookies.get(cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)
