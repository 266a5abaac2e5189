"""End-user accounts: registration, login, sessions and password recovery."""

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import BadRequest, Conflict, NotFound, Unauthorized

from toolhub.core import create_token, generate_reset_token, hash_password, verify_password
from toolhub.core.utils import validate_object_id

logger = logging.getLogger(__name__)

USER_PERMISSIONS = ["basic_access"]
MIN_PASSWORD_LENGTH = 6
MIN_RESET_PASSWORD_LENGTH = 8
RESET_TOKEN_TTL = timedelta(hours=1)
INVALID_CREDENTIALS = "Invalid email/username or password"
RESET_REQUESTED_MESSAGE = "If an account with that email exists, we've sent a password reset link."
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def split_name(name: str) -> Dict[str, str]:
    parts = name.split()
    if not parts:
        return {"firstName": "", "lastName": ""}
    return {"firstName": parts[0], "lastName": " ".join(parts[1:])}


def build_session(doc: Dict[str, Any]) -> Dict[str, Any]:
    name = doc.get("name") or " ".join(
        part for part in (doc.get("firstName"), doc.get("lastName")) if part
    )
    return {
        "id": str(doc["_id"]),
        "email": doc.get("email"),
        "username": doc.get("username"),
        "name": name,
        "firstName": doc.get("firstName", ""),
        "lastName": doc.get("lastName", ""),
        "role": doc.get("role", "user"),
        "isActive": bool(doc.get("isActive", True)),
        "permissions": list(USER_PERMISSIONS),
    }


def register_user(users: Collection, data: Dict[str, Any], rounds: int = 12) -> Dict[str, Any]:
    email = _clean(data.get("email")).lower()
    password = data.get("password") if isinstance(data.get("password"), str) else ""
    name = _clean(data.get("name"))
    username = _clean(data.get("username")).lower()

    if not email or not password or not name:
        raise BadRequest("Email, password, and name are required")
    if not EMAIL_PATTERN.match(email):
        raise BadRequest("Please provide a valid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if users.find_one({"email": email}):
        raise Conflict("User already exists with this email")
    if username and users.find_one({"username": username}):
        raise Conflict("Username is already taken")

    names = split_name(name)
    now = datetime.utcnow()
    doc: Dict[str, Any] = {
        "email": email,
        "name": name,
        "firstName": _clean(data.get("firstName")) or names["firstName"],
        "lastName": _clean(data.get("lastName")) or names["lastName"],
        "passwordHash": hash_password(password, rounds),
        "role": "user",
        "isActive": True,
        "createdAt": now,
        "updatedAt": now,
    }
    if username:
        doc["username"] = username

    try:
        result = users.insert_one(doc)
    except DuplicateKeyError:
        raise Conflict("User already exists with this email")
    doc["_id"] = result.inserted_id
    logger.info("Registered user %s", doc["_id"])
    return build_session(doc)


def authenticate_user(
    users: Collection, identifier: Optional[str], password: Optional[str]
) -> Dict[str, Any]:
    """Check credentials for an email or username and return the session payload.

    Every failure yields the same message so callers cannot probe which accounts exist.
    """
    identifier = _clean(identifier).lower()
    if not identifier or not isinstance(password, str) or not password:
        raise BadRequest("Email or username and password are required")

    field = "email" if "@" in identifier else "username"
    doc = users.find_one({field: identifier})
    if doc is None or not verify_password(password, doc.get("passwordHash")):
        logger.info("Failed login for %s", field)
        raise Unauthorized(INVALID_CREDENTIALS)
    if not doc.get("isActive", True):
        logger.info("Suspended user %s attempted login", doc["_id"])
        raise Unauthorized(INVALID_CREDENTIALS)

    now = datetime.utcnow()
    users.update_one({"_id": doc["_id"]}, {"$set": {"lastLoginAt": now, "updatedAt": now}})
    return build_session(doc)


def create_user_token(session: Dict[str, Any], settings: Dict[str, Any]) -> str:
    claims = {key: session.get(key) for key in ("id", "email", "username", "name", "role")}
    return create_token(claims, settings["secret"], settings.get("session_hours", 24))


def session_from_claims(users: Collection, claims: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not claims or claims.get("type") == "admin" or not claims.get("id"):
        return None
    try:
        user_id = validate_object_id(claims["id"])
    except NotFound:
        return None
    doc = users.find_one({"_id": user_id})
    if doc is None or not doc.get("isActive", True):
        return None
    return build_session(doc)


def update_password(
    users: Collection, user_id: str, current_password: str, new_password: str, rounds: int = 12
) -> None:
    passwords = (current_password, new_password)
    if not all(isinstance(value, str) and value for value in passwords):
        raise BadRequest("Current password and new password are required")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long")

    doc = users.find_one({"_id": validate_object_id(user_id)})
    if doc is None:
        raise Unauthorized("User not found")
    if not verify_password(current_password, doc.get("passwordHash")):
        raise BadRequest("Current password is incorrect")

    users.update_one(
        {"_id": doc["_id"]},
        {"$set": {"passwordHash": hash_password(new_password, rounds), "updatedAt": datetime.utcnow()}},
    )


def request_password_reset(database, email: Optional[str], base_url: str) -> str:
    email = _clean(email).lower()
    if not email:
        raise BadRequest("Email is required")

    tokens = database["password_reset_tokens"]
    now = datetime.utcnow()
    user = database["authusers"].find_one({"email": email})
    if user is not None:
        token = generate_reset_token()
        tokens.insert_one(
            {
                "userId": str(user["_id"]),
                "email": email,
                "token": token,
                "expiresAt": now + RESET_TOKEN_TTL,
                "used": False,
                "createdAt": now,
            }
        )
        logger.info("Password reset link %s/reset-password issued for user %s", base_url, user["_id"])

    tokens.delete_many({"expiresAt": {"$lt": now}})
    return RESET_REQUESTED_MESSAGE


def reset_password(database, token: Optional[str], password: Optional[str], rounds: int = 12) -> None:
    if not token or not isinstance(password, str) or not password:
        raise BadRequest("Token and password are required")
    if len(password) < MIN_RESET_PASSWORD_LENGTH:
        raise BadRequest(f"Password must be at least {MIN_RESET_PASSWORD_LENGTH} characters long")

    tokens = database["password_reset_tokens"]
    now = datetime.utcnow()
    record = tokens.find_one({"token": token, "used": False, "expiresAt": {"$gt": now}})
    if record is None:
        raise BadRequest("Invalid or expired reset token")

    result = database["authusers"].update_one(
        {"_id": validate_object_id(record["userId"])},
        {"$set": {"passwordHash": hash_password(password, rounds), "updatedAt": now}},
    )
    if result.matched_count == 0:
        raise BadRequest("Invalid or expired reset token")

    tokens.update_one({"_id": record["_id"]}, {"$set": {"used": True, "usedAt": now}})
    tokens.delete_many({"$or": [{"expiresAt": {"$lt": now}}, {"used": True}]})
    logger.info("Password reset completed for user %s", record["userId"])
