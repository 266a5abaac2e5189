"""Admin accounts with role based permissions and login lockout."""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import BadRequest, Conflict, NotFound, Unauthorized

from toolhub.core import create_token, hash_password, isoformat, verify_password
from toolhub.core.utils import validate_object_id

logger = logging.getLogger(__name__)

ALL_PERMISSIONS = [
    "manage_users",
    "manage_tools",
    "view_analytics",
    "manage_system",
    "manage_content",
    "view_audit_logs",
    "manage_admins",
    "view_dashboard",
    "manage_settings",
]

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "super_admin": list(ALL_PERMISSIONS),
    "admin": [p for p in ALL_PERMISSIONS if p not in ("manage_system", "manage_admins")],
    "moderator": ["view_analytics", "view_dashboard"],
}

MAX_LOGIN_ATTEMPTS = 5
LOCK_DURATION = timedelta(hours=2)
LOCKED_MESSAGE = "Account is temporarily locked due to too many failed login attempts"
INVALID_CREDENTIALS = "Invalid email or password"


def permissions_for(role: str) -> List[str]:
    if role not in ROLE_PERMISSIONS:
        raise BadRequest(f"role must be one of: {', '.join(ROLE_PERMISSIONS)}")
    return list(ROLE_PERMISSIONS[role])


def format_admin(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "email": doc.get("email"),
        "firstName": doc.get("firstName", ""),
        "lastName": doc.get("lastName", ""),
        "role": doc.get("role"),
        "permissions": doc.get("permissions") or ROLE_PERMISSIONS.get(doc.get("role"), []),
        "isActive": bool(doc.get("isActive", True)),
        "loginAttempts": int(doc.get("loginAttempts", 0) or 0),
        "lockUntil": isoformat(doc.get("lockUntil")),
        "lastLoginAt": isoformat(doc.get("lastLoginAt")),
        "createdAt": isoformat(doc.get("createdAt")),
    }


def build_admin_session(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "email": doc.get("email"),
        "name": " ".join(part for part in (doc.get("firstName"), doc.get("lastName")) if part),
        "role": doc.get("role"),
        "permissions": doc.get("permissions") or ROLE_PERMISSIONS.get(doc.get("role"), []),
        "isActive": bool(doc.get("isActive", True)),
    }


def create_admin(
    admins: Collection,
    email: str,
    password: str,
    role: str = "admin",
    first_name: str = "",
    last_name: str = "",
    rounds: int = 12,
    created_by: Optional[str] = None,
) -> Dict[str, Any]:
    email = (email or "").strip().lower()
    if not email or not isinstance(password, str) or not password:
        raise BadRequest("email and password are required")
    if len(password) < 6:
        raise BadRequest("Password must be at least 6 characters long")
    if admins.find_one({"email": email}, {"_id": 1}):
        raise Conflict("An admin with this email already exists")

    now = datetime.utcnow()
    doc = {
        "email": email,
        "passwordHash": hash_password(password, rounds),
        "firstName": (first_name or "").strip(),
        "lastName": (last_name or "").strip(),
        "role": role,
        "permissions": permissions_for(role),
        "isActive": True,
        "loginAttempts": 0,
        "createdBy": created_by,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        result = admins.insert_one(doc)
    except DuplicateKeyError:
        raise Conflict("An admin with this email already exists")
    doc["_id"] = result.inserted_id
    return doc


def is_locked(admin: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    lock_until = admin.get("lockUntil")
    return bool(lock_until and lock_until > (now or datetime.utcnow()))


def _register_failed_attempt(admins: Collection, admin: Dict[str, Any], now: datetime) -> None:
    lock_until = admin.get("lockUntil")
    if lock_until and lock_until <= now:
        # previous lock ran out; start counting again
        result = admins.update_one(
            {"_id": admin["_id"], "lockUntil": {"$lte": now}},
            {"$set": {"loginAttempts": 1}, "$unset": {"lockUntil": ""}},
        )
        if result.modified_count:
            return

    doc = admins.find_one_and_update(
        {"_id": admin["_id"]},
        {"$inc": {"loginAttempts": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        return
    attempts = int(doc.get("loginAttempts", 0) or 0)
    if attempts >= MAX_LOGIN_ATTEMPTS and not is_locked(doc, now):
        admins.update_one({"_id": admin["_id"]}, {"$set": {"lockUntil": now + LOCK_DURATION}})
        logger.warning("Admin %s locked after %d failed logins", admin["_id"], attempts)


def authenticate_admin(
    admins: Collection, email: Optional[str], password: Optional[str], now: Optional[datetime] = None
) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    email = (email or "").strip().lower()
    if not email or not isinstance(password, str) or not password:
        raise BadRequest("Email and password are required")

    admin = admins.find_one({"email": email, "isActive": True})
    if admin is None:
        raise Unauthorized(INVALID_CREDENTIALS)
    if is_locked(admin, now):
        raise Unauthorized(LOCKED_MESSAGE)

    if not verify_password(password, admin.get("passwordHash")):
        _register_failed_attempt(admins, admin, now)
        raise Unauthorized(INVALID_CREDENTIALS)

    admins.update_one(
        {"_id": admin["_id"]},
        {"$set": {"lastLoginAt": now}, "$unset": {"loginAttempts": "", "lockUntil": ""}},
    )
    return build_admin_session(admin)


def create_admin_token(session: Dict[str, Any], settings: Dict[str, Any]) -> str:
    claims = {
        "id": session["id"],
        "email": session.get("email"),
        "role": session.get("role"),
        "type": "admin",
    }
    return create_token(claims, settings["admin_secret"], settings.get("session_hours", 24))


def session_from_admin_claims(
    admins: Collection, claims: Optional[Dict[str, Any]]
) -> Optional[Dict[str, Any]]:
    if not claims or claims.get("type") != "admin":
        return None
    try:
        admin_id = validate_object_id(claims.get("id"))
    except NotFound:
        return None
    admin = admins.find_one({"_id": admin_id, "isActive": True})
    if admin is None:
        return None
    return build_admin_session(admin)


def has_permission(session: Optional[Dict[str, Any]], permission: str) -> bool:
    return bool(session) and permission in (session.get("permissions") or [])


def list_admins(admins: Collection) -> List[Dict[str, Any]]:
    return [format_admin(doc) for doc in admins.find({}).sort("createdAt", DESCENDING)]


def update_admin(admins: Collection, admin_id: str, data: Dict[str, Any], rounds: int = 12) -> Dict[str, Any]:
    oid = validate_object_id(admin_id)
    updates: Dict[str, Any] = {}
    if "email" in data:
        email = str(data["email"] or "").strip().lower()
        if not email:
            raise BadRequest("email cannot be empty")
        updates["email"] = email
    if "role" in data:
        updates["role"] = data["role"]
        updates["permissions"] = permissions_for(data["role"])
    for key in ("firstName", "lastName"):
        if key in data:
            updates[key] = str(data[key] or "").strip()
    if "isActive" in data:
        updates["isActive"] = bool(data["isActive"])
    if data.get("password"):
        if not isinstance(data["password"], str) or len(data["password"]) < 6:
            raise BadRequest("Password must be at least 6 characters long")
        updates["passwordHash"] = hash_password(data["password"], rounds)
    if not updates:
        raise BadRequest("No updatable fields supplied")

    updates["updatedAt"] = datetime.utcnow()
    try:
        result = admins.update_one({"_id": oid}, {"$set": updates})
    except DuplicateKeyError:
        raise Conflict("An admin with this email already exists")
    if result.matched_count == 0:
        raise NotFound("Admin user not found")
    return format_admin(admins.find_one({"_id": oid}))


def deactivate_admin(admins: Collection, admin_id: str) -> None:
    result = admins.update_one(
        {"_id": validate_object_id(admin_id)},
        {"$set": {"isActive": False, "updatedAt": datetime.utcnow()}},
    )
    if result.matched_count == 0:
        raise NotFound("Admin user not found")


def unlock_admin(admins: Collection, admin_id: str) -> None:
    result = admins.update_one(
        {"_id": validate_object_id(admin_id)},
        {"$unset": {"loginAttempts": "", "lockUntil": ""}},
    )
    if result.matched_count == 0:
        raise NotFound("Admin user not found")


def log_activity(
    database,
    admin: Dict[str, Any],
    action: str,
    resource: str,
    details: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> None:
    database["admin_activity"].insert_one(
        {
            "adminId": admin.get("id"),
            "adminEmail": admin.get("email"),
            "action": action,
            "resource": resource,
            "details": details or {},
            "ipAddress": ip_address,
            "createdAt": datetime.utcnow(),
        }
    )


def recent_activity(database, limit: int = 10) -> List[Dict[str, Any]]:
    cursor = database["admin_activity"].find({}).sort("createdAt", DESCENDING).limit(limit)
    return [
        {
            "id": str(doc["_id"]),
            "adminEmail": doc.get("adminEmail"),
            "action": doc.get("action"),
            "resource": doc.get("resource"),
            "details": doc.get("details") or {},
            "createdAt": isoformat(doc.get("createdAt")),
        }
        for doc in cursor
    ]
