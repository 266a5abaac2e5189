"""Helper utilities used across route modules."""

from typing import Any, Callable, Dict, Optional

from flask import current_app, g, request
from werkzeug.exceptions import BadRequest, Forbidden, Unauthorized

from toolhub.core import decode_token, read_token
from toolhub.llm import gemini
from toolhub.services.accounts import session_from_claims
from toolhub.services.admin_accounts import has_permission, session_from_admin_claims

USER_COOKIE = "user_session"
ADMIN_COOKIE = "admin_session"


def json_body() -> Dict[str, Any]:
    """Return the request JSON object, treating a missing body as empty."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    return payload


def current_user(database) -> Optional[Dict[str, Any]]:
    if "current_user" not in g:
        settings = current_app.config["AUTH_SETTINGS"]
        claims = decode_token(read_token(USER_COOKIE), settings["secret"])
        g.current_user = session_from_claims(database["authusers"], claims)
    return g.current_user


def require_user(database) -> Dict[str, Any]:
    user = current_user(database)
    if user is None:
        raise Unauthorized("Authentication required")
    return user


def current_admin(database) -> Optional[Dict[str, Any]]:
    if "current_admin" not in g:
        settings = current_app.config["AUTH_SETTINGS"]
        claims = decode_token(read_token(ADMIN_COOKIE), settings["admin_secret"])
        g.current_admin = session_from_admin_claims(database["adminusers"], claims)
    return g.current_admin


def require_admin(database, permission: Optional[str] = None) -> Dict[str, Any]:
    admin = current_admin(database)
    if admin is None:
        raise Unauthorized("Admin authentication required")
    if permission and not has_permission(admin, permission):
        raise Forbidden("Insufficient permissions")
    return admin


def set_session_cookie(response, name: str, token: str) -> None:
    response.set_cookie(
        name,
        token,
        max_age=current_app.config["AUTH_SETTINGS"].get("session_hours", 24) * 60 * 60,
        httponly=True,
        samesite="Lax",
        secure=current_app.config["APP_SETTINGS"]["cookie_secure"],
        path="/",
    )


def clear_session_cookie(response, name: str) -> None:
    response.delete_cookie(name, path="/")


def text_generator() -> Optional[Callable[[str], Optional[str]]]:
    return gemini.generate_text if gemini.is_configured() else None
