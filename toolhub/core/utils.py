"""Shared helper utilities for routes and services."""

from datetime import datetime
from typing import Any, Dict, Tuple

from bson import ObjectId
from werkzeug.exceptions import BadRequest, NotFound


def validate_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise NotFound("Resource not found")
    return ObjectId(value)


def isoformat(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    return value


def serialize_document(value: Any) -> Any:
    """Convert a Mongo document into JSON-friendly data, renaming ``_id`` to ``id``."""
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        for key, item in value.items():
            out["id" if key == "_id" else key] = serialize_document(item)
        return out
    if isinstance(value, (list, tuple)):
        return [serialize_document(item) for item in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return isoformat(value)
    return value


def parse_int_arg(name: str, default: int) -> int:
    from flask import request  # Imported lazily to avoid circular imports

    raw = request.args.get(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise BadRequest(f"{name} must be an integer")


def parse_pagination(default_limit: int = 50, max_limit: int = 100) -> Tuple[int, int]:
    limit = parse_int_arg("limit", default_limit)
    offset = parse_int_arg("offset", 0)
    if limit < 1 or limit > max_limit:
        raise BadRequest(f"limit must be between 1 and {max_limit}")
    if offset < 0:
        raise BadRequest("offset must be non-negative")
    return limit, offset


def client_ip() -> str:
    from flask import request

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.remote_addr or "unknown"


def user_agent() -> str:
    from flask import request

    return request.headers.get("User-Agent", "unknown")
