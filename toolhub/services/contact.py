"""Contact form messages and their triage status."""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.collection import Collection
from werkzeug.exceptions import BadRequest, NotFound

from toolhub.core import isoformat
from toolhub.core.utils import validate_object_id

STATUSES = ("new", "read", "archived")
REQUIRED_FIELDS = ("name", "email", "subject", "message")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_MESSAGE_LENGTH = 5000


def format_message(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name"),
        "email": doc.get("email"),
        "phone": doc.get("phone"),
        "subject": doc.get("subject"),
        "message": doc.get("message"),
        "status": doc.get("status", "new"),
        "createdAt": isoformat(doc.get("createdAt")),
        "updatedAt": isoformat(doc.get("updatedAt")),
    }


def create_message(messages: Collection, data: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise BadRequest("Name, email, subject, and message are required")
        payload[field] = value.strip()

    if not EMAIL_PATTERN.match(payload["email"]):
        raise BadRequest("Please provide a valid email address")
    if len(payload["message"]) > MAX_MESSAGE_LENGTH:
        raise BadRequest(f"message must be at most {MAX_MESSAGE_LENGTH} characters")

    phone = data.get("phone")
    now = datetime.utcnow()
    payload.update(
        {
            "email": payload["email"].lower(),
            "phone": phone.strip() if isinstance(phone, str) and phone.strip() else None,
            "status": "new",
            "createdAt": now,
            "updatedAt": now,
        }
    )
    payload["_id"] = messages.insert_one(payload).inserted_id
    return payload


def list_messages(messages: Collection, status: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
    query: Dict[str, Any] = {}
    if status:
        if status not in STATUSES:
            raise BadRequest(f"status must be one of: {', '.join(STATUSES)}")
        query["status"] = status
    cursor = messages.find(query).sort("createdAt", DESCENDING).limit(limit)
    return [format_message(doc) for doc in cursor]


def update_message_status(messages: Collection, message_id: Any, status: Any) -> None:
    if not message_id or status not in STATUSES:
        raise BadRequest(f"id and a status of {', '.join(STATUSES)} are required")
    result = messages.update_one(
        {"_id": validate_object_id(message_id)},
        {"$set": {"status": status, "updatedAt": datetime.utcnow()}},
    )
    if result.matched_count == 0:
        raise NotFound("Message not found")
