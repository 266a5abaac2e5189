"""Aggregates for the admin dashboard and end-user management."""

import re
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING
from werkzeug.exceptions import NotFound

from toolhub.core import isoformat
from toolhub.core.utils import validate_object_id
from toolhub.services.admin_accounts import recent_activity
from toolhub.services.tools import tool_name
from toolhub.services.url_shortener import calculate_url_stats

ACTIVE_WINDOW = timedelta(days=7)
TOP_TOOLS = 8


def dashboard_stats(database, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    users = database["authusers"]
    week_ago = now - ACTIVE_WINDOW

    total_users = users.count_documents({})
    active_users = users.count_documents(
        {"$or": [{"lastLoginAt": {"$gte": week_ago}}, {"updatedAt": {"$gte": week_ago}}]}
    )
    recent_signups = users.count_documents({"createdAt": {"$gte": week_ago}})
    users_by_role = Counter(doc.get("role", "user") for doc in users.find({}, {"role": 1}))

    usage_counts: Counter = Counter()
    for doc in database["tool_usage"].find({"createdAt": {"$gte": now - timedelta(days=1)}}, {"toolSlug": 1}):
        usage_counts[doc.get("toolSlug")] += 1

    url_stats = calculate_url_stats(database["shortened_urls"].find({}, {"clicks": 1, "expiresAt": 1, "isActive": 1}), now)

    return {
        "totalUsers": total_users,
        "activeUsers": active_users,
        "recentSignups": recent_signups,
        "usersByRole": dict(users_by_role),
        "toolUsage": [
            {"toolSlug": slug, "toolName": tool_name(slug), "count": count}
            for slug, count in usage_counts.most_common(TOP_TOOLS)
        ],
        "totalToolUsage": sum(usage_counts.values()),
        "newContactMessages": database["contact_messages"].count_documents({"status": "new"}),
        "shortenedUrls": url_stats,
        "recentActivity": recent_activity(database, 10),
        "generatedAt": isoformat(now),
    }


def format_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "email": doc.get("email"),
        "username": doc.get("username"),
        "name": doc.get("name"),
        "role": doc.get("role", "user"),
        "isActive": bool(doc.get("isActive", True)),
        "createdAt": isoformat(doc.get("createdAt")),
        "lastLoginAt": isoformat(doc.get("lastLoginAt")),
    }


def list_users(database, search: Optional[str] = None, limit: int = 50, offset: int = 0) -> Tuple[List[Dict[str, Any]], int]:
    query: Dict[str, Any] = {}
    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"email": {"$regex": pattern, "$options": "i"}},
            {"name": {"$regex": pattern, "$options": "i"}},
            {"username": {"$regex": pattern, "$options": "i"}},
        ]
    users = database["authusers"]
    total = users.count_documents(query)
    cursor = users.find(query, {"passwordHash": 0}).sort("createdAt", DESCENDING).skip(offset).limit(limit)
    return [format_user(doc) for doc in cursor], total


def set_user_active(database, user_id: str, active: bool) -> Dict[str, Any]:
    users = database["authusers"]
    oid = validate_object_id(user_id)
    result = users.update_one({"_id": oid}, {"$set": {"isActive": active, "updatedAt": datetime.utcnow()}})
    if result.matched_count == 0:
        raise NotFound("User not found")
    return format_user(users.find_one({"_id": oid}))
