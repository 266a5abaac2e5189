"""Short link generation, validation, click tracking and owner statistics."""

import logging
import random
import re
import string
import time
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, NotFound

from toolhub.core import isoformat
from toolhub.core.utils import validate_object_id

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_letters + string.digits
ALIAS_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,20}$")
RESERVED_PATHS = {
    "api", "admin", "auth", "dashboard", "tools", "about", "contact", "privacy",
    "terms", "login", "signup", "signin", "logout", "profile", "settings",
    "help", "support", "docs", "blog", "news", "r", "s",
}
ADJECTIVES = [
    "fast", "quick", "smart", "cool", "best", "top", "new", "hot",
    "big", "tiny", "super", "mega", "ultra", "pro", "max",
]
NOUNS = [
    "link", "url", "web", "site", "page", "go", "jump", "fly",
    "run", "dash", "zoom", "boost", "rocket", "flash", "bolt",
]
MAX_EXPIRATION_DAYS = 3650
UNIQUE_CODE_ATTEMPTS = 20
BULK_OPERATIONS = ("delete", "activate", "deactivate", "extend", "remove_expiration")

_rng = random.SystemRandom()


def generate_short_code(length: int = 6, rng: Optional[random.Random] = None) -> str:
    if length < 1 or length > 20:
        raise ValueError("Short code length must be between 1 and 20 characters")
    rng = rng or _rng
    return "".join(rng.choice(CODE_ALPHABET) for _ in range(length))


def generate_memorable_code(rng: Optional[random.Random] = None) -> str:
    rng = rng or _rng
    return f"{rng.choice(ADJECTIVES)}{rng.choice(NOUNS)}{rng.randrange(1000):03d}"


def _with_scheme(url: str) -> str:
    if not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", url):
        return f"https://{url}"
    return url


def is_valid_url(url: Any) -> bool:
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(_with_scheme(url.strip()))
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and " " not in parsed.netloc


def normalize_url(url: Any) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ValueError("URL is required")
    return _with_scheme(url.strip())


def is_valid_custom_alias(alias: Any) -> bool:
    if not isinstance(alias, str):
        return False
    alias = alias.strip()
    return bool(ALIAS_PATTERN.match(alias)) and alias.lower() not in RESERVED_PATHS


def generate_expiration_date(days: int, now: Optional[datetime] = None) -> datetime:
    if days < 1 or days > MAX_EXPIRATION_DAYS:
        raise ValueError(f"Expiration must be between 1 and {MAX_EXPIRATION_DAYS} days")
    return (now or datetime.utcnow()) + timedelta(days=days)


def is_url_expired(doc: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    expires_at = doc.get("expiresAt")
    return bool(expires_at) and (now or datetime.utcnow()) > expires_at


def _base36(value: int) -> str:
    digits = string.digits + string.ascii_lowercase
    out = ""
    while value:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
    return out or "0"


def generate_unique_short_code(
    collection: Collection, memorable: bool = True, rng: Optional[random.Random] = None
) -> str:
    for _ in range(UNIQUE_CODE_ATTEMPTS):
        code = generate_memorable_code(rng) if memorable else generate_short_code(6, rng)
        if collection.find_one({"shortCode": code}, {"_id": 1}) is None:
            return code
    logger.warning("Short code space crowded, falling back to timestamped code")
    return generate_short_code(4, rng) + _base36(int(time.time() * 1000))


def calculate_url_stats(docs: Iterable[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, int]:
    now = now or datetime.utcnow()
    stats = {"totalUrls": 0, "totalClicks": 0, "activeUrls": 0, "expiredUrls": 0}
    for doc in docs:
        stats["totalUrls"] += 1
        stats["totalClicks"] += int(doc.get("clicks", 0) or 0)
        if is_url_expired(doc, now):
            stats["expiredUrls"] += 1
        elif doc.get("isActive", True):
            stats["activeUrls"] += 1
    return stats


def format_url(doc: Dict[str, Any], base_url: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "originalUrl": doc.get("originalUrl"),
        "shortCode": doc.get("shortCode"),
        "shortenedUrl": f"{base_url}/r/{doc.get('shortCode')}",
        "customAlias": doc.get("customAlias"),
        "clicks": int(doc.get("clicks", 0) or 0),
        "createdAt": isoformat(doc.get("createdAt")),
        "updatedAt": isoformat(doc.get("updatedAt")),
        "expiresAt": isoformat(doc.get("expiresAt")),
        "isActive": bool(doc.get("isActive", True)),
        "isExpired": is_url_expired(doc, now),
        "userId": doc.get("userId"),
        "anonymousUserId": doc.get("anonymousUserId"),
        "tags": doc.get("tags") or [],
        "description": doc.get("description"),
    }


def owner_query(user_id: Optional[str], anonymous_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if user_id:
        return {"userId": user_id}
    if anonymous_id:
        return {"anonymousUserId": anonymous_id}
    return None


def create_short_url(
    collection: Collection,
    payload: Dict[str, Any],
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    raw_url = payload.get("originalUrl") or payload.get("url")
    if not is_valid_url(raw_url):
        raise BadRequest("Please provide a valid http or https URL")
    original_url = normalize_url(raw_url)

    alias = payload.get("customAlias")
    alias = alias.strip() if isinstance(alias, str) and alias.strip() else None
    if alias is not None and not is_valid_custom_alias(alias):
        raise BadRequest(
            "Custom alias must be 3-20 letters, numbers, hyphens or underscores and not a reserved word"
        )

    expires_at = None
    if payload.get("expiresInDays") not in (None, ""):
        try:
            expires_at = generate_expiration_date(int(payload["expiresInDays"]), now)
        except (TypeError, ValueError):
            raise BadRequest(f"expiresInDays must be between 1 and {MAX_EXPIRATION_DAYS}")

    if alias is not None:
        if collection.find_one({"shortCode": alias, "isActive": True}, {"_id": 1}):
            raise Conflict("Custom alias already exists")
        # a deactivated link still holds the code in the unique index
        collection.delete_many({"shortCode": alias, "isActive": False})
        code = alias
    else:
        code = generate_unique_short_code(collection, bool(payload.get("memorable", True)), rng)

    tags = payload.get("tags") or []
    if not isinstance(tags, list):
        raise BadRequest("tags must be a list")

    doc: Dict[str, Any] = {
        "originalUrl": original_url,
        "shortCode": code,
        "customAlias": alias,
        "clicks": 0,
        "clickHistory": [],
        "createdAt": now,
        "updatedAt": now,
        "expiresAt": expires_at,
        "userId": user_id,
        "anonymousUserId": None if user_id else payload.get("anonymousUserId"),
        "isActive": True,
        "tags": [str(tag).strip() for tag in tags if str(tag).strip()],
        "description": (payload.get("description") or None),
    }
    try:
        result = collection.insert_one(doc)
    except DuplicateKeyError:
        raise Conflict("Custom alias already exists")
    doc["_id"] = result.inserted_id
    return doc


def resolve_short_code(collection: Collection, code: str, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    doc = collection.find_one({"shortCode": code, "isActive": True})
    if doc is None or is_url_expired(doc, now):
        return None
    return doc


def track_click(collection: Collection, doc: Dict[str, Any], event: Dict[str, Any]) -> None:
    entry = {
        "timestamp": event.get("timestamp") or datetime.utcnow(),
        "ipAddress": event.get("ipAddress"),
        "userAgent": event.get("userAgent"),
        "referer": event.get("referer"),
    }
    collection.update_one(
        {"_id": doc["_id"]},
        {"$inc": {"clicks": 1}, "$push": {"clickHistory": entry}, "$set": {"lastClickedAt": entry["timestamp"]}},
    )


def list_urls(
    collection: Collection,
    owner: Dict[str, Any],
    active_only: bool = True,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Dict[str, Any]], int]:
    query = dict(owner)
    if active_only:
        query["isActive"] = True
    total = collection.count_documents(query)
    cursor = collection.find(query).sort("createdAt", DESCENDING).skip(offset).limit(limit)
    return list(cursor), total


def owner_stats(collection: Collection, owner: Dict[str, Any], base_url: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    docs = list(collection.find({**owner, "isActive": True}).sort("createdAt", DESCENDING))
    stats: Dict[str, Any] = dict(calculate_url_stats(docs, now))
    stats["averageClicks"] = round(stats["totalClicks"] / stats["totalUrls"], 2) if docs else 0
    stats["recentUrls"] = [format_url(doc, base_url, now) for doc in docs[:5]]
    top = sorted(docs, key=lambda doc: int(doc.get("clicks", 0) or 0), reverse=True)[:5]
    stats["topUrls"] = [format_url(doc, base_url, now) for doc in top]

    days = [(now - timedelta(days=offset)).date() for offset in range(6, -1, -1)]
    clicks_by_day: Counter = Counter()
    created_by_day: Counter = Counter()
    for doc in docs:
        created = doc.get("createdAt")
        if isinstance(created, datetime):
            created_by_day[created.date()] += 1
        for click in doc.get("clickHistory") or []:
            stamp = click.get("timestamp")
            if isinstance(stamp, datetime):
                clicks_by_day[stamp.date()] += 1
    stats["recentActivity"] = [
        {"date": day.isoformat(), "clicks": clicks_by_day[day], "newUrls": created_by_day[day]}
        for day in days
    ]
    return stats


def soft_delete(collection: Collection, url_id: str) -> None:
    result = collection.update_one(
        {"_id": validate_object_id(url_id)},
        {"$set": {"isActive": False, "updatedAt": datetime.utcnow()}},
    )
    if result.matched_count == 0:
        raise NotFound("URL not found")


def update_url(collection: Collection, url_id: str, data: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Only activation state and expiry can change after creation."""
    now = now or datetime.utcnow()
    oid = validate_object_id(url_id)
    updates: Dict[str, Any] = {}
    if "isActive" in data:
        updates["isActive"] = bool(data["isActive"])
    if "expiresInDays" in data:
        if data["expiresInDays"] is None:
            updates["expiresAt"] = None
        else:
            try:
                updates["expiresAt"] = generate_expiration_date(int(data["expiresInDays"]), now)
            except (TypeError, ValueError):
                raise BadRequest(f"expiresInDays must be between 1 and {MAX_EXPIRATION_DAYS}")
    if not updates:
        raise BadRequest("Only isActive and expiresInDays can be updated")
    updates["updatedAt"] = now
    result = collection.update_one({"_id": oid}, {"$set": updates})
    if result.matched_count == 0:
        raise NotFound("URL not found")
    return collection.find_one({"_id": oid})


def bulk_update(
    collection: Collection,
    ids: List[str],
    user_id: str,
    operation: str,
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    now = now or datetime.utcnow()
    if operation not in BULK_OPERATIONS:
        raise BadRequest(f"operation must be one of: {', '.join(BULK_OPERATIONS)}")
    if not isinstance(ids, list) or not ids:
        raise BadRequest("urlIds must be a non-empty list")
    object_ids = []
    for raw in ids:
        try:
            object_ids.append(validate_object_id(raw))
        except NotFound:
            raise BadRequest(f"Invalid URL id: {raw}")

    owned = collection.count_documents({"_id": {"$in": object_ids}, "userId": user_id})
    if owned != len(set(object_ids)):
        raise Forbidden("Some URLs do not belong to you")

    if operation == "delete":
        update: Dict[str, Any] = {"$set": {"isActive": False}}
    elif operation == "activate":
        update = {"$set": {"isActive": True}}
    elif operation == "deactivate":
        update = {"$set": {"isActive": False}}
    elif operation == "remove_expiration":
        update = {"$set": {"expiresAt": None}}
    else:
        try:
            expires_at = generate_expiration_date(int(days or 0), now)
        except (TypeError, ValueError):
            raise BadRequest("days must be between 1 and 3650 for extend")
        update = {"$set": {"expiresAt": expires_at}}
    update["$set"]["updatedAt"] = now

    result = collection.update_many({"_id": {"$in": object_ids}, "userId": user_id}, update)
    return result.modified_count


def url_analytics(doc: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    created = doc.get("createdAt") or now
    age_days = max((now - created).days, 1)
    clicks = int(doc.get("clicks", 0) or 0)
    referrers = Counter(
        (click.get("referer") or "direct") for click in doc.get("clickHistory") or []
    )
    return {
        "domain": urlparse(doc.get("originalUrl") or "").netloc,
        "clicks": clicks,
        "clicksPerDay": round(clicks / age_days, 2),
        "topReferrers": [
            {"referer": referer, "clicks": count} for referer, count in referrers.most_common(5)
        ],
        "lastClickedAt": isoformat(doc.get("lastClickedAt")),
    }
