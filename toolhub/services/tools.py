"""Tool directory, ratings, usage tracking and favorites."""

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from toolhub.core import isoformat
from toolhub.core.utils import validate_object_id

logger = logging.getLogger(__name__)

TOOLS: List[Dict[str, Any]] = [
    {"slug": "swot-analysis", "name": "SWOT Analysis Tool", "description": "Generate comprehensive SWOT analysis based on your input", "category": "Business", "features": ["AI-powered analysis", "Comprehensive reports", "Export options"]},
    {"slug": "finance-advisor", "name": "Finance Tools", "description": "Comprehensive financial planning and analysis", "category": "Finance", "features": ["8 modules", "AI insights", "Retirement planning"]},
    {"slug": "diet-planner", "name": "Diet Planner", "description": "AI-driven meal planning and nutrition recommendations", "category": "Healthcare", "features": ["AI meal plans", "Nutrition analysis", "Dietary restrictions"]},
    {"slug": "price-tracker", "name": "Product Price Tracker", "description": "Track prices of products across websites", "category": "Shopping", "features": ["AI pricing", "Price history", "Alerts"]},
    {"slug": "age-calculator", "name": "Age Calculator", "description": "Comprehensive age analysis with life milestones", "category": "Health", "features": ["Life milestones", "Health recommendations", "AI insights"]},
    {"slug": "quote-generator", "name": "Quote Generator", "description": "Generate AI-powered quotes and inspiration", "category": "Entertainment", "features": ["Topic-based", "Mood selection", "AI generation"]},
    {"slug": "resume-reviewer", "name": "Resume Reviewer", "description": "AI-powered resume analysis and optimization", "category": "Career", "features": ["ATS optimization", "Industry analysis", "Actionable feedback"]},
    {"slug": "mock-interviewer", "name": "Mock Interviewer", "description": "Role-based interview practice with real market data and evaluation", "category": "Career", "features": ["Role-based questions", "Real market data", "Experience level matching"]},
    {"slug": "job-interviewer", "name": "Job-Specific Interviewer", "description": "Targeted interviews based on job postings and requirements", "category": "Career", "features": ["Job posting analysis", "Role-based questions", "Job fit scoring"]},
    {"slug": "url-shortener", "name": "URL Shortener", "description": "Shorten URLs with custom aliases and analytics", "category": "Utility", "features": ["Custom aliases", "Click tracking", "QR codes"]},
    {"slug": "qr-generator", "name": "QR Code Generator", "description": "Generate QR codes for any text or URL", "category": "Utility", "features": ["Custom styling", "Multiple formats", "Download options"]},
    {"slug": "password-generator", "name": "Password Generator", "description": "Generate secure random passwords", "category": "Security", "features": ["Multiple options", "Strength meter", "Copy to clipboard"]},
    {"slug": "tip-calculator", "name": "Tip Calculator", "description": "Calculate tips and split bills with AI suggestions", "category": "Finance", "features": ["AI suggestions", "Bill splitting", "Tax calculations"]},
    {"slug": "word-counter", "name": "Word Counter", "description": "Count words with detailed analysis", "category": "Writing", "features": ["Detailed analysis", "Readability score", "Character count"]},
    {"slug": "unit-converter", "name": "Unit Converter", "description": "Convert between different units with live currency", "category": "Utility", "features": ["Live currency", "Multiple units", "Real-time rates"]},
]
for _tool in TOOLS:
    _tool["href"] = f"/tools/{_tool['slug']}"

TOOLS_BY_SLUG = {tool["slug"]: tool for tool in TOOLS}
USAGE_ACTIONS = ("view", "generate", "download", "share", "analyze")
MAX_REVIEW_LENGTH = 1000


def get_tool(slug: str) -> Dict[str, Any]:
    tool = TOOLS_BY_SLUG.get(slug)
    if tool is None:
        raise NotFound("Tool not found")
    return tool


def tool_name(slug: str) -> str:
    tool = TOOLS_BY_SLUG.get(slug)
    return tool["name"] if tool else slug


def list_tools(category: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
    tools = TOOLS
    if category:
        tools = [tool for tool in tools if tool["category"].lower() == category.lower()]
    if search:
        needle = search.lower()
        tools = [
            tool
            for tool in tools
            if needle in tool["name"].lower()
            or needle in tool["description"].lower()
            or any(needle in feature.lower() for feature in tool["features"])
        ]
    return tools


# --------- Ratings ---------

def format_rating(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "userId": doc.get("userId"),
        "userName": doc.get("userName"),
        "toolSlug": doc.get("toolSlug"),
        "toolName": doc.get("toolName"),
        "rating": doc.get("rating"),
        "review": doc.get("review"),
        "helpful": int(doc.get("helpful", 0) or 0),
        "isVerified": bool(doc.get("isVerified", False)),
        "createdAt": isoformat(doc.get("createdAt")),
        "updatedAt": isoformat(doc.get("updatedAt")),
    }


def _validate_rating(value: Any) -> int:
    if isinstance(value, bool):
        raise BadRequest("rating must be a whole number between 1 and 5")
    try:
        rating = float(value)
    except (TypeError, ValueError):
        raise BadRequest("rating must be a whole number between 1 and 5")
    if not rating.is_integer() or not 1 <= rating <= 5:
        raise BadRequest("rating must be a whole number between 1 and 5")
    return int(rating)


def add_rating(ratings: Collection, user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    """Create or replace the caller's rating for a tool."""
    slug = data.get("toolSlug")
    if not slug:
        raise BadRequest("toolSlug is required")
    rating = _validate_rating(data.get("rating"))
    review = data.get("review")
    if review is not None:
        review = str(review).strip()
        if len(review) > MAX_REVIEW_LENGTH:
            raise BadRequest(f"review must be at most {MAX_REVIEW_LENGTH} characters")

    now = datetime.utcnow()
    key = {"userId": user["id"], "toolSlug": slug}
    updates = {
        "rating": rating,
        "review": review or None,
        "toolName": data.get("toolName") or tool_name(slug),
        "userName": user.get("name"),
        "userEmail": user.get("email"),
        "updatedAt": now,
    }
    try:
        doc = ratings.find_one_and_update(
            key,
            {
                "$set": updates,
                "$setOnInsert": {"helpful": 0, "reported": False, "isVerified": False, "createdAt": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        # lost an upsert race; the row exists now
        doc = ratings.find_one_and_update(key, {"$set": updates}, return_document=ReturnDocument.AFTER)
    return doc


def get_tool_ratings(ratings: Collection, slug: str, limit: int = 10, skip: int = 0) -> List[Dict[str, Any]]:
    cursor = (
        ratings.find({"toolSlug": slug, "reported": {"$ne": True}})
        .sort([("helpful", DESCENDING), ("createdAt", DESCENDING)])
        .skip(skip)
        .limit(limit)
    )
    return [format_rating(doc) for doc in cursor]


def get_tool_rating_stats(ratings: Collection, slug: str) -> Dict[str, Any]:
    values = [
        int(doc.get("rating", 0))
        for doc in ratings.find({"toolSlug": slug, "reported": {"$ne": True}}, {"rating": 1})
    ]
    distribution = {str(star): 0 for star in range(1, 6)}
    for value in values:
        if str(value) in distribution:
            distribution[str(value)] += 1
    return {
        "toolSlug": slug,
        "averageRating": round(sum(values) / len(values), 2) if values else 0,
        "totalRatings": len(values),
        "ratingDistribution": distribution,
    }


def get_user_rating(ratings: Collection, user_id: str, slug: str) -> Optional[Dict[str, Any]]:
    doc = ratings.find_one({"userId": user_id, "toolSlug": slug})
    return format_rating(doc) if doc else None


def mark_helpful(ratings: Collection, rating_id: str) -> None:
    result = ratings.update_one({"_id": validate_object_id(rating_id)}, {"$inc": {"helpful": 1}})
    if result.matched_count == 0:
        raise NotFound("Rating not found")


def report_rating(ratings: Collection, rating_id: str) -> None:
    result = ratings.update_one(
        {"_id": validate_object_id(rating_id)},
        {"$set": {"reported": True, "updatedAt": datetime.utcnow()}},
    )
    if result.matched_count == 0:
        raise NotFound("Rating not found")


# --------- Usage ---------

def track_usage(usage: Collection, data: Dict[str, Any], user_id: Optional[str], meta: Dict[str, Any]) -> str:
    slug = data.get("toolSlug")
    name = data.get("toolName")
    action = data.get("action")
    if not slug or not name or not action:
        raise BadRequest("toolSlug, toolName and action are required")
    if action not in USAGE_ACTIONS:
        raise BadRequest(f"action must be one of: {', '.join(USAGE_ACTIONS)}")

    doc = {
        "toolSlug": slug,
        "toolName": name,
        "action": action,
        "userId": user_id,
        "isAnonymous": user_id is None,
        "sessionId": data.get("sessionId"),
        "metadata": data.get("metadata") or {},
        "ipAddress": meta.get("ipAddress"),
        "userAgent": meta.get("userAgent"),
        "createdAt": datetime.utcnow(),
    }
    return str(usage.insert_one(doc).inserted_id)


def tool_usage_stats(usage: Collection, days: int = 30, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    since = (now or datetime.utcnow()) - timedelta(days=days)
    totals: Counter = Counter()
    users: Dict[str, set] = defaultdict(set)
    by_type: Dict[str, Counter] = defaultdict(Counter)
    names: Dict[str, str] = {}
    last_used: Dict[str, datetime] = {}
    for doc in usage.find({"createdAt": {"$gte": since}}):
        slug = doc.get("toolSlug")
        totals[slug] += 1
        names.setdefault(slug, doc.get("toolName") or tool_name(slug))
        if doc.get("userId"):
            users[slug].add(doc["userId"])
        by_type[slug][doc.get("action") or "view"] += 1
        created = doc.get("createdAt")
        if created and (slug not in last_used or created > last_used[slug]):
            last_used[slug] = created

    return [
        {
            "toolSlug": slug,
            "toolName": names[slug],
            "totalUsage": count,
            "uniqueUsers": len(users[slug]),
            "usageByType": dict(by_type[slug]),
            "lastUsed": isoformat(last_used.get(slug)),
        }
        for slug, count in totals.most_common()
    ]


def user_activity(usage: Collection, user_id: str, days: int = 30, limit: int = 50) -> List[Dict[str, Any]]:
    since = datetime.utcnow() - timedelta(days=days)
    cursor = usage.find({"userId": user_id, "createdAt": {"$gte": since}}).sort("createdAt", DESCENDING).limit(limit)
    return [
        {
            "id": str(doc["_id"]),
            "toolSlug": doc.get("toolSlug"),
            "toolName": doc.get("toolName"),
            "action": doc.get("action"),
            "createdAt": isoformat(doc.get("createdAt")),
        }
        for doc in cursor
    ]


# --------- Favorites ---------

def format_favorite(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "toolSlug": doc.get("toolSlug"),
        "toolName": doc.get("toolName"),
        "category": doc.get("category"),
        "notes": doc.get("notes"),
        "tags": doc.get("tags") or [],
        "createdAt": isoformat(doc.get("createdAt")),
    }


def add_favorite(favorites: Collection, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    slug = data.get("toolSlug")
    if not slug:
        raise BadRequest("toolSlug is required")
    tool = TOOLS_BY_SLUG.get(slug, {})
    now = datetime.utcnow()
    doc = {
        "userId": user_id,
        "toolSlug": slug,
        "toolName": data.get("toolName") or tool.get("name") or slug,
        "category": data.get("category") or tool.get("category") or "Other",
        "notes": data.get("notes"),
        "tags": data.get("tags") or [],
        "createdAt": now,
        "updatedAt": now,
    }
    if favorites.find_one({"userId": user_id, "toolSlug": slug}, {"_id": 1}):
        raise Conflict("Tool already in favorites")
    try:
        doc["_id"] = favorites.insert_one(doc).inserted_id
    except DuplicateKeyError:
        raise Conflict("Tool already in favorites")
    return doc


def remove_favorite(favorites: Collection, user_id: str, slug: str) -> None:
    result = favorites.delete_one({"userId": user_id, "toolSlug": slug})
    if result.deleted_count == 0:
        raise NotFound("Favorite not found")


def update_favorite(favorites: Collection, user_id: str, slug: str, data: Dict[str, Any]) -> Dict[str, Any]:
    updates: Dict[str, Any] = {}
    if "notes" in data:
        updates["notes"] = data["notes"]
    if "tags" in data:
        if not isinstance(data["tags"], list):
            raise BadRequest("tags must be a list")
        updates["tags"] = data["tags"]
    if not updates:
        raise BadRequest("Only notes and tags can be updated")
    updates["updatedAt"] = datetime.utcnow()
    doc = favorites.find_one_and_update(
        {"userId": user_id, "toolSlug": slug}, {"$set": updates}, return_document=ReturnDocument.AFTER
    )
    if doc is None:
        raise NotFound("Favorite not found")
    return doc


def list_favorites(favorites: Collection, user_id: str) -> List[Dict[str, Any]]:
    return [format_favorite(doc) for doc in favorites.find({"userId": user_id}).sort("createdAt", DESCENDING)]


def favorite_stats(favorites: Collection, user_id: str) -> Dict[str, Any]:
    by_category = Counter(doc.get("category") or "Other" for doc in favorites.find({"userId": user_id}))
    return {"totalFavorites": sum(by_category.values()), "byCategory": dict(by_category)}
