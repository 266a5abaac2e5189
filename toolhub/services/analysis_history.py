"""Per-user analysis history with duplicate request detection."""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING
from pymongo.collection import Collection
from werkzeug.exceptions import NotFound

from toolhub.core import isoformat
from toolhub.core.utils import validate_object_id
from toolhub.services.parameter_hash import (
    compare_parameters,
    generate_parameter_hash,
    normalize_parameters,
)

logger = logging.getLogger(__name__)

SIMILAR_CANDIDATES = 10
DUPLICATE_SIMILARITY = 0.9
MAX_REPORTED_DIFFERENCES = 5


def format_analysis(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(doc["_id"]),
        "analysisType": doc.get("analysisType"),
        "toolSlug": doc.get("toolSlug"),
        "toolName": doc.get("toolName"),
        "inputData": doc.get("inputData") or {},
        "result": doc.get("result"),
        "metadata": doc.get("metadata") or {},
        "status": doc.get("status"),
        "isDuplicate": bool(doc.get("isDuplicate")),
        "originalAnalysisId": doc.get("originalAnalysisId"),
        "regenerationCount": int(doc.get("regenerationCount", 0) or 0),
        "accessCount": int(doc.get("accessCount", 0) or 0),
        "lastAccessed": isoformat(doc.get("lastAccessed")),
        "createdAt": isoformat(doc.get("createdAt")),
    }


def _touch(history: Collection, analysis_id: Any) -> None:
    history.update_one(
        {"_id": analysis_id},
        {"$inc": {"accessCount": 1}, "$set": {"lastAccessed": datetime.utcnow()}},
    )


def find_key_differences(params1: Dict[str, Any], params2: Dict[str, Any]) -> List[str]:
    differences: List[str] = []
    for key in dict.fromkeys([*params1, *params2]):
        if key not in params1:
            differences.append(f"Missing: {key}")
        elif key not in params2:
            differences.append(f"Extra: {key}")
        elif params1[key] != params2[key]:
            differences.append(f"Different: {key}")
    return differences[:MAX_REPORTED_DIFFERENCES]


def check_for_duplicates(history: Collection, request: Dict[str, Any]) -> Dict[str, Any]:
    """Look for an earlier analysis by the same user with equivalent inputs.

    ``request`` carries ``userId``, ``toolSlug`` and ``parameters``. An exact
    parameter hash match wins outright; otherwise the most recent analyses of
    the same tool are scored and the closest one counts when it is similar
    enough.
    """
    user_id = request["userId"]
    tool_slug = request["toolSlug"]
    parameters = request.get("parameters") or {}
    parameter_hash = generate_parameter_hash(parameters, tool_slug, user_id)

    existing = history.find_one({"userId": user_id, "parameterHash": parameter_hash})
    if existing is not None:
        _touch(history, existing["_id"])
        return {
            "isDuplicate": True,
            "existingAnalysis": existing,
            "similarity": 1.0,
            "differences": [],
            "shouldShowWarning": True,
            "parameterHash": parameter_hash,
        }

    candidates = (
        history.find({"userId": user_id, "toolSlug": tool_slug})
        .sort("createdAt", DESCENDING)
        .limit(SIMILAR_CANDIDATES)
    )
    best_match: Optional[Dict[str, Any]] = None
    best_similarity = 0.0
    for candidate in candidates:
        comparison = compare_parameters(
            parameters,
            candidate.get("inputData") or {},
            tool_slug,
            candidate.get("toolSlug"),
            user_id,
            candidate.get("userId"),
        )
        if comparison["similarity"] > best_similarity:
            best_similarity = comparison["similarity"]
            best_match = candidate

    if best_match is not None and best_similarity > DUPLICATE_SIMILARITY:
        return {
            "isDuplicate": True,
            "existingAnalysis": best_match,
            "similarity": best_similarity,
            "differences": find_key_differences(parameters, best_match.get("inputData") or {}),
            "shouldShowWarning": True,
            "parameterHash": parameter_hash,
        }

    return {
        "isDuplicate": False,
        "similarity": 0.0,
        "differences": [],
        "shouldShowWarning": False,
        "parameterHash": parameter_hash,
    }


def save_analysis_result(
    history: Collection,
    request: Dict[str, Any],
    result: Any,
    metadata: Dict[str, Any],
    is_duplicate: bool = False,
    original_analysis_id: Optional[str] = None,
) -> str:
    user_id = request["userId"]
    tool_slug = request["toolSlug"]
    parameters = request.get("parameters") or {}
    now = datetime.utcnow()
    doc = {
        "userId": user_id,
        "analysisType": request.get("analysisType"),
        "toolSlug": tool_slug,
        "toolName": request.get("toolName"),
        "inputData": parameters,
        "result": result,
        "metadata": {
            **(metadata or {}),
            "userAgent": (metadata or {}).get("userAgent") or "Unknown",
            "ipAddress": (metadata or {}).get("ipAddress") or "Unknown",
        },
        "status": request.get("status", "completed"),
        "isAnonymous": bool(request.get("isAnonymous", False)),
        "parameterHash": generate_parameter_hash(parameters, tool_slug, user_id),
        "normalizedParameters": normalize_parameters(parameters),
        "isDuplicate": is_duplicate,
        "originalAnalysisId": original_analysis_id,
        "regenerationCount": 1 if is_duplicate else 0,
        "accessCount": 1,
        "lastAccessed": now,
        "createdAt": now,
        "updatedAt": now,
    }
    return str(history.insert_one(doc).inserted_id)


def force_regenerate(history: Collection, request: Dict[str, Any], result: Any, metadata: Dict[str, Any]) -> str:
    return save_analysis_result(history, request, result, metadata, is_duplicate=False)


def get_analysis(history: Collection, analysis_id: str, user_id: str) -> Dict[str, Any]:
    doc = history.find_one({"_id": validate_object_id(analysis_id)})
    if doc is None or doc.get("userId") != user_id:
        raise NotFound("Analysis not found or access denied")
    return doc


def get_cached_result(history: Collection, analysis_id: str, user_id: str) -> Dict[str, Any]:
    doc = get_analysis(history, analysis_id, user_id)
    _touch(history, doc["_id"])
    return {
        "result": doc.get("result"),
        "metadata": doc.get("metadata") or {},
        "createdAt": isoformat(doc.get("createdAt")),
        "isDuplicate": bool(doc.get("isDuplicate")),
        "originalAnalysis": doc.get("originalAnalysisId"),
    }


def get_duplicate_groups(history: Collection, user_id: str) -> List[List[Dict[str, Any]]]:
    groups: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
    for doc in history.find({"userId": user_id}).sort("createdAt", DESCENDING):
        groups.setdefault(doc.get("parameterHash") or "", []).append(doc)
    return [group for key, group in groups.items() if key and len(group) > 1]


def cleanup_duplicates(history: Collection, user_id: str, days_old: int = 30) -> int:
    cutoff = datetime.utcnow() - timedelta(days=days_old)
    result = history.delete_many({"userId": user_id, "isDuplicate": True, "createdAt": {"$lt": cutoff}})
    if result.deleted_count:
        logger.info("Removed %d stale duplicate analyses for %s", result.deleted_count, user_id)
    return result.deleted_count


def user_stats(history: Collection, user_id: str) -> Dict[str, Any]:
    total = history.count_documents({"userId": user_id})
    successful = history.count_documents({"userId": user_id, "status": "completed"})
    duplicates = history.count_documents({"userId": user_id, "isDuplicate": True})
    unique_tools = len(history.distinct("toolSlug", {"userId": user_id}))
    success_rate = round(successful / total * 100, 2) if total else 0
    return {
        "totalAnalyses": total,
        "successfulAnalyses": successful,
        "duplicateAnalyses": duplicates,
        "uniqueAnalyses": total - duplicates,
        "uniqueTools": unique_tools,
        "successRate": success_rate,
    }


def tool_usage_stats(history: Collection, user_id: str) -> List[Dict[str, Any]]:
    stats: Dict[str, Dict[str, Any]] = {}
    for doc in history.find({"userId": user_id}).sort("createdAt", DESCENDING):
        slug = doc.get("toolSlug")
        entry = stats.setdefault(
            slug,
            {
                "toolSlug": slug,
                "toolName": doc.get("toolName") or slug,
                "totalUsage": 0,
                "successful": 0,
                "lastUsed": isoformat(doc.get("createdAt")),
            },
        )
        entry["totalUsage"] += 1
        if doc.get("status") == "completed":
            entry["successful"] += 1

    out = []
    for entry in stats.values():
        successful = entry.pop("successful")
        entry["successRate"] = round(successful / entry["totalUsage"] * 100, 2)
        out.append(entry)
    return sorted(out, key=lambda item: item["totalUsage"], reverse=True)


def list_history(
    history: Collection,
    user_id: str,
    limit: int = 20,
    offset: int = 0,
    tool_slug: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    query: Dict[str, Any] = {"userId": user_id}
    if tool_slug:
        query["toolSlug"] = tool_slug
    total = history.count_documents(query)
    cursor = history.find(query).sort("createdAt", DESCENDING).skip(offset).limit(limit)
    return [format_analysis(doc) for doc in cursor], total


def delete_analysis(history: Collection, analysis_id: str, user_id: str) -> None:
    result = history.delete_one({"_id": validate_object_id(analysis_id), "userId": user_id})
    if result.deleted_count == 0:
        raise NotFound("Analysis not found or access denied")


def export_history(history: Collection, user_id: str) -> Dict[str, Any]:
    items = [format_analysis(doc) for doc in history.find({"userId": user_id}).sort("createdAt", DESCENDING)]
    return {
        "userId": user_id,
        "exportedAt": isoformat(datetime.utcnow()),
        "totalAnalyses": len(items),
        "analyses": items,
    }
